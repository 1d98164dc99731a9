"""
Anthropic Decision Provider
===========================

Claude models through the Anthropic Messages API.
"""

from typing import Optional

import anthropic

from .base import DecisionProvider, status_error_code
from ..prompts import FilterPromptBuilder
from ...config.settings import AIProvider
from ...utils.exceptions import AIError, ErrorCode


class AnthropicProvider(DecisionProvider):
    """Anthropic provider with async client and SDK error mapping."""

    DEFAULT_MODEL = "claude-3-5-sonnet-20241022"

    def __init__(
        self,
        api_key: str,
        model_name: Optional[str] = None,
        prompt_builder: Optional[FilterPromptBuilder] = None,
        temperature: float = 0.0,
        max_tokens: int = 100,
        timeout: float = 60.0,
    ):
        """Initialize Anthropic provider.

        Args:
            api_key: Anthropic API key
            model_name: Model to use (default: claude-3-5-sonnet-20241022)

        Raises:
            AIError: If no API key is given
        """
        if not api_key:
            raise AIError(
                "Anthropic API key is required",
                provider="anthropic",
                error_code=ErrorCode.AI_INVALID_CREDENTIALS
            )

        super().__init__(
            model_name or self.DEFAULT_MODEL,
            AIProvider.ANTHROPIC,
            prompt_builder=prompt_builder,
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
        )

        self.client = anthropic.AsyncAnthropic(api_key=api_key, timeout=timeout, max_retries=1)

        self.logger.info(f"Anthropic provider initialized with model: {self.model_name}")

    async def _complete(self, prompt: str) -> str:
        try:
            response = await self.client.messages.create(
                model=self.model_name,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                messages=[{"role": "user", "content": prompt}],
            )

        except anthropic.APITimeoutError as e:
            raise AIError(
                f"Anthropic request timed out after {self.timeout}s",
                provider="anthropic",
                error_code=ErrorCode.AI_TIMEOUT,
            ) from e

        except anthropic.APIConnectionError as e:
            raise AIError(
                f"Connection to Anthropic failed: {e}",
                provider="anthropic",
                error_code=ErrorCode.AI_CONNECTION_ERROR,
            ) from e

        except anthropic.APIStatusError as e:
            self.logger.error(f"Anthropic API error: {e.status_code} - {e.message}")
            error_code = status_error_code(e.status_code)
            raise AIError(
                f"Anthropic API error: {e.status_code} - {e.message}",
                provider="anthropic",
                error_code=error_code,
                recoverable=error_code != ErrorCode.AI_INVALID_CREDENTIALS,
            ) from e

        # Only text blocks carry the answer
        return "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )

    async def test_connection(self) -> bool:
        try:
            self.logger.info("Testing Anthropic connection...")
            await self.client.models.retrieve(self.model_name)
            return True
        except anthropic.AnthropicError as e:
            self.logger.error(f"Anthropic connection test failed: {e}")
            return False
