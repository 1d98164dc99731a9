"""
OpenAI Decision Provider
========================

Chat-completions provider for OpenAI and any OpenAI-compatible endpoint
(OpenRouter, local inference servers) selected through ``base_url``.
"""

from typing import Optional

import openai

from .base import DecisionProvider, status_error_code
from ..prompts import FilterPromptBuilder
from ...config.settings import AIProvider
from ...utils.exceptions import AIError, ErrorCode


class OpenAIProvider(DecisionProvider):
    """OpenAI provider with async client and SDK error mapping."""

    DEFAULT_MODEL = "gpt-4o-mini"

    def __init__(
        self,
        api_key: str,
        model_name: Optional[str] = None,
        base_url: Optional[str] = None,
        prompt_builder: Optional[FilterPromptBuilder] = None,
        temperature: float = 0.0,
        max_tokens: int = 100,
        timeout: float = 60.0,
    ):
        """Initialize OpenAI provider.

        Args:
            api_key: API key
            model_name: Model to use (default: gpt-4o-mini)
            base_url: Optional OpenAI-compatible endpoint

        Raises:
            AIError: If no API key is given
        """
        if not api_key:
            raise AIError(
                "OpenAI API key is required",
                provider="openai",
                error_code=ErrorCode.AI_INVALID_CREDENTIALS
            )

        super().__init__(
            model_name or self.DEFAULT_MODEL,
            AIProvider.OPENAI,
            prompt_builder=prompt_builder,
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
        )

        self.client = openai.AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=1,
        )

        self.logger.info(f"OpenAI provider initialized with model: {self.model_name}")

    async def _complete(self, prompt: str) -> str:
        try:
            response = await self.client.chat.completions.create(
                model=self.model_name,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )

        except openai.APITimeoutError as e:
            raise AIError(
                f"OpenAI request timed out after {self.timeout}s",
                provider="openai",
                error_code=ErrorCode.AI_TIMEOUT,
            ) from e

        except openai.APIConnectionError as e:
            raise AIError(
                f"Connection to OpenAI failed: {e}",
                provider="openai",
                error_code=ErrorCode.AI_CONNECTION_ERROR,
            ) from e

        except openai.APIStatusError as e:
            self.logger.error(f"OpenAI API error: {e.status_code} - {e.message}")
            error_code = status_error_code(e.status_code)
            raise AIError(
                f"OpenAI API error: {e.status_code} - {e.message}",
                provider="openai",
                error_code=error_code,
                recoverable=error_code != ErrorCode.AI_INVALID_CREDENTIALS,
            ) from e

        if not response.choices:
            raise AIError(
                "OpenAI returned no choices",
                provider="openai",
                error_code=ErrorCode.AI_INVALID_RESPONSE,
            )

        content = response.choices[0].message.content or ""
        self.logger.debug(f"OpenAI response: {content[:200]}")
        return content

    async def test_connection(self) -> bool:
        try:
            self.logger.info("Testing OpenAI connection...")
            await self.client.models.retrieve(self.model_name)
            return True
        except openai.OpenAIError as e:
            self.logger.error(f"OpenAI connection test failed: {e}")
            return False
