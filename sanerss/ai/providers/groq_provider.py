"""
Groq Decision Provider
======================

Groq provider for fast LLM inference.
"""

from typing import Optional

import groq
from groq import AsyncGroq

from .base import DecisionProvider, status_error_code
from ..prompts import FilterPromptBuilder
from ...config.settings import AIProvider
from ...utils.exceptions import AIError, ErrorCode


class GroqProvider(DecisionProvider):
    """Groq AI provider with async support and SDK error mapping."""

    DEFAULT_MODEL = "llama-3.1-8b-instant"

    def __init__(
        self,
        api_key: str,
        model_name: Optional[str] = None,
        prompt_builder: Optional[FilterPromptBuilder] = None,
        temperature: float = 0.0,
        max_tokens: int = 100,
        timeout: float = 60.0,
    ):
        """Initialize Groq provider.

        Args:
            api_key: Groq API key
            model_name: Model to use (default: llama-3.1-8b-instant)

        Raises:
            AIError: If no API key is given
        """
        if not api_key:
            raise AIError(
                "Groq API key is required",
                provider="groq",
                error_code=ErrorCode.AI_INVALID_CREDENTIALS
            )

        super().__init__(
            model_name or self.DEFAULT_MODEL,
            AIProvider.GROQ,
            prompt_builder=prompt_builder,
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
        )

        self.async_client = AsyncGroq(api_key=api_key, timeout=timeout, max_retries=1)

        self.logger.info(f"Groq provider initialized with model: {self.model_name}")

    async def _complete(self, prompt: str) -> str:
        try:
            response = await self.async_client.chat.completions.create(
                model=self.model_name,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                response_format={"type": "json_object"},
            )

        except groq.APITimeoutError as e:
            raise AIError(
                f"Groq request timed out after {self.timeout}s",
                provider="groq",
                error_code=ErrorCode.AI_TIMEOUT,
            ) from e

        except groq.APIConnectionError as e:
            self.logger.error(f"Groq connection error: {e}")
            raise AIError(
                f"Connection to Groq failed: {e}",
                provider="groq",
                error_code=ErrorCode.AI_CONNECTION_ERROR,
            ) from e

        except groq.APIStatusError as e:
            self.logger.error(f"Groq API error: {e.status_code} - {e.message}")
            if e.status_code == 401:
                raise AIError(
                    "Invalid Groq API key",
                    provider="groq",
                    error_code=ErrorCode.AI_INVALID_CREDENTIALS,
                    recoverable=False,
                ) from e
            raise AIError(
                f"Groq API error: {e.status_code} - {e.message}",
                provider="groq",
                error_code=status_error_code(e.status_code),
            ) from e

        if not response.choices:
            raise AIError(
                "Groq returned no choices",
                provider="groq",
                error_code=ErrorCode.AI_INVALID_RESPONSE,
            )

        return response.choices[0].message.content or ""

    async def test_connection(self) -> bool:
        try:
            self.logger.info("Testing Groq connection...")
            await self.async_client.models.list()
            self.logger.info("Groq connection test successful")
            return True
        except groq.GroqError as e:
            self.logger.error(f"Groq connection test failed: {e}")
            return False
