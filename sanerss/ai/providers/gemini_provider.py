"""
Gemini Decision Provider
========================

Google Gemini models through the google-generativeai SDK, with safety
filters turned off.
"""

import asyncio
from typing import Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from google.generativeai.types import HarmBlockThreshold, HarmCategory

from .base import DecisionProvider, status_error_code
from ..prompts import FilterPromptBuilder
from ...config.settings import AIProvider
from ...utils.exceptions import AIError, ErrorCode


SAFETY_SETTINGS = {
    HarmCategory.HARM_CATEGORY_HATE_SPEECH: HarmBlockThreshold.BLOCK_NONE,
    HarmCategory.HARM_CATEGORY_HARASSMENT: HarmBlockThreshold.BLOCK_NONE,
    HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT: HarmBlockThreshold.BLOCK_NONE,
    HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT: HarmBlockThreshold.BLOCK_NONE,
}


class GeminiProvider(DecisionProvider):
    """Google Gemini provider."""

    DEFAULT_MODEL = "gemini-2.5-flash"

    def __init__(
        self,
        api_key: str,
        model_name: Optional[str] = None,
        prompt_builder: Optional[FilterPromptBuilder] = None,
        temperature: float = 0.0,
        max_tokens: int = 100,
        timeout: float = 60.0,
    ):
        """Initialize Gemini provider.

        Args:
            api_key: Google Gemini API key
            model_name: Model to use (default: gemini-2.5-flash)

        Raises:
            AIError: If no API key is given
        """
        if not api_key:
            raise AIError(
                "Gemini API key is required",
                provider="gemini",
                error_code=ErrorCode.AI_INVALID_CREDENTIALS
            )

        super().__init__(
            model_name or self.DEFAULT_MODEL,
            AIProvider.GEMINI,
            prompt_builder=prompt_builder,
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
        )

        genai.configure(api_key=api_key)
        self.model = genai.GenerativeModel(
            model_name=self.model_name,
            safety_settings=SAFETY_SETTINGS,
            generation_config=genai.types.GenerationConfig(
                temperature=temperature,
                max_output_tokens=max_tokens,
                response_mime_type="application/json",
            ),
        )

        self.logger.info(f"Gemini provider initialized with model: {self.model_name}")

    async def _complete(self, prompt: str) -> str:
        try:
            response = await self.model.generate_content_async(
                prompt, request_options={"timeout": self.timeout}
            )

        except google_exceptions.DeadlineExceeded as e:
            raise AIError(
                f"Gemini request timed out after {self.timeout}s",
                provider="gemini",
                error_code=ErrorCode.AI_TIMEOUT,
            ) from e

        except (google_exceptions.Unauthenticated, google_exceptions.PermissionDenied) as e:
            raise AIError(
                "Invalid Gemini API key",
                provider="gemini",
                error_code=ErrorCode.AI_INVALID_CREDENTIALS,
                recoverable=False,
            ) from e

        except google_exceptions.GoogleAPICallError as e:
            self.logger.error(f"Gemini API error: {e}")
            raise AIError(
                f"Gemini API error: {e}",
                provider="gemini",
                error_code=status_error_code(e.code or 0),
            ) from e

        except google_exceptions.GoogleAPIError as e:
            raise AIError(
                f"Connection to Gemini failed: {e}",
                provider="gemini",
                error_code=ErrorCode.AI_CONNECTION_ERROR,
            ) from e

        # .text raises when the candidate was blocked or is empty
        try:
            return response.text
        except ValueError as e:
            self.logger.warning(f"Gemini response blocked or empty: {e}")
            raise AIError(
                f"Gemini returned no text: {e}",
                provider="gemini",
                error_code=ErrorCode.AI_INVALID_RESPONSE,
            ) from e

    async def test_connection(self) -> bool:
        name = self.model_name if self.model_name.startswith("models/") else f"models/{self.model_name}"
        try:
            self.logger.info("Testing Gemini connection...")
            await asyncio.to_thread(genai.get_model, name)
            return True
        except google_exceptions.GoogleAPIError as e:
            self.logger.error(f"Gemini connection test failed: {e}")
            return False
