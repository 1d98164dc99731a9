"""
AI Decision Providers
=====================

Provider implementations and a factory driven by ``AISettings``.
"""

from typing import Optional

from .anthropic_provider import AnthropicProvider
from .base import DecisionProvider, FilterVerdict, parse_verdict
from .gemini_provider import GeminiProvider
from .groq_provider import GroqProvider
from .openai_provider import OpenAIProvider
from ..prompts import FilterPromptBuilder
from ...config.settings import AIProvider, AISettings
from ...ingestion.content_cleaner import ContentCleaner


def create_provider(ai_settings: AISettings, timeout: float = 60.0) -> Optional[DecisionProvider]:
    """Build the configured provider.

    Returns:
        The provider, or None when no API key is configured for it
    """
    api_key = ai_settings.get_api_key()
    if not api_key:
        return None

    prompt_builder = FilterPromptBuilder(
        template=ai_settings.prompt,
        cleaner=ContentCleaner(max_excerpt_chars=ai_settings.max_excerpt_chars),
    )
    common = dict(
        model_name=ai_settings.model,
        prompt_builder=prompt_builder,
        temperature=ai_settings.temperature,
        max_tokens=ai_settings.max_tokens,
        timeout=timeout,
    )

    if ai_settings.provider == AIProvider.GROQ:
        return GroqProvider(api_key, **common)
    if ai_settings.provider == AIProvider.ANTHROPIC:
        return AnthropicProvider(api_key, **common)
    if ai_settings.provider == AIProvider.GEMINI:
        return GeminiProvider(api_key, **common)
    return OpenAIProvider(api_key, base_url=ai_settings.base_url, **common)


__all__ = [
    "AnthropicProvider",
    "DecisionProvider",
    "FilterVerdict",
    "GeminiProvider",
    "GroqProvider",
    "OpenAIProvider",
    "create_provider",
    "parse_verdict",
]
