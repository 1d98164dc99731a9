"""
Base Decision Provider Interface
================================

Abstract base class and result model for AI providers that decide whether a
feed item matches the configured accept/reject topics.
"""

import json
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from ..prompts import FilterPromptBuilder
from ...config.settings import AIProvider
from ...ingestion.models import FeedItem
from ...utils.exceptions import AIError, ErrorCode
from ...utils.logging import get_logger_for_component


@dataclass
class FilterVerdict:
    """Raw provider answer for one item."""
    accept: bool
    reject: bool
    provider: Optional[str] = None
    model_used: Optional[str] = None
    processing_time_ms: Optional[int] = None

    @property
    def accepted(self) -> bool:
        """An item matching both lists is kept."""
        return self.accept or not self.reject


class DecisionProvider(ABC):
    """Abstract base class for AI decision providers."""

    def __init__(
        self,
        model_name: str,
        provider_type: AIProvider,
        prompt_builder: Optional[FilterPromptBuilder] = None,
        temperature: float = 0.0,
        max_tokens: int = 100,
        timeout: float = 60.0,
    ):
        """Initialize provider.

        Args:
            model_name: Model to use for requests
            provider_type: Type of provider
            prompt_builder: Prompt template hydration
            temperature: Sampling temperature
            max_tokens: Response token limit
            timeout: Request timeout in seconds
        """
        self.model_name = model_name
        self.provider_type = provider_type
        self.prompt_builder = prompt_builder or FilterPromptBuilder()
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.logger = get_logger_for_component(
            f"{provider_type.value}_provider", provider=provider_type.value
        )

    async def evaluate(
        self, item: FeedItem, accept_topics: List[str], reject_topics: List[str]
    ) -> FilterVerdict:
        """Ask the model whether ``item`` matches the topics.

        Raises:
            AIError: On transport failure or an unusable response
        """
        prompt = self.prompt_builder.build(item, accept_topics, reject_topics)

        start_time = time.time()
        content = await self._complete(prompt)
        verdict = parse_verdict(content, provider=self.provider_type.value)

        verdict.model_used = self.model_name
        verdict.processing_time_ms = int((time.time() - start_time) * 1000)
        return verdict

    @abstractmethod
    async def _complete(self, prompt: str) -> str:
        """Send ``prompt`` as a single user message and return the text reply.

        Raises:
            AIError: If the request fails
        """
        pass

    @abstractmethod
    async def test_connection(self) -> bool:
        """Test API connection and authentication.

        Returns:
            True if connection successful, False otherwise
        """
        pass

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(model={self.model_name})"


def strip_code_fences(content: str) -> str:
    """Remove a surrounding Markdown code fence, if any."""
    content = content.strip()
    if content.startswith("```") and content.endswith("```") and len(content) >= 6:
        content = content[3:-3].strip()
        if content.lower().startswith("json"):
            content = content[4:]
    return content.strip()


def parse_verdict(content: Optional[str], provider: Optional[str] = None) -> FilterVerdict:
    """Parse ``{"accept": bool, "reject": bool}`` from a model reply.

    Raises:
        AIError: If the reply is empty, not JSON, or lacks boolean fields
    """
    if not content or not content.strip():
        raise AIError(
            "Empty response from model",
            provider=provider,
            error_code=ErrorCode.AI_INVALID_RESPONSE,
        )

    try:
        data = json.loads(strip_code_fences(content))
    except json.JSONDecodeError as e:
        raise AIError(
            f"Failed to parse JSON response from model: {e}",
            provider=provider,
            error_code=ErrorCode.AI_INVALID_RESPONSE,
        ) from e

    if not isinstance(data, dict) or not isinstance(data.get("accept"), bool) or not isinstance(
        data.get("reject"), bool
    ):
        raise AIError(
            f"Model response lacks boolean accept/reject fields: {content[:200]}",
            provider=provider,
            error_code=ErrorCode.AI_INVALID_RESPONSE,
        )

    return FilterVerdict(accept=data["accept"], reject=data["reject"], provider=provider)


def status_error_code(status_code: int) -> ErrorCode:
    """Map an HTTP status returned by a provider API to an error code."""
    if status_code in (401, 403):
        return ErrorCode.AI_INVALID_CREDENTIALS
    if status_code >= 500:
        return ErrorCode.AI_PROVIDER_UNAVAILABLE
    return ErrorCode.AI_API_ERROR
