"""
Decision Gate
=============

Per-item accept/reject decision. Merges global and per-feed topics, skips the
AI entirely when there is nothing to filter on, and fails open: any provider
failure keeps the item.
"""

from typing import Optional

from ..ai.providers.base import DecisionProvider
from ..config.settings import SaneRSSSettings
from ..ingestion.models import FeedItem
from ..utils.logging import get_logger_for_component


class DecisionGate:
    """Decides whether a new item enters a filtered feed."""

    def __init__(self, settings: SaneRSSSettings, provider: Optional[DecisionProvider] = None):
        """Initialize decision gate.

        Args:
            settings: Settings holding global and per-feed filter rules
            provider: AI provider, None accepts everything that needs a decision
        """
        self.settings = settings
        self.provider = provider
        self.logger = get_logger_for_component("decision_gate")

    async def accepts(self, feed_name: str, item: FeedItem) -> bool:
        """Return True if ``item`` should be kept in ``feed_name``."""
        accept_topics, reject_topics = self.settings.filters_for(feed_name)

        if not accept_topics and not reject_topics:
            return True

        if self.provider is None:
            self.logger.warning(
                f"No AI provider configured, accepting item for {feed_name}: {item}"
            )
            return True

        try:
            verdict = await self.provider.evaluate(item, accept_topics, reject_topics)
        except Exception as e:
            self.logger.warning(
                f"AI decision failed for {item} in {feed_name}, accepting: {e}",
                extra={"feed_name": feed_name, "error": str(e)},
            )
            return True

        if not verdict.accepted:
            self.logger.info(
                f"Rejected {item} in {feed_name}",
                extra={
                    "feed_name": feed_name,
                    "ai_provider": verdict.provider,
                    "processing_time_ms": verdict.processing_time_ms,
                },
            )
        else:
            self.logger.debug(f"Accepted {item} in {feed_name}")

        return verdict.accepted
