"""
Feed Poller
===========

Drives the ingestion pipeline: fetch each configured feed, skip items already
seen, ask the decision gate about new ones, record every new identity and keep
the accepted items in the feed store.

Feeds are polled concurrently up to ``polling.parallel_feeds``. A failure in
one feed is logged and recorded in the cycle result; it never stops the others.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..config.settings import FeedSettings, SaneRSSSettings
from ..ingestion.feed_fetcher import FeedFetcher
from ..ingestion.identity import item_identity
from ..processing.decision_gate import DecisionGate
from ..storage.feed_store import FeedStore
from ..storage.known_items import KnownItemCache
from ..utils.exceptions import FeedFetchError, PersistenceError
from ..utils.logging import PerformanceLogger, get_logger_for_component


@dataclass
class FeedPollResult:
    """Outcome of polling a single feed."""
    feed_name: str
    success: bool
    items_fetched: int = 0
    new_items: int = 0
    accepted: int = 0
    rejected: int = 0
    evicted: int = 0
    error: Optional[str] = None


@dataclass
class PollCycleResult:
    """Outcome of one pass over all feeds."""
    feed_results: List[FeedPollResult] = field(default_factory=list)
    duration_seconds: float = 0.0
    persisted: bool = False

    @property
    def successful_feeds(self) -> int:
        return sum(1 for r in self.feed_results if r.success)

    @property
    def failed_feeds(self) -> int:
        return sum(1 for r in self.feed_results if not r.success)

    @property
    def total_new_items(self) -> int:
        return sum(r.new_items for r in self.feed_results)

    @property
    def total_accepted(self) -> int:
        return sum(r.accepted for r in self.feed_results)

    @property
    def total_rejected(self) -> int:
        return sum(r.rejected for r in self.feed_results)


class FeedPoller:
    """Periodic poller for all configured feeds."""

    def __init__(
        self,
        settings: SaneRSSSettings,
        fetcher: FeedFetcher,
        decision_gate: DecisionGate,
        feed_store: FeedStore,
        known_items: KnownItemCache,
    ):
        self.settings = settings
        self.fetcher = fetcher
        self.decision_gate = decision_gate
        self.feed_store = feed_store
        self.known_items = known_items
        self.logger = get_logger_for_component("poller")

        self.primed = False
        self._feed_locks: Dict[str, asyncio.Lock] = {}

    async def prime(self) -> PollCycleResult:
        """Poll every feed once before the server starts answering.

        Failed feeds are reported but do not make priming fail, even if every
        feed fails.
        """
        result = await self._run_cycle("priming")
        self.primed = True

        if result.feed_results and result.successful_feeds == 0:
            self.logger.warning("Priming finished but every feed failed")

        return result

    async def poll_cycle(self) -> PollCycleResult:
        """Poll every feed once and persist the known items."""
        return await self._run_cycle("poll cycle")

    async def run(self, shutdown_event: asyncio.Event) -> None:
        """Poll until ``shutdown_event`` is set.

        When priming already ran, the first cycle waits one interval so the
        feeds are not fetched twice in a row.
        """
        interval = self.settings.polling.interval_seconds
        skip_next = self.primed

        self.logger.info(
            f"Poller started, interval {interval}s, {len(self.settings.feeds)} feeds"
        )

        while not shutdown_event.is_set():
            if skip_next:
                skip_next = False
            else:
                try:
                    await self.poll_cycle()
                except Exception as e:
                    self.logger.error(f"Poll cycle failed: {e}", exc_info=True)

            try:
                await asyncio.wait_for(shutdown_event.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass

        self.logger.info("Poller stopped")

    async def poll_feed(self, name: str, feed: FeedSettings) -> FeedPollResult:
        """Fetch one feed and run its new items through the pipeline.

        Raises:
            FeedFetchError: If the feed cannot be fetched or parsed
        """
        lock = self._feed_locks.setdefault(name, asyncio.Lock())
        async with lock:
            logger = get_logger_for_component("poller", feed_name=name)

            parsed = await self.fetcher.fetch(name, feed.url)
            result = FeedPollResult(feed_name=name, success=True, items_fetched=parsed.item_count)

            created = await self.feed_store.ensure_feed(name, parsed.title, parsed.description)
            if created:
                favicon = await self.fetcher.fetch_favicon(feed.url)
                if favicon:
                    await self.feed_store.set_favicon(name, favicon)

            for item in parsed.items:
                identity = item_identity(item)
                if await self.known_items.is_known(name, identity):
                    continue

                result.new_items += 1
                accepted = await self.decision_gate.accepts(name, item)
                await self.known_items.record(name, identity)

                if accepted:
                    result.accepted += 1
                    result.evicted += await self.feed_store.append(name, item)
                else:
                    result.rejected += 1

            logger.info(
                f"Polled {name}: {result.items_fetched} items, {result.new_items} new, "
                f"{result.accepted} accepted, {result.rejected} rejected"
            )
            return result

    async def _run_cycle(self, operation: str) -> PollCycleResult:
        feeds = self.settings.feeds
        semaphore = asyncio.Semaphore(self.settings.polling.parallel_feeds)

        async def poll_with_limit(name: str, feed: FeedSettings) -> FeedPollResult:
            async with semaphore:
                return await self._poll_feed_safe(name, feed)

        with PerformanceLogger(self.logger, operation, feed_count=len(feeds)) as perf:
            feed_results = await asyncio.gather(
                *(poll_with_limit(name, feed) for name, feed in feeds.items())
            )
            persisted = await self._persist_known_items()

        result = PollCycleResult(
            feed_results=list(feed_results),
            duration_seconds=perf.duration or 0.0,
            persisted=persisted,
        )

        self.logger.info(
            f"Finished {operation}: {result.successful_feeds}/{len(feeds)} feeds ok, "
            f"{result.total_accepted} accepted, {result.total_rejected} rejected",
            extra={
                "successful_feeds": result.successful_feeds,
                "failed_feeds": result.failed_feeds,
                "new_items": result.total_new_items,
            },
        )
        return result

    async def _poll_feed_safe(self, name: str, feed: FeedSettings) -> FeedPollResult:
        try:
            return await self.poll_feed(name, feed)
        except FeedFetchError as e:
            self.logger.warning(f"Failed to fetch feed {name}: {e}")
            return FeedPollResult(feed_name=name, success=False, error=str(e))
        except Exception as e:
            self.logger.error(f"Unexpected error polling feed {name}: {e}", exc_info=True)
            return FeedPollResult(feed_name=name, success=False, error=str(e))

    async def _persist_known_items(self) -> bool:
        if self.known_items.path is None:
            return False
        try:
            await self.known_items.save()
            return True
        except PersistenceError as e:
            self.logger.error(f"Failed to persist known items: {e}")
            return False
