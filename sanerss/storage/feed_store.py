"""
Feed Store
==========

In-memory window of accepted items per feed, read by the serving surface and
written by the poller. Not persisted: after a restart it is rebuilt by polling.

Feed metadata is first-write-wins: the title and description seen on the first
successful fetch stay for the lifetime of the process.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Optional, Tuple

from ..ingestion.models import FeedItem
from ..utils.exceptions import FeedNotInitializedError
from ..utils.logging import get_logger_for_component
from ..utils.rwlock import AsyncRWLock


@dataclass
class StoredFeed:
    """Mutable per-feed state owned by the store."""

    name: str
    title: str
    description: str
    items: Deque[FeedItem] = field(default_factory=deque)
    favicon: Optional[bytes] = None


@dataclass(frozen=True)
class FeedSnapshot:
    """Read-isolated copy of a stored feed, oldest item first."""

    name: str
    title: str
    description: str
    items: Tuple[FeedItem, ...]

    def __len__(self) -> int:
        return len(self.items)


class FeedStore:
    """Bounded per-feed collection of accepted items."""

    def __init__(self, max_items_per_feed: int = 60):
        """Initialize store.

        Args:
            max_items_per_feed: Retained items per feed; older ones are evicted
        """
        if max_items_per_feed < 1:
            raise ValueError("max_items_per_feed must be positive")

        self.max_items_per_feed = max_items_per_feed
        self.logger = get_logger_for_component("feed_store")

        self._feeds: Dict[str, StoredFeed] = {}
        self._lock = AsyncRWLock()

    async def ensure_feed(
        self,
        name: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
    ) -> bool:
        """Create an empty feed if it does not exist yet.

        Returns:
            True if the feed was created by this call
        """
        async with self._lock.write():
            if name in self._feeds:
                return False

            self._feeds[name] = StoredFeed(
                name=name,
                title=title or name,
                description=description or f"Filtered feed: {name}",
            )

        self.logger.info(f"Created feed {name}")
        return True

    async def append(self, name: str, *items: FeedItem) -> int:
        """Append items at the newest end, evicting from the oldest end.

        Returns:
            Number of items evicted

        Raises:
            FeedNotInitializedError: If ``ensure_feed`` was never called for ``name``
        """
        evicted = 0
        async with self._lock.write():
            feed = self._feeds.get(name)
            if feed is None:
                raise FeedNotInitializedError(name)

            for item in items:
                feed.items.append(item)
                while len(feed.items) > self.max_items_per_feed:
                    feed.items.popleft()
                    evicted += 1

        if evicted:
            self.logger.debug(f"Evicted {evicted} old items from feed {name}")
        return evicted

    async def read(self, name: str) -> Optional[FeedSnapshot]:
        """Immutable snapshot of a feed, or None if it does not exist."""
        async with self._lock.read():
            feed = self._feeds.get(name)
            if feed is None:
                return None
            return FeedSnapshot(
                name=feed.name,
                title=feed.title,
                description=feed.description,
                items=tuple(feed.items),
            )

    async def list_names(self) -> List[Tuple[str, int]]:
        """``(name, item count)`` for every feed, sorted by name."""
        async with self._lock.read():
            return sorted((name, len(feed.items)) for name, feed in self._feeds.items())

    async def set_favicon(self, name: str, data: bytes) -> None:
        async with self._lock.write():
            feed = self._feeds.get(name)
            if feed is None:
                raise FeedNotInitializedError(name)
            feed.favicon = data
        self.logger.info(f"Stored favicon for feed {name}")

    async def get_favicon(self, name: str) -> Optional[bytes]:
        async with self._lock.read():
            feed = self._feeds.get(name)
            return feed.favicon if feed else None
