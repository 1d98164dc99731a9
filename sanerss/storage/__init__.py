"""
SaneRSS Storage Layer
=====================

In-memory feed windows and the persisted known-item cache.
"""

from .feed_store import FeedSnapshot, FeedStore
from .known_items import KnownItemCache

__all__ = [
    "FeedSnapshot",
    "FeedStore",
    "KnownItemCache",
]
