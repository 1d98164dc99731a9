"""
Ingestion Data Models
=====================

Normalized representation of a fetched feed and its items.
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class FeedItem:
    """One entry from an upstream feed.

    Everything except the identity fields (``guid``, ``link``, ``title``,
    ``published``) is opaque to the polling pipeline and only carried through
    to the served feed.
    """

    title: Optional[str] = None
    link: Optional[str] = None
    description: Optional[str] = None
    content: Optional[str] = None
    guid: Optional[str] = None
    guid_is_permalink: bool = False
    published: Optional[str] = None
    author: Optional[str] = None
    categories: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        return f"FeedItem({(self.title or self.link or self.guid or '?')[:50]})"


@dataclass
class ParsedFeed:
    """A successfully fetched and parsed feed document."""

    title: Optional[str] = None
    description: Optional[str] = None
    link: Optional[str] = None
    items: List[FeedItem] = field(default_factory=list)

    @property
    def item_count(self) -> int:
        return len(self.items)
