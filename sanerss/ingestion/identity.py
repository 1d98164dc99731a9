"""
Item Identity
=============

Stable identifiers for feed items. The same function must be used both when
checking whether an item is known and when recording it as known.
"""

import time

from .models import FeedItem


def item_identity(item: FeedItem) -> str:
    """Derive the deduplication identity of an item.

    Priority: explicit guid, then link, then ``"{title}-{published}"``
    (``"no-date"`` when the item carries no date), then a synthetic value from
    the current time. Never raises.
    """
    if item.guid:
        return item.guid
    if item.link:
        return item.link
    if item.title:
        return f"{item.title}-{item.published or 'no-date'}"
    return f"unknown-{int(time.time())}"
