"""
Feed Store Unit Tests
=====================

Tests feed creation, bounded retention and snapshot isolation.
"""

import pytest

from sanerss.ingestion.models import FeedItem
from sanerss.storage.feed_store import FeedStore
from sanerss.utils.exceptions import FeedNotInitializedError


class TestFeedStore:
    @pytest.mark.asyncio
    async def test_ensure_feed_is_idempotent(self):
        store = FeedStore(max_items_per_feed=5)

        assert await store.ensure_feed("tech", "Tech News", "All about tech") is True
        assert await store.ensure_feed("tech", "Renamed", "Other") is False

        snapshot = await store.read("tech")
        assert snapshot.title == "Tech News"
        assert snapshot.description == "All about tech"

    @pytest.mark.asyncio
    async def test_metadata_fallbacks(self):
        store = FeedStore()
        await store.ensure_feed("tech", None, None)

        snapshot = await store.read("tech")
        assert snapshot.title == "tech"
        assert snapshot.description == "Filtered feed: tech"

    @pytest.mark.asyncio
    async def test_append_evicts_oldest(self, make_item):
        store = FeedStore(max_items_per_feed=3)
        await store.ensure_feed("tech")

        evicted = await store.append("tech", *(make_item(guid=g) for g in "abcde"))

        assert evicted == 2
        snapshot = await store.read("tech")
        assert [item.guid for item in snapshot.items] == ["c", "d", "e"]
        assert len(snapshot) == 3

    @pytest.mark.asyncio
    async def test_append_to_unknown_feed(self, make_item):
        store = FeedStore()

        with pytest.raises(FeedNotInitializedError) as exc_info:
            await store.append("ghost", make_item(guid="a"))

        assert exc_info.value.feed_name == "ghost"

    @pytest.mark.asyncio
    async def test_read_unknown_feed(self):
        assert await FeedStore().read("ghost") is None

    @pytest.mark.asyncio
    async def test_snapshot_is_isolated_from_later_writes(self, make_item):
        store = FeedStore()
        await store.ensure_feed("tech")
        await store.append("tech", make_item(guid="a"))

        snapshot = await store.read("tech")
        await store.append("tech", make_item(guid="b"))

        assert [item.guid for item in snapshot.items] == ["a"]

    @pytest.mark.asyncio
    async def test_list_names_sorted_with_counts(self, make_item):
        store = FeedStore()
        await store.ensure_feed("zeta")
        await store.ensure_feed("alpha")
        await store.append("zeta", make_item(guid="a"), make_item(guid="b"))

        assert await store.list_names() == [("alpha", 0), ("zeta", 2)]

    @pytest.mark.asyncio
    async def test_favicon(self):
        store = FeedStore()
        await store.ensure_feed("tech")

        assert await store.get_favicon("tech") is None
        await store.set_favicon("tech", b"\x00\x01")
        assert await store.get_favicon("tech") == b"\x00\x01"
        assert await store.get_favicon("ghost") is None

    def test_capacity_must_be_positive(self):
        with pytest.raises(ValueError):
            FeedStore(max_items_per_feed=0)
