"""
Item Identity Unit Tests
========================

Tests the guid -> link -> title/date -> synthetic priority chain.
"""

from unittest.mock import patch

from sanerss.ingestion.identity import item_identity
from sanerss.ingestion.models import FeedItem


class TestItemIdentity:
    def test_guid_wins(self):
        item = FeedItem(guid="g1", link="https://example.com/1", title="T")
        assert item_identity(item) == "g1"

    def test_link_when_no_guid(self):
        item = FeedItem(link="https://example.com/1", title="T")
        assert item_identity(item) == "https://example.com/1"

    def test_empty_guid_falls_through(self):
        item = FeedItem(guid="", link="https://example.com/1")
        assert item_identity(item) == "https://example.com/1"

    def test_title_with_date(self):
        item = FeedItem(title="Hello", published="Mon, 01 Jan 2024 10:00:00 GMT")
        assert item_identity(item) == "Hello-Mon, 01 Jan 2024 10:00:00 GMT"

    def test_title_without_date(self):
        assert item_identity(FeedItem(title="Hello")) == "Hello-no-date"

    def test_synthetic_identity(self):
        with patch("sanerss.ingestion.identity.time.time", return_value=1700000000.7):
            assert item_identity(FeedItem()) == "unknown-1700000000"

    def test_deterministic(self):
        item = FeedItem(title="Same", published="2024-01-01")
        assert item_identity(item) == item_identity(FeedItem(title="Same", published="2024-01-01"))
