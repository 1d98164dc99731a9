"""
PyTest Configuration and Fixtures
=================================

Shared fixtures and test doubles for SaneRSS tests.
"""

import os
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

import pytest

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Set test environment variables before any imports
os.environ["SANERSS_AI__OPENAI_API_KEY"] = "test-openai-key-for-unit-testing"
os.environ["SANERSS_AI__GROQ_API_KEY"] = "test-groq-key-for-unit-testing"
os.environ["SANERSS_LOGGING__FILE_PATH"] = ""

from sanerss.ai.providers.base import DecisionProvider, FilterVerdict
from sanerss.config.settings import AIProvider, SaneRSSSettings
from sanerss.ingestion.models import FeedItem, ParsedFeed


# ============================================================================
# Test Doubles
# ============================================================================


class StubFetcher:
    """Serves canned ParsedFeeds (or raises canned errors) per feed name."""

    def __init__(self, responses: Optional[Dict[str, Union[ParsedFeed, Exception]]] = None):
        self.responses = dict(responses or {})
        self.favicon: Optional[bytes] = None
        self.calls: List[str] = []
        self.closed = False

    async def fetch(self, feed_name: str, feed_url: str) -> ParsedFeed:
        self.calls.append(feed_name)
        response = self.responses[feed_name]
        if isinstance(response, Exception):
            raise response
        return response

    async def fetch_favicon(self, feed_url: str) -> Optional[bytes]:
        return self.favicon

    async def close(self) -> None:
        self.closed = True


class StubProvider(DecisionProvider):
    """Decision provider driven by a plain function instead of an API."""

    def __init__(self, decide: Callable[[FeedItem, List[str], List[str]], FilterVerdict]):
        super().__init__("stub-model", AIProvider.OPENAI)
        self.decide = decide
        self.calls: List[FeedItem] = []

    async def evaluate(self, item, accept_topics, reject_topics) -> FilterVerdict:
        self.calls.append(item)
        return self.decide(item, accept_topics, reject_topics)

    async def _complete(self, prompt: str) -> str:
        raise NotImplementedError

    async def test_connection(self) -> bool:
        return True


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def make_item() -> Callable[..., FeedItem]:
    """Factory for feed items keyed by guid."""

    def _make(guid: Optional[str] = None, title: Optional[str] = None, **kwargs) -> FeedItem:
        return FeedItem(guid=guid, title=title or (f"Item {guid}" if guid else None), **kwargs)

    return _make


@pytest.fixture
def sample_items() -> List[FeedItem]:
    """Generate sample items for testing."""
    return [
        FeedItem(
            guid="a",
            title="Rust 2.0 released",
            link="https://example.com/rust",
            description="<p>The <b>Rust</b> team announced a new edition.</p>",
            content="<p>Rust 2.0 ships a new borrow checker.</p><p>More below.</p>",
            published="Mon, 01 Jan 2024 10:00:00 GMT",
        ),
        FeedItem(
            guid="b",
            title="Bitcoin hits record",
            link="https://example.com/btc",
            description="Crypto markets rally.",
            published="Mon, 01 Jan 2024 11:00:00 GMT",
        ),
        FeedItem(
            guid="c",
            title="Postgres 17 tips",
            link="https://example.com/pg",
            description="Indexing strategies.",
            published="Mon, 01 Jan 2024 12:00:00 GMT",
        ),
    ]


@pytest.fixture
def make_settings(tmp_path) -> Callable[..., SaneRSSSettings]:
    """Factory for settings that never touch the working directory."""

    def _make(**overrides) -> SaneRSSSettings:
        values = {
            "known_items_file": tmp_path / "known_items.json",
            "feeds": {"tech": {"url": "https://example.com/tech.xml"}},
        }
        values.update(overrides)
        return SaneRSSSettings(**values)

    return _make


@pytest.fixture
def stub_fetcher() -> StubFetcher:
    return StubFetcher()


@pytest.fixture
def make_provider() -> Callable[..., StubProvider]:
    """Factory for stub providers with a custom decision function."""
    return StubProvider
