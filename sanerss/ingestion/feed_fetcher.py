"""
RSS Feed Fetcher
================

Fetches one upstream feed over HTTP with a bounded timeout and parses it with
feedparser. Every failure surfaces as a ``FeedFetchError`` so the poller can
log it and move on to the next feed.
"""

import asyncio
import ssl
import time
from typing import Any, List, Mapping, Optional
from urllib.parse import urlparse

import aiohttp
import certifi
import feedparser

from .models import FeedItem, ParsedFeed
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import FeedFetchError, ErrorCode


class FeedFetcher:
    """HTTP feed fetcher sharing one aiohttp session across polls."""

    def __init__(
        self,
        timeout: int = 30,
        max_connections: int = 10,
        user_agent: str = "SaneRSS/0.3 (+https://github.com/sane-rss/sane-rss)",
    ):
        """Initialize feed fetcher.

        Args:
            timeout: Total request timeout in seconds
            max_connections: Connection pool size
            user_agent: User-Agent header sent upstream
        """
        self.timeout = timeout
        self.max_connections = max_connections
        self.user_agent = user_agent
        self.logger = get_logger_for_component("feed_fetcher")

        self.ssl_context = ssl.create_default_context(cafile=certifi.where())
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "FeedFetcher":
        await self._get_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get the shared session, creating it on first use."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                ssl=self.ssl_context,
                limit=self.max_connections,
                limit_per_host=5,
                enable_cleanup_closed=True,
            )

            headers = {
                "User-Agent": self.user_agent,
                "Accept": "application/rss+xml, application/atom+xml, application/xml, text/xml, */*",
                "Accept-Encoding": "gzip, deflate",
            }

            self._session = aiohttp.ClientSession(
                connector=connector,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers=headers,
            )
        return self._session

    async def close(self) -> None:
        """Close the shared session."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def fetch(self, feed_name: str, feed_url: str) -> ParsedFeed:
        """Fetch and parse a single feed.

        Args:
            feed_name: Configured feed name, used for logging and errors
            feed_url: URL of the RSS/Atom document

        Returns:
            ParsedFeed with items in document order

        Raises:
            FeedFetchError: On network failure, timeout, non-200 status or an
                unparseable document
        """
        self.logger.debug(f"Fetching feed {feed_name} from {feed_url}")
        start_time = time.time()
        session = await self._get_session()

        try:
            async with session.get(feed_url) as response:
                if response.status != 200:
                    raise FeedFetchError(
                        f"HTTP {response.status}: {response.reason}",
                        feed_name=feed_name,
                        feed_url=feed_url,
                        error_code=ErrorCode.FEED_HTTP_STATUS,
                    )
                content = await response.read()
                headers = dict(response.headers)

        except asyncio.TimeoutError as e:
            raise FeedFetchError(
                f"Request timeout after {self.timeout}s",
                feed_name=feed_name,
                feed_url=feed_url,
                error_code=ErrorCode.FEED_FETCH_TIMEOUT,
            ) from e
        except aiohttp.InvalidURL as e:
            raise FeedFetchError(
                f"Invalid feed URL: {e}",
                feed_name=feed_name,
                feed_url=feed_url,
                error_code=ErrorCode.FEED_INVALID_URL,
            ) from e
        except aiohttp.ClientError as e:
            raise FeedFetchError(
                f"Fetch error: {e}",
                feed_name=feed_name,
                feed_url=feed_url,
                error_code=ErrorCode.FEED_NETWORK_ERROR,
            ) from e

        parsed = self.parse_document(feed_name, feed_url, content, headers)

        self.logger.debug(
            f"Fetched {parsed.item_count} items from feed {feed_name} "
            f"in {time.time() - start_time:.2f}s"
        )
        return parsed

    def parse_document(
        self,
        feed_name: str,
        feed_url: str,
        content: Any,
        headers: Optional[Mapping[str, str]] = None,
    ) -> ParsedFeed:
        """Parse a raw feed document.

        feedparser is lenient: a document with minor formatting problems
        (``bozo``) is still accepted as long as it yields a channel or entries.

        Raises:
            FeedFetchError: If nothing usable could be parsed
        """
        feed_data = feedparser.parse(content, response_headers=dict(headers or {}))

        channel = feed_data.get("feed", {})
        entries = feed_data.get("entries", [])

        if feed_data.get("bozo"):
            error_msg = f"Feed parse error: {feed_data.get('bozo_exception', 'Invalid XML structure')}"
            if not entries and not channel.get("title"):
                raise FeedFetchError(
                    error_msg,
                    feed_name=feed_name,
                    feed_url=feed_url,
                    error_code=ErrorCode.FEED_PARSE_ERROR,
                )
            self.logger.info(f"Feed {feed_name} has parse warnings but contains entries")

        items = []
        for entry in entries:
            try:
                items.append(self._parse_entry(entry))
            except (AttributeError, KeyError, TypeError, IndexError) as e:
                self.logger.warning(f"Failed to parse entry in feed {feed_name}: {e}")
                continue

        return ParsedFeed(
            title=channel.get("title") or None,
            description=channel.get("subtitle") or channel.get("description") or None,
            link=channel.get("link") or None,
            items=items,
        )

    def _parse_entry(self, entry: Any) -> FeedItem:
        """Convert one feedparser entry into a FeedItem."""
        content = None
        if entry.get("content"):
            content = entry["content"][0].get("value") or None

        categories: List[str] = [
            tag.get("term") for tag in entry.get("tags", []) if tag.get("term")
        ]

        return FeedItem(
            title=entry.get("title") or None,
            link=entry.get("link") or None,
            description=entry.get("summary") or None,
            content=content,
            guid=entry.get("id") or None,
            guid_is_permalink=bool(entry.get("guidislink", False)),
            published=entry.get("published") or entry.get("updated") or None,
            author=entry.get("author") or None,
            categories=categories,
        )

    async def fetch_favicon(self, feed_url: str) -> Optional[bytes]:
        """Fetch ``/favicon.ico`` from the root of the feed's host.

        Returns:
            Icon bytes, or None on any failure
        """
        parsed = urlparse(feed_url)
        if not parsed.scheme or not parsed.netloc:
            self.logger.warning(f"Failed to parse feed URL {feed_url}")
            return None

        favicon_url = f"{parsed.scheme}://{parsed.netloc}/favicon.ico"
        self.logger.debug(f"Fetching favicon from: {favicon_url}")

        session = await self._get_session()
        try:
            async with session.get(favicon_url) as response:
                if response.status != 200:
                    self.logger.debug(f"Favicon request returned status: {response.status}")
                    return None
                data = await response.read()
                self.logger.debug(f"Fetched favicon ({len(data)} bytes)")
                return data or None
        except (asyncio.TimeoutError, aiohttp.ClientError) as e:
            self.logger.debug(f"Failed to fetch favicon: {e}")
            return None
