"""
HTTP Serving Surface
====================

aiohttp application exposing the filtered feeds. Handlers only read from the
feed store, so a slow poll never blocks a request for longer than a snapshot
copy.
"""

from aiohttp import web

from .rss_renderer import render_rss
from ..storage.feed_store import FeedStore
from ..utils.logging import get_logger_for_component

FEED_STORE_KEY = web.AppKey("feed_store", FeedStore)

logger = get_logger_for_component("server")


async def list_feeds(request: web.Request) -> web.Response:
    feed_store = request.app[FEED_STORE_KEY]
    names = await feed_store.list_names()

    if not names:
        return web.Response(text="No feeds available yet")

    lines = ["Available feeds:"]
    lines.extend(f"- /{name}" for name, _count in names)
    return web.Response(text="\n".join(lines))


async def get_feed(request: web.Request) -> web.Response:
    feed_name = request.match_info["feed_name"]
    snapshot = await request.app[FEED_STORE_KEY].read(feed_name)

    if snapshot is None:
        logger.debug(f"Requested unknown feed: {feed_name}")
        raise web.HTTPNotFound(text="Feed not found")

    body = render_rss(snapshot, link=str(request.url))
    return web.Response(body=body, content_type="application/rss+xml", charset="utf-8")


async def get_favicon(request: web.Request) -> web.Response:
    feed_name = request.match_info["feed_name"]
    data = await request.app[FEED_STORE_KEY].get_favicon(feed_name)

    if data is None:
        raise web.HTTPNotFound(text="Favicon not found")

    return web.Response(body=data, content_type="image/x-icon")


def create_app(feed_store: FeedStore) -> web.Application:
    """Build the web application around ``feed_store``."""
    app = web.Application()
    app[FEED_STORE_KEY] = feed_store
    app.router.add_get("/feeds", list_feeds)
    app.router.add_get("/{feed_name}/favicon.ico", get_favicon)
    app.router.add_get("/{feed_name}", get_feed)
    return app
