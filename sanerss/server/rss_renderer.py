"""
RSS 2.0 Rendering
=================

Serializes a feed snapshot to RSS 2.0 XML, newest item first.
"""

import xml.etree.ElementTree as ET
from typing import Optional

from ..ingestion.models import FeedItem
from ..storage.feed_store import FeedSnapshot

CONTENT_NS = "http://purl.org/rss/1.0/modules/content/"

ET.register_namespace("content", CONTENT_NS)


def render_rss(snapshot: FeedSnapshot, link: Optional[str] = None) -> bytes:
    """Render ``snapshot`` as an RSS 2.0 document.

    Args:
        snapshot: Feed to render
        link: Channel link, defaults to the feed's path on this server

    Returns:
        UTF-8 encoded XML with declaration
    """
    root = ET.Element("rss", version="2.0")
    channel = ET.SubElement(root, "channel")
    ET.SubElement(channel, "title").text = snapshot.title
    ET.SubElement(channel, "link").text = link or f"/{snapshot.name}"
    ET.SubElement(channel, "description").text = snapshot.description

    for item in reversed(snapshot.items):
        channel.append(_render_item(item))

    return ET.tostring(root, encoding="utf-8", xml_declaration=True)


def _render_item(item: FeedItem) -> ET.Element:
    element = ET.Element("item")

    if item.title:
        ET.SubElement(element, "title").text = item.title
    if item.link:
        ET.SubElement(element, "link").text = item.link
    if item.description:
        ET.SubElement(element, "description").text = item.description
    if item.content:
        ET.SubElement(element, f"{{{CONTENT_NS}}}encoded").text = item.content
    if item.author:
        ET.SubElement(element, "author").text = item.author
    for category in item.categories:
        ET.SubElement(element, "category").text = category
    if item.guid:
        guid = ET.SubElement(
            element, "guid", isPermaLink="true" if item.guid_is_permalink else "false"
        )
        guid.text = item.guid
    if item.published:
        ET.SubElement(element, "pubDate").text = item.published

    return element
