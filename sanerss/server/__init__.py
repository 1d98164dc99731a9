"""
SaneRSS Server Module
=====================

HTTP surface for the filtered feeds.
"""

from .app import create_app
from .rss_renderer import render_rss

__all__ = ["create_app", "render_rss"]
