"""
SaneRSS Services
================

Application runtime built on top of the pipeline components.
"""

from .feed_service import FeedFilterService

__all__ = ["FeedFilterService"]
