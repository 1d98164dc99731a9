"""
SaneRSS - AI-Filtered RSS Feeds
===============================

Polls upstream RSS/Atom feeds, drops items already seen, asks an LLM whether
each new item matches the configured topics and serves the accepted items as
filtered feeds.

Main Components:
- Configuration: TOML + environment variables with Pydantic validation
- Ingestion: aiohttp fetching, feedparser parsing, item identity
- Storage: bounded per-feed item windows and a persisted known-item cache
- AI Integration: OpenAI-compatible and Groq decision providers
- Server: aiohttp endpoints returning RSS 2.0
"""

__version__ = "0.3.0"
__author__ = "SaneRSS Development Team"
__description__ = "AI-filtered RSS feed service"

# Core imports for easy access
from .config.settings import get_settings, load_settings
from .utils.logging import configure_application_logging, get_logger_for_component
from .utils.exceptions import SaneRSSError

__all__ = [
    "get_settings",
    "load_settings",
    "configure_application_logging",
    "get_logger_for_component",
    "SaneRSSError",
]
