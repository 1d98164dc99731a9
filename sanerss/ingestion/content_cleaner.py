"""
Content Cleaner
===============

Plain-text extraction from item HTML, used to build the short content excerpt
that accompanies an item into the filter prompt.
"""

import re
import html
from typing import Optional

from bs4 import BeautifulSoup

from ..utils.logging import get_logger_for_component


class ContentCleaner:
    """Extracts readable text from feed item HTML."""

    # Elements removed together with their content
    DANGEROUS_ELEMENTS = {
        "script",
        "style",
        "iframe",
        "embed",
        "object",
        "form",
        "noscript",
        "canvas",
    }

    WHITESPACE_PATTERN = re.compile(r"\s+", re.MULTILINE)
    TAG_PATTERN = re.compile(r"<[^>]+>")

    def __init__(self, max_excerpt_chars: int = 1000):
        """Initialize content cleaner.

        Args:
            max_excerpt_chars: Upper bound on excerpt length in characters
        """
        self.max_excerpt_chars = max_excerpt_chars
        self.logger = get_logger_for_component("content_cleaner")
        self.parser = "html.parser"

    def extract_excerpt(self, html_content: Optional[str]) -> str:
        """Build a paragraph-based excerpt from HTML content.

        Paragraph texts are joined with single spaces. The paragraph that would
        overflow the limit is cut to fit and extraction stops there. Content
        without any ``<p>`` element falls back to its full text.

        Args:
            html_content: Raw HTML content of an item

        Returns:
            Excerpt of at most ``max_excerpt_chars`` characters, possibly empty
        """
        if not html_content or not html_content.strip():
            return ""

        soup = BeautifulSoup(html_content, self.parser)
        for element in soup(self.DANGEROUS_ELEMENTS):
            element.decompose()

        paragraphs = [p.get_text().strip() for p in soup.find_all("p")]
        paragraphs = [text for text in paragraphs if text]
        if not paragraphs:
            return self.extract_text_only(html_content)[: self.max_excerpt_chars]

        excerpt = ""
        for text in paragraphs:
            remaining = self.max_excerpt_chars - len(excerpt)
            if remaining <= 0:
                break

            if excerpt:
                excerpt += " "

            if len(text) <= remaining:
                excerpt += text
            else:
                excerpt += text[:remaining]
                break

        return excerpt[: self.max_excerpt_chars]

    def extract_text_only(self, html_content: Optional[str]) -> str:
        """
        Extract only text content from HTML, removing all markup.

        Args:
            html_content: HTML content to process

        Returns:
            Plain text content with all HTML removed
        """
        if not html_content or not html_content.strip():
            return ""

        try:
            soup = BeautifulSoup(html_content, self.parser)

            for element in soup(self.DANGEROUS_ELEMENTS):
                element.decompose()

            text = soup.get_text(separator=" ", strip=True)
            text = self.WHITESPACE_PATTERN.sub(" ", text)
            return text.strip()

        except Exception as e:
            self.logger.warning(f"Failed to extract text, using fallback: {e}")
            return self._extract_text_fallback(html_content)

    def _extract_text_fallback(self, html_content: str) -> str:
        """Regex-based tag stripping for markup BeautifulSoup chokes on."""
        text = self.TAG_PATTERN.sub(" ", html_content)
        text = html.unescape(text)
        return self.WHITESPACE_PATTERN.sub(" ", text).strip()
