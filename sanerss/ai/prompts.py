"""
Filter Prompt Construction
==========================

Hydrates the configured prompt template with an item's fields and the merged
accept/reject topics.
"""

import re
from typing import List, Optional

from ..config.settings import DEFAULT_FILTER_PROMPT
from ..ingestion.content_cleaner import ContentCleaner
from ..ingestion.models import FeedItem

PLACEHOLDER_PATTERN = re.compile(r"\{(title|description|content_excerpt|accept_topics|reject_topics)\}")


class FilterPromptBuilder:
    """Builds the text sent to the decision provider for one item.

    Supported placeholders: ``{title}``, ``{description}``,
    ``{content_excerpt}``, ``{accept_topics}`` and ``{reject_topics}``.
    Empty values are replaced with ``"none"`` so the model never sees a blank.
    """

    EMPTY_VALUE = "none"
    TOPIC_SEPARATOR = "; "

    def __init__(
        self,
        template: str = DEFAULT_FILTER_PROMPT,
        cleaner: Optional[ContentCleaner] = None,
    ):
        self.template = template
        self.cleaner = cleaner or ContentCleaner()

    def build(
        self,
        item: FeedItem,
        accept_topics: List[str],
        reject_topics: List[str],
    ) -> str:
        excerpt = self.cleaner.extract_excerpt(item.content)
        description = self.cleaner.extract_text_only(item.description)

        values = {
            "title": item.title,
            "description": description,
            "content_excerpt": excerpt,
            "accept_topics": self.TOPIC_SEPARATOR.join(accept_topics),
            "reject_topics": self.TOPIC_SEPARATOR.join(reject_topics),
        }

        # Single pass: text inserted for one placeholder is never rescanned
        return PLACEHOLDER_PATTERN.sub(
            lambda match: values[match.group(1)] or self.EMPTY_VALUE, self.template
        )
