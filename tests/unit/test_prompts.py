"""
Prompt and Content Excerpt Unit Tests
=====================================
"""

from sanerss.ai.prompts import FilterPromptBuilder
from sanerss.config.settings import DEFAULT_FILTER_PROMPT
from sanerss.ingestion.content_cleaner import ContentCleaner
from sanerss.ingestion.models import FeedItem


class TestContentCleaner:
    def test_paragraphs_joined_with_spaces(self):
        cleaner = ContentCleaner()
        html = "<div><p>First  para.</p><span>skip</span><p>Second para.</p></div>"

        assert cleaner.extract_excerpt(html) == "First  para. Second para."

    def test_excerpt_truncated(self):
        cleaner = ContentCleaner(max_excerpt_chars=12)
        html = "<p>Hello world</p><p>and more text</p>"

        excerpt = cleaner.extract_excerpt(html)
        assert excerpt == "Hello world "
        assert len(excerpt) <= 12

    def test_no_paragraphs_uses_full_text(self):
        cleaner = ContentCleaner()
        assert cleaner.extract_excerpt("<div>Just <b>text</b></div>") == "Just text"

    def test_scripts_removed(self):
        cleaner = ContentCleaner()
        html = "<p>Visible</p><script>alert('x')</script>"

        assert cleaner.extract_excerpt(html) == "Visible"
        assert cleaner.extract_text_only(html) == "Visible"

    def test_empty_content(self):
        cleaner = ContentCleaner()
        assert cleaner.extract_excerpt(None) == ""
        assert cleaner.extract_excerpt("   ") == ""
        assert cleaner.extract_text_only(None) == ""


class TestFilterPromptBuilder:
    def test_default_template_hydrated(self):
        builder = FilterPromptBuilder()
        item = FeedItem(
            title="Rust 2.0",
            description="<p>New <b>edition</b></p>",
            content="<p>Borrow checker changes.</p>",
        )

        prompt = builder.build(item, ["rust", "databases"], ["crypto"])

        assert "Post title: Rust 2.0" in prompt
        assert "Post description: New edition" in prompt
        assert "Post content excerpt: Borrow checker changes." in prompt
        assert "Accept topics: rust; databases" in prompt
        assert "Reject topics: crypto" in prompt
        assert '{"accept": true/false, "reject": true/false}' in prompt

    def test_empty_values_become_none(self):
        builder = FilterPromptBuilder(
            template="{title}|{description}|{content_excerpt}|{accept_topics}|{reject_topics}"
        )

        assert builder.build(FeedItem(), [], []) == "none|none|none|none|none"

    def test_default_template_has_all_placeholders(self):
        for placeholder in ("{title}", "{description}", "{content_excerpt}", "{accept_topics}", "{reject_topics}"):
            assert placeholder in DEFAULT_FILTER_PROMPT

    def test_placeholders_inside_item_text_are_left_alone(self):
        builder = FilterPromptBuilder(template="T={title} A={accept_topics} R={reject_topics}")
        item = FeedItem(title="Why {accept_topics} and {reject_topics} leak")

        prompt = builder.build(item, ["rust"], ["crypto"])

        assert prompt == "T=Why {accept_topics} and {reject_topics} leak A=rust R=crypto"

    def test_unknown_braces_kept(self):
        builder = FilterPromptBuilder(template='{title} -> {"accept": bool}')

        assert builder.build(FeedItem(title="x"), [], []) == 'x -> {"accept": bool}'
