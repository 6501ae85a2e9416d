"""Tests for article generation and storage."""

import pytest
from agents.article_writer import ArticleWriter
from utils.exceptions import NotFound
from utils.text import extract_question_markers
from conftest import FakeLLMClient

ARTICLE_BODY = (
    "Bubble tea began in Taiwan in the 1980s.\n\n"
    "Prices vary a lot between shops. {{Q:How much should I expect to spend?}}\n\n"
    "Sugar levels can be adjusted. {{Q:Which sweetness level suits my diet?}}"
)


class TestArticleWriter:
    """Test writing, storing and loading articles."""

    def setup_method(self):
        """Set up test fixtures."""
        self.llm = FakeLLMClient(default=ARTICLE_BODY)

    def test_generate_stores_article(self, store):
        """Test that a generated article is stored with metadata and content."""
        article = ArticleWriter(self.llm, store).generate("Bubble Tea Basics")

        assert article.id > 0
        record = store.get_article(article.id)
        assert record.slug == "bubble-tea-basics"
        assert record.snippet == "Bubble tea began in Taiwan in the 1980s."
        assert store.find_article_content(article.id).content == ARTICLE_BODY

    def test_prompt_asks_for_markers(self, store):
        """Test that the generation prompt requests the marker syntax."""
        ArticleWriter(self.llm, store).generate("Bubble Tea Basics")
        assert "{{Q:" in self.llm.prompts[0]
        assert '"Bubble Tea Basics"' in self.llm.prompts[0]

    def test_markers_kept(self, store):
        """Test that well-formed markers survive storage."""
        article = ArticleWriter(self.llm, store).generate("Bubble Tea Basics")
        assert extract_question_markers(article.content) == [
            "How much should I expect to spend?",
            "Which sweetness level suits my diet?",
        ]

    def test_broken_markers_removed(self, store):
        """Test that malformed markers are dropped before storing."""
        self.llm.default = "Intro {{Q:unclosed and {{Q:Good one?}} tail }}"
        article = ArticleWriter(self.llm, store).generate("Broken")

        assert article.content == "Intro unclosed and {{Q:Good one?}} tail "
        assert store.find_article_content(article.id).content == article.content

    def test_get_or_create_reuses_stored_title(self, store):
        """Test that a stored title is served without generating again."""
        writer = ArticleWriter(self.llm, store)
        first = writer.get_or_create("Bubble Tea Basics")
        second = writer.get_or_create("Bubble Tea Basics")

        assert second.id == first.id
        assert len(self.llm.calls) == 1
        assert len(store.find_articles()) == 1

    def test_get_or_create_empty_title(self, store):
        """Test that an empty title is refused."""
        with pytest.raises(ValueError):
            ArticleWriter(self.llm, store).get_or_create("   ")

    def test_slug_collision_appends_id(self, store):
        """Test that a second article with the same slug gets a unique one."""
        writer = ArticleWriter(self.llm, store)
        first = writer.save("Bubble Tea!", ARTICLE_BODY)
        second = writer.save("bubble tea", ARTICLE_BODY)

        assert first.slug == "bubble-tea"
        assert second.slug == f"bubble-tea-{second.id}"
        assert store.get_article(second.id).slug == second.slug

    def test_save_with_explicit_snippet(self, store):
        """Test that a provided snippet is stored as-is."""
        record = ArticleWriter(self.llm, store).save("Tea", ARTICLE_BODY, snippet="Custom")
        assert store.get_article(record.id).snippet == "Custom"

    def test_get_stored(self, store):
        """Test loading a stored article by id."""
        writer = ArticleWriter(self.llm, store)
        created = writer.generate("Bubble Tea Basics")

        loaded = writer.get_stored(created.id)
        assert loaded.title == "Bubble Tea Basics"
        assert loaded.content == ARTICLE_BODY

    def test_get_stored_unknown_id(self, store):
        """Test that an unknown id raises NotFound."""
        with pytest.raises(NotFound) as exc_info:
            ArticleWriter(self.llm, store).get_stored(999)
        assert exc_info.value.message == "Article not found"
