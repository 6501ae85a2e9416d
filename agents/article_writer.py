"""Article generation with embedded curiosity questions."""

import logging
from typing import Optional

from llm.base_client import BaseLLMClient
from memory.models import ArticleRecord
from memory.sqlite_store import SQLiteRowStore
from schemas.articles import FullArticle
from utils.exceptions import NotFound
from utils.text import (
    extract_question_markers,
    make_snippet,
    normalize_question_markers,
    slugify,
)

logger = logging.getLogger(__name__)

MIN_MARKERS = 2
MAX_MARKERS = 5


class ArticleWriter:
    """Writes, stores and retrieves full articles."""

    PROMPT_TEMPLATE = """Write a short, informative article (4-6 paragraphs) about: "{title}".
Write in a professional, engaging style similar to Medium articles.
Do not include the title in your response, just the article body.
Separate paragraphs with a blank line (double newline).

Embed between {min_markers} and {max_markers} curiosity questions inline using the exact syntax
{{{{Q:question phrase}}}}. Place each one where general information stops being enough
and the right answer depends on the reader's own situation, for example
{{{{Q:How much should I budget for this?}}}} or {{{{Q:Is this right for my skin type?}}}}.
Write each question in the first person, as the reader would ask it.
Never nest markers and never put braces inside a question."""

    def __init__(self, llm_client: BaseLLMClient, store: SQLiteRowStore):
        """
        Initialize article writer.

        Args:
            llm_client: Text-generation client
            store: Row store for article metadata and content
        """
        self.llm_client = llm_client
        self.store = store

    def get_or_create(self, title: str) -> FullArticle:
        """Return the stored article with this title, generating it if absent."""
        title = title.strip()
        if not title:
            raise ValueError("Article title is empty")

        for record in self.store.find_articles(title=title):
            content = self.store.find_article_content(record.id)
            if content:
                logger.info(f"Serving stored article {record.id} for {title!r}")
                return FullArticle(id=record.id, title=record.title, content=content.content)

        return self.generate(title)

    def generate(self, title: str) -> FullArticle:
        """
        Generate an article body, store it and return it with its new id.

        Markers in the generated body are normalized so stored content only
        holds well-formed, non-nested ``{{Q:phrase}}`` markers.
        """
        prompt = self.PROMPT_TEMPLATE.format(
            title=title, min_markers=MIN_MARKERS, max_markers=MAX_MARKERS
        )
        content = normalize_question_markers(self.llm_client.generate(prompt, length=1200))

        markers = extract_question_markers(content)
        if not MIN_MARKERS <= len(markers) <= MAX_MARKERS:
            logger.warning(
                f"Article {title!r} has {len(markers)} question markers "
                f"(expected {MIN_MARKERS}-{MAX_MARKERS})"
            )

        record = self.save(title, content)
        logger.info(f"Generated article {record.id} for {title!r}")
        return FullArticle(id=record.id, title=title, content=content)

    def save(self, title: str, content: str, snippet: Optional[str] = None) -> ArticleRecord:
        """
        Persist article metadata and content.

        A slug already used by another article gets the new id appended.
        """
        slug = slugify(title)
        [record] = self.store.create_articles([ArticleRecord(
            title=title,
            slug=slug,
            snippet=snippet if snippet is not None else make_snippet(content),
        )])

        if any(other.id != record.id for other in self.store.find_articles(slug=slug)):
            record = self.store.update_article(
                record.model_copy(update={"slug": f"{slug}-{record.id}"})
            )

        self.store.create_article_content(record.id, content)
        return record

    def get_stored(self, article_id: int) -> FullArticle:
        """
        Load a stored article by id.

        Raises:
            NotFound: If no article or content exists for the id
        """
        record = self.store.get_article(article_id)
        content = self.store.find_article_content(article_id) if record else None
        if not record or not content:
            raise NotFound("Article not found")
        return FullArticle(id=record.id, title=record.title, content=content.content)
