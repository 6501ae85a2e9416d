"""Search orchestration over stored and freshly suggested articles."""

import logging
from typing import List

from llm.base_client import BaseLLMClient
from memory.models import ArticleRecord
from memory.sqlite_store import SQLiteRowStore
from protocol.codec import tolerant_loads
from schemas.articles import Article
from utils.exceptions import ParseFailure

logger = logging.getLogger(__name__)


class SearchAgent:
    """
    Answers a search with stored articles first, topped up with new ideas.

    Stored results carry their ``id``; new suggestions never do, and never
    reuse a stored title. That distinction tells the reader's client whether
    to fetch an article by id or generate it on demand.
    """

    def __init__(
        self,
        llm_client: BaseLLMClient,
        store: SQLiteRowStore,
        target_results: int = 3
    ):
        """
        Initialize search agent.

        Args:
            llm_client: Text-generation client
            store: Row store holding article metadata
            target_results: Number of results to aim for
        """
        self.llm_client = llm_client
        self.store = store
        self.target_results = target_results

    def search(self, query: str) -> List[Article]:
        """
        Run a search.

        Args:
            query: Reader's search text

        Returns:
            Relevant stored articles (with id) followed by new suggestions
            (without id); empty if the query is not a comprehensible search
        """
        query = query.strip()
        if not self.is_comprehensible(query):
            logger.info(f"Rejected incomprehensible query: {query!r}")
            return []

        stored = self.store.find_articles()
        relevant = self.find_relevant(query, stored)

        # Relevance may return more than the target; those are all kept
        needed = max(0, self.target_results - len(relevant))
        suggestions = []
        if needed > 0:
            suggestions = self.suggest_articles(query, needed, [a.title for a in stored])

        logger.info(
            f"Search {query!r}: {len(relevant)} stored, {len(suggestions)} new "
            f"(needed {needed})"
        )
        return [
            Article(id=a.id, title=a.title, snippet=a.snippet) for a in relevant
        ] + suggestions

    def is_comprehensible(self, query: str) -> bool:
        """Cheap yes/no check that the query is a plausible search phrase."""
        if not query:
            return False

        prompt = f"""Is the following text a comprehensible search phrase that a person
could plausibly type into a search box to find articles?

Text: "{query}"

Answer with exactly one word: yes or no."""

        try:
            answer = self.llm_client.generate(prompt, length=5, temperature=0.0)
        except Exception as e:
            # Don't block search on classifier failure
            logger.error(f"Query plausibility check failed: {e}")
            return True

        words = answer.strip().lower().split()
        return bool(words) and words[0].strip(".!,\"'").startswith("yes")

    def find_relevant(self, query: str, stored: List[ArticleRecord]) -> List[ArticleRecord]:
        """
        Ask which stored articles are relevant to the query.

        Ids are deduplicated in first-seen order; ids that are not stored
        are ignored. Unparseable output means nothing is relevant.
        """
        if not stored:
            return []

        catalog = "\n".join(f"{a.id}: {a.title} - {a.snippet}" for a in stored)
        prompt = f"""Here are the stored articles, one per line as "id: title - snippet":
{catalog}

Which of these articles are relevant to the search "{query}"?
Return ONLY a JSON array of the relevant ids, e.g. [1, 4]. Return [] if none are relevant."""

        try:
            content = self.llm_client.generate(prompt, length=200, temperature=0.0)
            parsed = tolerant_loads(content)
        except ParseFailure as e:
            logger.warning(f"Failed to parse relevant ids: {e}")
            return []
        except Exception as e:
            logger.error(f"Relevance check failed: {e}")
            return []

        if not isinstance(parsed, list):
            return []

        by_id = {a.id: a for a in stored}
        relevant = []
        seen = set()
        for value in parsed:
            try:
                article_id = int(value)
            except (TypeError, ValueError):
                continue
            if article_id in seen or article_id not in by_id:
                continue
            seen.add(article_id)
            relevant.append(by_id[article_id])
        return relevant

    def suggest_articles(
        self,
        query: str,
        count: int,
        existing_titles: List[str]
    ) -> List[Article]:
        """
        Ask for ``count`` new article ideas whose titles are not stored.

        Any returned title matching a stored title (case-insensitive) is
        dropped, so suggestions never duplicate stored articles.
        """
        avoid = ""
        if existing_titles:
            avoid = "\nDo NOT use any of these existing titles:\n" + "\n".join(
                f"- {t}" for t in existing_titles
            )

        prompt = f"""Generate a JSON array with exactly {count} article ideas relevant to "{query}".
Each item must have: "title" and "snippet" (one or two sentences).{avoid}
Return ONLY valid JSON, no other text.
Example: [{{"title": "...", "snippet": "..."}}]"""

        try:
            content = self.llm_client.generate(prompt, length=150 * count + 100)
            parsed = tolerant_loads(content)
        except ParseFailure as e:
            logger.warning(f"Failed to parse article suggestions: {e}")
            return []
        except Exception as e:
            logger.error(f"Article suggestion failed: {e}")
            return []

        if not isinstance(parsed, list):
            return []

        taken = {t.strip().casefold() for t in existing_titles}
        suggestions = []
        for item in parsed:
            if not isinstance(item, dict):
                continue
            title = str(item.get("title") or "").strip()
            if not title or title.casefold() in taken:
                continue
            taken.add(title.casefold())
            suggestions.append(Article(title=title, snippet=str(item.get("snippet") or "").strip()))
            if len(suggestions) == count:
                break

        if len(suggestions) < count:
            logger.warning(f"Wanted {count} suggestions for {query!r}, got {len(suggestions)}")
        return suggestions
