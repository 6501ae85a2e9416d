"""Lead insight accumulation from article-question turns."""

import logging
from typing import List, Optional

from llm.base_client import BaseLLMClient
from memory.sqlite_store import SQLiteRowStore
from protocol.codec import tolerant_loads
from schemas.insights import ContactInfo, ExtractedNote, InsightTheme, UserInsight
from utils.exceptions import ParseFailure

logger = logging.getLogger(__name__)


class InsightAccumulator:
    """
    Maintains one structured lead note per session.

    Each pass re-reads every user-authored turn together with the previous
    note and asks the model for a merged note. The merged note replaces the
    session's row in place; a second row is never inserted for a session.
    """

    SYSTEM_PROMPT = """You keep a short factual note about a reader for a sales team.

You are given everything the reader has typed so far and the previous note.
Return an updated note that merges the previous note with any new facts.

Rules:
- Keep only facts the reader explicitly and literally stated about themselves
  (budget, age, goals, concerns, situation, preferences, timeline...).
- Asking a question is NOT a fact. Never record "interested in X" just because
  the reader asked about X.
- Do not infer, estimate or embellish.
- Keep every fact from the previous note unless the reader corrected it.
- If there are no stated facts at all, return an empty note.

Pick the one theme that best fits the facts:
food, beauty, fitness, tech, finance, health, education, travel, home, fashion, other

## Response Format
Respond with valid JSON only:
{"theme": "<theme>", "note": "<merged facts, or empty string>"}"""

    def __init__(self, llm_client: BaseLLMClient, store: SQLiteRowStore):
        """
        Initialize accumulator.

        Args:
            llm_client: Text-generation client for extraction
            store: Row store holding lead notes
        """
        self.llm_client = llm_client
        self.store = store

    def extract(
        self,
        user_turns: List[str],
        previous_note: Optional[str] = None
    ) -> ExtractedNote:
        """
        Extract a merged note from the reader's turns.

        Returns an empty note when the model output cannot be parsed.
        """
        turns_text = "\n".join(f"- {turn}" for turn in user_turns if turn.strip())
        prompt = f"""## Previous Note
{previous_note or "(none)"}

## Everything The Reader Typed
{turns_text or "(nothing)"}

Return the updated note as JSON."""

        try:
            content = self.llm_client.generate(
                prompt,
                length=300,
                system=self.SYSTEM_PROMPT,
                temperature=0.1
            )
            parsed = tolerant_loads(content)
            if not isinstance(parsed, dict):
                raise ParseFailure("Insight extraction must return a JSON object")

            return ExtractedNote(
                theme=InsightTheme.coerce(parsed.get("theme")),
                note=str(parsed.get("note") or "").strip()
            )

        except ParseFailure as e:
            logger.warning(f"Failed to parse insight extraction: {e}")
            return ExtractedNote()

        except Exception as e:
            logger.error(f"Insight extraction error: {e}")
            return ExtractedNote()

    def extract_and_merge(
        self,
        session_user_id: str,
        article_title: str,
        user_turns: List[str],
        contact_info: Optional[ContactInfo] = None
    ) -> Optional[UserInsight]:
        """
        Extract facts and update the session's note in place.

        The read, the model merge and the write all run under the session's
        lock, so concurrent turns of one session merge one after another.

        Args:
            session_user_id: Session identifier
            article_title: Article the reader is on
            user_turns: All user-authored turns, latest last
            contact_info: Contact details to attach when the row is created

        Returns:
            The created or updated note, or None if nothing was stated
        """
        if not user_turns:
            return None

        with self.store.session_lock(session_user_id):
            current = self.store.find_insight_by_session(session_user_id)
            extracted = self.extract(user_turns, current.insight if current else None)
            if not extracted.note:
                logger.info(f"No stated facts for session {session_user_id}")
                return None

            if current:
                updated = current.model_copy(update={
                    "category": extracted.theme.value,
                    "insight": extracted.note,
                    "raw_message": user_turns[-1],
                    "article_title": article_title or current.article_title,
                })
                if contact_info and not current.user_name:
                    updated = self._with_contact(updated, contact_info)
                logger.info(f"Updated insight for session {session_user_id}")
                return self.store.update_insight(updated)

            insight = UserInsight(
                session_user_id=session_user_id,
                article_title=article_title,
                category=extracted.theme.value,
                insight=extracted.note,
                raw_message=user_turns[-1],
            )
            if contact_info:
                insight = self._with_contact(insight, contact_info)
            logger.info(f"Created insight for session {session_user_id}")
            return self.store.create_insight(insight)

    @staticmethod
    def _with_contact(insight: UserInsight, contact_info: ContactInfo) -> UserInsight:
        return insight.model_copy(update={
            "user_name": contact_info.user_name,
            "contact_preference": contact_info.contact_preference,
            "user_email": contact_info.email,
            "user_phone": contact_info.phone,
        })
