"""Session context for article-question generation."""

import logging
from typing import List, Optional

from .sqlite_store import SQLiteRowStore
from schemas.articles import ConversationMessage
from schemas.insights import UserInsight

logger = logging.getLogger(__name__)


class SessionContextManager:
    """Builds grounding context from session memory and recent turns."""

    # Maximum turns to include in a prompt
    MAX_CONTEXT_TURNS = 10

    def __init__(self, store: SQLiteRowStore):
        """
        Initialize context manager.

        Args:
            store: Row store holding lead notes
        """
        self.store = store

    def get_session_insight(self, session_user_id: str) -> Optional[UserInsight]:
        """Load the session's lead note, if one exists."""
        if not session_user_id:
            return None
        return self.store.find_insight_by_session(session_user_id)

    def get_session_memory_string(self, session_user_id: str) -> str:
        """
        Get what is already known about the reader as prompt text.

        Returns an empty string when the session has no note yet, so
        callers can include it unconditionally.

        Args:
            session_user_id: Session identifier

        Returns:
            Formatted memory block
        """
        insight = self.get_session_insight(session_user_id)
        if not insight or not insight.insight.strip():
            return ""

        parts = ["=== Known About This Reader ==="]
        parts.append(f"Theme: {insight.category}")
        parts.append(f"Facts: {insight.insight}")
        parts.append("Do not ask for any of these facts again.")
        parts.append("=== End Known About This Reader ===")
        return "\n".join(parts)

    def get_history_string(self, history: List[ConversationMessage]) -> str:
        """
        Format the most recent turns as a transcript.

        Args:
            history: Ordered conversation turns

        Returns:
            Transcript text, or an empty string for no history
        """
        turns = history[-self.MAX_CONTEXT_TURNS:]
        if not turns:
            return ""

        parts = ["=== Previous Conversation ==="]
        for turn in turns:
            parts.append(f"{turn.role.upper()}: {turn.content}")
        parts.append("=== End Previous Conversation ===")
        return "\n".join(parts)
