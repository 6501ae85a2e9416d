"""Client-side article-question session."""

import logging
import random
import string
import time
from typing import List, Optional

from schemas.articles import ConversationMessage
from schemas.insights import ContactInfo
from utils.exceptions import AfterlinkError

logger = logging.getLogger(__name__)

APOLOGY_MESSAGE = "Sorry, I couldn't process your question. Please try again."

_ID_ALPHABET = string.ascii_lowercase + string.digits


def new_session_user_id() -> str:
    """Return an identifier of the form ``user_<epoch-ms>_<7 chars>``."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=7))
    return f"user_{int(time.time() * 1000)}_{suffix}"


class ArticleQuestionSession:
    """
    One Q&A thread opened from a question marker in an article.

    Holds the turn history and session identifier so every turn carries the
    context the stateless backend needs. A failed turn never breaks the
    session: the apology is recorded as the assistant's reply instead.
    """

    def __init__(
        self,
        client,
        article_title: str,
        paragraph_context: str,
        session_user_id: Optional[str] = None,
        contact_info: Optional[ContactInfo] = None,
        reuse_channel: bool = False
    ):
        self.client = client
        self.article_title = article_title
        self.paragraph_context = paragraph_context
        self.session_user_id = session_user_id or new_session_user_id()
        self.contact_info = contact_info
        self.reuse_channel = reuse_channel
        self.history: List[ConversationMessage] = []
        self._conversation_id: Optional[str] = None

    @property
    def is_first_turn(self) -> bool:
        return len(self.history) == 0

    def ask(self, text: str) -> str:
        """Send a user turn and return the assistant reply."""
        if not text.strip():
            raise ValueError("Question text is empty")

        prior = list(self.history)
        self.history.append(ConversationMessage(role="user", content=text))

        if self.reuse_channel and self._conversation_id is None:
            self._conversation_id = self.client.connect().correlator.open_channel()

        try:
            answer = self.client.ask_article_question(
                article_title=self.article_title,
                paragraph_context=self.paragraph_context,
                question=text,
                conversation_history=prior,
                session_user_id=self.session_user_id,
                contact_info=self.contact_info,
                conversation_id=self._conversation_id
            )
        except AfterlinkError as e:
            logger.warning(f"Question turn failed for {self.session_user_id}: {e}")
            answer = APOLOGY_MESSAGE

        self.history.append(ConversationMessage(role="assistant", content=answer))
        return answer
