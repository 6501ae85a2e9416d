"""Caller-owned Afterlink client.

Each top-level operation opens its own channel, sends one command and waits
for the qualifying reply. There is no process-wide client: construct one,
``connect()`` it (or use it as a context manager) and ``close()`` it.
"""

import logging
import time
from typing import Callable, Iterable, List, Optional

from config.settings import Settings
from schemas.articles import Article, ConversationMessage, FullArticle
from schemas.commands import (
    ArticleQuestionRequest,
    ArticleRequest,
    ClearArticlesRequest,
    CommandRequest,
    CommandStatus,
    GetArticleRequest,
    GetInsightsRequest,
    MatchICPRequest,
    SearchRequest,
    SeedMockDataRequest,
)
from schemas.insights import ContactInfo, UserInsight
from schemas.scoring import LeadInput, LeadScore
from transport.base import ChatTransport
from transport.correlator import ResponseCorrelator
from transport.http_chat import HttpChatTransport
from utils.exceptions import TransportError
from . import commands
from .session import new_session_user_id

logger = logging.getLogger(__name__)


class AfterlinkClient:
    """Typed command API over a chat channel."""

    def __init__(
        self,
        transport: ChatTransport,
        poll_interval: float = 1.0,
        max_attempts: int = 60,
        min_length: int = 2,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Initialize client.

        Args:
            transport: Chat channel provider
            poll_interval: Seconds between reply polls
            max_attempts: Polls before a ResponseTimeout
            min_length: Minimum reply length
            sleep: Sleep function (injectable for tests)
        """
        self.transport = transport
        self.correlator = ResponseCorrelator(
            transport,
            reserved_prefixes=commands.COMMAND_PREFIXES,
            poll_interval=poll_interval,
            max_attempts=max_attempts,
            min_length=min_length,
            sleep=sleep
        )
        self._connected = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "AfterlinkClient":
        """Build a client for the hosted chat API described by settings."""
        if not settings.chat_base_url:
            raise TransportError("AFTERLINK_WEBHOOK_ID is not configured")
        transport = HttpChatTransport(
            base_url=settings.chat_base_url,
            timeout=settings.http_timeout
        )
        return cls(
            transport,
            poll_interval=settings.poll_interval_seconds,
            max_attempts=settings.poll_max_attempts,
            min_length=settings.min_response_length
        )

    def connect(self) -> "AfterlinkClient":
        if not self._connected:
            self.transport.connect()
            self._connected = True
        return self

    def close(self) -> None:
        if self._connected:
            self.transport.close()
            self._connected = False

    def __enter__(self) -> "AfterlinkClient":
        return self.connect()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _round_trip(
        self,
        request: CommandRequest,
        exclude: Iterable[str] = (),
        conversation_id: Optional[str] = None
    ) -> str:
        if not self._connected:
            self.connect()
        return self.correlator.round_trip(
            commands.encode_command(request),
            exclude=exclude,
            conversation_id=conversation_id
        )

    def search(self, query: str) -> List[Article]:
        """
        Search stored and freshly suggested articles.

        Results with an ``id`` are stored articles (fetch with
        get_stored_article); results without one are new suggestions
        (generate with get_article).
        """
        response = self._round_trip(
            SearchRequest(query=query), exclude=[commands.SEARCH_STATUS]
        )
        return commands.decode_search(response)

    def get_article(self, title: str) -> FullArticle:
        """Generate an article for a title, or fetch it if already stored."""
        response = self._round_trip(
            ArticleRequest(title=title), exclude=[commands.ARTICLE_STATUS]
        )
        return commands.decode_article(response, title)

    def get_stored_article(self, article_id: int) -> FullArticle:
        """Fetch a stored article. Raises NotFound for unknown ids."""
        response = self._round_trip(GetArticleRequest(article_id=article_id))
        return commands.decode_stored_article(response)

    def ask_article_question(
        self,
        article_title: str,
        paragraph_context: str,
        question: str,
        conversation_history: List[ConversationMessage],
        session_user_id: Optional[str] = None,
        contact_info: Optional[ContactInfo] = None,
        conversation_id: Optional[str] = None
    ) -> str:
        """
        Send one turn of an article-question session.

        Args:
            article_title: Title of the article being read
            paragraph_context: Paragraph the question is anchored to
            question: This turn's user text
            conversation_history: Prior turns (empty on the first turn)
            session_user_id: Session identifier; a new one is made if absent
            contact_info: Optional captured contact details
            conversation_id: Channel to reuse; a fresh one is opened if absent

        Returns:
            Assistant answer text
        """
        request = ArticleQuestionRequest(
            article_title=article_title,
            paragraph_context=paragraph_context,
            question=question,
            conversation_history=conversation_history,
            session_user_id=session_user_id or new_session_user_id(),
            is_first_message=len(conversation_history) == 0,
            contact_info=contact_info
        )
        response = self._round_trip(request, conversation_id=conversation_id)
        return commands.decode_answer(response)

    def clear_articles(self) -> CommandStatus:
        """Delete all stored articles, content and insights."""
        return commands.decode_status(self._round_trip(ClearArticlesRequest()))

    def seed_mock_data(self) -> CommandStatus:
        """Load sample lead insights."""
        return commands.decode_status(self._round_trip(SeedMockDataRequest()))

    def get_insights(self) -> List[UserInsight]:
        return commands.decode_insights(self._round_trip(GetInsightsRequest()))

    def match_icp(
        self,
        icp_description: str,
        leads: List[LeadInput]
    ) -> List[LeadScore]:
        """Score leads against an ICP description, highest score first."""
        request = MatchICPRequest(icp_description=icp_description, leads=leads)
        return commands.decode_scores(self._round_trip(request))
