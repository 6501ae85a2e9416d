"""Article-question sessions: ask for context first, answer afterwards."""

import logging
from enum import Enum

from llm.base_client import BaseLLMClient
from memory.context_manager import SessionContextManager
from schemas.commands import ArticleQuestionRequest
from .insight_extractor import InsightAccumulator

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    """Turn state of an article-question session."""
    FIRST_TURN = "first_turn"
    FOLLOW_UP = "follow_up"


class ArticleQuestionAgent:
    """
    Handles one turn of a question clicked in an article.

    First turn: the clicked question is not answered. The reply names the
    kind of personal context the question depends on and asks the reader for
    that one piece of context. Nothing is extracted on this turn.

    Follow-up turns: the reader's turns so far are run through the insight
    accumulator, then the original question is answered plainly using the
    paragraph, and what is known about the reader, without asking anything
    back.

    On both turns any stored note for the session is injected so known
    facts are never requested again.
    """

    FIRST_TURN_PROMPT = """You help a reader who clicked a question while reading an article.
Do NOT answer the question yet.
Work out which single piece of personal context the question's own wording depends on
(for example a question about "my budget" depends on the reader's budget; a question
about "my skin" depends on their skin type). In two or three friendly sentences:
1. say briefly that the answer depends on that context, naming it, and
2. ask the reader for just that one piece of context.
If the reader's notes below already contain that context, ask for the next most
useful missing detail instead."""

    FOLLOW_UP_PROMPT = """You help a reader who clicked a question while reading an article.
Answer their original question directly and concretely, using the article paragraph
and everything known about the reader. Tailor the answer to their stated situation.
Do not ask the reader any question. Do not probe for more information.
Keep it under 150 words."""

    def __init__(
        self,
        llm_client: BaseLLMClient,
        context_manager: SessionContextManager,
        accumulator: InsightAccumulator
    ):
        """
        Initialize question agent.

        Args:
            llm_client: Text-generation client
            context_manager: Session memory and transcript formatting
            accumulator: Insight accumulator for follow-up turns
        """
        self.llm_client = llm_client
        self.context_manager = context_manager
        self.accumulator = accumulator

    @staticmethod
    def state_for(request: ArticleQuestionRequest) -> SessionState:
        return SessionState.FIRST_TURN if request.is_first_message else SessionState.FOLLOW_UP

    def respond(self, request: ArticleQuestionRequest) -> str:
        """
        Produce the assistant reply for one turn.

        Args:
            request: Decoded ARTICLE_QUESTION payload

        Returns:
            Reply text
        """
        state = self.state_for(request)
        logger.info(f"Question turn for {request.session_user_id}: {state.value}")

        if state == SessionState.FOLLOW_UP:
            self.accumulator.extract_and_merge(
                session_user_id=request.session_user_id,
                article_title=request.article_title,
                user_turns=request.user_turns(),
                contact_info=request.contact_info
            )

        # Loaded after extraction so this turn's facts are included
        memory = self.context_manager.get_session_memory_string(request.session_user_id)

        if state == SessionState.FIRST_TURN:
            return self._ask_for_context(request, memory)
        return self._answer(request, memory)

    def _ask_for_context(self, request: ArticleQuestionRequest, memory: str) -> str:
        parts = [
            f"## Article\n{request.article_title}",
            f"## Paragraph\n{request.paragraph_context}",
            f"## Question The Reader Clicked\n{request.question}",
        ]
        if memory:
            parts.append(memory)

        return self.llm_client.generate(
            "\n\n".join(parts),
            length=200,
            system=self.FIRST_TURN_PROMPT
        )

    def _answer(self, request: ArticleQuestionRequest, memory: str) -> str:
        original_question = next(
            (m.content for m in request.conversation_history if m.role == "user"),
            request.question
        )
        parts = [
            f"## Article\n{request.article_title}",
            f"## Paragraph\n{request.paragraph_context}",
            f"## Original Question\n{original_question}",
        ]
        if memory:
            parts.append(memory)
        history = self.context_manager.get_history_string(request.conversation_history)
        if history:
            parts.append(history)
        parts.append(f"## Reader's Latest Message\n{request.question}")

        return self.llm_client.generate(
            "\n\n".join(parts),
            length=400,
            system=self.FOLLOW_UP_PROMPT
        )
