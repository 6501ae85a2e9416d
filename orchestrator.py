"""Backend orchestrator: decodes command messages and dispatches them to agents."""

import json
import logging
from typing import Any, Callable, Optional

from config.settings import Settings
from schemas.commands import (
    ArticleQuestionRequest,
    ArticleRequest,
    ClearArticlesRequest,
    CommandRequest,
    GetArticleRequest,
    GetInsightsRequest,
    MatchICPRequest,
    SearchRequest,
    SeedMockDataRequest,
)
from schemas.insights import UserInsight
from protocol import commands

# LLM components
from llm.factory import create_llm_client
from llm.base_client import BaseLLMClient

# Memory components
from memory.sqlite_store import SQLiteRowStore
from memory.context_manager import SessionContextManager

# Agents
from agents.search_agent import SearchAgent
from agents.article_writer import ArticleWriter
from agents.insight_extractor import InsightAccumulator
from agents.question_agent import ArticleQuestionAgent
from agents.icp_scorer import ICPScorer

from utils.exceptions import AfterlinkError, NotFound

logger = logging.getLogger(__name__)

Reply = Callable[[str], None]

MOCK_INSIGHTS = [
    UserInsight(
        session_user_id="user_mock_001",
        article_title="How to Start Investing With a Small Budget",
        category="finance",
        insight="Has about $5,000 saved, wants to start investing within the next month, "
                "worried about losing money in a downturn.",
        raw_message="I have around 5k saved and want to start next month",
        user_name="Dana Reyes",
        contact_preference="email",
        user_email="dana.reyes@example.com",
    ),
    UserInsight(
        session_user_id="user_mock_002",
        article_title="Building a Skincare Routine for Sensitive Skin",
        category="beauty",
        insight="Has sensitive, dry skin; currently spends around $40 a month on skincare.",
        raw_message="my skin is sensitive and dry, I spend like 40 a month",
        user_name="Sam Okafor",
        contact_preference="phone",
        user_phone="+1 555 201 3344",
    ),
    UserInsight(
        session_user_id="user_mock_003",
        article_title="Choosing a Project Management Tool for a Small Team",
        category="tech",
        insight="Runs a 12-person agency, budget approved for a new tool this quarter, "
                "currently using spreadsheets.",
        raw_message="we're 12 people, budget is approved for this quarter",
        user_name="Priya Natarajan",
        contact_preference="email",
        user_email="priya@example.com",
    ),
    UserInsight(
        session_user_id="user_mock_004",
        article_title="Home Workouts That Actually Work",
        category="fitness",
        insight="Beginner, 45 years old, wants to lose weight, can train three evenings a week.",
        raw_message="I'm 45 and just starting out",
        user_name="Chris Lindqvist",
        contact_preference="email",
        user_email="chris.l@example.com",
    ),
]


class AfterlinkOrchestrator:
    """Backend message handler with LLM-powered agents and the row store."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        llm_client: Optional[BaseLLMClient] = None,
        store: Optional[SQLiteRowStore] = None
    ):
        """
        Initialize orchestrator.

        Args:
            settings: Application settings
            llm_client: Text-generation client (built from settings if omitted)
            store: Row store (opened at ``settings.db_path`` if omitted)
        """
        self.settings = settings or Settings()

        # Initialize LLM client
        self.llm_client: Optional[BaseLLMClient] = llm_client
        if self.llm_client is None:
            self._init_llm_client()

        # Initialize memory
        self.store = store or SQLiteRowStore(db_path=self.settings.db_path)
        self.context_manager = SessionContextManager(self.store)
        logger.info(f"Row store initialized: {self.store.db_path}")

        # Initialize agents
        self._init_agents()

    def _init_llm_client(self):
        """Build the text-generation client, or leave it unset without a key."""
        api_key = self.settings.get_llm_api_key()
        if not api_key:
            logger.warning(
                f"No API key for {self.settings.llm_provider}; "
                "commands that need text generation will reply with an error"
            )
            return

        try:
            self.llm_client = create_llm_client(
                provider=self.settings.llm_provider,
                api_key=api_key,
                model=self.settings.llm_model,
                timeout=self.settings.llm_timeout
            )
        except (ValueError, AfterlinkError) as e:
            logger.error(f"Text generation unavailable: {e}")
            return
        logger.info(
            f"Generating with {self.llm_client.get_provider_name()} "
            f"({self.llm_client.get_model_name()})"
        )

    def _init_agents(self):
        """Initialize agents; they need a text-generation client."""
        # Stored articles can be served without text generation
        self.article_writer = ArticleWriter(self.llm_client, self.store)
        self.search_agent: Optional[SearchAgent] = None
        self.accumulator: Optional[InsightAccumulator] = None
        self.question_agent: Optional[ArticleQuestionAgent] = None
        self.icp_scorer: Optional[ICPScorer] = None

        if not self.llm_client:
            logger.info("Agents disabled: no LLM client")
            return

        self.search_agent = SearchAgent(
            self.llm_client,
            self.store,
            target_results=self.settings.search_target_results
        )
        self.accumulator = InsightAccumulator(self.llm_client, self.store)
        self.question_agent = ArticleQuestionAgent(
            self.llm_client, self.context_manager, self.accumulator
        )
        self.icp_scorer = ICPScorer(self.llm_client)
        logger.info("Using LLM-powered agents")

    def _require(self, agent: Any) -> Any:
        if agent is None:
            raise AfterlinkError("LLM client is not configured")
        return agent

    def handle_message(self, text: str, reply: Reply) -> None:
        """
        Handle one incoming channel message.

        Commands are matched by prefix in a fixed priority order. Text that
        matches no prefix gets a usage reply. Any failure while handling a
        command is replied as ``{"error": "..."}``.

        Args:
            text: Incoming message text
            reply: Posts a bot message on the same channel
        """
        try:
            request = commands.parse_command(text)
            if request is None:
                logger.info(f"Unknown command: {text[:60]!r}")
                reply(commands.UNKNOWN_COMMAND_REPLY)
                return
            logger.info(f"Handling {request.kind}")
            self.dispatch(request, reply)

        except AfterlinkError as e:
            logger.warning(f"Command failed: {e.message}")
            reply(json.dumps({"error": e.message}))

        except Exception as e:
            logger.error(f"Unexpected error handling command: {e}")
            reply(json.dumps({"error": str(e) or type(e).__name__}))

    def dispatch(self, request: CommandRequest, reply: Reply) -> None:
        """Run a decoded command and post its reply (or replies)."""
        if isinstance(request, SearchRequest):
            reply(commands.SEARCH_STATUS)
            results = self._require(self.search_agent).search(request.query)
            reply(json.dumps([r.to_wire() for r in results]))

        elif isinstance(request, ArticleRequest):
            reply(commands.ARTICLE_STATUS)
            self._require(self.llm_client)
            article = self.article_writer.get_or_create(request.title)
            reply(json.dumps({"id": article.id, "content": article.content}))

        elif isinstance(request, GetArticleRequest):
            try:
                article = self.article_writer.get_stored(request.article_id)
                reply(json.dumps(article.to_wire()))
            except NotFound as e:
                reply(json.dumps({"error": e.message}))

        elif isinstance(request, ArticleQuestionRequest):
            response = self._require(self.question_agent).respond(request)
            reply(json.dumps({"response": response}))

        elif isinstance(request, ClearArticlesRequest):
            reply(json.dumps(self.clear_all()))

        elif isinstance(request, SeedMockDataRequest):
            reply(json.dumps(self.seed_mock_data()))

        elif isinstance(request, GetInsightsRequest):
            insights = self.store.find_insights()
            reply(json.dumps({"insights": [i.to_wire() for i in insights]}))

        elif isinstance(request, MatchICPRequest):
            scores = self._require(self.icp_scorer).score_batch(
                request.icp_description, request.leads
            )
            reply(json.dumps({"scores": [s.to_wire() for s in scores]}))

        else:
            raise AfterlinkError(f"Unsupported command: {request.kind}")

    def clear_all(self) -> dict:
        """Delete every article, its content and every lead note."""
        articles = self.store.delete_all_articles()
        insights = self.store.delete_all_insights()
        logger.info(f"Cleared {articles} articles and {insights} insights")
        return {
            "success": True,
            "message": f"Deleted {articles} articles and {insights} insights",
        }

    def seed_mock_data(self) -> dict:
        """Insert sample lead notes, skipping sessions that already have one."""
        created = 0
        for sample in MOCK_INSIGHTS:
            with self.store.session_lock(sample.session_user_id):
                if self.store.find_insight_by_session(sample.session_user_id):
                    continue
                self.store.create_insight(sample)
                created += 1
        logger.info(f"Seeded {created} mock insights")
        return {"success": True, "message": f"Seeded {created} insights"}

