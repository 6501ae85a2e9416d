"""Tests for the backend command dispatcher."""

import json

import pytest
from orchestrator import AfterlinkOrchestrator, MOCK_INSIGHTS
from protocol.commands import ARTICLE_STATUS, SEARCH_STATUS, UNKNOWN_COMMAND_REPLY
from config.settings import Settings
from conftest import FakeLLMClient


class TestAfterlinkOrchestrator:
    """Test replies posted for each incoming message."""

    @pytest.fixture(autouse=True)
    def _setup(self, store):
        """Set up test fixtures."""
        self.store = store
        self.llm = FakeLLMClient([
            ("comprehensible search phrase", "yes"),
            ("article ideas", '[{"title": "A", "snippet": "a"}]'),
        ], default="Body paragraph. {{Q:Is this for me?}}")
        self.orchestrator = AfterlinkOrchestrator(Settings(), llm_client=self.llm, store=store)
        self.replies = []

    def handle(self, text):
        self.replies = []
        self.orchestrator.handle_message(text, self.replies.append)
        return self.replies

    def test_unknown_command(self):
        """Test that unrecognized text gets the usage reply."""
        assert self.handle("what can you do?") == [UNKNOWN_COMMAND_REPLY]

    def test_search_posts_status_first(self):
        """Test the search placeholder precedes the results."""
        replies = self.handle("SEARCH: tea")
        assert replies[0] == SEARCH_STATUS
        assert json.loads(replies[1]) == [{"title": "A", "snippet": "a"}]

    def test_article_posts_status_first(self):
        """Test the article placeholder precedes the article."""
        replies = self.handle("ARTICLE: Tea Basics")
        assert replies[0] == ARTICLE_STATUS
        assert json.loads(replies[1]) == {
            "id": 1, "content": "Body paragraph. {{Q:Is this for me?}}"
        }

    def test_get_article(self):
        """Test fetching a stored article."""
        self.handle("ARTICLE: Tea Basics")
        replies = self.handle("GET_ARTICLE: 1")
        assert json.loads(replies[0])["title"] == "Tea Basics"

    def test_get_missing_article(self):
        """Test the not-found reply for an unknown id."""
        assert self.handle("GET_ARTICLE: 999") == ['{"error": "Article not found"}']

    def test_invalid_payload_replies_error(self):
        """Test that a malformed payload is answered with an error object."""
        replies = self.handle("ARTICLE_QUESTION: {broken")
        assert "error" in json.loads(replies[0])

    def test_first_question_turn(self):
        """Test that a first turn writes no insight."""
        payload = json.dumps({
            "articleTitle": "Tea Basics",
            "paragraphContext": "Body paragraph.",
            "question": "I drink 3 cups a day, is this for me?",
            "conversationHistory": [],
            "sessionUserId": "user_1",
            "isFirstMessage": True,
        })
        replies = self.handle(f"ARTICLE_QUESTION: {payload}")

        assert "response" in json.loads(replies[0])
        assert self.store.find_insights() == []

    def test_seed_is_idempotent(self):
        """Test that seeding twice keeps one row per sample session."""
        self.handle("SEED_MOCK_DATA")
        self.handle("SEED_MOCK_DATA")
        assert len(self.store.find_insights()) == len(MOCK_INSIGHTS)

    def test_get_insights(self):
        """Test the insight list reply."""
        self.handle("SEED_MOCK_DATA")
        data = json.loads(self.handle("GET_INSIGHTS")[0])
        assert len(data["insights"]) == len(MOCK_INSIGHTS)
        assert "sessionUserId" in data["insights"][0]

    def test_clear_articles(self):
        """Test that clearing removes articles, content and insights."""
        self.handle("ARTICLE: Tea Basics")
        self.handle("SEED_MOCK_DATA")

        data = json.loads(self.handle("CLEAR_ARTICLES")[0])

        assert data["success"] is True
        assert self.store.find_articles() == []
        assert self.store.find_article_content(1) is None
        assert self.store.find_insights() == []


class TestOrchestratorWithoutLLM:
    """Test behaviour when no text-generation client is configured."""

    def test_commands_needing_llm_fail_cleanly(self, store, monkeypatch):
        """Test that generation commands reply with an error."""
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        orchestrator = AfterlinkOrchestrator(Settings(llm_provider="openai"), store=store)
        replies = []
        orchestrator.handle_message("SEARCH: tea", replies.append)

        assert replies[0] == SEARCH_STATUS
        assert json.loads(replies[1]) == {"error": "LLM client is not configured"}

    def test_stored_data_still_served(self, store, monkeypatch):
        """Test that read-only commands work without a client."""
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        orchestrator = AfterlinkOrchestrator(Settings(), store=store)
        replies = []
        orchestrator.handle_message("GET_INSIGHTS", replies.append)
        orchestrator.handle_message("GET_ARTICLE: 1", replies.append)

        assert json.loads(replies[0]) == {"insights": []}
        assert json.loads(replies[1]) == {"error": "Article not found"}
