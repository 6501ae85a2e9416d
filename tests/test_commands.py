"""Tests for command encoding, parsing and reply decoding."""

import json

import pytest
from protocol import commands
from schemas.articles import ConversationMessage
from schemas.commands import (
    ArticleQuestionRequest,
    ArticleRequest,
    ClearArticlesRequest,
    GetArticleRequest,
    GetInsightsRequest,
    MatchICPRequest,
    SearchRequest,
)
from schemas.insights import ContactInfo
from schemas.scoring import LeadInput
from utils.exceptions import NoJsonFound, NotFound, ParseFailure, UpstreamError


class TestEncodeAndParse:
    """Test the single-message text form of commands."""

    def test_simple_prefixes(self):
        """Test the text form of commands with scalar payloads."""
        assert commands.encode_command(SearchRequest(query="bubble tea")) == "SEARCH: bubble tea"
        assert commands.encode_command(ArticleRequest(title="Tea 101")) == "ARTICLE: Tea 101"
        assert commands.encode_command(GetArticleRequest(article_id=7)) == "GET_ARTICLE: 7"
        assert commands.encode_command(ClearArticlesRequest()) == "CLEAR_ARTICLES"
        assert commands.encode_command(GetInsightsRequest()) == "GET_INSIGHTS"

    def test_article_question_payload_is_camel_case(self):
        """Test that the question payload uses camelCase keys and omits kind."""
        request = ArticleQuestionRequest(
            article_title="Tea 101",
            paragraph_context="Tea is old.",
            question="Is it healthy?",
            conversation_history=[ConversationMessage(role="user", content="hi")],
            session_user_id="user_1",
            is_first_message=False,
        )
        text = commands.encode_command(request)

        assert text.startswith("ARTICLE_QUESTION: {")
        payload = json.loads(text[len("ARTICLE_QUESTION:"):])
        assert payload["articleTitle"] == "Tea 101"
        assert payload["sessionUserId"] == "user_1"
        assert payload["isFirstMessage"] is False
        assert payload["conversationHistory"] == [{"role": "user", "content": "hi"}]
        assert "kind" not in payload
        assert "contactInfo" not in payload

    def test_match_icp_has_no_space(self):
        """Test that the ICP payload follows the prefix directly."""
        request = MatchICPRequest(
            icp_description="Investors",
            leads=[LeadInput(session_user_id="user_1", insight="Has savings")],
        )
        text = commands.encode_command(request)

        assert text.startswith("MATCH_ICP:{")
        payload = json.loads(text[len("MATCH_ICP:"):])
        assert payload["leads"] == [{"sessionUserId": "user_1", "insight": "Has savings"}]

    def test_parse_round_trip_question(self):
        """Test that an encoded question parses back to the same request."""
        request = ArticleQuestionRequest(
            article_title="Tea 101",
            question="Is it healthy?",
            session_user_id="user_1",
            contact_info=ContactInfo(user_name="Dana", value="dana@example.com"),
        )
        parsed = commands.parse_command(commands.encode_command(request))
        assert parsed == request

    def test_parse_accepts_legacy_user_id_keys(self):
        """Test alternate session id keys in incoming payloads."""
        parsed = commands.parse_command(
            'ARTICLE_QUESTION: {"articleTitle": "T", "question": "Q", "userId": "u9"}'
        )
        assert parsed.session_user_id == "u9"

        parsed = commands.parse_command(
            'MATCH_ICP:{"icpDescription": "x", "leads": [{"oduserId": "u3", "insight": "i"}]}'
        )
        assert parsed.leads[0].session_user_id == "u3"

    def test_priority_order(self):
        """Test that the longest specific prefix wins."""
        assert isinstance(commands.parse_command("GET_ARTICLE: 3"), GetArticleRequest)
        assert isinstance(commands.parse_command("ARTICLE: GET_ARTICLE: x"), ArticleRequest)
        parsed = commands.parse_command(
            'ARTICLE_QUESTION: {"articleTitle": "T", "question": "Q", "sessionUserId": "u"}'
        )
        assert isinstance(parsed, ArticleQuestionRequest)

    def test_unknown_text(self):
        """Test that unprefixed text is not a command."""
        assert commands.parse_command("hello there") is None

    def test_invalid_payload(self):
        """Test that a bad payload after a known prefix raises ParseFailure."""
        with pytest.raises(ParseFailure):
            commands.parse_command("GET_ARTICLE: abc")
        with pytest.raises(ParseFailure):
            commands.parse_command("ARTICLE_QUESTION: not json")


class TestDecoders:
    """Test per-command reply decoding."""

    def test_search_results(self):
        """Test stored results carry ids and suggestions do not."""
        results = commands.decode_search(
            '[{"id": 2, "title": "A", "snippet": "a"}, {"title": "B", "snippet": "b"}]'
        )
        assert [r.id is not None for r in results] == [True, False]

    def test_search_garbage_is_empty(self):
        """Test that an unparseable search reply yields no results."""
        assert commands.decode_search("Something went wrong") == []

    def test_search_error(self):
        """Test that an error reply raises UpstreamError."""
        with pytest.raises(UpstreamError):
            commands.decode_search('{"error": "boom"}')

    def test_article_json(self):
        """Test decoding a generated article reply."""
        article = commands.decode_article('{"id": 4, "content": "Body"}', "Tea")
        assert (article.id, article.title, article.content) == (4, "Tea", "Body")

    def test_article_plain_text(self):
        """Test that plain text becomes the content with id 0."""
        text = "Tea is great. {{Q:Is it for me?}}"
        article = commands.decode_article(text, "Tea")
        assert article.id == 0
        assert article.content == text

    def test_stored_article_not_found(self):
        """Test that an error reply for a stored article is NotFound."""
        with pytest.raises(NotFound) as exc_info:
            commands.decode_stored_article('{"error": "Article not found"}')
        assert exc_info.value.message == "Article not found"

    def test_stored_article(self):
        """Test decoding a stored article."""
        article = commands.decode_stored_article('{"id": 1, "title": "T", "content": "C"}')
        assert article.id == 1

    def test_answer(self):
        """Test decoding an answer and its fallback."""
        assert commands.decode_answer('{"response": "Hi"}') == "Hi"
        assert commands.decode_answer('{"response": ""}') == commands.ANSWER_FALLBACK

    def test_answer_without_json(self):
        """Test that a non-JSON answer raises."""
        with pytest.raises(NoJsonFound):
            commands.decode_answer("plain words")

    def test_answer_error(self):
        """Test that an error answer raises UpstreamError."""
        with pytest.raises(UpstreamError):
            commands.decode_answer('{"error": "LLM down"}')

    def test_status(self):
        """Test bulk command status decoding."""
        assert commands.decode_status('{"success": true, "message": "done"}').success is True
        assert commands.decode_status("???").success is False
        assert commands.decode_status('{"error": "nope"}').message == "nope"

    def test_insights(self):
        """Test decoding the insight list."""
        insights = commands.decode_insights(
            '{"insights": [{"sessionUserId": "u1", "insight": "Likes tea", '
            '"createdAt": "2026-01-01T10:00:00", "updatedAt": "2026-01-02T10:00:00"}]}'
        )
        assert insights[0].session_user_id == "u1"
        assert commands.decode_insights("broken") == []

    def test_scores_sorted(self):
        """Test that decoded scores are ordered highest first."""
        dim = {"points": 0, "max": 10, "detail": ""}
        breakdown = {name: dim for name in ("fit", "budget", "need", "urgency", "engagement")}
        text = json.dumps({"scores": [
            {"sessionUserId": "low", "score": 10, "reason": "r", "breakdown": breakdown},
            {"sessionUserId": "high", "score": 80, "reason": "r", "breakdown": breakdown},
        ]})
        scores = commands.decode_scores(text)
        assert [s.session_user_id for s in scores] == ["high", "low"]

    def test_scores_parse_failure(self):
        """Test that an unparseable ICP reply raises."""
        with pytest.raises(ParseFailure):
            commands.decode_scores("no scores today")
