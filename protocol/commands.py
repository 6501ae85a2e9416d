"""Text form of Afterlink commands and decoding of their replies.

Every command travels as one text message beginning with its prefix.
Replies are decoded per command; each decoder decides whether a malformed
reply degrades to an empty/default result or raises.

| Command          | Malformed reply             | ``error`` field  |
|------------------|-----------------------------|------------------|
| SEARCH:          | []                          | UpstreamError    |
| ARTICLE:         | whole text as content, id 0 | UpstreamError    |
| GET_ARTICLE:     | ParseFailure                | NotFound         |
| ARTICLE_QUESTION:| ParseFailure                | UpstreamError    |
| CLEAR_ARTICLES   | success=False               | success=False    |
| SEED_MOCK_DATA   | success=False               | success=False    |
| GET_INSIGHTS     | []                          | UpstreamError    |
| MATCH_ICP:       | ParseFailure                | UpstreamError    |
"""

import logging
from typing import Any, List, Optional, Tuple, Type

from pydantic import ValidationError

from schemas.articles import Article, FullArticle
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
from schemas.insights import UserInsight
from schemas.scoring import LeadScore
from utils.exceptions import NotFound, ParseFailure, UpstreamError
from .codec import tolerant_loads

logger = logging.getLogger(__name__)

# Dispatch order: first matching prefix wins
COMMAND_TYPES: Tuple[Type, ...] = (
    ArticleQuestionRequest,
    GetArticleRequest,
    ArticleRequest,
    SearchRequest,
    ClearArticlesRequest,
    SeedMockDataRequest,
    GetInsightsRequest,
    MatchICPRequest,
)
COMMAND_PREFIXES: Tuple[str, ...] = tuple(t.PREFIX for t in COMMAND_TYPES)

# Interim placeholders the backend posts before the real reply
SEARCH_STATUS = "Searching..."
ARTICLE_STATUS = "Generating article..."

ANSWER_FALLBACK = "Sorry, I couldn't generate a response."
UNKNOWN_COMMAND_REPLY = (
    "Unknown request type. Use one of: " + ", ".join(COMMAND_PREFIXES)
)


def encode_command(request: CommandRequest) -> str:
    """Serialize a request to its single-message text form."""
    if isinstance(request, SearchRequest):
        return f"{request.PREFIX} {request.query}"
    if isinstance(request, ArticleRequest):
        return f"{request.PREFIX} {request.title}"
    if isinstance(request, GetArticleRequest):
        return f"{request.PREFIX} {request.article_id}"
    if isinstance(request, ArticleQuestionRequest):
        return f"{request.PREFIX} {_payload_json(request)}"
    if isinstance(request, MatchICPRequest):
        return f"{request.PREFIX}{_payload_json(request)}"
    if isinstance(request, (ClearArticlesRequest, SeedMockDataRequest, GetInsightsRequest)):
        return request.PREFIX
    raise ValueError(f"Unsupported command: {type(request).__name__}")


def _payload_json(request) -> str:
    return request.model_dump_json(by_alias=True, exclude={"kind"}, exclude_none=True)


def parse_command(text: str) -> Optional[CommandRequest]:
    """
    Decode incoming command text by prefix.

    Returns:
        The request, or None if no prefix matches

    Raises:
        ParseFailure: If a prefix matched but its payload is invalid
    """
    text = text.strip()
    for command_type in COMMAND_TYPES:
        if text.startswith(command_type.PREFIX):
            rest = text[len(command_type.PREFIX):].strip()
            return _parse_payload(command_type, rest)
    return None


def _parse_payload(command_type: Type, rest: str) -> CommandRequest:
    try:
        if command_type is SearchRequest:
            return SearchRequest(query=rest)
        if command_type is ArticleRequest:
            return ArticleRequest(title=rest)
        if command_type is GetArticleRequest:
            return GetArticleRequest(article_id=int(rest))
        if command_type in (ArticleQuestionRequest, MatchICPRequest):
            return command_type.model_validate_json(rest)
        return command_type()
    except (ValueError, ValidationError) as e:
        raise ParseFailure(f"Invalid {command_type.PREFIX} payload", details=str(e))


def _upstream_error(data: Any) -> Optional[str]:
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return None


def decode_search(text: str) -> List[Article]:
    """Decode a search reply; unparseable replies yield no results."""
    try:
        data = tolerant_loads(text)
    except ParseFailure as e:
        logger.warning(f"Failed to parse search results: {e}")
        return []

    error = _upstream_error(data)
    if error:
        raise UpstreamError(error)

    if isinstance(data, dict):
        data = data.get("results", [])
    if not isinstance(data, list):
        return []

    articles = []
    for item in data:
        try:
            articles.append(Article.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Skipping malformed search result: {e}")
    return articles


def decode_article(text: str, title: str) -> FullArticle:
    """Decode a generated article; plain text becomes the content with id 0."""
    try:
        data = tolerant_loads(text)
    except ParseFailure:
        return FullArticle(id=0, title=title, content=text)

    error = _upstream_error(data)
    if error:
        raise UpstreamError(error)

    if isinstance(data, dict) and isinstance(data.get("content"), str):
        return FullArticle(
            id=data.get("id") or 0,
            title=data.get("title") or title,
            content=data["content"]
        )
    return FullArticle(id=0, title=title, content=text)


def decode_stored_article(text: str) -> FullArticle:
    """Decode a stored-article reply; an ``error`` field means not found."""
    try:
        data = tolerant_loads(text)
    except ParseFailure as e:
        raise ParseFailure("Failed to parse article", details=e.details)

    error = _upstream_error(data)
    if error:
        raise NotFound(error)

    try:
        return FullArticle.model_validate(data)
    except ValidationError as e:
        raise ParseFailure("Failed to parse article", details=str(e))


def decode_answer(text: str) -> str:
    """Decode an article-question reply to the assistant's answer text."""
    data = tolerant_loads(text)
    if not isinstance(data, dict):
        raise ParseFailure("Failed to get response")

    error = _upstream_error(data)
    if error:
        raise UpstreamError(error)
    return data.get("response") or ANSWER_FALLBACK


def decode_status(text: str) -> CommandStatus:
    """Decode a bulk command reply; anything unexpected reads as failure."""
    try:
        data = tolerant_loads(text)
        if isinstance(data, dict) and data.get("error"):
            return CommandStatus(success=False, message=str(data["error"]))
        return CommandStatus.model_validate(data)
    except (ParseFailure, ValidationError):
        return CommandStatus(success=False, message="Failed to parse response")


def decode_insights(text: str) -> List[UserInsight]:
    """Decode the insight list; unparseable replies yield an empty list."""
    try:
        data = tolerant_loads(text)
    except ParseFailure as e:
        logger.warning(f"Failed to parse insights: {e}")
        return []

    error = _upstream_error(data)
    if error:
        raise UpstreamError(error)

    if isinstance(data, dict):
        data = data.get("insights", [])
    if not isinstance(data, list):
        return []

    insights = []
    for item in data:
        try:
            insights.append(UserInsight.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Skipping malformed insight: {e}")
    return insights


def decode_scores(text: str) -> List[LeadScore]:
    """Decode ICP match scores, highest first."""
    data = tolerant_loads(text)

    error = _upstream_error(data)
    if error:
        raise UpstreamError(error)

    if isinstance(data, dict):
        data = data.get("scores", [])
    if not isinstance(data, list):
        raise ParseFailure("Failed to match ICP")

    try:
        scores = [LeadScore.model_validate(item) for item in data]
    except ValidationError as e:
        raise ParseFailure("Failed to match ICP", details=str(e))
    return sorted(scores, key=lambda s: s.score, reverse=True)
