"""Pydantic schemas for Afterlink."""

from .articles import Article, FullArticle, ConversationMessage
from .insights import UserInsight, ContactInfo, InsightTheme, ExtractedNote
from .scoring import LeadInput, LeadScore, DimensionScore, DimensionAssessment, ScoreBreakdown
from .commands import (
    CommandRequest,
    SearchRequest,
    ArticleRequest,
    GetArticleRequest,
    ArticleQuestionRequest,
    ClearArticlesRequest,
    SeedMockDataRequest,
    GetInsightsRequest,
    MatchICPRequest,
    CommandStatus,
)

__all__ = [
    "Article",
    "FullArticle",
    "ConversationMessage",
    "UserInsight",
    "ContactInfo",
    "InsightTheme",
    "ExtractedNote",
    "LeadInput",
    "LeadScore",
    "DimensionScore",
    "DimensionAssessment",
    "ScoreBreakdown",
    "CommandRequest",
    "SearchRequest",
    "ArticleRequest",
    "GetArticleRequest",
    "ArticleQuestionRequest",
    "ClearArticlesRequest",
    "SeedMockDataRequest",
    "GetInsightsRequest",
    "MatchICPRequest",
    "CommandStatus",
]
