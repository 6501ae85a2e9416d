"""Backend agents for search, articles, question sessions and lead scoring."""

from .search_agent import SearchAgent
from .article_writer import ArticleWriter
from .insight_extractor import InsightAccumulator
from .question_agent import ArticleQuestionAgent, SessionState
from .icp_scorer import ICPScorer, compose_lead_score, DIMENSION_WEIGHTS

__all__ = [
    "SearchAgent",
    "ArticleWriter",
    "InsightAccumulator",
    "ArticleQuestionAgent",
    "SessionState",
    "ICPScorer",
    "compose_lead_score",
    "DIMENSION_WEIGHTS",
]
