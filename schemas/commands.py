"""Command request schemas.

Each logical operation is a request model with an explicit ``kind``
discriminant. On the chat channel a request travels as a single text message
starting with its ``PREFIX``; ``protocol.commands`` owns that text form.
"""

from typing import Annotated, ClassVar, List, Literal, Optional, Union
from pydantic import AliasChoices, Field

from .articles import ConversationMessage, WireModel
from .insights import ContactInfo
from .scoring import LeadInput


class SearchRequest(WireModel):
    PREFIX: ClassVar[str] = "SEARCH:"
    kind: Literal["search"] = "search"
    query: str


class ArticleRequest(WireModel):
    """Generate (or fetch by title) a full article."""
    PREFIX: ClassVar[str] = "ARTICLE:"
    kind: Literal["article"] = "article"
    title: str


class GetArticleRequest(WireModel):
    PREFIX: ClassVar[str] = "GET_ARTICLE:"
    kind: Literal["get_article"] = "get_article"
    article_id: int


class ArticleQuestionRequest(WireModel):
    """One turn of an article-question session."""
    PREFIX: ClassVar[str] = "ARTICLE_QUESTION:"
    kind: Literal["article_question"] = "article_question"
    article_title: str
    paragraph_context: str = ""
    question: str
    conversation_history: List[ConversationMessage] = Field(default_factory=list)
    session_user_id: str = Field(
        validation_alias=AliasChoices("sessionUserId", "userId", "session_user_id"),
        serialization_alias="sessionUserId",
    )
    is_first_message: bool = True
    contact_info: Optional[ContactInfo] = None

    def user_turns(self) -> List[str]:
        """All user-authored texts so far, including this turn's question."""
        turns = [m.content for m in self.conversation_history if m.role == "user"]
        turns.append(self.question)
        return turns


class ClearArticlesRequest(WireModel):
    PREFIX: ClassVar[str] = "CLEAR_ARTICLES"
    kind: Literal["clear_articles"] = "clear_articles"


class SeedMockDataRequest(WireModel):
    PREFIX: ClassVar[str] = "SEED_MOCK_DATA"
    kind: Literal["seed_mock_data"] = "seed_mock_data"


class GetInsightsRequest(WireModel):
    PREFIX: ClassVar[str] = "GET_INSIGHTS"
    kind: Literal["get_insights"] = "get_insights"


class MatchICPRequest(WireModel):
    PREFIX: ClassVar[str] = "MATCH_ICP:"
    kind: Literal["match_icp"] = "match_icp"
    icp_description: str
    leads: List[LeadInput] = Field(default_factory=list)


CommandRequest = Annotated[
    Union[
        SearchRequest,
        ArticleRequest,
        GetArticleRequest,
        ArticleQuestionRequest,
        ClearArticlesRequest,
        SeedMockDataRequest,
        GetInsightsRequest,
        MatchICPRequest,
    ],
    Field(discriminator="kind"),
]


class CommandStatus(WireModel):
    """Outcome of a bulk data command."""
    success: bool
    message: Optional[str] = None
