"""Article and conversation schemas."""

from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base for models exchanged as camelCase JSON over the chat channel."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        """Dump with camelCase keys, omitting unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class Article(WireModel):
    """Search result. ``id`` is present only for stored articles."""
    id: Optional[int] = None
    title: str
    snippet: str = ""


class FullArticle(WireModel):
    """Full article body; content may contain {{Q:phrase}} markers."""
    id: int = 0
    title: str
    content: str


class ConversationMessage(WireModel):
    """A single Q&A turn."""
    role: Literal["user", "assistant"]
    content: str
