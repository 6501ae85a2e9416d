"""Chat channel interface.

A channel is an append-only conversation of text messages. The client sends
command text as one message and reads replies back from the same list.
"""

from abc import ABC, abstractmethod
from typing import List, Optional
from pydantic import BaseModel, Field


class MessagePayload(BaseModel):
    """Message body; only ``text`` payloads carry command traffic."""
    type: str = "text"
    text: Optional[str] = None


class ChatMessage(BaseModel):
    """A message on a conversation channel."""
    id: str
    conversation_id: str = Field("", alias="conversationId")
    user_id: Optional[str] = Field(None, alias="userId")
    payload: MessagePayload = Field(default_factory=MessagePayload)

    model_config = {"populate_by_name": True}

    @property
    def text(self) -> Optional[str]:
        if self.payload.type != "text":
            return None
        return self.payload.text


class ChatTransport(ABC):
    """Abstract bidirectional conversation channel provider."""

    def connect(self) -> None:
        """Open the underlying session. Idempotent."""

    def close(self) -> None:
        """Release the underlying session."""

    @abstractmethod
    def create_conversation(self) -> str:
        """Open a fresh channel and return its id."""
        pass

    @abstractmethod
    def create_message(self, conversation_id: str, text: str) -> ChatMessage:
        """Append a text message from this client to a channel."""
        pass

    @abstractmethod
    def list_messages(self, conversation_id: str) -> List[ChatMessage]:
        """Return every message currently on a channel."""
        pass

    def __enter__(self) -> "ChatTransport":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
