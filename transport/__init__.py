"""Chat channel transports and response correlation."""

from .base import ChatMessage, ChatTransport, MessagePayload
from .correlator import PendingResponse, ResponseCorrelator
from .http_chat import HttpChatTransport
from .local import LocalChatTransport

__all__ = [
    "ChatMessage",
    "ChatTransport",
    "MessagePayload",
    "PendingResponse",
    "ResponseCorrelator",
    "HttpChatTransport",
    "LocalChatTransport",
]
