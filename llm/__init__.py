"""Text generation over hosted LLM providers."""

from .base_client import BaseLLMClient, LLMResponse, Message
from .factory import LLMProvider, PROVIDER_CLIENTS, create_llm_client

__all__ = [
    "BaseLLMClient",
    "LLMResponse",
    "Message",
    "LLMProvider",
    "PROVIDER_CLIENTS",
    "create_llm_client",
]
