"""Builds the text-generation client for the configured provider."""

from enum import Enum
from typing import Dict, Optional, Type

from .base_client import BaseLLMClient
from .openai_client import OpenAIClient
from .anthropic_client import AnthropicClient


class LLMProvider(str, Enum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


PROVIDER_CLIENTS: Dict[LLMProvider, Type[BaseLLMClient]] = {
    LLMProvider.OPENAI: OpenAIClient,
    LLMProvider.ANTHROPIC: AnthropicClient,
}


def create_llm_client(
    provider: LLMProvider,
    api_key: str,
    model: Optional[str] = None,
    timeout: float = 60.0
) -> BaseLLMClient:
    """
    Args:
        provider: Provider name or enum value
        api_key: Provider API key
        model: Optional model override
        timeout: Per-request timeout in seconds

    Raises:
        ValueError: If provider is not supported
        GenerationError: If the key is missing
    """
    try:
        client_class = PROVIDER_CLIENTS[LLMProvider(provider)]
    except ValueError:
        raise ValueError(f"Unsupported LLM provider: {provider}")
    return client_class(api_key=api_key, model=model, timeout=timeout)
