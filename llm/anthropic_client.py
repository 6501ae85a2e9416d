"""Anthropic text-generation client."""

import logging
from typing import Dict, List, Optional, Tuple

from .base_client import BaseLLMClient, Message, LLMResponse
from utils.exceptions import GenerationError

logger = logging.getLogger(__name__)


class AnthropicClient(BaseLLMClient):
    """Messages API backed client."""

    DEFAULT_MODEL = "claude-3-5-haiku-latest"

    def __init__(self, api_key: str, model: Optional[str] = None, timeout: float = 60.0):
        """
        Initialize Anthropic client.

        Args:
            api_key: Anthropic API key
            model: Model override (default: claude-3-5-haiku-latest)
            timeout: Per-request timeout in seconds
        """
        if not api_key:
            raise GenerationError("No Anthropic API key configured")

        import anthropic

        self.model = model or self.DEFAULT_MODEL
        self.client = anthropic.Anthropic(api_key=api_key, timeout=timeout)
        logger.info(f"Anthropic client ready ({self.model})")

    @staticmethod
    def _split_system(messages: List[Message]) -> Tuple[str, List[Dict[str, str]]]:
        # The Messages API takes system text as a separate parameter
        system = "\n\n".join(m.content for m in messages if m.role == "system")
        turns = [{"role": m.role, "content": m.content} for m in messages if m.role != "system"]
        return system, turns

    def chat(
        self,
        messages: List[Message],
        temperature: float = 0.7,
        max_tokens: int = 4000
    ) -> LLMResponse:
        system, turns = self._split_system(messages)
        request = {
            "model": self.model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": turns,
        }
        if system:
            request["system"] = system

        try:
            response = self.client.messages.create(**request)
        except Exception as e:
            logger.error(f"Anthropic request failed: {e}")
            raise GenerationError("Text generation failed", details=str(e)) from e

        text = "".join(block.text for block in response.content if block.type == "text")
        if response.stop_reason == "max_tokens":
            logger.warning(f"Generation hit the {max_tokens}-token budget")

        return LLMResponse(
            content=text,
            usage={
                "prompt_tokens": response.usage.input_tokens,
                "completion_tokens": response.usage.output_tokens,
            },
            finish_reason=response.stop_reason
        )

    def get_provider_name(self) -> str:
        return "anthropic"

    def get_model_name(self) -> str:
        return self.model
