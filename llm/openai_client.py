"""OpenAI text-generation client."""

import logging
from typing import Dict, List, Optional

from .base_client import BaseLLMClient, Message, LLMResponse
from utils.exceptions import GenerationError

logger = logging.getLogger(__name__)


class OpenAIClient(BaseLLMClient):
    """Chat Completions backed client."""

    DEFAULT_MODEL = "gpt-4o-mini"

    def __init__(self, api_key: str, model: Optional[str] = None, timeout: float = 60.0):
        """
        Initialize OpenAI client.

        Args:
            api_key: OpenAI API key
            model: Model override (default: gpt-4o-mini)
            timeout: Per-request timeout in seconds
        """
        if not api_key:
            raise GenerationError("No OpenAI API key configured")

        from openai import OpenAI

        self.model = model or self.DEFAULT_MODEL
        self.client = OpenAI(api_key=api_key, timeout=timeout)
        logger.info(f"OpenAI client ready ({self.model})")

    @staticmethod
    def _to_provider_messages(messages: List[Message]) -> List[Dict[str, str]]:
        return [{"role": m.role, "content": m.content} for m in messages]

    def chat(
        self,
        messages: List[Message],
        temperature: float = 0.7,
        max_tokens: int = 4000
    ) -> LLMResponse:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=self._to_provider_messages(messages),
                temperature=temperature,
                max_completion_tokens=max_tokens,
            )
        except Exception as e:
            logger.error(f"OpenAI request failed: {e}")
            raise GenerationError("Text generation failed", details=str(e)) from e

        choice = response.choices[0]
        usage = None
        if response.usage:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
            }
        if choice.finish_reason == "length":
            logger.warning(f"Generation hit the {max_tokens}-token budget")

        return LLMResponse(
            content=choice.message.content or "",
            usage=usage,
            finish_reason=choice.finish_reason
        )

    def get_provider_name(self) -> str:
        return "openai"

    def get_model_name(self) -> str:
        return self.model
