"""Base LLM client interface and the text-generation capability."""

from abc import ABC, abstractmethod
from typing import Optional, List, Dict
from pydantic import BaseModel

# Default output budget for generate(), in tokens
DEFAULT_LENGTH_BUDGET = 500


class Message(BaseModel):
    """One turn of a generation request."""
    role: str  # "system", "user", "assistant"
    content: str


class LLMResponse(BaseModel):
    """Generated text plus provider metadata."""
    content: str
    usage: Optional[Dict[str, int]] = None
    finish_reason: Optional[str] = None


class BaseLLMClient(ABC):
    """Provider-neutral text generation used by every backend agent."""

    @abstractmethod
    def chat(
        self,
        messages: List[Message],
        temperature: float = 0.7,
        max_tokens: int = 4000
    ) -> LLMResponse:
        """
        Run one generation request over a list of turns.

        Args:
            messages: System, user and assistant turns in order
            temperature: Sampling temperature (0-1)
            max_tokens: Output budget in tokens

        Returns:
            LLMResponse with content
        """
        pass

    @abstractmethod
    def get_provider_name(self) -> str:
        """Provider id, e.g. "openai"."""
        pass

    @abstractmethod
    def get_model_name(self) -> str:
        """Model id requests are sent to."""
        pass

    def generate(
        self,
        prompt: str,
        length: int = DEFAULT_LENGTH_BUDGET,
        system: Optional[str] = None,
        temperature: float = 0.7
    ) -> str:
        """
        Generate text matching a prompt within an approximate length budget.

        No output schema is enforced here; callers that ask for JSON or
        markers in the prompt must parse the result tolerantly.

        Args:
            prompt: Instruction text
            length: Approximate output budget in tokens
            system: Optional system instruction
            temperature: Sampling temperature

        Returns:
            Generated text, stripped of surrounding whitespace
        """
        messages = []
        if system:
            messages.append(Message(role="system", content=system))
        messages.append(Message(role="user", content=prompt))

        response = self.chat(
            messages=messages,
            temperature=temperature,
            max_tokens=max(16, length)
        )
        return response.content.strip()
