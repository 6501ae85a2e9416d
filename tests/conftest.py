"""Shared test fixtures."""

from typing import List, Optional, Tuple, Union

import pytest

from llm.base_client import BaseLLMClient, LLMResponse, Message
from memory.sqlite_store import SQLiteRowStore


class FakeLLMClient(BaseLLMClient):
    """
    Scripted LLM client.

    Each rule is ``(substring, response)``: the first rule whose substring
    appears in the system or user text wins. A response that is an exception
    instance is raised instead of returned. Prompts are recorded in order.
    """

    def __init__(
        self,
        rules: Optional[List[Tuple[str, Union[str, Exception]]]] = None,
        default: str = ""
    ):
        self.rules = list(rules or [])
        self.default = default
        self.calls: List[List[Message]] = []

    def add(self, substring: str, response: Union[str, Exception]) -> None:
        self.rules.append((substring, response))

    @property
    def prompts(self) -> List[str]:
        """User text of every call."""
        return [m.content for call in self.calls for m in call if m.role == "user"]

    def calls_matching(self, substring: str) -> int:
        return sum(
            1 for call in self.calls
            if any(substring in m.content for m in call)
        )

    def chat(self, messages, temperature=0.7, max_tokens=4000) -> LLMResponse:
        self.calls.append(list(messages))
        text = "\n".join(m.content for m in messages)
        for substring, response in self.rules:
            if substring in text:
                if isinstance(response, Exception):
                    raise response
                return LLMResponse(content=response)
        return LLMResponse(content=self.default)

    def get_provider_name(self) -> str:
        return "fake"

    def get_model_name(self) -> str:
        return "fake-model"


@pytest.fixture
def store(tmp_path):
    return SQLiteRowStore(db_path=str(tmp_path / "afterlink.db"))


@pytest.fixture
def fake_llm():
    return FakeLLMClient()
