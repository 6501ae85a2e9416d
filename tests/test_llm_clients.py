"""Tests for provider client construction and response mapping."""

from types import SimpleNamespace
from unittest.mock import patch

import pytest

from llm.anthropic_client import AnthropicClient
from llm.base_client import Message
from llm.factory import LLMProvider, create_llm_client
from llm.openai_client import OpenAIClient
from utils.exceptions import GenerationError


class TestFactory:
    """Test provider selection."""

    @patch("openai.OpenAI")
    def test_openai_by_name(self, mock_openai):
        """Test that a provider string selects the OpenAI client."""
        client = create_llm_client("openai", api_key="sk-test", timeout=5.0)

        assert isinstance(client, OpenAIClient)
        assert client.get_model_name() == OpenAIClient.DEFAULT_MODEL
        mock_openai.assert_called_once_with(api_key="sk-test", timeout=5.0)

    @patch("anthropic.Anthropic")
    def test_anthropic_with_model_override(self, mock_anthropic):
        """Test the Anthropic client with an explicit model."""
        client = create_llm_client(LLMProvider.ANTHROPIC, api_key="sk-ant", model="claude-x")

        assert isinstance(client, AnthropicClient)
        assert client.get_provider_name() == "anthropic"
        assert client.get_model_name() == "claude-x"

    def test_unknown_provider(self):
        """Test that an unsupported provider is rejected."""
        with pytest.raises(ValueError):
            create_llm_client("mistral", api_key="k")

    def test_missing_key(self):
        """Test that an empty key fails before any network client exists."""
        with pytest.raises(GenerationError):
            create_llm_client("openai", api_key="")


class TestOpenAIClient:
    """Test request and response mapping."""

    def setup_method(self):
        """Set up a client around a mocked SDK."""
        with patch("openai.OpenAI") as mock_openai:
            self.client = OpenAIClient(api_key="sk-test")
        self.sdk = mock_openai.return_value

    def test_chat_maps_response(self):
        """Test that content, usage and finish reason are carried over."""
        self.sdk.chat.completions.create.return_value = SimpleNamespace(
            choices=[SimpleNamespace(
                message=SimpleNamespace(content="Hello"), finish_reason="stop"
            )],
            usage=SimpleNamespace(prompt_tokens=7, completion_tokens=2),
        )

        response = self.client.generate("Say hello", length=20)

        assert response == "Hello"
        kwargs = self.sdk.chat.completions.create.call_args.kwargs
        assert kwargs["max_completion_tokens"] == 20
        assert kwargs["messages"][-1] == {"role": "user", "content": "Say hello"}

    def test_provider_failure_becomes_generation_error(self):
        """Test that SDK exceptions are wrapped."""
        self.sdk.chat.completions.create.side_effect = RuntimeError("rate limited")

        with pytest.raises(GenerationError) as exc_info:
            self.client.chat([Message(role="user", content="hi")])

        assert exc_info.value.details == "rate limited"


class TestAnthropicClient:
    """Test system-prompt handling and response mapping."""

    def setup_method(self):
        """Set up a client around a mocked SDK."""
        with patch("anthropic.Anthropic") as mock_anthropic:
            self.client = AnthropicClient(api_key="sk-ant")
        self.sdk = mock_anthropic.return_value
        self.sdk.messages.create.return_value = SimpleNamespace(
            content=[
                SimpleNamespace(type="text", text="Part one. "),
                SimpleNamespace(type="text", text="Part two."),
            ],
            usage=SimpleNamespace(input_tokens=11, output_tokens=4),
            stop_reason="end_turn",
        )

    def test_system_messages_are_separated(self):
        """Test that system text goes in the system parameter."""
        response = self.client.chat([
            Message(role="system", content="Be brief."),
            Message(role="user", content="Explain ETFs"),
        ])

        kwargs = self.sdk.messages.create.call_args.kwargs
        assert kwargs["system"] == "Be brief."
        assert kwargs["messages"] == [{"role": "user", "content": "Explain ETFs"}]
        assert response.content == "Part one. Part two."
        assert response.usage == {"prompt_tokens": 11, "completion_tokens": 4}

    def test_no_system_parameter_without_system_messages(self):
        """Test that the system parameter is omitted when empty."""
        self.client.chat([Message(role="user", content="hi")])

        assert "system" not in self.sdk.messages.create.call_args.kwargs
