"""Tests for the hosted chat-API transport."""

import pytest
from unittest.mock import Mock, patch
import requests
from transport.http_chat import HttpChatTransport
from utils.exceptions import TransportError

BASE_URL = "https://chat.botpress.cloud/webhook-123"


def response(status_code=200, data=None):
    mock_response = Mock()
    mock_response.status_code = status_code
    mock_response.json.return_value = data or {}
    mock_response.text = str(data)
    return mock_response


class TestHttpChatTransport:
    """Test chat API calls with mocked HTTP."""

    def setup_method(self):
        """Set up test fixtures."""
        self.transport = HttpChatTransport(base_url=BASE_URL + "/", timeout=5)

    def test_initialization(self):
        """Test that the trailing slash is removed from the base URL."""
        assert self.transport.base_url == BASE_URL
        assert self.transport.timeout == 5
        assert self.transport.user_key is None

    def test_missing_base_url(self):
        """Test that an empty base URL is refused."""
        with pytest.raises(TransportError):
            HttpChatTransport(base_url="")

    @patch('requests.post')
    def test_connect_creates_user(self, mock_post):
        """Test that connect() creates a user and keeps its key."""
        mock_post.return_value = response(data={"user": {"id": "u_1"}, "key": "secret"})

        self.transport.connect()

        assert self.transport.user_key == "secret"
        assert self.transport.user_id == "u_1"
        assert mock_post.call_args[0][0] == f"{BASE_URL}/users"

    @patch('requests.post')
    def test_connect_is_idempotent(self, mock_post):
        """Test that an existing key is reused."""
        transport = HttpChatTransport(base_url=BASE_URL, user_key="existing")
        transport.connect()
        mock_post.assert_not_called()

    @patch('requests.post')
    def test_connect_without_key(self, mock_post):
        """Test that a user response without a key fails."""
        mock_post.return_value = response(data={"user": {"id": "u_1"}})
        with pytest.raises(TransportError):
            self.transport.connect()

    def test_calls_require_connection(self):
        """Test that channel calls fail before connect()."""
        with pytest.raises(TransportError):
            self.transport.create_conversation()

    @patch('requests.post')
    def test_create_conversation_sends_user_key(self, mock_post):
        """Test the conversation call and its auth header."""
        self.transport.user_key = "secret"
        mock_post.return_value = response(data={"conversation": {"id": "conv_9"}})

        assert self.transport.create_conversation() == "conv_9"
        call_args = mock_post.call_args
        assert call_args[0][0] == f"{BASE_URL}/conversations"
        assert call_args[1]["headers"]["x-user-key"] == "secret"
        assert call_args[1]["timeout"] == 5

    @patch('requests.post')
    def test_create_message_body(self, mock_post):
        """Test the text message body."""
        self.transport.user_key = "secret"
        mock_post.return_value = response(data={"message": {
            "id": "msg_1",
            "conversationId": "conv_9",
            "userId": "u_1",
            "payload": {"type": "text", "text": "SEARCH: tea"},
        }})

        message = self.transport.create_message("conv_9", "SEARCH: tea")

        assert message.id == "msg_1"
        assert message.text == "SEARCH: tea"
        assert mock_post.call_args[1]["json"] == {
            "conversationId": "conv_9",
            "payload": {"type": "text", "text": "SEARCH: tea"},
        }

    @patch('requests.get')
    def test_list_messages_follows_pages(self, mock_get):
        """Test that paged message lists are concatenated."""
        self.transport.user_key = "secret"
        mock_get.side_effect = [
            response(data={
                "messages": [{"id": "m1", "payload": {"type": "text", "text": "a"}}],
                "meta": {"nextToken": "page2"},
            }),
            response(data={
                "messages": [{"id": "m2", "payload": {"type": "text", "text": "b"}}],
                "meta": {},
            }),
        ]

        messages = self.transport.list_messages("conv_9")

        assert [m.id for m in messages] == ["m1", "m2"]
        assert mock_get.call_count == 2
        assert mock_get.call_args_list[1][1]["params"] == {"nextToken": "page2"}
        assert mock_get.call_args_list[0][0][0] == f"{BASE_URL}/conversations/conv_9/messages"

    @patch('requests.post')
    def test_auth_failure(self, mock_post):
        """Test that 401 responses raise TransportError."""
        self.transport.user_key = "bad"
        mock_post.return_value = response(status_code=401)
        with pytest.raises(TransportError) as exc_info:
            self.transport.create_conversation()
        assert "authentication" in exc_info.value.message

    @patch('requests.post')
    def test_server_error(self, mock_post):
        """Test that 5xx responses raise TransportError."""
        self.transport.user_key = "secret"
        mock_post.return_value = response(status_code=500)
        with pytest.raises(TransportError):
            self.transport.create_conversation()

    @patch('requests.post')
    def test_network_error(self, mock_post):
        """Test that connection errors raise TransportError."""
        mock_post.side_effect = requests.ConnectionError("unreachable")
        with pytest.raises(TransportError):
            self.transport.connect()

    def test_close_forgets_key(self):
        """Test that close() drops the user key."""
        self.transport.user_key = "secret"
        self.transport.close()
        assert self.transport.user_key is None
