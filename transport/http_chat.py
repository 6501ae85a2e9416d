"""Hosted chat-API transport (webhook-scoped conversations over HTTPS)."""

import logging
from typing import List, Optional
import requests

from .base import ChatMessage, ChatTransport
from utils.exceptions import TransportError

logger = logging.getLogger(__name__)


class HttpChatTransport(ChatTransport):
    """
    Chat channel backed by a webhook chat API.

    Endpoints (relative to ``{api_url}/{webhook_id}``):
    - POST /users                          -> {"user": {...}, "key": "..."}
    - POST /conversations                  -> {"conversation": {"id": ...}}
    - POST /messages                       -> {"message": {...}}
    - GET  /conversations/{id}/messages    -> {"messages": [...]}

    The user key returned by ``connect()`` authenticates every later call.
    """

    def __init__(
        self,
        base_url: str,
        timeout: int = 10,
        user_key: Optional[str] = None
    ):
        """
        Initialize chat transport.

        Args:
            base_url: Webhook-scoped API URL (e.g. https://chat.botpress.cloud/<webhook-id>)
            timeout: Request timeout in seconds
            user_key: Existing user key; a new user is created on connect() if absent
        """
        if not base_url:
            raise TransportError("Chat API URL is not configured")
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.user_key = user_key
        self.user_id: Optional[str] = None

    def _get_headers(self) -> dict:
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if self.user_key:
            headers["x-user-key"] = self.user_key
        return headers

    def _check(self, response, context: str) -> dict:
        if response.status_code in (401, 403):
            raise TransportError(
                f"Chat API authentication failed during {context}",
                details=f"status={response.status_code}"
            )
        if response.status_code >= 400:
            raise TransportError(
                f"Chat API returned status {response.status_code} during {context}",
                details=response.text
            )
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(f"Chat API returned invalid JSON during {context}", details=str(e))

    def _post(self, path: str, body: dict, context: str) -> dict:
        try:
            response = requests.post(
                f"{self.base_url}{path}",
                json=body,
                headers=self._get_headers(),
                timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.warning(f"Chat API error during {context}: {e}")
            raise TransportError(f"Chat API unreachable during {context}", details=str(e))
        return self._check(response, context)

    def _get(self, path: str, context: str, params: Optional[dict] = None) -> dict:
        try:
            response = requests.get(
                f"{self.base_url}{path}",
                params=params,
                headers=self._get_headers(),
                timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.warning(f"Chat API error during {context}: {e}")
            raise TransportError(f"Chat API unreachable during {context}", details=str(e))
        return self._check(response, context)

    def connect(self) -> None:
        """Create an anonymous chat user unless a key is already held."""
        if self.user_key:
            return
        data = self._post("/users", {}, "connect")
        self.user_key = data.get("key")
        self.user_id = (data.get("user") or {}).get("id")
        if not self.user_key:
            raise TransportError("Chat API did not return a user key")
        logger.info(f"Connected to chat API as user {self.user_id}")

    def close(self) -> None:
        self.user_key = None
        self.user_id = None

    def _require_connected(self):
        if not self.user_key:
            raise TransportError("Chat transport is not connected")

    def create_conversation(self) -> str:
        self._require_connected()
        data = self._post("/conversations", {}, "create_conversation")
        return data["conversation"]["id"]

    def create_message(self, conversation_id: str, text: str) -> ChatMessage:
        self._require_connected()
        data = self._post(
            "/messages",
            {
                "conversationId": conversation_id,
                "payload": {"type": "text", "text": text},
            },
            "create_message"
        )
        return ChatMessage.model_validate(data["message"])

    def list_messages(self, conversation_id: str) -> List[ChatMessage]:
        self._require_connected()
        messages: List[ChatMessage] = []
        next_token = None
        while True:
            params = {"nextToken": next_token} if next_token else None
            data = self._get(
                f"/conversations/{conversation_id}/messages",
                "list_messages",
                params=params
            )
            messages.extend(ChatMessage.model_validate(m) for m in data.get("messages", []))
            next_token = (data.get("meta") or {}).get("nextToken")
            if not next_token:
                return messages
