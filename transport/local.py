"""In-process chat transport that hands messages straight to a backend handler."""

import itertools
import logging
import threading
from typing import Callable, Dict, List

from .base import ChatMessage, ChatTransport, MessagePayload

logger = logging.getLogger(__name__)

# handler(text, reply) -> None; reply(text) posts a bot message on the channel
MessageHandler = Callable[[str, Callable[[str], None]], None]

CLIENT_USER_ID = "local-user"
BOT_USER_ID = "local-bot"


class LocalChatTransport(ChatTransport):
    """
    Conversation store living in this process.

    Every client message is passed to ``handler`` which may post any number
    of replies. With ``run_in_thread`` the handler runs on a worker thread,
    so replies arrive while the client is polling, as they would remotely.
    """

    def __init__(self, handler: MessageHandler, run_in_thread: bool = False):
        self.handler = handler
        self.run_in_thread = run_in_thread
        self._conversations: Dict[str, List[ChatMessage]] = {}
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._workers: List[threading.Thread] = []

    def _append(self, conversation_id: str, user_id: str, text: str) -> ChatMessage:
        with self._lock:
            message = ChatMessage(
                id=f"msg_{next(self._ids)}",
                conversation_id=conversation_id,
                user_id=user_id,
                payload=MessagePayload(type="text", text=text),
            )
            self._conversations.setdefault(conversation_id, []).append(message)
        return message

    def create_conversation(self) -> str:
        with self._lock:
            conversation_id = f"conv_{next(self._ids)}"
            self._conversations[conversation_id] = []
        return conversation_id

    def create_message(self, conversation_id: str, text: str) -> ChatMessage:
        message = self._append(conversation_id, CLIENT_USER_ID, text)

        def reply(reply_text: str) -> None:
            self._append(conversation_id, BOT_USER_ID, reply_text)

        if self.run_in_thread:
            worker = threading.Thread(
                target=self._run_handler, args=(text, reply), daemon=True
            )
            self._workers.append(worker)
            worker.start()
        else:
            self._run_handler(text, reply)
        return message

    def _run_handler(self, text: str, reply: Callable[[str], None]) -> None:
        try:
            self.handler(text, reply)
        except Exception as e:
            # Surfaces to the client as a timeout, like an unresponsive bot
            logger.error(f"Local handler failed: {e}")

    def list_messages(self, conversation_id: str) -> List[ChatMessage]:
        with self._lock:
            return list(self._conversations.get(conversation_id, []))

    def close(self) -> None:
        for worker in self._workers:
            worker.join(timeout=5)
        self._workers.clear()
