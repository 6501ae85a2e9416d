"""Request/response correlation over a polled chat channel."""

import logging
import time
from typing import Callable, Iterable, List, Optional, Sequence
from pydantic import BaseModel, Field

from .base import ChatMessage, ChatTransport
from utils.exceptions import ResponseTimeout

logger = logging.getLogger(__name__)


class PendingResponse(BaseModel):
    """Handle for a sent command awaiting its reply."""
    conversation_id: str
    message_id: str
    sent_text: str
    prior_message_ids: List[str] = Field(default_factory=list)


class ResponseCorrelator:
    """
    Sends text on a channel and waits for the first qualifying reply.

    A reply qualifies when it:
    - is not the message that was just sent
    - is a text message whose stripped text is not in the exclusion set
    - does not start with a reserved prefix (echoed command traffic)
    - is at least ``min_length`` characters long

    The correlator knows nothing about what the text means; callers supply
    the reserved prefixes and the placeholder texts to skip. It never
    retries: an exhausted attempt budget raises ResponseTimeout.
    """

    def __init__(
        self,
        transport: ChatTransport,
        reserved_prefixes: Sequence[str] = (),
        poll_interval: float = 1.0,
        max_attempts: int = 60,
        min_length: int = 2,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Initialize correlator.

        Args:
            transport: Channel provider
            reserved_prefixes: Prefixes of command text that are never replies
            poll_interval: Seconds between list polls
            max_attempts: Polls before giving up
            min_length: Default minimum reply length
            sleep: Sleep function (injectable for tests)
        """
        self.transport = transport
        self.reserved_prefixes = tuple(reserved_prefixes)
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self.min_length = min_length
        self._sleep = sleep

    @property
    def timeout_seconds(self) -> float:
        return self.poll_interval * self.max_attempts

    def open_channel(self) -> str:
        """Create a fresh conversation channel."""
        return self.transport.create_conversation()

    def send(self, text: str, conversation_id: Optional[str] = None) -> PendingResponse:
        """
        Send command text, opening a new channel unless one is given.

        Args:
            text: Command text
            conversation_id: Existing channel to reuse for a multi-turn session

        Returns:
            PendingResponse to pass to wait()
        """
        prior_ids = []
        if conversation_id is None:
            conversation_id = self.open_channel()
        else:
            # Replies to earlier turns on a reused channel must not match
            prior_ids = [m.id for m in self.transport.list_messages(conversation_id)]
        message = self.transport.create_message(conversation_id, text)
        logger.debug(f"Sent message {message.id} on {conversation_id}: {text[:60]}")
        return PendingResponse(
            conversation_id=conversation_id,
            message_id=message.id,
            sent_text=text,
            prior_message_ids=prior_ids
        )

    def wait(
        self,
        pending: PendingResponse,
        exclude: Iterable[str] = (),
        min_length: Optional[int] = None
    ) -> str:
        """
        Poll until a qualifying reply appears.

        Args:
            pending: Handle returned by send()
            exclude: Exact reply texts to skip (interim status placeholders)
            min_length: Override of the default minimum reply length

        Returns:
            Stripped text of the first qualifying message

        Raises:
            ResponseTimeout: If no reply qualifies within the attempt budget
        """
        skip = {t.strip() for t in exclude}
        prior = set(pending.prior_message_ids)
        threshold = self.min_length if min_length is None else min_length

        for attempt in range(self.max_attempts):
            self._sleep(self.poll_interval)

            messages = self.transport.list_messages(pending.conversation_id)
            reply = self._find_reply(messages, pending, skip, threshold, prior)
            if reply is not None:
                logger.debug(
                    f"Reply found on {pending.conversation_id} after {attempt + 1} poll(s)"
                )
                return reply

        logger.warning(
            f"No reply on {pending.conversation_id} after {self.max_attempts} polls"
        )
        raise ResponseTimeout(
            details=f"conversation={pending.conversation_id} attempts={self.max_attempts}"
        )

    def round_trip(
        self,
        text: str,
        exclude: Iterable[str] = (),
        min_length: Optional[int] = None,
        conversation_id: Optional[str] = None
    ) -> str:
        """Send text and wait for its reply."""
        pending = self.send(text, conversation_id=conversation_id)
        return self.wait(pending, exclude=exclude, min_length=min_length)

    def _find_reply(
        self,
        messages: List[ChatMessage],
        pending: PendingResponse,
        skip: set,
        threshold: int,
        prior: set
    ) -> Optional[str]:
        for msg in messages:
            if msg.id == pending.message_id or msg.id in prior:
                continue

            raw = msg.text
            if not raw:
                continue

            text = raw.strip()
            if text in skip:
                continue
            if text.startswith(self.reserved_prefixes):
                continue
            if len(text) >= threshold:
                return text

        return None
