"""ConversationController: ordered chat history and the send/receive state machine."""

from __future__ import annotations

import asyncio
import logging
from enum import StrEnum
from typing import TYPE_CHECKING

from cds_chat.chat.message import Message, Role
from cds_chat.chat.prompt import build_request_messages
from cds_chat.config import settings
from cds_chat.llm.transport import ChatTransport, CompletionResult
from cds_chat.preferences import PreferenceStore

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = "Sorry, I couldn't connect to the AI service. Please try again later."


class ChatState(StrEnum):
    IDLE = "idle"
    SENDING = "sending"


class ConversationController:
    """Owns one conversation and dispatches each user turn to the transport.

    At most one request is in flight: ``send`` is rejected (not queued)
    while the state is ``SENDING``. Every accepted user message is followed
    by exactly one assistant message, either the model's reply or the
    fallback apology, before the controller returns to ``IDLE``.

    The guard check and the transition to ``SENDING`` happen before the
    first ``await``, so on a single event loop two overlapping ``send``
    calls can never both be accepted.
    """

    def __init__(
        self,
        transport: ChatTransport | None = None,
        preferences: PreferenceStore | None = None,
        *,
        greeting: str | None = None,
    ) -> None:
        self._transport = transport or ChatTransport()
        self._preferences = preferences or PreferenceStore.shared()
        self._state = ChatState.IDLE
        self._history: list[Message] = [
            Message(
                role=Role.ASSISTANT,
                content=greeting if greeting is not None else settings.greeting,
                synthetic=True,
            )
        ]
        self._subscribers: list[Callable[[ConversationController], None]] = []

    # -- Read-only views -------------------------------------------------------

    @property
    def state(self) -> ChatState:
        return self._state

    @property
    def is_sending(self) -> bool:
        return self._state is ChatState.SENDING

    @property
    def history(self) -> tuple[Message, ...]:
        return tuple(self._history)

    # -- Change notification ---------------------------------------------------

    def subscribe(
        self, callback: Callable[[ConversationController], None]
    ) -> Callable[[], None]:
        """Call *callback* after every history or state change. Returns an unsubscribe function."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            try:
                callback(self)
            except Exception:
                logger.exception("Conversation subscriber failed")

    def _append(self, message: Message) -> None:
        self._history.append(message)
        self._notify()

    def _set_state(self, state: ChatState) -> None:
        self._state = state
        self._notify()

    # -- Sending ---------------------------------------------------------------

    def accepts(self, text: str) -> bool:
        """Whether ``send(text)`` would start a new turn right now."""
        return bool(text.strip()) and self._state is ChatState.IDLE

    async def send(self, text: str) -> None:
        """Run one conversation turn. Never raises for transport failures."""
        if not self.accepts(text):
            logger.debug("Ignoring send (state=%s, empty=%s)", self._state, not text.strip())
            return

        self._append(Message(role=Role.USER, content=text))
        self._set_state(ChatState.SENDING)

        try:
            try:
                messages = build_request_messages(self._history)
                prefs = self._preferences.get()
                logger.info("Sending %d messages with model %s", len(messages), prefs.model)
                result = await self._transport.complete(messages, prefs)
                reply = self._reply_from(result)
            except Exception:
                logger.exception("Conversation turn failed")
                reply = self._fallback()
            self._append(reply)
        finally:
            self._set_state(ChatState.IDLE)

    def submit(self, text: str) -> asyncio.Task[None] | None:
        """Schedule ``send`` on the running loop. Returns None if it would be rejected."""
        if not self.accepts(text):
            return None
        return asyncio.get_running_loop().create_task(self.send(text))

    def _reply_from(self, result: CompletionResult) -> Message:
        if result.success:
            return Message(role=Role.ASSISTANT, content=result.content or "")
        logger.error("Completion failed: %s", result.error)
        return self._fallback()

    @staticmethod
    def _fallback() -> Message:
        return Message(role=Role.ASSISTANT, content=FALLBACK_MESSAGE, synthetic=True)
