"""Conversation session: ordered messages, conversation id, and the send cycle."""

from __future__ import annotations

from collections.abc import Callable
import logging
from typing import Protocol, Sequence

from .models import ExchangeResult, Message
from .state import ConversationState

LOGGER = logging.getLogger(__name__)

GREETING = (
    "Xin chào 🇻🇳! I'm your Vietnam Travel Assistant. Tell me what kind of trip "
    "you're dreaming about — romantic, adventure, or cultural?"
)
FALLBACK_REPLY = "⚠️ Sorry, I encountered an error. Please try again."

MessageListener = Callable[[int, Message], None]


class Dispatcher(Protocol):
    """Anything able to exchange one turn with the backend."""

    async def exchange(
        self,
        query: str,
        conversation_id: str | None,
        history: Sequence[Message],
    ) -> ExchangeResult: ...


class ConversationSession:
    """Own the message list and orchestrate one request per ``send`` call.

    ``messages`` is append-only: each send cycle appends the user turn, then
    exactly one assistant reply (the answer or the fallback apology).
    """

    def __init__(self, dispatcher: Dispatcher, greeting: str = GREETING) -> None:
        self._dispatcher = dispatcher
        self._messages: list[Message] = []
        self._conversation_id: str | None = None
        self._state = ConversationState.IDLE
        self._listeners: list[MessageListener] = []
        self._last_send_failed = False
        if greeting.strip():
            self._messages.append(Message(role="assistant", content=greeting.strip()))

    @property
    def messages(self) -> tuple[Message, ...]:
        """Return an immutable snapshot of the conversation."""
        return tuple(self._messages)

    @property
    def conversation_id(self) -> str | None:
        """Server-issued identifier; unset until the first successful reply."""
        return self._conversation_id

    @property
    def state(self) -> ConversationState:
        return self._state

    @property
    def pending(self) -> bool:
        """Advisory flag for the UI while a reply is outstanding."""
        return self._state is ConversationState.SENDING

    @property
    def last_send_failed(self) -> bool:
        """Whether the most recent send resolved to the fallback reply."""
        return self._last_send_failed

    def subscribe(self, listener: MessageListener) -> None:
        """Call ``listener(position, message)`` after every append."""
        self._listeners.append(listener)

    def _append(self, message: Message) -> None:
        self._messages.append(message)
        position = len(self._messages) - 1
        for listener in list(self._listeners):
            listener(position, message)

    def _transition(self, new_state: ConversationState) -> None:
        LOGGER.info(
            "session.state.transition",
            extra={
                "event": "session.state.transition",
                "from_state": self._state.value,
                "to_state": new_state.value,
            },
        )
        self._state = new_state

    def _adopt_conversation_id(self, candidate: str | None) -> None:
        if self._conversation_id is not None or not candidate:
            return
        self._conversation_id = candidate
        LOGGER.info(
            "session.conversation_id.adopted",
            extra={
                "event": "session.conversation_id.adopted",
                "conversation_id": candidate,
            },
        )

    async def send(self, user_text: str) -> Message | None:
        """Run one send cycle and return the appended assistant message.

        Blank input is ignored and returns ``None``. Failures never propagate:
        they resolve to the fixed fallback reply.
        """
        if not user_text.strip():
            return None

        # History and id are captured before the optimistic append so the new
        # turn travels only as ``query``.
        history = tuple(self._messages)
        conversation_id = self._conversation_id
        self._append(Message(role="user", content=user_text))
        self._transition(ConversationState.SENDING)
        LOGGER.info(
            "session.send.start",
            extra={
                "event": "session.send.start",
                "history_length": len(history),
            },
        )

        try:
            try:
                result = await self._dispatcher.exchange(
                    user_text, conversation_id, history
                )
            except Exception as exc:  # noqa: BLE001 - every failed attempt gets the fallback reply.
                LOGGER.warning(
                    "session.send.failed",
                    extra={
                        "event": "session.send.failed",
                        "error_type": exc.__class__.__name__,
                        "error": str(exc),
                    },
                )
                reply = Message(role="assistant", content=FALLBACK_REPLY)
                self._last_send_failed = True
            else:
                self._adopt_conversation_id(result.conversation_id)
                self._last_send_failed = False
                reply = Message(
                    role="assistant", content=result.answer, sources=result.source_ids
                )
                LOGGER.info(
                    "session.send.complete",
                    extra={
                        "event": "session.send.complete",
                        "source_count": len(result.source_ids),
                    },
                )
            self._append(reply)
        finally:
            self._transition(ConversationState.IDLE)
        return reply
