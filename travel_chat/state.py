"""Turn-taking states for a conversation session."""

from __future__ import annotations

from enum import Enum


class ConversationState(str, Enum):
    """Finite state machine for a single send cycle.

    Both success and failure resolve back to ``IDLE``; there is no terminal
    error state.
    """

    IDLE = "IDLE"
    SENDING = "SENDING"
