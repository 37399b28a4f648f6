"""Per-message reasoning expansion and the transient "copied" indicator."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
import logging
from typing import TYPE_CHECKING, Any

from .clipboard import ClipboardService
from .parsing import build_copy_text, parse_message

if TYPE_CHECKING:
    from .session import ConversationSession

LOGGER = logging.getLogger(__name__)

COPY_RESET_SECONDS = 1.8
# Shown instead of a position after a failed copy; never a valid index.
COPY_FAILED = -1

Scheduler = Callable[[float, Callable[[], None]], Any]


def _call_later(delay: float, callback: Callable[[], None]) -> Any:
    return asyncio.get_running_loop().call_later(delay, callback)


class UIStateController:
    """Track expanded reasoning panels and the most recent copy action.

    State is keyed by message position, which is stable because sessions
    never remove or reorder messages.
    """

    def __init__(
        self,
        clipboard: ClipboardService,
        schedule: Scheduler = _call_later,
        reset_delay: float = COPY_RESET_SECONDS,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self._clipboard = clipboard
        self._schedule = schedule
        self.reset_delay = reset_delay
        self._on_change = on_change
        self._expanded: dict[int, bool] = {}
        self._copied: int | None = None
        self._copy_generation = 0

    @property
    def copied(self) -> int | None:
        """Position of the last copied message, ``COPY_FAILED``, or ``None``."""
        return self._copied

    def is_expanded(self, position: int) -> bool:
        return self._expanded.get(position, False)

    def toggle_reasoning(self, position: int) -> bool:
        """Flip the reasoning panel at ``position`` and return the new value."""
        expanded = not self.is_expanded(position)
        self._expanded[position] = expanded
        LOGGER.debug(
            "ui.reasoning.toggled",
            extra={
                "event": "ui.reasoning.toggled",
                "position": position,
                "expanded": expanded,
            },
        )
        self._notify()
        return expanded

    async def copy(self, position: int, session: ConversationSession) -> bool:
        """Copy the visible text of one message, plus reasoning when expanded."""
        messages = session.messages
        if 0 <= position < len(messages):
            parsed = parse_message(messages[position].content)
            text = build_copy_text(parsed, include_reasoning=self.is_expanded(position))
            ok = await self._clipboard.write(text)
        else:
            LOGGER.warning(
                "ui.copy.invalid_position",
                extra={"event": "ui.copy.invalid_position", "position": position},
            )
            ok = False

        self._set_copied(position if ok else COPY_FAILED)
        return ok

    def _set_copied(self, value: int) -> None:
        self._copy_generation += 1
        generation = self._copy_generation
        self._copied = value
        self._notify()
        self._schedule(self.reset_delay, lambda: self._reset_copied(generation))

    def _reset_copied(self, generation: int) -> None:
        # A newer copy action owns the indicator and its own reset.
        if generation != self._copy_generation:
            return
        self._copied = None
        self._notify()

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change()
