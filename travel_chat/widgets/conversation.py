"""Scrollable conversation view widget."""

from __future__ import annotations

from textual.containers import VerticalScroll

from ..models import Message
from .message import MessageBubble


class ConversationView(VerticalScroll):
    """A scrollable container that hosts one bubble per message position."""

    def add_message(
        self, position: int, message: Message, timestamp: str = ""
    ) -> MessageBubble:
        """Create and mount a bubble; mounting completes on the next refresh."""
        bubble = MessageBubble(position=position, message=message, timestamp=timestamp)
        bubble.add_class(f"message-{message.role}")
        self.mount(bubble)
        self.scroll_end(animate=True)
        return bubble

    @property
    def bubbles(self) -> list[MessageBubble]:
        return list(self.query(MessageBubble))
