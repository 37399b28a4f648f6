"""Input row containing the message field and the send button."""

from __future__ import annotations

from textual.containers import Horizontal
from textual.widgets import Button, Input


class InputBox(Horizontal):
    """Message field and send button; sending is disabled while a reply is pending."""

    def compose(self):  # type: ignore[override]
        yield Input(
            placeholder="Type your Vietnam travel question...",
            id="message_input",
        )
        yield Button("Send", id="send_button", variant="success")

    def set_pending(self, pending: bool) -> None:
        """Disable the send affordance while a request is outstanding."""
        self.query_one("#send_button", Button).disabled = pending
