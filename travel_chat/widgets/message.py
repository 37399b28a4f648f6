"""Message bubble widget with a collapsible reasoning panel and a copy button."""

from __future__ import annotations

from typing import Any, Literal

from rich.markdown import Markdown
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.message import Message as TextualMessage
from textual.widgets import Button, Label, Static

from ..models import Message
from ..parsing import ParsedContent, parse_message

CopyStatus = Literal["idle", "copied", "failed"]

COPY_LABELS: dict[CopyStatus, str] = {
    "idle": "⎘ Copy",
    "copied": "✓ Copied",
    "failed": "✗ Copy failed",
}


class MessageBubble(Vertical):
    """Render one conversation message at a fixed position."""

    DEFAULT_CSS = """
    MessageBubble {
        height: auto;
    }
    MessageBubble > #header-block {
        padding: 0;
    }
    MessageBubble > #content-block {
        height: auto;
    }
    MessageBubble > #controls {
        height: auto;
        margin-top: 1;
    }
    MessageBubble > #controls > Button {
        min-width: 8;
        height: 1;
        border: none;
        margin-right: 1;
        padding: 0 1;
        background: $panel;
    }
    MessageBubble > #controls > #cot-label {
        color: $text-muted;
        text-style: italic;
    }
    MessageBubble > #reasoning-panel {
        color: $text-muted;
        padding: 0 1;
        margin-top: 1;
        border-left: solid $panel;
    }
    """

    class ReasoningToggleRequested(TextualMessage):
        """Posted when the user clicks the reasoning toggle."""

        def __init__(self, position: int) -> None:
            super().__init__()
            self.position = position

    class CopyRequested(TextualMessage):
        """Posted when the user clicks the copy button."""

        def __init__(self, position: int) -> None:
            super().__init__()
            self.position = position

    def __init__(
        self,
        position: int,
        message: Message,
        timestamp: str = "",
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.position = position
        self.message = message
        self.timestamp = timestamp
        self.expanded = False
        self.copy_status: CopyStatus = "idle"
        self.add_class(f"role-{message.role}")

        self._toggle_button: Button | None = None
        self._copy_button: Button | None = None
        self._reasoning_widget: Static | None = None

    @property
    def parsed(self) -> ParsedContent:
        """Parse on demand; content is immutable so nothing is cached."""
        return parse_message(self.message.content)

    @property
    def has_reasoning(self) -> bool:
        return bool(self.parsed.reasoning)

    @property
    def role_prefix(self) -> str:
        return "You" if self.message.role == "user" else "Assistant"

    @property
    def toggle_label(self) -> str:
        return "Hide reasoning" if self.expanded else "Show reasoning"

    @property
    def copy_label(self) -> str:
        return COPY_LABELS[self.copy_status]

    def _compose_header(self) -> str:
        if self.timestamp:
            return f"**{self.role_prefix}**  _{self.timestamp}_"
        return f"**{self.role_prefix}**"

    def compose(self) -> ComposeResult:
        parsed = self.parsed
        yield Static(Markdown(self._compose_header()), id="header-block")
        yield Static(Markdown(parsed.main) if parsed.main else "", id="content-block")
        if self.message.role != "assistant":
            return

        with Horizontal(id="controls"):
            if parsed.reasoning:
                self._toggle_button = Button(self.toggle_label, id="toggle-reasoning")
                yield self._toggle_button
            self._copy_button = Button(self.copy_label, id="copy-message")
            yield self._copy_button
            if parsed.reasoning:
                yield Label("chain-of-thought", id="cot-label")

        if parsed.reasoning:
            self._reasoning_widget = Static(
                Markdown(parsed.reasoning), id="reasoning-panel"
            )
            self._reasoning_widget.display = self.expanded
            yield self._reasoning_widget

    def set_expanded(self, expanded: bool) -> None:
        """Show or hide the reasoning panel."""
        self.expanded = expanded
        if self._toggle_button is not None:
            self._toggle_button.label = self.toggle_label
        if self._reasoning_widget is not None:
            self._reasoning_widget.display = expanded

    def set_copy_status(self, status: CopyStatus) -> None:
        """Reflect the shared copy indicator on this bubble's button."""
        self.copy_status = status
        if self._copy_button is not None:
            self._copy_button.label = self.copy_label

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "toggle-reasoning":
            event.stop()
            self.post_message(self.ReasoningToggleRequested(self.position))
        elif event.button.id == "copy-message":
            event.stop()
            self.post_message(self.CopyRequested(self.position))
