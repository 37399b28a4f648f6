"""Main Textual application for chatting with the travel assistant."""

from __future__ import annotations

import asyncio
from datetime import datetime
import logging
import sys
from typing import Any

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.widgets import Button, Footer, Header, Input

from .clipboard import ClipboardService
from .config import check_endpoint_policy, load_config
from .dispatcher import RequestDispatcher
from .exceptions import ConfigValidationError
from .logging_utils import configure_logging
from .models import Message
from .parsing import parse_message
from .session import ConversationSession, Dispatcher
from .task_manager import TaskManager
from .ui_state import COPY_FAILED, UIStateController
from .widgets.conversation import ConversationView
from .widgets.input_box import InputBox
from .widgets.message import MessageBubble

LOGGER = logging.getLogger(__name__)


class TravelChatApp(App[None]):
    """Terminal chat client for the Vietnam travel-assistant backend."""

    CSS = """
    Screen {
        layout: vertical;
        background: $background;
    }

    #app-root {
        layout: vertical;
        width: 100%;
        height: 1fr;
        background: $background;
    }

    Header {
        border-bottom: solid $panel;
        background: $surface;
    }

    Footer {
        border-top: solid $panel;
        background: $surface;
    }

    #conversation {
        height: 1fr;
        padding: 1;
    }

    InputBox {
        height: auto;
        padding: 0 1 1 1;
        border-top: solid $panel;
        background: $surface;
    }

    #message_input {
        width: 1fr;
    }

    #send_button {
        margin-left: 1;
        min-width: 10;
    }

    MessageBubble {
        width: 85%;
        margin: 1 0;
        padding: 1 2;
        border: round $panel;
    }

    .message-user {
        margin-left: 8;
        background: $primary;
    }

    .message-assistant {
        background: $surface;
    }
    """

    DEFAULT_ACTION_DESCRIPTIONS: dict[str, str] = {
        "quit": "Quit",
        "copy_last_message": "Copy Last",
        "toggle_last_reasoning": "Reasoning",
        "scroll_up": "Scroll Up",
        "scroll_down": "Scroll Down",
    }

    def __init__(
        self,
        config: dict[str, dict[str, Any]] | None = None,
        dispatcher: Dispatcher | None = None,
        clipboard: ClipboardService | None = None,
    ) -> None:
        self.config = config if config is not None else load_config()
        configure_logging(self.config["logging"])
        LOGGER.info(
            "app.python",
            extra={
                "event": "app.python",
                "executable": sys.executable,
                "version": sys.version.split()[0],
            },
        )

        backend_cfg = self.config["backend"]
        try:
            check_endpoint_policy(str(backend_cfg["endpoint"]), self.config["security"])
        except ValueError as exc:
            raise ConfigValidationError(str(exc)) from exc

        self._owned_dispatcher: RequestDispatcher | None = None
        if dispatcher is None:
            self._owned_dispatcher = RequestDispatcher(
                endpoint=str(backend_cfg["endpoint"]),
                timeout=float(backend_cfg["timeout"]),
            )
            dispatcher = self._owned_dispatcher

        ui_cfg = self.config["ui"]
        self.session = ConversationSession(
            dispatcher, greeting=str(ui_cfg.get("greeting", ""))
        )
        self._task_manager = TaskManager()
        self._last_copy_request: int | None = None
        self._binding_specs = self._binding_specs_from_config(self.config)
        self._w_conversation: ConversationView | None = None
        self._w_input: Input | None = None
        self._w_input_box: InputBox | None = None
        super().__init__()

        self.clipboard_service = clipboard or ClipboardService(
            terminal_copy=self.copy_to_clipboard
        )
        self.ui_state = UIStateController(
            self.clipboard_service,
            schedule=self._schedule_reset,
            reset_delay=float(ui_cfg["copy_reset_seconds"]),
            on_change=self._sync_bubbles,
        )

    @classmethod
    def _binding_specs_from_config(
        cls, config: dict[str, dict[str, Any]]
    ) -> list[Binding]:
        keybinds = config.get("keybinds", {})
        bindings: list[Binding] = []
        for action_name, description in cls.DEFAULT_ACTION_DESCRIPTIONS.items():
            binding_key = keybinds.get(action_name)
            if isinstance(binding_key, str) and binding_key.strip():
                bindings.append(
                    Binding(
                        key=binding_key.strip(),
                        action=action_name,
                        description=description,
                        show=True,
                    )
                )
        return bindings

    def _schedule_reset(self, delay: float, callback: Any) -> Any:
        return self.set_timer(delay, callback)

    @property
    def show_timestamps(self) -> bool:
        return bool(self.config["ui"].get("show_timestamps", True))

    def _timestamp(self) -> str:
        if not self.show_timestamps:
            return ""
        return datetime.now().strftime("%H:%M")

    def _set_idle_sub_title(self) -> None:
        self.sub_title = str(self.config["app"].get("subtitle", ""))

    def compose(self) -> ComposeResult:
        yield Header()
        with Container(id="app-root"):
            yield ConversationView(id="conversation")
            yield InputBox()
        yield Footer()

    async def on_mount(self) -> None:
        """Register keybindings and render the messages the session starts with."""
        self.title = str(self.config["app"]["title"])
        self._set_idle_sub_title()
        for binding in self._binding_specs:
            self.bind(
                binding.key,
                binding.action,
                description=binding.description,
                show=binding.show,
            )

        self._w_conversation = self.query_one(ConversationView)
        self._w_input = self.query_one("#message_input", Input)
        self._w_input_box = self.query_one(InputBox)

        for position, message in enumerate(self.session.messages):
            self._render_message(position, message)
        self.session.subscribe(self._render_message)
        self._w_input.focus()

    def _render_message(self, position: int, message: Message) -> None:
        conversation = self._w_conversation or self.query_one(ConversationView)
        bubble = conversation.add_message(position, message, timestamp=self._timestamp())
        bubble.set_expanded(self.ui_state.is_expanded(position))

    def _sync_bubbles(self) -> None:
        """Mirror controller state onto every rendered bubble."""
        conversation = self._w_conversation
        if conversation is None:
            return
        copied = self.ui_state.copied
        for bubble in conversation.bubbles:
            bubble.set_expanded(self.ui_state.is_expanded(bubble.position))
            if copied == bubble.position:
                bubble.set_copy_status("copied")
            elif copied == COPY_FAILED and bubble.position == self._last_copy_request:
                bubble.set_copy_status("failed")
            else:
                bubble.set_copy_status("idle")

    async def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "message_input":
            self._start_send()

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "send_button":
            self._start_send()

    def _start_send(self) -> None:
        """Run the send cycle in the background so the UI stays interactive."""
        input_widget = self._w_input or self.query_one("#message_input", Input)
        text = input_widget.value
        # A queued send has not marked the session pending yet.
        if self.session.pending or self._task_manager.is_running("active_send"):
            self.sub_title = "Busy. Wait for the current reply."
            return
        if not text.strip():
            self.sub_title = "Cannot send an empty message."
            return
        input_widget.value = ""
        self._task_manager.add(
            asyncio.create_task(self.send_user_message(text)), name="active_send"
        )

    async def send_user_message(self, text: str | None = None) -> Message | None:
        """Send one turn and wait for its resolution."""
        input_widget = self._w_input or self.query_one("#message_input", Input)
        input_box = self._w_input_box or self.query_one(InputBox)
        if self.session.pending:
            self.sub_title = "Busy. Wait for the current reply."
            return None
        if text is None:
            text = input_widget.value
            input_widget.value = ""
        if not text.strip():
            self.sub_title = "Cannot send an empty message."
            return None

        input_box.set_pending(True)
        self.sub_title = "Waiting for response..."
        try:
            reply = await self.session.send(text)
        finally:
            input_box.set_pending(False)

        if self.session.last_send_failed:
            self.sub_title = "Request failed. Please try again."
        else:
            self._set_idle_sub_title()
        return reply

    async def on_message_bubble_reasoning_toggle_requested(
        self, event: MessageBubble.ReasoningToggleRequested
    ) -> None:
        self.ui_state.toggle_reasoning(event.position)

    async def on_message_bubble_copy_requested(
        self, event: MessageBubble.CopyRequested
    ) -> None:
        self._task_manager.add(asyncio.create_task(self.copy_message(event.position)))

    async def copy_message(self, position: int) -> bool:
        """Copy one message and report the outcome in the sub-title."""
        self._last_copy_request = position
        ok = await self.ui_state.copy(position, self.session)
        self.sub_title = "Copied to clipboard." if ok else "Copy failed."
        return ok

    def _last_assistant_position(self, with_reasoning: bool = False) -> int | None:
        messages = self.session.messages
        for position in range(len(messages) - 1, -1, -1):
            message = messages[position]
            if message.role != "assistant":
                continue
            if with_reasoning and not parse_message(message.content).reasoning:
                continue
            return position
        return None

    async def action_copy_last_message(self) -> None:
        """Copy the latest assistant reply."""
        position = self._last_assistant_position()
        if position is None:
            self.sub_title = "No assistant message available to copy."
            return
        await self.copy_message(position)

    async def action_toggle_last_reasoning(self) -> None:
        """Toggle reasoning on the latest assistant reply that has any."""
        position = self._last_assistant_position(with_reasoning=True)
        if position is None:
            self.sub_title = "No reasoning available."
            return
        self.ui_state.toggle_reasoning(position)

    def action_scroll_up(self) -> None:
        conversation = self._w_conversation or self.query_one(ConversationView)
        conversation.scroll_relative(y=-5, animate=False)

    def action_scroll_down(self) -> None:
        conversation = self._w_conversation or self.query_one(ConversationView)
        conversation.scroll_relative(y=5, animate=False)

    async def on_unmount(self) -> None:
        """Cancel background work and close the HTTP client."""
        await self._task_manager.cancel_all()
        if self._owned_dispatcher is not None:
            await self._owned_dispatcher.aclose()
