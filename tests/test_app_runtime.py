"""Runtime-style tests for the real Textual app class."""

from __future__ import annotations

import asyncio
from copy import deepcopy
import unittest
from unittest import mock

from travel_chat.clipboard import ClipboardService
from travel_chat.config import DEFAULT_CONFIG
from travel_chat.exceptions import ConfigValidationError, NetworkError
from travel_chat.models import ExchangeResult
from travel_chat.parsing import parse_message
from travel_chat.session import FALLBACK_REPLY, GREETING
from travel_chat.ui_state import COPY_FAILED

try:
    from textual.widgets import Button, Input

    from travel_chat.app import TravelChatApp
    from travel_chat.widgets.conversation import ConversationView
except ModuleNotFoundError:
    Button = None  # type: ignore[assignment]
    Input = None  # type: ignore[assignment]
    TravelChatApp = None  # type: ignore[assignment,misc]
    ConversationView = None  # type: ignore[assignment,misc]

ANSWER = "<reasoning>Consider weather</reasoning>Visit Old Quarter"


class _RuntimeFakeDispatcher:
    def __init__(self, *outcomes: ExchangeResult | Exception) -> None:
        self.outcomes = list(outcomes)
        self.queries: list[str] = []

    async def exchange(self, query, conversation_id, history):  # type: ignore[no-untyped-def]
        self.queries.append(query)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _ok(answer: str = ANSWER) -> ExchangeResult:
    return ExchangeResult(conversation_id="abc", answer=answer, source_ids=(1,))


@unittest.skipIf(TravelChatApp is None, "textual is not installed")
class AppRuntimeTests(unittest.IsolatedAsyncioTestCase):
    """Exercise the send and copy cycles against the real app class."""

    def setUp(self) -> None:
        # Keep the test runner's logging handlers in place.
        patcher = mock.patch("travel_chat.app.configure_logging")
        patcher.start()
        self.addCleanup(patcher.stop)
        self.copied: list[str] = []

    def _config(self) -> dict:
        config = deepcopy(DEFAULT_CONFIG)
        config["ui"]["show_timestamps"] = False
        return config

    def _build_app(
        self, *outcomes: ExchangeResult | Exception, clipboard_works: bool = True
    ) -> TravelChatApp:
        assert TravelChatApp is not None
        clipboard = ClipboardService(
            terminal_copy=self.copied.append if clipboard_works else None,
            detect_native=lambda: None,
        )
        return TravelChatApp(
            config=self._config(),
            dispatcher=_RuntimeFakeDispatcher(*outcomes),
            clipboard=clipboard,
        )

    async def test_greeting_rendered_on_mount(self) -> None:
        app = self._build_app()
        async with app.run_test() as pilot:
            await pilot.pause()
            bubbles = app.query_one(ConversationView).bubbles
            self.assertEqual(len(bubbles), 1)
            self.assertEqual(bubbles[0].message.content, GREETING)
            self.assertEqual(app.title, DEFAULT_CONFIG["app"]["title"])
            self.assertEqual(app.sub_title, DEFAULT_CONFIG["app"]["subtitle"])

    async def test_send_appends_user_and_assistant_messages(self) -> None:
        app = self._build_app(_ok())
        async with app.run_test() as pilot:
            reply = await app.send_user_message("Hanoi in 3 days")
            await pilot.pause()

            assert reply is not None
            self.assertEqual(len(app.session.messages), 3)
            self.assertEqual(app.session.conversation_id, "abc")
            parsed = parse_message(reply.content)
            self.assertEqual(parsed.main, "Visit Old Quarter")
            self.assertEqual(parsed.reasoning, "Consider weather")
            self.assertEqual(len(app.query_one(ConversationView).bubbles), 3)
            self.assertEqual(app.sub_title, DEFAULT_CONFIG["app"]["subtitle"])
            self.assertFalse(app.query_one("#send_button", Button).disabled)

    async def test_send_failure_shows_fallback(self) -> None:
        app = self._build_app(NetworkError("down"))
        async with app.run_test() as pilot:
            reply = await app.send_user_message("Hanoi in 3 days")
            await pilot.pause()
            assert reply is not None
            self.assertEqual(reply.content, FALLBACK_REPLY)
            self.assertEqual(len(app.session.messages), 3)
            self.assertIsNone(app.session.conversation_id)
            self.assertEqual(app.sub_title, "Request failed. Please try again.")

    async def test_submit_from_input_runs_in_background(self) -> None:
        app = self._build_app(_ok("Sure"))
        async with app.run_test() as pilot:
            input_widget = app.query_one("#message_input", Input)
            input_widget.value = "Da Nang beaches"
            app._start_send()
            self.assertEqual(input_widget.value, "")
            task = app._task_manager.get("active_send")
            if task is not None:
                await task
            await pilot.pause()
            self.assertEqual(app.session.messages[-1].content, "Sure")
            self.assertEqual(app.session.messages[-2].content, "Da Nang beaches")

    async def test_second_submit_keeps_text_while_first_is_queued(self) -> None:
        app = self._build_app(_ok("a"))
        async with app.run_test() as pilot:
            input_widget = app.query_one("#message_input", Input)
            input_widget.value = "one"
            app._start_send()
            first = app._task_manager.get("active_send")
            assert first is not None

            input_widget.value = "two"
            app._start_send()
            self.assertEqual(input_widget.value, "two")
            self.assertEqual(app.sub_title, "Busy. Wait for the current reply.")
            self.assertIs(app._task_manager.get("active_send"), first)

            await first
            await pilot.pause()
            self.assertEqual(
                [m.content for m in app.session.messages[1:]], ["one", "a"]
            )

    async def test_user_bubble_offset_is_in_cells(self) -> None:
        app = self._build_app(_ok())
        async with app.run_test() as pilot:
            await app.send_user_message("Hanoi in 3 days")
            await pilot.pause()
            user_bubble = app.query_one(ConversationView).bubbles[1]
            self.assertTrue(user_bubble.has_class("message-user"))
            self.assertEqual(user_bubble.styles.margin.left, 8)

    async def test_empty_message_rejected(self) -> None:
        app = self._build_app()
        async with app.run_test():
            app.query_one("#message_input", Input).value = "   "
            app._start_send()
            self.assertEqual(app.sub_title, "Cannot send an empty message.")
            self.assertEqual(len(app.session.messages), 1)

    async def test_send_rejected_while_pending(self) -> None:
        gate = asyncio.Event()

        class _SlowDispatcher:
            async def exchange(self, query, conversation_id, history):  # type: ignore[no-untyped-def]
                await gate.wait()
                return _ok("late")

        assert TravelChatApp is not None
        app = TravelChatApp(
            config=self._config(),
            dispatcher=_SlowDispatcher(),
            clipboard=ClipboardService(detect_native=lambda: None),
        )
        async with app.run_test() as pilot:
            first = asyncio.create_task(app.send_user_message("first"))
            await asyncio.sleep(0)
            self.assertTrue(app.session.pending)
            self.assertTrue(app.query_one("#send_button", Button).disabled)
            self.assertIsNone(await app.send_user_message("second"))
            self.assertEqual(app.sub_title, "Busy. Wait for the current reply.")
            gate.set()
            await first
            await pilot.pause()
            self.assertEqual(len(app.session.messages), 3)

    async def test_copy_message_collapsed_and_expanded(self) -> None:
        app = self._build_app(_ok())
        async with app.run_test() as pilot:
            await app.send_user_message("Hanoi in 3 days")
            await pilot.pause()

            self.assertTrue(await app.copy_message(2))
            self.assertEqual(self.copied, ["Visit Old Quarter"])
            self.assertEqual(app.sub_title, "Copied to clipboard.")
            self.assertEqual(app.ui_state.copied, 2)
            bubble = app.query_one(ConversationView).bubbles[2]
            self.assertEqual(bubble.copy_status, "copied")

            await app.on_message_bubble_reasoning_toggle_requested(
                bubble.ReasoningToggleRequested(2)
            )
            self.assertTrue(bubble.expanded)
            await app.copy_message(2)
            self.assertEqual(
                self.copied[-1], "Visit Old Quarter\n\nReasoning:\nConsider weather"
            )

    async def test_copy_failure_marks_requested_bubble(self) -> None:
        app = self._build_app(_ok(), clipboard_works=False)
        async with app.run_test() as pilot:
            await app.send_user_message("Hanoi in 3 days")
            await pilot.pause()
            self.assertFalse(await app.copy_message(2))
            self.assertEqual(app.sub_title, "Copy failed.")
            self.assertEqual(app.ui_state.copied, COPY_FAILED)
            bubble = app.query_one(ConversationView).bubbles[2]
            self.assertEqual(bubble.copy_status, "failed")

    async def test_copy_last_message_action(self) -> None:
        app = self._build_app(_ok("Try bún chả"))
        async with app.run_test() as pilot:
            await app.action_copy_last_message()
            self.assertEqual(self.copied, [GREETING])
            await app.send_user_message("Food in Hanoi?")
            await pilot.pause()
            await app.action_copy_last_message()
            self.assertEqual(self.copied[-1], "Try bún chả")

    async def test_toggle_last_reasoning_action(self) -> None:
        app = self._build_app(_ok())
        async with app.run_test() as pilot:
            await app.action_toggle_last_reasoning()
            self.assertEqual(app.sub_title, "No reasoning available.")
            await app.send_user_message("Hanoi in 3 days")
            await pilot.pause()
            await app.action_toggle_last_reasoning()
            self.assertTrue(app.ui_state.is_expanded(2))

    async def test_unmount_closes_owned_dispatcher(self) -> None:
        assert TravelChatApp is not None
        app = TravelChatApp(
            config=self._config(),
            clipboard=ClipboardService(detect_native=lambda: None),
        )
        owned = app._owned_dispatcher
        assert owned is not None
        async with app.run_test():
            pass
        self.assertTrue(owned._client.is_closed)

    def test_remote_endpoint_rejected_by_policy(self) -> None:
        assert TravelChatApp is not None
        config = self._config()
        config["backend"]["endpoint"] = "https://travel.example.com/api/v1/chat"
        with self.assertRaises(ConfigValidationError):
            TravelChatApp(config=config, dispatcher=_RuntimeFakeDispatcher())


if __name__ == "__main__":
    unittest.main()
