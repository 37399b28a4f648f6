"""Tests for the TaskManager lifecycle helper."""

from __future__ import annotations

import asyncio
import unittest

from travel_chat.task_manager import TaskManager


async def _sleep_forever(cancelled: list[bool]) -> None:
    try:
        await asyncio.sleep(9999)
    except asyncio.CancelledError:
        cancelled.append(True)
        raise


class TaskManagerTests(unittest.IsolatedAsyncioTestCase):
    """Validate named and anonymous task lifecycle management."""

    async def test_add_anonymous_and_cancel_all(self) -> None:
        tm = TaskManager()
        cancelled: list[bool] = []
        task = asyncio.create_task(_sleep_forever(cancelled))
        tm.add(task)
        await asyncio.sleep(0)  # Let the task start.
        await tm.cancel_all()
        self.assertTrue(task.done())
        self.assertTrue(cancelled)

    async def test_named_task_is_tracked_until_done(self) -> None:
        tm = TaskManager()
        gate = asyncio.Event()
        task = asyncio.create_task(gate.wait())
        tm.add(task, name="active_send")
        self.assertIs(tm.get("active_send"), task)
        self.assertTrue(tm.is_running("active_send"))

        gate.set()
        await task
        await asyncio.sleep(0)  # Let done callbacks run.
        self.assertIsNone(tm.get("active_send"))
        self.assertFalse(tm.is_running("active_send"))

    async def test_replaced_named_task_does_not_evict_newer(self) -> None:
        tm = TaskManager()
        first = asyncio.create_task(asyncio.sleep(0))
        tm.add(first, name="job")
        cancelled: list[bool] = []
        second = asyncio.create_task(_sleep_forever(cancelled))
        tm.add(second, name="job")
        await first
        await asyncio.sleep(0)
        self.assertIs(tm.get("job"), second)
        await tm.cancel_all()
        self.assertTrue(cancelled)

    async def test_failed_task_is_logged(self) -> None:
        tm = TaskManager()

        async def _boom() -> None:
            raise ValueError("bad")

        task = asyncio.create_task(_boom(), name="boom")
        with self.assertLogs("travel_chat.task_manager", level="WARNING") as logs:
            tm.add(task)
            with self.assertRaises(ValueError):
                await task
            await asyncio.sleep(0)
        self.assertTrue(any("task.exception" in line for line in logs.output))

    async def test_cancel_all_with_nothing_tracked(self) -> None:
        await TaskManager().cancel_all()


if __name__ == "__main__":
    unittest.main()
