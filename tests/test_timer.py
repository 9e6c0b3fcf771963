from __future__ import annotations

import asyncio
from unittest import IsolatedAsyncioTestCase

from quizrooms.timer import call_later, countdown, spawn, stop_timer


class TimerTests(IsolatedAsyncioTestCase):
    async def test_countdown_ticks_then_expires(self):
        remaining = [3]
        seen: list[int] = []
        expired = asyncio.Event()

        async def tick():
            remaining[0] -= 1
            seen.append(remaining[0])
            return remaining[0]

        async def on_expired():
            expired.set()

        await countdown(0.001, tick, on_expired)

        self.assertEqual(seen, [2, 1, 0])
        self.assertTrue(expired.is_set())

    async def test_countdown_stops_when_tick_returns_none(self):
        expired = asyncio.Event()

        async def tick():
            return None

        async def on_expired():
            expired.set()

        await countdown(0.001, tick, on_expired)

        self.assertFalse(expired.is_set())

    async def test_stop_timer_cancels_pending_callback(self):
        fired = []

        async def callback():
            fired.append(True)

        task = call_later(0.05, callback)
        await stop_timer(task)
        await asyncio.sleep(0.08)

        self.assertTrue(task.cancelled())
        self.assertEqual(fired, [])

    async def test_stop_timer_ignores_current_and_finished_tasks(self):
        async def stop_self():
            await stop_timer(asyncio.current_task())
            return "fini"

        task = spawn(stop_self())
        self.assertEqual(await task, "fini")
        await stop_timer(task)
        await stop_timer(None)

    async def test_call_later_runs_callback(self):
        fired = asyncio.Event()

        async def callback():
            fired.set()

        task = call_later(0.001, callback, name="test")
        await asyncio.wait_for(fired.wait(), 1)
        await task
        self.assertEqual(task.get_name(), "test")
