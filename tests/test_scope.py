"""Tests for the task scope."""

import asyncio
import logging

import pytest

from textual_mvi import TaskScope


class TestTaskScope:
    """Tests for launch, cancel and join."""

    async def test_launch_runs_task(self):
        scope = TaskScope("test")
        done = []

        async def work():
            done.append(True)

        task = scope.launch(work())
        await scope.join()

        assert task.done()
        assert done == [True]
        assert scope.active == 0

    async def test_failure_is_logged_and_isolated(self, caplog):
        scope = TaskScope("test")
        done = []

        async def boom():
            raise RuntimeError("boom")

        async def fine():
            await asyncio.sleep(0)
            done.append(True)

        with caplog.at_level(logging.ERROR, logger="textual_mvi.scope"):
            scope.launch(boom())
            scope.launch(fine())
            await scope.join()

        assert done == [True]
        assert "unhandled error" in caplog.text

    async def test_cancel_stops_in_flight_tasks(self):
        scope = TaskScope("test")
        started = asyncio.Event()

        async def forever():
            started.set()
            await asyncio.Event().wait()

        task = scope.launch(forever())
        await started.wait()

        scope.cancel()
        await asyncio.sleep(0)

        assert task.cancelled()
        assert scope.cancelled

    async def test_launch_after_cancel_is_refused(self):
        scope = TaskScope("test")
        scope.cancel()

        async def work():
            raise AssertionError("should not run")

        assert scope.launch(work()) is None

    async def test_join_from_inside_a_task(self):
        scope = TaskScope("test")

        async def waits_for_siblings():
            await scope.join()
            return "joined"

        task = scope.launch(waits_for_siblings())
        assert await task == "joined"

    def test_launch_without_running_loop(self):
        scope = TaskScope("test")

        async def work():
            raise AssertionError("should not run")

        coro = work()
        with pytest.raises(RuntimeError, match="running event loop"):
            scope.launch(coro)

        assert coro.cr_frame is None  # closed, never started
        assert scope.active == 0
