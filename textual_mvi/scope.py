"""Task scope bound to a state holder's lifetime."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Coroutine, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


class TaskScope:
    """
    Tracks the tasks a state holder launches.

    A failing task is logged and does not affect its siblings. Cancelling
    the scope cancels every in-flight task, and later launches are refused.
    """

    __slots__ = ("_name", "_tasks", "_cancelled")

    def __init__(self, name: str | None = None) -> None:
        self._name = name or "scope"
        self._tasks: set[asyncio.Task[Any]] = set()
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def active(self) -> int:
        """Number of tasks still running."""
        return len(self._tasks)

    def launch(self, coro: Coroutine[Any, Any, T]) -> asyncio.Task[T] | None:
        """
        Run ``coro`` as a task in this scope.

        Returns None (closing the coroutine unstarted) once the scope is
        cancelled.

        Raises:
            RuntimeError: No event loop is running. The coroutine is closed.
        """
        if self._cancelled:
            logger.debug("%s: refusing launch after cancel", self._name)
            coro.close()
            return None

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            raise RuntimeError(
                f"{self._name}: tasks can only be launched from a running event loop"
            ) from None

        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "%s: unhandled error in task %s",
                self._name,
                task.get_name(),
                exc_info=exc,
            )

    def cancel(self) -> None:
        """Cancel all in-flight tasks. Irreversible."""
        self._cancelled = True
        for task in list(self._tasks):
            task.cancel()

    async def join(self) -> None:
        """Wait until every task in the scope (including ones launched meanwhile) is done."""
        current = asyncio.current_task()
        while True:
            pending = [task for task in self._tasks if task is not current]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "active"
        return f"TaskScope({self._name!r}, {state}, tasks={len(self._tasks)})"
