# Area: Session
"""
matchplay_scoring._session.scheduler — Scoped periodic tasks
============================================================

Cancellable asyncio task handles tied to the lifetime of a scoring
session. Polling, lock heartbeats and lock-event watching all run as
PeriodicTask instances owned by a TaskScope; closing the scope cancels
and awaits every task it started.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Set

logger = logging.getLogger("matchplay_scoring.scheduler")

Callback = Callable[[], Any]


class PeriodicTask:
    """
    Runs ``callback`` every ``interval`` seconds until cancelled.

    The first run happens one interval after start(). Errors raised by
    the callback are logged and the loop keeps going.
    """

    def __init__(self, name: str, interval: float, callback: Callback):
        if interval <= 0:
            raise ValueError(f"Interval must be positive, got {interval}")
        self.name = name
        self.interval = interval
        self.callback = callback
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self.name)

    def cancel(self) -> Optional[asyncio.Task]:
        """Request cancellation; returns the task so callers can await it."""
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
        return task

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                result = self.callback()
                if inspect.isawaitable(result):
                    await result
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Task {self.name} failed: {e}", exc_info=True)


class TaskScope:
    """
    Owns every background task of one scoring session.

    Usage:
        scope = TaskScope()
        scope.every("poll", 10, session.refetch)
        scope.spawn("replay", session.process_queue())
        await scope.close()
    """

    def __init__(self):
        self._periodic: Dict[str, PeriodicTask] = {}
        self._oneshots: Set[asyncio.Task] = set()
        self._closed = False

    def every(self, name: str, interval: float, callback: Callback) -> PeriodicTask:
        """Start (or keep) a named periodic task."""
        if self._closed:
            raise RuntimeError("Task scope is closed")
        existing = self._periodic.get(name)
        if existing is not None and existing.running:
            return existing
        task = PeriodicTask(name, interval, callback)
        task.start()
        self._periodic[name] = task
        logger.debug("Started %s every %ss", name, interval)
        return task

    def spawn(self, name: str, coro: Awaitable) -> asyncio.Task:
        """Run a one-shot coroutine inside the scope."""
        if self._closed:
            raise RuntimeError("Task scope is closed")
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._oneshots.add(task)
        task.add_done_callback(self._oneshots.discard)
        return task

    def cancel(self, name: str) -> None:
        task = self._periodic.pop(name, None)
        if task is not None:
            task.cancel()
            logger.debug("Cancelled %s", name)

    def is_running(self, name: str) -> bool:
        task = self._periodic.get(name)
        return task is not None and task.running

    async def close(self) -> None:
        """Cancel every task and wait for them to finish."""
        self._closed = True
        pending = [t.cancel() for t in self._periodic.values()]
        self._periodic.clear()
        for task in list(self._oneshots):
            task.cancel()
            pending.append(task)
        pending = [t for t in pending if t is not None]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
