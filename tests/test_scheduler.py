# Area: Session Tests
"""Tests for PeriodicTask and TaskScope."""

import asyncio

import pytest

from matchplay_scoring._session.scheduler import PeriodicTask, TaskScope


class TestPeriodicTask:
    def test_interval_must_be_positive(self):
        with pytest.raises(ValueError):
            PeriodicTask("poll", 0, lambda: None)

    def test_runs_repeatedly_until_cancelled(self):
        async def scenario():
            calls = []
            task = PeriodicTask("tick", 0.01, lambda: calls.append(1))
            task.start()
            await asyncio.sleep(0.055)
            handle = task.cancel()
            await asyncio.gather(handle, return_exceptions=True)
            count = len(calls)
            await asyncio.sleep(0.03)
            return count, len(calls), task.running

        count, later, running = asyncio.run(scenario())
        assert count >= 2
        assert later == count
        assert running is False

    def test_awaits_coroutine_callbacks(self):
        async def scenario():
            calls = []

            async def tick():
                calls.append(1)

            task = PeriodicTask("tick", 0.01, tick)
            task.start()
            await asyncio.sleep(0.035)
            await asyncio.gather(task.cancel(), return_exceptions=True)
            return calls

        assert len(asyncio.run(scenario())) >= 1

    def test_callback_errors_do_not_stop_loop(self):
        async def scenario():
            calls = []

            def tick():
                calls.append(1)
                raise RuntimeError("boom")

            task = PeriodicTask("tick", 0.01, tick)
            task.start()
            await asyncio.sleep(0.045)
            await asyncio.gather(task.cancel(), return_exceptions=True)
            return calls

        assert len(asyncio.run(scenario())) >= 2


class TestTaskScope:
    def test_close_cancels_everything(self):
        async def scenario():
            scope = TaskScope()
            poll = scope.every("poll", 0.01, lambda: None)
            oneshot = scope.spawn("replay", asyncio.sleep(10))
            await asyncio.sleep(0)
            await scope.close()
            return poll.running, oneshot.cancelled()

        poll_running, oneshot_cancelled = asyncio.run(scenario())
        assert poll_running is False
        assert oneshot_cancelled is True

    def test_every_keeps_existing_task(self):
        async def scenario():
            scope = TaskScope()
            first = scope.every("poll", 0.01, lambda: None)
            second = scope.every("poll", 0.01, lambda: None)
            await scope.close()
            return first is second

        assert asyncio.run(scenario()) is True

    def test_cancel_by_name(self):
        async def scenario():
            scope = TaskScope()
            scope.every("lock-refresh", 0.01, lambda: None)
            scope.cancel("lock-refresh")
            running = scope.is_running("lock-refresh")
            await scope.close()
            return running

        assert asyncio.run(scenario()) is False

    def test_closed_scope_rejects_new_tasks(self):
        async def scenario():
            scope = TaskScope()
            await scope.close()
            with pytest.raises(RuntimeError):
                scope.every("poll", 1, lambda: None)
            coro = asyncio.sleep(0)
            with pytest.raises(RuntimeError):
                scope.spawn("replay", coro)
            coro.close()

        asyncio.run(scenario())
