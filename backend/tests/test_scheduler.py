from __future__ import annotations

import asyncio

import pytest

from signalfeed.core.scheduler import PollingTask


class TestPollingTask:

    def test_interval_must_be_positive(self):
        async def tick():
            pass

        with pytest.raises(ValueError):
            PollingTask(tick, 0)

    async def test_runs_until_stopped(self):
        ticks = []

        async def tick():
            ticks.append(1)

        task = PollingTask(tick, 0.05)
        task.start()
        assert task.running
        await asyncio.sleep(0.3)
        task.stop()
        assert not task.running

        seen = len(ticks)
        assert seen >= 2
        await asyncio.sleep(0.15)
        assert len(ticks) == seen

    async def test_start_twice_keeps_one_timer(self):
        async def tick():
            pass

        task = PollingTask(tick, 60)
        task.start()
        task.start()
        assert len(task._scheduler.get_jobs()) == 1
        task.reset()
        assert len(task._scheduler.get_jobs()) == 1
        task.stop()

    def test_stop_before_start_is_safe(self):
        async def tick():
            pass

        task = PollingTask(tick, 1)
        task.stop()
        assert not task.running
