"""Unit tests for RepeatingTask."""

import asyncio

import pytest

from gps_bridge.coordinator import RepeatingTask
from tests.infrastructure.mocks.bridge_mocks import wait_until


class TestRepeatingTask:

    @pytest.mark.asyncio
    async def test_runs_immediately_then_repeats(self):
        calls = []

        async def action():
            calls.append(asyncio.get_running_loop().time())

        task = RepeatingTask(action, 0.01)
        task.start()
        await wait_until(lambda: len(calls) >= 3)
        await task.stop()

        assert calls[1] - calls[0] >= 0.009

    @pytest.mark.asyncio
    async def test_stop_prevents_further_runs(self):
        calls = []

        async def action():
            calls.append(1)

        task = RepeatingTask(action, 0.01)
        task.start()
        await wait_until(lambda: calls)
        await task.stop()
        count = len(calls)
        await asyncio.sleep(0.05)

        assert len(calls) == count
        assert not task.is_running

    @pytest.mark.asyncio
    async def test_failures_do_not_stop_schedule(self):
        calls = []

        async def flaky():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("first run fails")

        task = RepeatingTask(flaky, 0.01)
        task.start()
        await wait_until(lambda: len(calls) >= 2)
        await task.stop()

    @pytest.mark.asyncio
    async def test_start_twice_keeps_one_task(self):
        calls = []

        async def action():
            calls.append(1)

        task = RepeatingTask(action, 10)
        task.start()
        task.start()
        await asyncio.sleep(0.01)
        await task.stop()

        assert calls == [1]

    def test_rejects_non_positive_interval(self):
        async def action():
            pass

        with pytest.raises(ValueError):
            RepeatingTask(action, 0)
