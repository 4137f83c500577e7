import asyncio

import pytest

from quota_watcher.polling_engine_helpers import IntervalTimer, OneShotTimer
from tests.helpers.quota_fakes import wait_until


@pytest.mark.asyncio
async def test_interval_timer_repeats_until_cancelled():
    calls = []

    async def tick():
        calls.append(1)

    timer = IntervalTimer("test")
    timer.start(0.01, tick)
    await wait_until(lambda: len(calls) >= 3)

    timer.cancel()
    count = len(calls)
    await asyncio.sleep(0.05)

    assert timer.is_active is False
    assert len(calls) == count


@pytest.mark.asyncio
async def test_interval_timer_survives_callback_failure():
    calls = []

    async def flaky():
        calls.append(1)
        raise RuntimeError("boom")

    timer = IntervalTimer("flaky")
    timer.start(0.01, flaky)
    await wait_until(lambda: len(calls) >= 2)
    timer.cancel()


@pytest.mark.asyncio
async def test_restart_replaces_previous_schedule():
    first, second = [], []

    async def on_first():
        first.append(1)

    async def on_second():
        second.append(1)

    timer = IntervalTimer("restart")
    timer.start(0.05, on_first)
    timer.start(0.01, on_second)
    await wait_until(lambda: len(second) >= 2)
    timer.cancel()

    assert first == []


@pytest.mark.asyncio
async def test_one_shot_runs_once():
    calls = []

    async def fire():
        calls.append(1)

    timer = OneShotTimer("once")
    timer.schedule(0.01, fire)
    assert timer.is_active
    await wait_until(lambda: calls == [1])
    await asyncio.sleep(0.03)

    assert calls == [1]
    assert timer.is_active is False


@pytest.mark.asyncio
async def test_one_shot_cancel_before_fire():
    calls = []

    async def fire():
        calls.append(1)

    timer = OneShotTimer("cancelled")
    timer.schedule(0.02, fire)
    timer.cancel()
    await asyncio.sleep(0.05)

    assert calls == []


@pytest.mark.asyncio
async def test_cancel_does_not_abort_running_callback():
    started = asyncio.Event()
    release = asyncio.Event()
    finished = []

    async def slow():
        started.set()
        await release.wait()
        finished.append(1)

    timer = IntervalTimer("busy")
    timer.start(0.01, slow)
    await asyncio.wait_for(started.wait(), timeout=1.0)

    timer.cancel()
    release.set()
    await wait_until(lambda: finished == [1])
    await asyncio.sleep(0.03)

    assert finished == [1]
