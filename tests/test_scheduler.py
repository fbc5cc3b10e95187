from __future__ import annotations

import asyncio

import pytest

from core.scheduler import AsyncioScheduler, CancellationToken


def test_runs_immediately_then_repeats() -> None:
    calls: list[int] = []

    async def scenario() -> None:
        scheduler = AsyncioScheduler()

        async def callback() -> None:
            calls.append(1)

        task = scheduler.schedule_repeating(0.01, callback)
        await asyncio.sleep(0)
        assert len(calls) == 1
        await asyncio.sleep(0.05)
        task.cancel()
        await scheduler.drain()

    asyncio.run(scenario())
    assert len(calls) >= 2


def test_cancel_stops_future_ticks() -> None:
    calls: list[int] = []

    async def scenario() -> None:
        scheduler = AsyncioScheduler()

        async def callback() -> None:
            calls.append(1)

        task = scheduler.schedule_repeating(0.01, callback)
        await asyncio.sleep(0)
        task.cancel()
        assert task.cancelled
        count = len(calls)
        await asyncio.sleep(0.05)
        assert len(calls) == count

    asyncio.run(scenario())


def test_slow_ticks_overlap() -> None:
    peak = 0
    running = 0

    async def scenario() -> None:
        nonlocal peak
        scheduler = AsyncioScheduler()

        async def callback() -> None:
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.05)
            running -= 1

        task = scheduler.schedule_repeating(0.01, callback)
        await asyncio.sleep(0.04)
        task.cancel()
        await scheduler.drain()
        assert scheduler.in_flight == 0

    asyncio.run(scenario())
    assert peak > 1


def test_failing_tick_is_logged_and_schedule_continues(caplog) -> None:
    calls: list[int] = []

    async def scenario() -> None:
        scheduler = AsyncioScheduler()

        async def callback() -> None:
            calls.append(1)
            raise RuntimeError("boom")

        task = scheduler.schedule_repeating(0.01, callback)
        await asyncio.sleep(0.035)
        task.cancel()
        await scheduler.drain()

    asyncio.run(scenario())
    assert len(calls) >= 2
    assert "Scheduled callback raised" in caplog.text


def test_invalid_interval_is_rejected() -> None:
    async def noop() -> None:
        return None

    with pytest.raises(ValueError):
        AsyncioScheduler().schedule_repeating(0, noop)


def test_cancellation_token() -> None:
    token = CancellationToken()
    assert not token.cancelled
    token.cancel()
    assert token.cancelled
