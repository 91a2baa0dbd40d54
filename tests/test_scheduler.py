"""Tests for RearmingTimer."""

import asyncio

from equipsync.common.scheduler import RearmingTimer


def test_fires_once_after_delay():
    calls = []

    async def tick():
        calls.append(1)

    async def scenario():
        timer = RearmingTimer(tick, name="test")
        timer.schedule(0.01)
        assert timer.pending
        await asyncio.sleep(0.05)
        return timer

    timer = asyncio.run(scenario())
    assert calls == [1]
    assert not timer.pending
    assert timer.fire_count == 1


def test_schedule_replaces_pending_run():
    calls = []

    async def tick():
        calls.append(1)

    async def scenario():
        timer = RearmingTimer(tick)
        timer.schedule(0.01)
        timer.schedule(0.02)
        await asyncio.sleep(0.06)

    asyncio.run(scenario())
    assert calls == [1]


def test_callback_error_is_contained():
    async def tick():
        raise ValueError("bad tick")

    async def scenario():
        timer = RearmingTimer(tick)
        timer.schedule(0)
        await asyncio.sleep(0.02)
        return timer

    timer = asyncio.run(scenario())
    assert timer.error_count == 1
    assert timer.fire_count == 0


def test_stop_cancels_pending_and_running():
    started = []

    async def slow_tick():
        started.append(1)
        await asyncio.sleep(10)

    async def scenario():
        timer = RearmingTimer(slow_tick)
        timer.schedule(0)
        await asyncio.sleep(0.01)
        assert timer.running
        await timer.stop()
        return timer

    timer = asyncio.run(scenario())
    assert started == [1]
    assert not timer.running
    assert not timer.pending


def test_get_stats():
    async def tick():
        pass

    async def scenario():
        timer = RearmingTimer(tick, name="circuits.poll")
        timer.schedule(30)
        stats = timer.get_stats()
        timer.cancel()
        return stats

    stats = asyncio.run(scenario())
    assert stats["name"] == "circuits.poll"
    assert stats["pending"] is True
    assert 0 < stats["due_in_s"] <= 30
