import asyncio

import pytest

from wellness.models.timer import TimerPhase
from wellness.services.timer import (
    BreakTimer,
    InMemoryPersistence,
    PendingBreaks,
    TimerSessionError,
    TimerSessionManager,
    TimerTicker,
)
from wellness.services.timer.break_timer import SNAPSHOT_KEY

from tests.fakes import BreakSink, RecordingNotifier, TimerHarness, run_seconds

FULL = 45 * 60


@pytest.fixture
def harness():
    return TimerHarness()


def test_one_session_per_user(harness):
    manager = TimerSessionManager(harness.factory, harness.clock, tick_seconds=0)

    async def scenario():
        first = await manager.get("a")
        again = await manager.get("a")
        other = await manager.get("b")
        return first, again, other

    first, again, other = asyncio.run(scenario())
    assert first is again
    assert first is not other
    assert harness.built == ["a", "b"]
    assert len(manager) == 2
    assert first.ticker is None


def test_new_session_recovers_snapshot(harness):
    harness.stores["a"] = InMemoryPersistence({SNAPSHOT_KEY: {
        "time_remaining": 600,
        "is_active": True,
        "last_update_timestamp": harness.clock.now() - 100,
        "interval_minutes": 45,
    }})
    manager = TimerSessionManager(harness.factory, harness.clock, tick_seconds=0)

    session = asyncio.run(manager.get("a"))
    assert session.timer.phase == TimerPhase.RUNNING
    assert session.timer.time_remaining == 500


def test_breaks_queue_until_acknowledged(harness):
    manager = TimerSessionManager(harness.factory, harness.clock, tick_seconds=0)
    session = asyncio.run(manager.get("a"))

    session.timer.snooze(1)
    for _ in range(60):
        harness.clock.advance(1)
        session.timer.tick()

    assert session.breaks.due == [harness.clock.now()]
    assert session.breaks.acknowledge() == 1
    assert session.breaks.due == []


def test_shutdown_rejects_new_sessions(harness):
    manager = TimerSessionManager(harness.factory, harness.clock, tick_seconds=0)

    async def scenario():
        await manager.get("a")
        await manager.shutdown()
        await manager.get("b")

    with pytest.raises(TimerSessionError):
        asyncio.run(scenario())
    assert len(manager) == 0


def test_session_ticker_runs_only_while_counting_down(harness):
    manager = TimerSessionManager(harness.factory, harness.clock, tick_seconds=0.001)

    async def scenario():
        session = await manager.get("a")
        idle_before_start = not session.ticker.running

        await session.timer.start()
        session.ensure_ticking()
        harness.clock.advance(10)
        await asyncio.sleep(0.05)
        remaining = session.timer.time_remaining

        session.timer.pause()
        await asyncio.sleep(0.05)
        stopped_after_pause = not session.ticker.running

        await manager.shutdown()
        return idle_before_start, remaining, stopped_after_pause

    assert asyncio.run(scenario()) == (True, FULL - 10, True)


def test_ticker_counts_clock_seconds_not_wakeups(harness):
    timer = harness.factory("a", PendingBreaks(harness.clock))
    ticker = TimerTicker(timer, 0.001, clock=harness.clock)

    async def scenario():
        await timer.start()
        ticker.start()
        seen = []
        for step in (5, 2.5, 0.5):
            harness.clock.advance(step)
            await asyncio.sleep(0.05)
            seen.append(timer.time_remaining)
        await ticker.stop()
        return seen

    assert asyncio.run(scenario()) == [FULL - 5, FULL - 7, FULL - 8]


class SlowPersistence(InMemoryPersistence):
    """Every save holds the loop for a quarter of a second"""

    def __init__(self, clock):
        super().__init__()
        self._clock = clock

    def save(self, key, value):
        self._clock.advance(0.25)
        super().save(key, value)


def test_ticker_makes_up_time_spent_saving(harness):
    timer = BreakTimer("a", harness.clock, SlowPersistence(harness.clock), RecordingNotifier(), BreakSink())
    ticker = TimerTicker(timer, 0.001, clock=harness.clock)

    async def scenario():
        await timer.start()
        started_at = harness.clock.now()
        ticker.start()
        harness.clock.advance(3)
        await asyncio.sleep(0.05)
        harness.clock.advance(0.75)
        await asyncio.sleep(0.05)
        await ticker.stop()
        return harness.clock.now() - started_at

    elapsed = asyncio.run(scenario())
    assert elapsed == 4.0
    assert timer.time_remaining == FULL - 4


def test_ticker_ends_when_countdown_expires(harness):
    breaks = PendingBreaks(harness.clock)
    timer = harness.factory("a", breaks)
    ticker = TimerTicker(timer, 0.001, clock=harness.clock)

    async def scenario():
        await timer.start()
        ticker.start()
        harness.clock.advance(FULL + 30)
        await asyncio.sleep(0.05)
        return ticker.running

    assert asyncio.run(scenario()) is False
    assert timer.phase == TimerPhase.EXPIRED
    assert len(breaks.due) == 1


def test_idle_sessions_are_evicted(harness):
    manager = TimerSessionManager(harness.factory, harness.clock, tick_seconds=0, idle_seconds=60)

    async def scenario():
        await manager.get("a")
        running = await manager.get("b")
        await running.timer.start()

        harness.clock.advance(61)
        await manager.get("c")
        count_after_sweep = len(manager)
        await manager.get("a")
        return count_after_sweep

    assert asyncio.run(scenario()) == 2
    assert harness.built == ["a", "b", "c", "a"]


def test_evicted_paused_timer_comes_back_paused(harness):
    manager = TimerSessionManager(harness.factory, harness.clock, tick_seconds=0, idle_seconds=60)

    async def scenario():
        session = await manager.get("a")
        await session.timer.start()
        run_seconds(session.timer, harness.clock, 100)
        session.timer.pause()

        harness.clock.advance(3600)
        await manager.get("b")
        return await manager.get("a")

    session = asyncio.run(scenario())
    assert harness.built == ["a", "b", "a"]
    assert session.timer.phase == TimerPhase.PAUSED
    assert session.timer.time_remaining == FULL - 100


def test_ticker_rejects_non_positive_interval(harness):
    timer = harness.factory("a", PendingBreaks(harness.clock))
    with pytest.raises(ValueError):
        TimerTicker(timer, 0)
