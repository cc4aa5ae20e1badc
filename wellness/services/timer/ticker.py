"""Periodic tick source driving a BreakTimer"""
import asyncio
import logging
from typing import Optional

from .break_timer import BreakTimer
from .collaborators import Clock, SystemClock

logger = logging.getLogger(__name__)


class TimerTicker:
    """
    Keeps a running timer in step with the clock.

    Wakes every `interval_seconds` and calls timer.tick() once for each whole
    second the clock has moved since the last tick, so a slow wake-up or a
    blocking save is made up on the next pass instead of being lost. The
    loop ends on its own once the timer is no longer active; start() it
    again after the next transition that activates the timer.
    """

    def __init__(self, timer: BreakTimer, interval_seconds: float = 1.0, clock: Optional[Clock] = None):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._timer = timer
        self._interval = interval_seconds
        self._clock = clock or SystemClock()
        self._anchor = 0.0
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Spawn the tick loop; must be called from inside the event loop"""
        if self.running:
            return
        self._anchor = self._clock.now()
        self._task = asyncio.create_task(self._run(), name=f"break-timer-{self._timer.user_id}")
        logger.debug(f"Ticker started for user {self._timer.user_id}")

    async def stop(self) -> None:
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug(f"Ticker stopped for user {self._timer.user_id}")

    async def _run(self) -> None:
        while self._timer.is_active:
            await asyncio.sleep(self._interval)
            self._catch_up()
        logger.debug(f"Ticker idle for user {self._timer.user_id} ({self._timer.phase.value})")

    def _catch_up(self) -> None:
        now = self._clock.now()
        if now < self._anchor:
            # Wall clock stepped back; count from here
            self._anchor = now
            return

        while now - self._anchor >= 1 and self._timer.is_active:
            self._anchor += 1
            try:
                self._timer.tick()
            except Exception as e:
                logger.error(f"Error ticking timer for user {self._timer.user_id}: {e}", exc_info=True)
