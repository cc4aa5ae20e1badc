"""Per-user break timer sessions"""
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from .break_timer import BreakTimer
from .collaborators import BreakDecisionSink, Clock
from .errors import TimerSessionError
from .ticker import TimerTicker

logger = logging.getLogger(__name__)

TimerFactory = Callable[[str, BreakDecisionSink], BreakTimer]

DEFAULT_IDLE_SECONDS = 30 * 60


class PendingBreaks:
    """Break-decision sink that queues due breaks until the client picks them up"""

    def __init__(self, clock: Clock):
        self._clock = clock
        self._due: List[float] = []

    def __call__(self) -> None:
        self._due.append(self._clock.now())

    @property
    def due(self) -> List[float]:
        return list(self._due)

    def acknowledge(self) -> int:
        count = len(self._due)
        self._due.clear()
        return count


@dataclass
class TimerSession:
    user_id: str
    timer: BreakTimer
    breaks: PendingBreaks
    ticker: Optional[TimerTicker] = field(default=None)
    last_seen: float = 0.0

    def ensure_ticking(self) -> None:
        """Start the ticker if the timer is counting down and nothing drives it yet"""
        if self.ticker is not None and self.timer.is_active and not self.ticker.running:
            self.ticker.start()


class TimerSessionManager:
    """
    Owns exactly one BreakTimer per user in this process.

    Sessions whose timer is not counting down are dropped once nobody has
    asked for them for `idle_seconds`; their settings and any paused
    countdown are already persisted, so the next request rebuilds them.

    Several server processes sharing one store are last-writer-wins on the
    persisted snapshot; there is no cross-process coordination.
    """

    def __init__(
        self,
        factory: TimerFactory,
        clock: Clock,
        tick_seconds: float = 1.0,
        idle_seconds: Optional[float] = DEFAULT_IDLE_SECONDS,
    ):
        self._factory = factory
        self._clock = clock
        self._tick_seconds = tick_seconds
        self._idle_seconds = idle_seconds
        self._sessions: Dict[str, TimerSession] = {}
        self._closed = False

    def __len__(self) -> int:
        return len(self._sessions)

    async def get(self, user_id: str) -> TimerSession:
        """Return the user's session, creating and recovering it on first use"""
        if self._closed:
            raise TimerSessionError("Timer sessions are shut down")

        now = self._clock.now()
        await self.evict_idle(now, keep=user_id)

        session = self._sessions.get(user_id)
        if session is not None:
            session.last_seen = now
            return session

        breaks = PendingBreaks(self._clock)
        timer = self._factory(user_id, breaks)
        session = TimerSession(user_id=user_id, timer=timer, breaks=breaks, last_seen=now)
        self._sessions[user_id] = session

        if timer.settings.notifications_enabled:
            timer.request_notification_permission()
        timer.recover()

        if self._tick_seconds > 0:
            session.ticker = TimerTicker(timer, self._tick_seconds, self._clock)
            session.ensure_ticking()

        logger.info(f"Timer session created for user {user_id} ({timer.phase.value})")
        return session

    async def evict_idle(self, now: float, keep: Optional[str] = None) -> int:
        """Close sessions that are not counting down and have not been used for a while"""
        if self._idle_seconds is None:
            return 0
        stale = [
            user_id for user_id, session in self._sessions.items()
            if user_id != keep
            and not session.timer.is_active
            and now - session.last_seen >= self._idle_seconds
        ]
        for user_id in stale:
            await self.close(user_id)
        if stale:
            logger.info(f"Evicted {len(stale)} idle timer session(s)")
        return len(stale)

    async def close(self, user_id: str) -> None:
        session = self._sessions.pop(user_id, None)
        if session and session.ticker:
            await session.ticker.stop()

    async def shutdown(self) -> None:
        self._closed = True
        for user_id in list(self._sessions):
            await self.close(user_id)
        logger.info("All timer sessions stopped")
