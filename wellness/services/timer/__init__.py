"""Break reminder timer"""
from .break_timer import BreakTimer, format_time
from .collaborators import (
    BreakDecisionSink,
    Clock,
    InMemoryPersistence,
    Notifier,
    Persistence,
    SystemClock,
    UsageDecision,
    UsageLimiter,
)
from .dispatcher import BreakDispatcher
from .errors import TimerError, TimerSessionError, TimerStateError, UsageDeniedError
from .recovery import RecoveryAction, RecoveryDecision, recover_snapshot
from .session_manager import PendingBreaks, TimerSession, TimerSessionManager
from .ticker import TimerTicker

__all__ = [
    "BreakTimer",
    "format_time",
    "BreakDecisionSink",
    "Clock",
    "InMemoryPersistence",
    "Notifier",
    "Persistence",
    "SystemClock",
    "UsageDecision",
    "UsageLimiter",
    "BreakDispatcher",
    "TimerError",
    "TimerSessionError",
    "TimerStateError",
    "UsageDeniedError",
    "RecoveryAction",
    "RecoveryDecision",
    "recover_snapshot",
    "PendingBreaks",
    "TimerSession",
    "TimerSessionManager",
    "TimerTicker",
]
