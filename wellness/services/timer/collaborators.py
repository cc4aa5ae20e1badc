"""Collaborator contracts the break timer depends on"""
import copy
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Protocol

from wellness.models.timer import NotificationPermission, UsageAction


# Invoked whenever a break is due; carries no payload
BreakDecisionSink = Callable[[], None]


class Clock(Protocol):
    """Wall-clock time source"""

    def now(self) -> float:
        """Current time as epoch seconds"""
        ...


class Persistence(Protocol):
    """Durable key-value store that survives reloads"""

    def save(self, key: str, value: Dict[str, Any]) -> None:
        ...

    def load(self, key: str) -> Optional[Dict[str, Any]]:
        ...

    def delete(self, key: str) -> None:
        ...


class Notifier(Protocol):
    """Permission-gated OS-level alert dispatch"""

    def request_permission(self) -> NotificationPermission:
        ...

    def dispatch(self, title: str, body: str) -> None:
        """Fire-and-forget alert; no-op when permission is not granted"""
        ...


@dataclass
class UsageDecision:
    """Result of a quota check"""
    allowed: bool
    reason: Optional[str] = None


class UsageLimiter(Protocol):
    """Subscription quota check and report"""

    async def check_allowed(self, user_id: str) -> UsageDecision:
        ...

    async def report_usage(self, user_id: str, action: UsageAction) -> None:
        ...


class SystemClock:
    """Clock backed by time.time()"""

    def now(self) -> float:
        return time.time()


class InMemoryPersistence:
    """Dict-backed persistence; state lives only as long as the process"""

    def __init__(self, initial: Optional[Dict[str, Dict[str, Any]]] = None):
        self._data: Dict[str, Dict[str, Any]] = copy.deepcopy(initial) if initial else {}

    def save(self, key: str, value: Dict[str, Any]) -> None:
        self._data[key] = copy.deepcopy(value)

    def load(self, key: str) -> Optional[Dict[str, Any]]:
        value = self._data.get(key)
        return copy.deepcopy(value) if value is not None else None

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._data
