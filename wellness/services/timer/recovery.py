"""Recovery-on-load decision for a persisted countdown snapshot"""
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import ValidationError

from wellness.models.timer import RecoverySnapshot

logger = logging.getLogger(__name__)

# Expiry older than this is treated as missed while away; anything newer was
# already announced by the tick that wrote the snapshot.
RECOVERY_GRACE_SECONDS = 5.0


class RecoveryAction(str, Enum):
    NONE = "none"
    RESUME = "resume"
    RESTORE_PAUSED = "restore_paused"
    EXPIRE_AND_NOTIFY = "expire_and_notify"
    EXPIRE_SILENTLY = "expire_silently"
    DISCARD = "discard"


@dataclass
class RecoveryDecision:
    action: RecoveryAction
    time_remaining: int = 0
    is_snoozing: bool = False
    snooze_duration_seconds: int = 0
    snooze_start_time: Optional[float] = None
    elapsed: float = 0.0


def recover_snapshot(
    raw: Optional[Dict[str, Any]],
    now: float,
    interval_seconds: int,
) -> RecoveryDecision:
    """
    Decide how to rebuild countdown state from a stored snapshot.

    Args:
        raw: Snapshot dict as loaded from persistence, or None
        now: Current clock time (epoch seconds)
        interval_seconds: Currently configured interval

    Returns:
        RecoveryDecision describing the state to apply
    """
    if raw is None:
        return RecoveryDecision(RecoveryAction.NONE)

    try:
        snapshot = RecoverySnapshot.model_validate(raw)
    except ValidationError as e:
        logger.warning(f"Discarding malformed timer snapshot: {e.error_count()} validation error(s)")
        return RecoveryDecision(RecoveryAction.DISCARD)

    # Clock went backwards (e.g. host time corrected); count it as no time passed
    elapsed = max(0.0, now - snapshot.last_update_timestamp)

    if not snapshot.is_active:
        if snapshot.is_snoozing:
            # A paused snooze is never written deliberately
            logger.warning("Discarding snapshot of a suspended snooze")
            return RecoveryDecision(RecoveryAction.DISCARD, elapsed=elapsed)
        remaining = min(snapshot.time_remaining, interval_seconds)
        if remaining <= 0:
            return RecoveryDecision(RecoveryAction.DISCARD, elapsed=elapsed)
        return RecoveryDecision(RecoveryAction.RESTORE_PAUSED, time_remaining=remaining, elapsed=elapsed)

    adjusted = max(0, math.floor(snapshot.time_remaining - elapsed))

    if adjusted > 0:
        limit = snapshot.snooze_duration_seconds if snapshot.is_snoozing else interval_seconds
        return RecoveryDecision(
            RecoveryAction.RESUME,
            time_remaining=min(adjusted, limit),
            is_snoozing=snapshot.is_snoozing,
            snooze_duration_seconds=snapshot.snooze_duration_seconds if snapshot.is_snoozing else 0,
            snooze_start_time=snapshot.snooze_start_time if snapshot.is_snoozing else None,
            elapsed=elapsed,
        )

    if elapsed > RECOVERY_GRACE_SECONDS:
        return RecoveryDecision(RecoveryAction.EXPIRE_AND_NOTIFY, elapsed=elapsed)
    return RecoveryDecision(RecoveryAction.EXPIRE_SILENTLY, elapsed=elapsed)
