"""Break reminder countdown state machine"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo

from pydantic import ValidationError

from wellness.models.timer import (
    NotificationPermission,
    RecoverySnapshot,
    TimerPhase,
    TimerRuntimeState,
    TimerSettings,
    TimerStatus,
    UsageAction,
)
from .collaborators import BreakDecisionSink, Clock, Notifier, Persistence, UsageLimiter
from .dispatcher import BreakDispatcher
from .errors import TimerStateError, UsageDeniedError
from .recovery import RecoveryAction, RecoveryDecision, recover_snapshot

logger = logging.getLogger(__name__)

SETTINGS_KEY = "wellness-timer-settings"
SNAPSHOT_KEY = "wellness-timer-state"
AUTO_RESTART_KEY = "wellness-auto-restart"

SNAPSHOT_EVERY_SECONDS = 10
MIN_SNOOZE_MINUTES = 1
MAX_SNOOZE_MINUTES = 30

STATUS_TEXT = {
    TimerPhase.IDLE: "Ready",
    TimerPhase.RUNNING: "Running",
    TimerPhase.PAUSED: "Paused",
    TimerPhase.SNOOZING: "Snoozing...",
    TimerPhase.SNOOZE_PAUSED: "Snooze Paused",
    TimerPhase.EXPIRED: "Break due",
}


def format_time(seconds: int) -> str:
    """Render seconds as H:MM:SS, or M:SS under an hour"""
    hours, rest = divmod(max(0, int(seconds)), 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


class BreakTimer:
    """
    Countdown to the next break for one user session.

    Transitions run synchronously on the caller's event loop turn; only the
    quota-gated ones (start, manual break) await the usage limiter, and they
    do so before touching state. State is replaced as a whole (never field by
    field), so any observer sees either the state before a transition or the
    state after it.

    Args:
        user_id: Owner of this timer, passed to the usage limiter
        clock: Time source
        persistence: Store for settings and the recovery snapshot
        notifier: OS-level alert channel
        on_break: Break-decision sink, called whenever a break is due
        usage_limiter: Optional subscription quota; None means unlimited
    """

    def __init__(
        self,
        user_id: str,
        clock: Clock,
        persistence: Persistence,
        notifier: Notifier,
        on_break: BreakDecisionSink,
        usage_limiter: Optional[UsageLimiter] = None,
    ):
        self.user_id = user_id
        self._clock = clock
        self._persistence = persistence
        self._usage_limiter = usage_limiter
        self._on_break = on_break
        self._dispatcher = BreakDispatcher(clock, notifier, on_break)
        self._snapshot_pending = False

        self.settings = self._load_settings()
        self.state = TimerRuntimeState(time_remaining=self.settings.interval_seconds)

    # ============================================================================
    # STATE ACCESSORS
    # ============================================================================

    @property
    def time_remaining(self) -> int:
        return self.state.time_remaining

    @property
    def is_active(self) -> bool:
        return self.state.is_active

    @property
    def is_snoozing(self) -> bool:
        return self.state.is_snoozing

    @property
    def notification_permission(self) -> NotificationPermission:
        return self._dispatcher.permission

    @property
    def phase(self) -> TimerPhase:
        state = self.state
        if state.is_snoozing:
            return TimerPhase.SNOOZING if state.is_active else TimerPhase.SNOOZE_PAUSED
        if state.is_active:
            return TimerPhase.RUNNING
        if state.paused_remaining is not None:
            return TimerPhase.PAUSED
        if state.time_remaining == 0:
            return TimerPhase.EXPIRED
        return TimerPhase.IDLE

    def _set_state(self, **changes: Any) -> None:
        self.state = self.state.model_copy(update=changes)

    def _idle_state(self) -> TimerRuntimeState:
        return TimerRuntimeState(time_remaining=self.settings.interval_seconds)

    # ============================================================================
    # TRANSITIONS
    # ============================================================================

    async def start(self) -> TimerPhase:
        """
        Start or resume the countdown.

        Resumes from the remaining time captured by pause() if there is one,
        otherwise loads a full interval. A no-op while already running.

        Raises:
            UsageDeniedError: The usage limiter refused another start today
        """
        if self.state.is_active:
            return self.phase

        await self._check_allowed()

        # Another handler may have started or snoozed while the quota check was pending
        if self.state.is_active:
            return self.phase

        if self.state.is_snoozing:
            self._set_state(is_active=True)
        elif self.state.paused_remaining is not None:
            self._set_state(
                time_remaining=self.state.paused_remaining,
                paused_remaining=None,
                is_active=True,
            )
        else:
            self._set_state(time_remaining=self.settings.interval_seconds, is_active=True)

        self._snapshot_pending = True
        await self._report_usage(UsageAction.TIMER_START)
        logger.info(f"Timer started for user {self.user_id}: {self.state.time_remaining}s remaining")
        return self.phase

    def pause(self) -> bool:
        """Suspend the countdown; rejected while snoozing"""
        if self.state.is_snoozing:
            logger.info("Pause rejected: snooze in progress")
            return False
        if not self.state.is_active:
            return False

        self._set_state(is_active=False, paused_remaining=self.state.time_remaining)
        self._save_snapshot()
        logger.info(f"Timer paused with {self.state.time_remaining}s remaining")
        return True

    def reset(self) -> bool:
        """Load a full interval and forget any progress; rejected while snoozing"""
        if self.state.is_snoozing:
            logger.info("Reset rejected: snooze in progress")
            return False

        self.state = self._idle_state()
        self._snapshot_pending = False
        self._delete(SNAPSHOT_KEY)
        logger.info("Timer reset")
        return True

    def snooze(self, minutes: int) -> TimerPhase:
        """
        Replace whatever countdown is in progress with a snooze countdown.

        Raises:
            ValueError: minutes outside the accepted snooze range
        """
        if isinstance(minutes, bool) or not isinstance(minutes, int):
            raise ValueError("Snooze minutes must be a whole number")
        if not MIN_SNOOZE_MINUTES <= minutes <= MAX_SNOOZE_MINUTES:
            raise ValueError(
                f"Snooze must be between {MIN_SNOOZE_MINUTES} and {MAX_SNOOZE_MINUTES} minutes"
            )

        duration = minutes * 60
        self.state = TimerRuntimeState(
            time_remaining=duration,
            is_active=True,
            is_snoozing=True,
            snooze_start_time=self._clock.now(),
            snooze_duration_seconds=duration,
        )
        self._save_snapshot()
        logger.info(f"Snooze set: {duration}s")
        return self.phase

    def cancel_snooze(self) -> bool:
        """End the snooze early; the deferred break is due right away"""
        if not self.state.is_snoozing:
            return False

        self.state = self._idle_state()
        self._snapshot_pending = False
        self._delete(SNAPSHOT_KEY)
        self._arm_auto_restart()
        logger.info("Snooze cancelled, break due now")
        self._on_break()
        return True

    def tick(self) -> bool:
        """
        Advance the countdown by one second.

        Returns:
            True if this tick expired the countdown
        """
        if not self.state.is_active:
            return False

        remaining = max(0, self.state.time_remaining - 1)
        self._set_state(time_remaining=remaining)

        if remaining == 0:
            self._expire()
            return True

        if self._snapshot_pending or remaining % SNAPSHOT_EVERY_SECONDS == 0:
            self._save_snapshot()
        return False

    def _expire(self) -> None:
        # Snapshot goes first so a reload right now cannot announce this break again
        self._delete(SNAPSHOT_KEY)
        self._snapshot_pending = False
        self.state = TimerRuntimeState(time_remaining=0)
        self._arm_auto_restart()
        logger.info(f"Timer expired for user {self.user_id}")
        self._dispatcher.dispatch(self.settings.notifications_enabled)

    async def trigger_manual_break(self) -> bool:
        """
        Take a break now, outside the countdown cycle.

        A running countdown is paused for the length of the break so it cannot
        expire into a second break before the user is back.

        Returns:
            False if the break was suppressed as a duplicate

        Raises:
            TimerStateError: A snooze is in progress
            UsageDeniedError: The usage limiter refused
        """
        if self.state.is_snoozing:
            raise TimerStateError("Break is snoozed")

        await self._check_allowed()
        await self._report_usage(UsageAction.MANUAL_BREAK)
        if self.state.is_active:
            self.pause()
        self._arm_auto_restart()
        return self._dispatcher.dispatch(self.settings.notifications_enabled)

    async def complete_break(self) -> bool:
        """
        Called when the user returns from a break.

        Whichever way the break came due, a fresh interval is started
        automatically. A break the user snoozed instead is not restarted.

        Returns:
            True if the countdown was restarted
        """
        flag = self._load(AUTO_RESTART_KEY)
        if not flag:
            return False
        self._delete(AUTO_RESTART_KEY)

        if self.state.is_snoozing:
            return False

        self.state = self._idle_state()
        await self.start()
        return True

    def recover(self) -> RecoveryDecision:
        """Rebuild countdown state from the persisted snapshot, then drop it"""
        raw = self._load(SNAPSHOT_KEY)
        decision = recover_snapshot(raw, self._clock.now(), self.settings.interval_seconds)

        if raw is not None:
            self._delete(SNAPSHOT_KEY)

        if decision.action == RecoveryAction.RESUME:
            logger.info(
                f"Recovering timer state: {decision.time_remaining}s remaining "
                f"after {decision.elapsed:.0f}s away"
            )
            self.state = TimerRuntimeState(
                time_remaining=decision.time_remaining,
                is_active=True,
                is_snoozing=decision.is_snoozing,
                snooze_start_time=decision.snooze_start_time,
                snooze_duration_seconds=decision.snooze_duration_seconds,
            )
            self._snapshot_pending = True
        elif decision.action == RecoveryAction.RESTORE_PAUSED:
            self.state = TimerRuntimeState(
                time_remaining=decision.time_remaining,
                paused_remaining=decision.time_remaining,
            )
        elif decision.action == RecoveryAction.EXPIRE_AND_NOTIFY:
            logger.info("Timer expired while away, triggering break")
            self.state = TimerRuntimeState(time_remaining=0)
            self._arm_auto_restart()
            self._dispatcher.dispatch(self.settings.notifications_enabled)
        elif decision.action == RecoveryAction.EXPIRE_SILENTLY:
            logger.info("Timer expiration too recent, skipping duplicate trigger")
            self.state = TimerRuntimeState(time_remaining=0)

        return decision

    # ============================================================================
    # SETTINGS & NOTIFICATIONS
    # ============================================================================

    def update_settings(self, **changes: Any) -> TimerSettings:
        """
        Apply a partial settings change and persist it immediately.

        Raises:
            ValidationError: The merged settings are invalid
        """
        merged = self.settings.model_dump()
        merged.update(changes)
        settings = TimerSettings.model_validate(merged)
        enabling = settings.notifications_enabled and not self.settings.notifications_enabled

        self.settings = settings
        self._save(SETTINGS_KEY, settings.model_dump(mode="json"))

        interval = settings.interval_seconds
        state = self.state
        if not state.is_active and state.paused_remaining is None and not state.is_snoozing:
            self._set_state(time_remaining=interval)
        elif not state.is_snoozing:
            paused = state.paused_remaining
            self._set_state(
                time_remaining=min(state.time_remaining, interval),
                paused_remaining=min(paused, interval) if paused is not None else None,
            )

        if enabling and self.notification_permission == NotificationPermission.DEFAULT:
            self.request_notification_permission()
        return settings

    def request_notification_permission(self) -> NotificationPermission:
        return self._dispatcher.request_permission()

    # ============================================================================
    # DERIVED VALUES
    # ============================================================================

    def progress(self) -> float:
        """Percentage of the current countdown already elapsed, within [0, 100]"""
        state = self.state
        total = state.snooze_duration_seconds if state.is_snoozing else self.settings.interval_seconds
        if total <= 0:
            return 0.0
        elapsed = total - state.time_remaining
        return min(100.0, max(0.0, elapsed / total * 100))

    def next_break_time(self) -> Optional[float]:
        if not self.state.is_active:
            return None
        return self._clock.now() + self.state.time_remaining

    def is_within_schedule(self, now: Optional[datetime] = None) -> bool:
        """Whether now falls on an active day inside the active-hour window"""
        tz = ZoneInfo(self.settings.timezone)
        if now is None:
            now = datetime.fromtimestamp(self._clock.now(), tz=timezone.utc)
        local = now.astimezone(tz) if now.tzinfo else now.replace(tzinfo=tz)
        return (
            self.settings.active_days[local.weekday()]
            and self.settings.start_hour <= local.hour < self.settings.end_hour
        )

    def status_text(self) -> str:
        return STATUS_TEXT[self.phase]

    def status(self) -> TimerStatus:
        state = self.state
        return TimerStatus(
            phase=self.phase,
            status_text=self.status_text(),
            time_remaining=state.time_remaining,
            formatted_time=format_time(state.time_remaining),
            is_active=state.is_active,
            is_snoozing=state.is_snoozing,
            snooze_start_time=state.snooze_start_time,
            snooze_duration_seconds=state.snooze_duration_seconds,
            progress=self.progress(),
            next_break_time=self.next_break_time(),
            is_within_schedule=self.is_within_schedule(),
            notification_permission=self.notification_permission,
            settings=self.settings,
        )

    # ============================================================================
    # USAGE LIMITS
    # ============================================================================

    async def _check_allowed(self) -> None:
        if self._usage_limiter is None:
            return
        try:
            decision = await self._usage_limiter.check_allowed(self.user_id)
        except Exception as e:
            # Quota backend unreachable: the countdown itself is local, keep it usable
            logger.error(f"Usage check failed for user {self.user_id}, allowing: {e}")
            return
        if not decision.allowed:
            reason = decision.reason or "Usage limit reached"
            logger.info(f"Usage denied for user {self.user_id}: {reason}")
            raise UsageDeniedError(reason)

    async def _report_usage(self, action: UsageAction) -> None:
        if self._usage_limiter is None:
            return
        try:
            await self._usage_limiter.report_usage(self.user_id, action)
        except Exception as e:
            logger.error(f"Failed to report {action.value} usage for user {self.user_id}: {e}")

    # ============================================================================
    # PERSISTENCE
    # ============================================================================

    def _load_settings(self) -> TimerSettings:
        raw = self._load(SETTINGS_KEY)
        if raw is not None:
            try:
                return TimerSettings.model_validate(raw)
            except ValidationError as e:
                logger.warning(f"Discarding malformed timer settings: {e.error_count()} validation error(s)")

        settings = TimerSettings()
        self._save(SETTINGS_KEY, settings.model_dump(mode="json"))
        return settings

    def _arm_auto_restart(self) -> None:
        self._save(AUTO_RESTART_KEY, {"enabled": True})

    def _save_snapshot(self) -> None:
        state = self.state
        snapshot = RecoverySnapshot(
            time_remaining=state.time_remaining,
            is_active=state.is_active,
            is_snoozing=state.is_snoozing,
            snooze_duration_seconds=state.snooze_duration_seconds,
            snooze_start_time=state.snooze_start_time,
            last_update_timestamp=self._clock.now(),
            interval_minutes=self.settings.interval_minutes,
        )
        self._save(SNAPSHOT_KEY, snapshot.model_dump(mode="json"))
        self._snapshot_pending = False

    def _load(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            value = self._persistence.load(key)
        except Exception as e:
            logger.error(f"Error loading {key}: {e}")
            return None
        if value is not None and not isinstance(value, dict):
            logger.warning(f"Ignoring non-object value stored under {key}")
            return None
        return value

    def _save(self, key: str, value: Dict[str, Any]) -> None:
        try:
            self._persistence.save(key, value)
        except Exception as e:
            logger.error(f"Error saving {key}: {e}")

    def _delete(self, key: str) -> None:
        try:
            self._persistence.delete(key)
        except Exception as e:
            logger.error(f"Error deleting {key}: {e}")
