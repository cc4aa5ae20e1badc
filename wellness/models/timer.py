"""Break timer domain models"""
from enum import Enum
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


DEFAULT_ACTIVE_DAYS = [True, True, True, True, True, False, False]  # Mon-Fri


class TimerPhase(str, Enum):
    """Break timer phase derived from runtime state"""
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    SNOOZING = "snoozing"
    SNOOZE_PAUSED = "snooze_paused"
    EXPIRED = "expired"


class NotificationPermission(str, Enum):
    """OS-level notification permission"""
    DEFAULT = "default"
    GRANTED = "granted"
    DENIED = "denied"


class UsageAction(str, Enum):
    """Actions counted against a subscription plan"""
    TIMER_START = "timer_start"
    MANUAL_BREAK = "manual_break"


class TimerSettings(BaseModel):
    """User-configurable break schedule"""
    interval_minutes: int = Field(45, ge=1, le=120)
    active_days: List[bool] = Field(default_factory=lambda: list(DEFAULT_ACTIVE_DAYS))  # index 0 = Monday
    start_hour: int = Field(9, ge=0, le=23)
    end_hour: int = Field(17, ge=0, le=23)
    notifications_enabled: bool = True
    timezone: str = "UTC"

    @field_validator("active_days")
    @classmethod
    def _seven_days(cls, value: List[bool]) -> List[bool]:
        if len(value) != 7:
            raise ValueError("active_days must contain exactly 7 entries (Monday first)")
        return value

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown time zone: {value}")
        return value

    @property
    def interval_seconds(self) -> int:
        return self.interval_minutes * 60


class TimerSettingsUpdate(BaseModel):
    """Partial settings update - all fields optional"""
    model_config = ConfigDict(populate_by_name=True)

    interval_minutes: Optional[int] = Field(None, alias="intervalMinutes", ge=1, le=120)
    active_days: Optional[List[bool]] = Field(None, alias="activeDays")
    start_hour: Optional[int] = Field(None, alias="startHour", ge=0, le=23)
    end_hour: Optional[int] = Field(None, alias="endHour", ge=0, le=23)
    notifications_enabled: Optional[bool] = Field(None, alias="notificationsEnabled")
    timezone: Optional[str] = None


class TimerRuntimeState(BaseModel):
    """Transient countdown state owned by a BreakTimer"""
    time_remaining: int = Field(0, ge=0)
    is_active: bool = False
    is_snoozing: bool = False
    snooze_start_time: Optional[float] = None
    snooze_duration_seconds: int = 0
    # Remaining seconds captured by pause(), consumed by the next start()
    paused_remaining: Optional[int] = None


class RecoverySnapshot(BaseModel):
    """Countdown state persisted so it survives a reload"""
    time_remaining: int = Field(..., ge=0)
    is_active: bool
    is_snoozing: bool = False
    snooze_duration_seconds: int = 0
    snooze_start_time: Optional[float] = None
    last_update_timestamp: float
    interval_minutes: int = Field(..., ge=1, le=120)

    @model_validator(mode="after")
    def _snooze_fields_consistent(self) -> "RecoverySnapshot":
        if self.is_snoozing and self.snooze_duration_seconds <= 0:
            raise ValueError("snoozing snapshot requires a positive snooze duration")
        return self


class TimerStatus(BaseModel):
    """Everything a client needs to render the timer"""
    phase: TimerPhase
    status_text: str
    time_remaining: int
    formatted_time: str
    is_active: bool
    is_snoozing: bool
    snooze_start_time: Optional[float] = None
    snooze_duration_seconds: int = 0
    progress: float
    next_break_time: Optional[float] = None
    is_within_schedule: bool
    notification_permission: NotificationPermission
    settings: TimerSettings
