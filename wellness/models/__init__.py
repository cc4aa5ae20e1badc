"""Domain models for the application"""
from .timer import (
    NotificationPermission,
    RecoverySnapshot,
    TimerPhase,
    TimerRuntimeState,
    TimerSettings,
    TimerSettingsUpdate,
    TimerStatus,
    UsageAction,
)
from .user import SubscriptionPlan, SubscriptionStatus, UserProfile, UserProfileCreate, UserProfileUpdate
from .usage import UsageRecord, UsageRecordCreate
from .push_notification import PushNotification, PushNotificationCreate, PushTokenCreate

__all__ = [
    "NotificationPermission",
    "RecoverySnapshot",
    "TimerPhase",
    "TimerRuntimeState",
    "TimerSettings",
    "TimerSettingsUpdate",
    "TimerStatus",
    "UsageAction",
    "SubscriptionPlan",
    "SubscriptionStatus",
    "UserProfile",
    "UserProfileCreate",
    "UserProfileUpdate",
    "UsageRecord",
    "UsageRecordCreate",
    "PushNotification",
    "PushNotificationCreate",
    "PushTokenCreate",
]
