"""Services module"""

from wellness.services.usage_limiter import SubscriptionUsageLimiter
from wellness.services.push_notification_service import PushNotificationService, PushNotifier

__all__ = [
    "SubscriptionUsageLimiter",
    "PushNotificationService",
    "PushNotifier",
]
