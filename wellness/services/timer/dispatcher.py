"""Break notification dispatch with duplicate suppression"""
import logging
from typing import Optional

from wellness.models.timer import NotificationPermission
from .collaborators import BreakDecisionSink, Clock, Notifier

logger = logging.getLogger(__name__)

DUPLICATE_WINDOW_SECONDS = 3.0
NOTIFICATION_AUTO_DISMISS_SECONDS = 30

BREAK_TITLE = "Time for a Break!"
BREAK_BODY = "Your break reminder is ready. Choose your activity!"


class BreakDispatcher:
    """
    Single entry point for "a break is due now".

    The last accepted dispatch time is held in memory only. Any call landing
    within DUPLICATE_WINDOW_SECONDS of it is dropped, which covers the expiry
    tick and the recovery path both firing around the same reload.
    """

    def __init__(self, clock: Clock, notifier: Notifier, sink: BreakDecisionSink):
        self._clock = clock
        self._notifier = notifier
        self._sink = sink
        self._last_dispatch_at: Optional[float] = None
        self.permission = NotificationPermission.DEFAULT

    @property
    def last_dispatch_at(self) -> Optional[float]:
        return self._last_dispatch_at

    def request_permission(self) -> NotificationPermission:
        """One-shot permission prompt; a denial is kept, never retried"""
        try:
            self.permission = self._notifier.request_permission()
        except Exception as e:
            logger.error(f"Error requesting notification permission: {e}")
            self.permission = NotificationPermission.DENIED

        if self.permission == NotificationPermission.DENIED:
            logger.warning("Notifications blocked - break alerts limited to in-app prompts")
        return self.permission

    def dispatch(self, notifications_enabled: bool) -> bool:
        """
        Announce a due break.

        Returns:
            False when the call was suppressed as a duplicate
        """
        now = self._clock.now()
        if self._last_dispatch_at is not None and now - self._last_dispatch_at < DUPLICATE_WINDOW_SECONDS:
            logger.info("Suppressing duplicate break notification (too recent)")
            return False

        self._last_dispatch_at = now
        logger.info("Triggering break notification")

        # In-app prompt always goes first
        self._sink()

        if notifications_enabled:
            self._send_os_notification()
        return True

    def _send_os_notification(self) -> None:
        if self.permission == NotificationPermission.DEFAULT:
            self.request_permission()

        if self.permission != NotificationPermission.GRANTED:
            logger.warning(f"Skipping OS notification, permission is {self.permission.value}")
            return

        try:
            self._notifier.dispatch(BREAK_TITLE, BREAK_BODY)
        except Exception as e:
            logger.error(f"Notification error: {e}")
