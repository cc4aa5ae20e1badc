"""
Push Notification Service

Queues break alerts in Supabase and delivers them via Expo Push API
"""

import httpx
import logging
from typing import Optional, List, Dict, Any
from datetime import datetime, timezone
from supabase import Client
from wellness.models.push_notification import (
    BreakAlertData,
    PushNotificationCreate,
    PushNotificationStatus,
    PushTokenCreate,
)
from wellness.models.timer import NotificationPermission
from wellness.services.timer.dispatcher import NOTIFICATION_AUTO_DISMISS_SECONDS

logger = logging.getLogger(__name__)

EXPO_PUSH_URL = "https://exp.host/--/api/v2/push/send"

# Where a tap on the alert takes the user
BREAK_NOTIFICATION_URL = "/dashboard"


def _tokens_for(client: Client, user_id: str) -> List[Dict[str, Any]]:
    response = (
        client.table("push_tokens")
        .select("expo_push_token")
        .eq("user_id", user_id)
        .execute()
    )
    return response.data or []


class PushNotifier:
    """
    Notifier for one user's break timer.

    Permission is granted once the user has registered a device. Dispatch
    only inserts a push_notifications row; a Supabase database webhook then
    calls /api/push-notifications/send to deliver it.
    """

    def __init__(self, supabase_client: Client, user_id: str):
        self.supabase = supabase_client
        self.user_id = user_id
        self._permission = NotificationPermission.DEFAULT

    def request_permission(self) -> NotificationPermission:
        tokens = _tokens_for(self.supabase, self.user_id)
        self._permission = NotificationPermission.GRANTED if tokens else NotificationPermission.DENIED
        return self._permission

    def dispatch(self, title: str, body: str) -> None:
        if self._permission != NotificationPermission.GRANTED:
            return

        notification = PushNotificationCreate(
            user_id=self.user_id,
            title=title,
            body=body,
            data=BreakAlertData(
                url=BREAK_NOTIFICATION_URL,
                auto_dismiss_seconds=NOTIFICATION_AUTO_DISMISS_SECONDS,
                tag=f"wellness-break-{int(datetime.now(timezone.utc).timestamp() * 1000)}",
            ).model_dump(by_alias=True),
        )
        self.supabase.table("push_notifications").insert(
            notification.model_dump(mode="json")
        ).execute()
        logger.info(f"Break notification queued for user {self.user_id}")


class PushNotificationService:
    """Service for sending push notifications via Expo"""

    def __init__(self, supabase_client: Client):
        self.supabase = supabase_client

    async def register_token(self, token: PushTokenCreate) -> None:
        """Register a device; re-registering the same token is a no-op"""
        self.supabase.table("push_tokens").upsert(
            token.model_dump(mode="json"),
            on_conflict="expo_push_token",
        ).execute()
        logger.info(f"Registered push token for user {token.user_id}")

    async def send_notification(self, notification_id: int) -> Dict[str, Any]:
        """
        Send push notification via Expo Push API

        Args:
            notification_id: ID of the notification to send

        Returns:
            Dictionary with send results
        """
        try:
            # Fetch the notification from database
            response = (
                self.supabase.table("push_notifications")
                .select("*")
                .eq("id", notification_id)
                .single()
                .execute()
            )

            if not response.data:
                raise ValueError("Notification not found")

            notification = response.data

            # Skip if already sent
            if notification.get("status") == PushNotificationStatus.SENT:
                return {
                    "message": "Already sent",
                    "notificationId": notification_id,
                    "success": True,
                    "sent": 0,
                    "failed": 0,
                    "tickets": [],
                }

            tokens = _tokens_for(self.supabase, notification["user_id"])

            if not tokens:
                # No tokens found - mark as failed
                await self._update_notification_status(
                    notification_id, PushNotificationStatus.FAILED, "No push tokens registered"
                )
                return {
                    "message": "No push tokens found",
                    "notificationId": notification_id,
                    "success": False,
                    "sent": 0,
                    "failed": 0,
                    "tickets": [],
                }

            data = notification.get("data") or {}
            messages = [
                {
                    "to": token["expo_push_token"],
                    "title": notification["title"],
                    "body": notification["body"],
                    "data": data,
                    "sound": "default",
                    "priority": "high",
                    "channelId": "break-reminders",
                    # Expo drops the alert if the device is unreachable past this
                    "ttl": data.get("autoDismissSeconds", NOTIFICATION_AUTO_DISMISS_SECONDS),
                }
                for token in tokens
            ]

            async with httpx.AsyncClient() as client:
                expo_response = await client.post(
                    EXPO_PUSH_URL,
                    json=messages,
                    headers={
                        "Content-Type": "application/json",
                        "Accept": "application/json",
                        "Accept-Encoding": "gzip, deflate",
                    },
                    timeout=10.0,
                )

            if expo_response.status_code != 200:
                error_detail = expo_response.text
                await self._update_notification_status(
                    notification_id,
                    PushNotificationStatus.FAILED,
                    f"Expo API error: {error_detail}",
                )
                raise RuntimeError(f"Failed to send push notification: {error_detail}")

            tickets = expo_response.json().get("data", [])
            failed = self._prune_unregistered_tokens(tokens, tickets)
            sent = len(tickets) - failed

            if failed and not sent:
                await self._update_notification_status(
                    notification_id, PushNotificationStatus.FAILED, "All devices failed"
                )
            elif failed:
                await self._update_notification_status(
                    notification_id,
                    PushNotificationStatus.SENT,
                    f"Sent to {sent} devices, {failed} failed",
                )
            else:
                await self._update_notification_status(notification_id, PushNotificationStatus.SENT, None)

            return {
                "success": True,
                "notificationId": notification_id,
                "sent": sent,
                "failed": failed,
                "tickets": tickets,
            }

        except ValueError:
            raise
        except Exception as e:
            logger.error(f"Error sending push notification: {str(e)}")
            await self._update_notification_status(
                notification_id, PushNotificationStatus.FAILED, str(e)
            )
            raise

    def _prune_unregistered_tokens(self, tokens: List[Dict[str, Any]], tickets: List[Dict[str, Any]]) -> int:
        """Delete tokens Expo reports as unregistered; returns the error count"""
        failed = 0
        # Expo returns tickets in the order the messages were sent
        for token, ticket in zip(tokens, tickets):
            if ticket.get("status") != "error":
                continue
            failed += 1
            error_type = (ticket.get("details") or {}).get("error")
            error_message = ticket.get("message", "")
            if error_type == "DeviceNotRegistered" or "not registered" in error_message:
                invalid_token = token["expo_push_token"]
                self.supabase.table("push_tokens").delete().eq(
                    "expo_push_token", invalid_token
                ).execute()
                logger.info(f"Removed invalid token: {invalid_token}")
        return failed

    async def _update_notification_status(
        self, notification_id: int, status: str, error_message: Optional[str] = None
    ):
        """Update notification status in database"""
        update_data = {
            "status": status,
            "sent_at": datetime.now(timezone.utc).isoformat(),
        }

        if error_message:
            update_data["error_message"] = error_message

        self.supabase.table("push_notifications").update(update_data).eq(
            "id", notification_id
        ).execute()
