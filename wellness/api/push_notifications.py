"""
Push Notification API Endpoints

Device registration for break alerts and the delivery webhook from Supabase
"""

from fastapi import APIRouter, Depends, HTTPException
from datetime import datetime, timezone
import logging

from wellness.auth import get_current_user_id
from wellness.infra.supabase.client import get_supabase_client
from wellness.models.push_notification import (
    PushTokenCreate,
    RegisterPushTokenRequest,
    SendPushNotificationResponse,
    SupabaseWebhookPayload,
)
from wellness.services.push_notification_service import PushNotificationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/push-notifications", tags=["push-notifications"])


def get_push_service() -> PushNotificationService:
    return PushNotificationService(get_supabase_client())


@router.get("/health")
async def health_check():
    """Health check for push notification service"""
    return {
        "status": "healthy",
        "service": "push-notifications",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.post("/tokens", status_code=201)
async def register_push_token(
    request: RegisterPushTokenRequest,
    current_user_id: str = Depends(get_current_user_id),
    push_service: PushNotificationService = Depends(get_push_service),
):
    """Register the caller's device; break alerts are only pushed once one exists"""
    try:
        await push_service.register_token(
            PushTokenCreate(user_id=current_user_id, expo_push_token=request.expo_push_token)
        )
    except Exception as e:
        logger.error(f"Error registering push token for user {current_user_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))
    return {"registered": True}


@router.post("/send", response_model=SendPushNotificationResponse)
async def send_push_notification(
    request: SupabaseWebhookPayload,
    push_service: PushNotificationService = Depends(get_push_service),
):
    """
    Send push notification via Expo Push API

    This endpoint is called by Supabase Database Webhook when a new
    push_notifications record is inserted.

    Raises:
        HTTPException: If notification not found or send fails
    """
    notification_id = request.record.id

    try:
        logger.info(f"Processing push notification {notification_id} from webhook")
        result = await push_service.send_notification(notification_id)
        logger.info(
            f"Push notification {notification_id} processed: "
            f"sent={result.get('sent', 0)}, failed={result.get('failed', 0)}"
        )
        return result

    except ValueError as e:
        logger.error(f"Notification {notification_id} not found: {str(e)}")
        raise HTTPException(status_code=404, detail=str(e))

    except Exception as e:
        logger.error(f"Error sending push notification {notification_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))
