from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Dict, Any
from datetime import datetime


class PushNotificationStatus:
    """Values of push_notifications.status"""
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class PushTokenCreate(BaseModel):
    user_id: str  # UUID as string
    expo_push_token: str


class RegisterPushTokenRequest(BaseModel):
    """Client request to register a device for break alerts"""
    model_config = ConfigDict(populate_by_name=True)

    expo_push_token: str = Field(..., alias="expoPushToken", min_length=1)


class BreakAlertData(BaseModel):
    """Extra payload the mobile client reads off a break alert"""
    model_config = ConfigDict(populate_by_name=True)

    url: str
    auto_dismiss_seconds: int = Field(..., alias="autoDismissSeconds")
    require_interaction: bool = Field(True, alias="requireInteraction")
    tag: str


class PushNotificationCreate(BaseModel):
    """Break alert queued for delivery"""
    user_id: str  # UUID as string
    title: str
    body: str
    data: Optional[Dict[str, Any]] = None
    status: str = PushNotificationStatus.PENDING


class PushNotification(PushNotificationCreate):
    id: int
    sent_at: Optional[datetime] = None
    error_message: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SupabaseWebhookRecord(PushNotificationCreate):
    """push_notifications row as Supabase posts it; timestamps stay raw strings"""
    id: int
    status: str
    sent_at: Optional[str] = None
    error_message: Optional[str] = None
    created_at: str


class SupabaseWebhookPayload(BaseModel):
    """Supabase INSERT webhook payload"""
    type: str  # 'INSERT'
    table: str
    schema_name: str = Field(..., alias="schema")
    record: SupabaseWebhookRecord
    old_record: Optional[Dict[str, Any]] = None


class SendPushNotificationResponse(BaseModel):
    success: bool
    notificationId: int
    sent: int
    failed: int
    tickets: list
