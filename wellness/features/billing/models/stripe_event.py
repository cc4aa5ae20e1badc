"""Received Stripe webhook events, kept for idempotent processing"""
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict


class StripeEventCreate(BaseModel):
    stripe_event_id: str
    type: str
    payload: Dict[str, Any]


class StripeEventUpdate(BaseModel):
    processed_at: Optional[datetime] = None


class StripeEvent(StripeEventCreate):
    """Row of `stripe_events`; `processed_at` stays empty until a handler succeeds"""
    id: int
    received_at: datetime
    processed_at: Optional[datetime] = None

    @property
    def processed(self) -> bool:
        return self.processed_at is not None

    model_config = ConfigDict(from_attributes=True)
