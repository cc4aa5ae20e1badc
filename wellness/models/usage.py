"""Usage record domain model"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict

from .timer import UsageAction


class UsageRecordCreate(BaseModel):
    """Usage record creation model"""
    user_id: str  # UUID as string
    action: UsageAction
    created_at: Optional[datetime] = None


class UsageRecordUpdate(BaseModel):
    """Usage records are append-only"""
    pass


class UsageRecord(BaseModel):
    """Complete usage record model from database"""
    id: int
    user_id: str
    action: UsageAction
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
