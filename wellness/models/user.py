"""User Profile domain model"""
from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict


class SubscriptionPlan(str, Enum):
    """Subscription plans; the paid ones are named after active days per week"""
    FREE = "free"
    THREE_DAY = "3day"
    FIVE_DAY = "5day"
    SEVEN_DAY = "7day"


class SubscriptionStatus(str, Enum):
    """Mirror of the Stripe subscription status we care about"""
    ACTIVE = "active"
    TRIALING = "trialing"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    INCOMPLETE = "incomplete"


class UserProfileBase(BaseModel):
    """Base user profile fields"""
    email: str
    name: Optional[str] = None
    subscription_plan: SubscriptionPlan = SubscriptionPlan.FREE
    subscription_status: SubscriptionStatus = SubscriptionStatus.ACTIVE


class UserProfileCreate(UserProfileBase):
    """User profile creation model"""
    id: str  # UUID as string


class UserProfileUpdate(BaseModel):
    """User profile update model"""
    name: Optional[str] = None
    subscription_plan: Optional[SubscriptionPlan] = None
    subscription_status: Optional[SubscriptionStatus] = None
    stripe_customer_id: Optional[str] = None
    stripe_subscription_id: Optional[str] = None


class UserProfile(UserProfileBase):
    """Complete user profile model from database"""
    id: str  # UUID as string
    stripe_customer_id: Optional[str] = None
    stripe_subscription_id: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
