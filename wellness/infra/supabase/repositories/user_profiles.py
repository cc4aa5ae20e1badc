"""User profiles repository"""
from typing import Optional

from supabase import Client  # type: ignore

from wellness.models.user import UserProfile, UserProfileCreate, UserProfileUpdate

from .base import BaseRepository


class UserProfileRepository(BaseRepository[UserProfile, UserProfileCreate, UserProfileUpdate]):
    """Repository for user profile operations"""

    def __init__(self, client: Client):
        super().__init__(client, "user_profiles", UserProfile)

    async def get_or_create(self, user_id: str, email: str) -> UserProfile:
        """Fetch the profile, creating a free-plan one on first sign-in"""
        profile = await self.find_by_id(user_id)
        if profile:
            return profile

        name = email.split("@")[0] if email else "User"
        return await self.create(UserProfileCreate(id=user_id, email=email, name=name or "User"))

    async def find_by_stripe_customer_id(self, stripe_customer_id: str) -> Optional[UserProfile]:
        """Find profile by Stripe customer ID"""
        results = await self.find_by_filters({"stripe_customer_id": stripe_customer_id}, limit=1)
        return results[0] if results else None

    async def find_by_stripe_subscription_id(self, stripe_subscription_id: str) -> Optional[UserProfile]:
        """Find profile by Stripe subscription ID"""
        results = await self.find_by_filters({"stripe_subscription_id": stripe_subscription_id}, limit=1)
        return results[0] if results else None
