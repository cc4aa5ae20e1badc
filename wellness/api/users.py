from fastapi import APIRouter, HTTPException, Depends
from typing import Any, Dict
import logging

from wellness.auth import get_current_claims
from wellness.infra.supabase.client import get_supabase_client
from wellness.infra.supabase.repositories.user_profiles import UserProfileRepository
from wellness.models.user import UserProfile

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])


def get_profile_repository() -> UserProfileRepository:
    return UserProfileRepository(get_supabase_client())


@router.get("/me", response_model=UserProfile)
async def get_me(
    claims: Dict[str, Any] = Depends(get_current_claims),
    profiles: UserProfileRepository = Depends(get_profile_repository),
):
    """
    Current user's profile and subscription.

    The profile is created on first sign-in with the free plan.
    """
    user_id = claims["sub"]
    try:
        return await profiles.get_or_create(user_id, claims.get("email") or "")
    except Exception as e:
        logger.error(f"Error loading profile for user {user_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Failed to load user profile: {str(e)}"
        )
