"""Health check endpoints"""

from fastapi import APIRouter, Depends

from wellness.api.timer import get_session_manager
from wellness.services.timer import TimerSessionManager

router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("/")
async def health_check(manager: TimerSessionManager = Depends(get_session_manager)):
    """Basic health check endpoint"""
    return {
        "status": "healthy",
        "service": "wellness-backend",
        "timer_sessions": len(manager),
    }
