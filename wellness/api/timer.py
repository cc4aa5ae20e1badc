from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, ValidationError
from typing import List, Optional
import logging

from wellness import config
from wellness.auth import get_current_user_id
from wellness.models.timer import NotificationPermission, TimerSettingsUpdate, TimerStatus
from wellness.services.timer import (
    SystemClock,
    TimerSession,
    TimerSessionError,
    TimerSessionManager,
    TimerStateError,
    UsageDeniedError,
)
from wellness.services.timer.factory import build_break_timer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/timer", tags=["timer"])

_session_manager: Optional[TimerSessionManager] = None


def get_session_manager() -> TimerSessionManager:
    global _session_manager
    if _session_manager is None:
        _session_manager = TimerSessionManager(
            build_break_timer,
            SystemClock(),
            tick_seconds=config.TIMER_TICK_SECONDS,
            idle_seconds=config.TIMER_SESSION_IDLE_SECONDS,
        )
    return _session_manager


async def shutdown_session_manager() -> None:
    global _session_manager
    if _session_manager is not None:
        await _session_manager.shutdown()
        _session_manager = None


class SnoozeRequest(BaseModel):
    minutes: int = Field(..., ge=1, le=30)


class PermissionResponse(BaseModel):
    permission: NotificationPermission


class PendingBreaksResponse(BaseModel):
    due: List[float]


class AcknowledgeBreaksResponse(BaseModel):
    acknowledged: int
    restarted: bool
    timer: TimerStatus


async def get_session(
    current_user_id: str = Depends(get_current_user_id),
    manager: TimerSessionManager = Depends(get_session_manager),
) -> TimerSession:
    try:
        return await manager.get(current_user_id)
    except TimerSessionError as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.get("", response_model=TimerStatus)
async def get_timer(session: TimerSession = Depends(get_session)):
    return session.timer.status()


@router.post("/start", response_model=TimerStatus)
async def start_timer(session: TimerSession = Depends(get_session)):
    try:
        await session.timer.start()
    except UsageDeniedError as e:
        raise HTTPException(status_code=402, detail=e.reason)
    session.ensure_ticking()
    return session.timer.status()


@router.post("/pause", response_model=TimerStatus)
async def pause_timer(session: TimerSession = Depends(get_session)):
    if session.timer.is_snoozing:
        raise HTTPException(status_code=409, detail="Cannot pause while snoozing")
    session.timer.pause()
    return session.timer.status()


@router.post("/reset", response_model=TimerStatus)
async def reset_timer(session: TimerSession = Depends(get_session)):
    if not session.timer.reset():
        raise HTTPException(status_code=409, detail="Cannot reset while snoozing")
    return session.timer.status()


@router.post("/snooze", response_model=TimerStatus)
async def snooze_timer(request: SnoozeRequest, session: TimerSession = Depends(get_session)):
    try:
        session.timer.snooze(request.minutes)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    session.ensure_ticking()
    return session.timer.status()


@router.post("/cancel-snooze", response_model=TimerStatus)
async def cancel_snooze(session: TimerSession = Depends(get_session)):
    if not session.timer.cancel_snooze():
        raise HTTPException(status_code=409, detail="No snooze in progress")
    return session.timer.status()


@router.post("/manual-break", response_model=TimerStatus)
async def manual_break(session: TimerSession = Depends(get_session)):
    """Take a break right now; the countdown restarts once the break is acknowledged"""
    try:
        await session.timer.trigger_manual_break()
    except TimerStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except UsageDeniedError as e:
        raise HTTPException(status_code=402, detail=e.reason)
    return session.timer.status()


@router.put("/settings", response_model=TimerStatus)
async def update_settings(
    request: TimerSettingsUpdate,
    session: TimerSession = Depends(get_session),
):
    changes = request.model_dump(exclude_unset=True)
    try:
        session.timer.update_settings(**changes)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))
    return session.timer.status()


@router.post("/notifications/permission", response_model=PermissionResponse)
async def request_notification_permission(session: TimerSession = Depends(get_session)):
    return PermissionResponse(permission=session.timer.request_notification_permission())


@router.get("/breaks", response_model=PendingBreaksResponse)
async def get_pending_breaks(session: TimerSession = Depends(get_session)):
    return PendingBreaksResponse(due=session.breaks.due)


@router.post("/breaks/ack", response_model=AcknowledgeBreaksResponse)
async def acknowledge_breaks(session: TimerSession = Depends(get_session)):
    """
    Mark pending breaks as seen and finish the current break.

    The countdown starts again after any break the user was sent on; a quota
    denial at that point leaves the timer idle instead of failing the
    acknowledgement.
    """
    acknowledged = session.breaks.acknowledge()
    try:
        restarted = await session.timer.complete_break()
    except UsageDeniedError as e:
        logger.info(f"Auto-restart after break refused for user {session.user_id}: {e.reason}")
        restarted = False
    session.ensure_ticking()
    return AcknowledgeBreaksResponse(
        acknowledged=acknowledged,
        restarted=restarted,
        timer=session.timer.status(),
    )
