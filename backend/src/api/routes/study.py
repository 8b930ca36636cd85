"""HTTP API routes for pomodoro study sessions and statistics."""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from ...models.study import (
    PomodoroSettings,
    PomodoroSettingsUpdate,
    StudySession,
    StudySessionWrite,
    StudyStats,
)
from ...services.study import StudySessionService, get_study_session_service
from ..middleware import AuthContext, bad_request, get_auth_context

router = APIRouter(prefix="/api/study", tags=["study"])


@router.post("/sessions", response_model=StudySession, status_code=status.HTTP_201_CREATED)
async def log_session(
    payload: StudySessionWrite,
    auth: AuthContext = Depends(get_auth_context),
    service: StudySessionService = Depends(get_study_session_service),
):
    """Record a completed pomodoro work block."""
    try:
        return service.log_session(auth.user_id, payload)
    except ValueError as exc:
        raise bad_request(exc) from exc


@router.get("/sessions", response_model=List[StudySession])
async def list_sessions(
    limit: int = Query(100, ge=1, le=1000),
    auth: AuthContext = Depends(get_auth_context),
    service: StudySessionService = Depends(get_study_session_service),
):
    return service.list_sessions(auth.user_id, limit)


@router.get("/stats", response_model=StudyStats)
async def get_stats(
    today: Optional[date] = Query(None, description="Reference date (defaults to today)"),
    auth: AuthContext = Depends(get_auth_context),
    service: StudySessionService = Depends(get_study_session_service),
):
    return service.get_stats(auth.user_id, today)


@router.get("/pomodoro-settings", response_model=PomodoroSettings)
async def get_pomodoro_settings(
    auth: AuthContext = Depends(get_auth_context),
    service: StudySessionService = Depends(get_study_session_service),
):
    return service.get_settings(auth.user_id)


@router.patch("/pomodoro-settings", response_model=PomodoroSettings)
async def update_pomodoro_settings(
    payload: PomodoroSettingsUpdate,
    auth: AuthContext = Depends(get_auth_context),
    service: StudySessionService = Depends(get_study_session_service),
):
    return service.update_settings(auth.user_id, payload)
