"""HTTP API routes for the user profile and study streak."""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import date
from typing import AsyncGenerator, Optional

from fastapi import APIRouter, Depends, Query
from sse_starlette.sse import EventSourceResponse

from ...models.profile import Profile, ProfileUpdate, StudyStreak
from ...services.profile import (
    ProfileStore,
    StreakService,
    get_profile_store,
    get_streak_service,
)
from ..middleware import AuthContext, get_auth_context

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/profile", tags=["profile"])


@router.get("", response_model=Profile)
async def get_profile(
    auth: AuthContext = Depends(get_auth_context),
    store: ProfileStore = Depends(get_profile_store),
):
    return store.get_profile(auth.user_id)


@router.patch("", response_model=Profile)
async def update_profile(
    payload: ProfileUpdate,
    auth: AuthContext = Depends(get_auth_context),
    store: ProfileStore = Depends(get_profile_store),
):
    """Update profile fields; ``regenerate_avatar`` picks a new avatar seed."""
    return store.update_profile(auth.user_id, payload)


@router.get("/events")
async def profile_events(
    auth: AuthContext = Depends(get_auth_context),
    store: ProfileStore = Depends(get_profile_store),
):
    """
    Stream profile changes as Server-Sent Events.

    The current profile is sent first, then one event per saved update.
    """
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue[Profile] = asyncio.Queue()

    def on_change(profile: Profile) -> None:
        loop.call_soon_threadsafe(queue.put_nowait, profile)

    async def event_generator() -> AsyncGenerator[str, None]:
        unsubscribe = store.subscribe(auth.user_id, on_change)
        try:
            yield json.dumps(store.get_profile(auth.user_id).model_dump())
            while True:
                profile = await queue.get()
                yield json.dumps(profile.model_dump())
        finally:
            unsubscribe()
            logger.debug(f"Profile stream closed for user {auth.user_id}")

    return EventSourceResponse(event_generator())


@router.get("/streak", response_model=StudyStreak)
async def get_streak(
    auth: AuthContext = Depends(get_auth_context),
    service: StreakService = Depends(get_streak_service),
):
    return service.get_streak(auth.user_id)


@router.post("/streak", response_model=StudyStreak)
async def record_study_day(
    today: Optional[date] = Query(None, description="Study day (defaults to today)"),
    auth: AuthContext = Depends(get_auth_context),
    service: StreakService = Depends(get_streak_service),
):
    """Record that the user studied today."""
    return service.record_study_day(auth.user_id, today)
