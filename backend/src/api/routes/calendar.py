"""HTTP API routes for calendar events and the weekly schedule."""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from ...models.calendar import (
    CalendarEvent,
    CalendarEventWrite,
    ScheduleClass,
    ScheduleClassWrite,
)
from ...services.calendar import CalendarService, get_calendar_service
from ...services.database import NotFoundError
from ..middleware import AuthContext, get_auth_context, not_found

router = APIRouter(prefix="/api/calendar", tags=["calendar"])


@router.get("/events", response_model=List[CalendarEvent])
async def list_events(
    auth: AuthContext = Depends(get_auth_context),
    service: CalendarService = Depends(get_calendar_service),
):
    return service.list_events(auth.user_id)


@router.get("/events/upcoming", response_model=List[CalendarEvent])
async def upcoming_events(
    today: Optional[date] = Query(None, description="Reference date (defaults to today)"),
    auth: AuthContext = Depends(get_auth_context),
    service: CalendarService = Depends(get_calendar_service),
):
    """Events starting soon, within a horizon that depends on the event type."""
    return service.upcoming_events(auth.user_id, today)


@router.post("/events", response_model=CalendarEvent, status_code=status.HTTP_201_CREATED)
async def create_event(
    payload: CalendarEventWrite,
    auth: AuthContext = Depends(get_auth_context),
    service: CalendarService = Depends(get_calendar_service),
):
    return service.create_event(auth.user_id, payload)


@router.put("/events/{event_id}", response_model=CalendarEvent)
async def update_event(
    event_id: str,
    payload: CalendarEventWrite,
    auth: AuthContext = Depends(get_auth_context),
    service: CalendarService = Depends(get_calendar_service),
):
    try:
        return service.update_event(auth.user_id, event_id, payload)
    except NotFoundError as exc:
        raise not_found(exc) from exc


@router.delete("/events/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(
    event_id: str,
    auth: AuthContext = Depends(get_auth_context),
    service: CalendarService = Depends(get_calendar_service),
):
    try:
        service.delete_event(auth.user_id, event_id)
    except NotFoundError as exc:
        raise not_found(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/classes", response_model=List[ScheduleClass])
async def list_classes(
    day_of_week: Optional[int] = Query(None, ge=0, le=6, description="0 = Monday"),
    auth: AuthContext = Depends(get_auth_context),
    service: CalendarService = Depends(get_calendar_service),
):
    return service.list_classes(auth.user_id, day_of_week)


@router.get("/classes/today", response_model=List[ScheduleClass])
async def todays_classes(
    day: Optional[date] = Query(None, description="Reference date (defaults to today)"),
    auth: AuthContext = Depends(get_auth_context),
    service: CalendarService = Depends(get_calendar_service),
):
    return service.classes_for_day(auth.user_id, day)


@router.post("/classes", response_model=ScheduleClass, status_code=status.HTTP_201_CREATED)
async def create_class(
    payload: ScheduleClassWrite,
    auth: AuthContext = Depends(get_auth_context),
    service: CalendarService = Depends(get_calendar_service),
):
    return service.create_class(auth.user_id, payload)


@router.put("/classes/{class_id}", response_model=ScheduleClass)
async def update_class(
    class_id: str,
    payload: ScheduleClassWrite,
    auth: AuthContext = Depends(get_auth_context),
    service: CalendarService = Depends(get_calendar_service),
):
    try:
        return service.update_class(auth.user_id, class_id, payload)
    except NotFoundError as exc:
        raise not_found(exc) from exc


@router.delete("/classes/{class_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_class(
    class_id: str,
    auth: AuthContext = Depends(get_auth_context),
    service: CalendarService = Depends(get_calendar_service),
):
    try:
        service.delete_class(auth.user_id, class_id)
    except NotFoundError as exc:
        raise not_found(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
