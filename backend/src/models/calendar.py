"""Calendar event and weekly schedule models."""

from __future__ import annotations

from datetime import date, datetime
import re
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

EventType = Literal["exam", "assignment", "event", "important"]

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class CalendarEventWrite(BaseModel):
    """Request payload to create or update an event."""

    title: str = Field(..., min_length=1, max_length=256)
    type: EventType = "exam"
    subject: Optional[str] = Field(None, max_length=256)
    start_date: date
    end_date: Optional[date] = None

    @model_validator(mode="after")
    def _check_range(self) -> "CalendarEventWrite":
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not precede start_date")
        return self


class CalendarEvent(CalendarEventWrite):
    id: str
    created_at: datetime
    updated_at: datetime


class ScheduleClassWrite(BaseModel):
    """A recurring weekly class. day_of_week 0 is Monday."""

    subject: str = Field(..., min_length=1, max_length=256)
    day_of_week: int = Field(..., ge=0, le=6)
    start_time: str = Field("08:00", description="HH:MM")
    end_time: str = Field("09:30", description="HH:MM")
    room: Optional[str] = Field(None, max_length=128)
    teacher: Optional[str] = Field(None, max_length=128)
    color: Optional[str] = Field(None, max_length=64)

    @field_validator("start_time", "end_time")
    @classmethod
    def _check_time(cls, value: str) -> str:
        if not TIME_PATTERN.match(value):
            raise ValueError("time must be formatted as HH:MM")
        return value

    @field_validator("room", "teacher")
    @classmethod
    def _blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None

    @model_validator(mode="after")
    def _check_order(self) -> "ScheduleClassWrite":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class ScheduleClass(ScheduleClassWrite):
    id: str


__all__ = [
    "EventType",
    "CalendarEventWrite",
    "CalendarEvent",
    "ScheduleClassWrite",
    "ScheduleClass",
]
