"""Study session and pomodoro settings models."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class StudySessionWrite(BaseModel):
    """A finished focus block. ``duration`` is in minutes."""

    folder_id: Optional[str] = None
    subject: Optional[str] = Field(None, max_length=256)
    duration: int = Field(..., ge=1, le=24 * 60)
    started_at: datetime
    ended_at: Optional[datetime] = None

    @field_validator("subject")
    @classmethod
    def _blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None

    @model_validator(mode="after")
    def _check_range(self) -> "StudySessionWrite":
        if self.ended_at is not None and self.ended_at < self.started_at:
            raise ValueError("ended_at must not precede started_at")
        return self


class StudySession(StudySessionWrite):
    id: str
    ended_at: datetime
    created_at: datetime


class SubjectMinutes(BaseModel):
    subject: str
    minutes: int


class StudyStats(BaseModel):
    """Minutes studied this week (Sunday to Saturday), this month and per subject."""

    week_minutes: int = 0
    month_minutes: int = 0
    subjects: List[SubjectMinutes] = Field(default_factory=list)


class PomodoroSettings(BaseModel):
    work_duration: int = Field(25, ge=1, le=180)
    short_break: int = Field(5, ge=1, le=60)
    long_break: int = Field(15, ge=1, le=120)
    sessions_until_long_break: int = Field(4, ge=1, le=12)


class PomodoroSettingsUpdate(BaseModel):
    """Partial settings update. Only provided fields change."""

    work_duration: Optional[int] = Field(None, ge=1, le=180)
    short_break: Optional[int] = Field(None, ge=1, le=60)
    long_break: Optional[int] = Field(None, ge=1, le=120)
    sessions_until_long_break: Optional[int] = Field(None, ge=1, le=12)


__all__ = [
    "StudySessionWrite",
    "StudySession",
    "SubjectMinutes",
    "StudyStats",
    "PomodoroSettings",
    "PomodoroSettingsUpdate",
]
