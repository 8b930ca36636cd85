"""Pomodoro study sessions, time statistics and timer settings."""

from __future__ import annotations

import logging
import sqlite3
from collections import defaultdict
from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, Optional

from ..models.study import (
    PomodoroSettings,
    PomodoroSettingsUpdate,
    StudySession,
    StudySessionWrite,
    StudyStats,
    SubjectMinutes,
)
from .database import DatabaseService, new_id, require_folder, utcnow_iso

logger = logging.getLogger(__name__)

SETTINGS_FIELDS = ("work_duration", "short_break", "long_break", "sessions_until_long_break")


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _row_to_session(row: sqlite3.Row) -> StudySession:
    return StudySession(
        id=row["id"],
        folder_id=row["folder_id"],
        subject=row["subject"],
        duration=row["duration"],
        started_at=datetime.fromisoformat(row["started_at"]),
        ended_at=datetime.fromisoformat(row["ended_at"]),
        created_at=datetime.fromisoformat(row["created_at"]),
    )


def week_bounds(today: date) -> tuple[date, date]:
    """Sunday..Saturday week containing ``today``."""
    start = today - timedelta(days=(today.weekday() + 1) % 7)
    return start, start + timedelta(days=6)


def summarize_sessions(sessions: List[StudySession], today: date) -> StudyStats:
    week_start, week_end = week_bounds(today)
    week = month = 0
    per_subject: Dict[str, int] = defaultdict(int)
    for session in sessions:
        day = _as_utc(session.started_at).date()
        if week_start <= day <= week_end:
            week += session.duration
        if (day.year, day.month) == (today.year, today.month):
            month += session.duration
        if session.subject:
            per_subject[session.subject] += session.duration
    # Insertion order follows first appearance in the session list
    subjects = [SubjectMinutes(subject=name, minutes=total) for name, total in per_subject.items()]
    return StudyStats(week_minutes=week, month_minutes=month, subjects=subjects)


class StudySessionService:
    """Finished pomodoro work blocks and the statistics derived from them."""

    def __init__(self, db_service: DatabaseService | None = None):
        self._db = db_service or DatabaseService()

    def log_session(self, user_id: str, payload: StudySessionWrite) -> StudySession:
        """Store a completed session; ``ended_at`` defaults to now."""
        started_at = _as_utc(payload.started_at)
        ended_at = _as_utc(payload.ended_at) if payload.ended_at else datetime.now(timezone.utc)
        if ended_at < started_at:
            raise ValueError("ended_at must not precede started_at")
        session = StudySession(
            id=new_id(),
            folder_id=payload.folder_id or None,
            subject=payload.subject,
            duration=payload.duration,
            started_at=started_at,
            ended_at=ended_at,
            created_at=datetime.fromisoformat(utcnow_iso()),
        )
        conn = self._db.connect()
        try:
            require_folder(conn, user_id, session.folder_id)
            with conn:
                conn.execute(
                    """
                    INSERT INTO study_sessions (
                        id, user_id, folder_id, subject, duration, started_at, ended_at, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        session.id,
                        user_id,
                        session.folder_id,
                        session.subject,
                        session.duration,
                        session.started_at.isoformat(),
                        session.ended_at.isoformat(),
                        session.created_at.isoformat(),
                    ),
                )
        finally:
            conn.close()
        logger.info(f"Logged {session.duration} min study session for user {user_id}")
        return session

    def list_sessions(self, user_id: str, limit: int = 100) -> List[StudySession]:
        """Most recent sessions first."""
        conn = self._db.connect()
        try:
            rows = conn.execute(
                "SELECT * FROM study_sessions WHERE user_id = ? ORDER BY started_at DESC LIMIT ?",
                (user_id, limit),
            ).fetchall()
            return [_row_to_session(row) for row in rows]
        finally:
            conn.close()

    def get_stats(self, user_id: str, today: Optional[date] = None) -> StudyStats:
        today = today or date.today()
        conn = self._db.connect()
        try:
            rows = conn.execute(
                "SELECT * FROM study_sessions WHERE user_id = ? ORDER BY started_at",
                (user_id,),
            ).fetchall()
        finally:
            conn.close()
        return summarize_sessions([_row_to_session(row) for row in rows], today)

    # Pomodoro settings --------------------------------------------------------

    def get_settings(self, user_id: str) -> PomodoroSettings:
        """Stored settings, or the 25/5/15/4 defaults when none were saved."""
        conn = self._db.connect()
        try:
            row = conn.execute(
                "SELECT * FROM pomodoro_settings WHERE user_id = ?", (user_id,)
            ).fetchone()
        finally:
            conn.close()
        if not row:
            return PomodoroSettings()
        return PomodoroSettings(**{key: row[key] for key in SETTINGS_FIELDS})

    def update_settings(self, user_id: str, payload: PomodoroSettingsUpdate) -> PomodoroSettings:
        settings = self.get_settings(user_id).model_copy(
            update=payload.model_dump(exclude_none=True)
        )
        conn = self._db.connect()
        try:
            with conn:
                conn.execute(
                    """
                    INSERT INTO pomodoro_settings (
                        user_id, work_duration, short_break, long_break,
                        sessions_until_long_break, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?)
                    ON CONFLICT(user_id) DO UPDATE SET
                        work_duration = excluded.work_duration,
                        short_break = excluded.short_break,
                        long_break = excluded.long_break,
                        sessions_until_long_break = excluded.sessions_until_long_break,
                        updated_at = excluded.updated_at
                    """,
                    (
                        user_id,
                        settings.work_duration,
                        settings.short_break,
                        settings.long_break,
                        settings.sessions_until_long_break,
                        utcnow_iso(),
                    ),
                )
        finally:
            conn.close()
        logger.info(f"Saved pomodoro settings for user {user_id}")
        return settings


_study_session_service: Optional[StudySessionService] = None


def get_study_session_service() -> StudySessionService:
    """Get or create the study session service singleton."""
    global _study_session_service
    if _study_session_service is None:
        _study_session_service = StudySessionService()
    return _study_session_service


__all__ = [
    "StudySessionService",
    "get_study_session_service",
    "summarize_sessions",
    "week_bounds",
]
