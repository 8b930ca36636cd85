"""Calendar events and the weekly class schedule."""

from __future__ import annotations

import logging
import sqlite3
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional

from ..models.calendar import (
    CalendarEvent,
    CalendarEventWrite,
    ScheduleClass,
    ScheduleClassWrite,
)
from .database import DatabaseService, NotFoundError, new_id, utcnow_iso

logger = logging.getLogger(__name__)

# How far ahead (in days) each event type shows up as "upcoming"
UPCOMING_HORIZON_DAYS: Dict[str, int] = {
    "exam": 45,
    "assignment": 7,
    "event": 15,
    "important": 30,
}


def _row_to_event(row: sqlite3.Row) -> CalendarEvent:
    return CalendarEvent(
        id=row["id"],
        title=row["title"],
        type=row["type"],
        subject=row["subject"],
        start_date=date.fromisoformat(row["start_date"]),
        end_date=date.fromisoformat(row["end_date"]) if row["end_date"] else None,
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


def _row_to_class(row: sqlite3.Row) -> ScheduleClass:
    return ScheduleClass(
        id=row["id"],
        subject=row["subject"],
        day_of_week=row["day_of_week"],
        start_time=row["start_time"],
        end_time=row["end_time"],
        room=row["room"],
        teacher=row["teacher"],
        color=row["color"],
    )


def is_upcoming(event: CalendarEvent, today: date) -> bool:
    """True when the event starts today or later and within its type's horizon."""
    days_until = (event.start_date - today).days
    return 0 <= days_until <= UPCOMING_HORIZON_DAYS.get(event.type, 0)


class CalendarService:
    """Events and recurring classes for one user."""

    def __init__(self, db_service: DatabaseService | None = None):
        self._db = db_service or DatabaseService()

    # Events -----------------------------------------------------------------

    def list_events(self, user_id: str) -> List[CalendarEvent]:
        conn = self._db.connect()
        try:
            rows = conn.execute(
                "SELECT * FROM calendar_events WHERE user_id = ? ORDER BY start_date, title",
                (user_id,),
            ).fetchall()
            return [_row_to_event(row) for row in rows]
        finally:
            conn.close()

    def upcoming_events(self, user_id: str, today: Optional[date] = None) -> List[CalendarEvent]:
        today = today or date.today()
        return [event for event in self.list_events(user_id) if is_upcoming(event, today)]

    def get_event(self, user_id: str, event_id: str) -> CalendarEvent:
        conn = self._db.connect()
        try:
            row = conn.execute(
                "SELECT * FROM calendar_events WHERE user_id = ? AND id = ?", (user_id, event_id)
            ).fetchone()
            if not row:
                raise NotFoundError("event", event_id)
            return _row_to_event(row)
        finally:
            conn.close()

    def create_event(self, user_id: str, payload: CalendarEventWrite) -> CalendarEvent:
        event_id = new_id()
        now = utcnow_iso()
        conn = self._db.connect()
        try:
            with conn:
                conn.execute(
                    "INSERT INTO calendar_events (id, user_id, title, type, subject, start_date, "
                    "end_date, created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        event_id,
                        user_id,
                        payload.title,
                        payload.type,
                        payload.subject,
                        payload.start_date.isoformat(),
                        payload.end_date.isoformat() if payload.end_date else None,
                        now,
                        now,
                    ),
                )
        finally:
            conn.close()
        return self.get_event(user_id, event_id)

    def update_event(
        self, user_id: str, event_id: str, payload: CalendarEventWrite
    ) -> CalendarEvent:
        conn = self._db.connect()
        try:
            with conn:
                cursor = conn.execute(
                    "UPDATE calendar_events SET title = ?, type = ?, subject = ?, start_date = ?, "
                    "end_date = ?, updated_at = ? WHERE user_id = ? AND id = ?",
                    (
                        payload.title,
                        payload.type,
                        payload.subject,
                        payload.start_date.isoformat(),
                        payload.end_date.isoformat() if payload.end_date else None,
                        utcnow_iso(),
                        user_id,
                        event_id,
                    ),
                )
            if cursor.rowcount == 0:
                raise NotFoundError("event", event_id)
        finally:
            conn.close()
        return self.get_event(user_id, event_id)

    def delete_event(self, user_id: str, event_id: str) -> None:
        conn = self._db.connect()
        try:
            with conn:
                cursor = conn.execute(
                    "DELETE FROM calendar_events WHERE user_id = ? AND id = ?", (user_id, event_id)
                )
            if cursor.rowcount == 0:
                raise NotFoundError("event", event_id)
        finally:
            conn.close()

    # Weekly schedule --------------------------------------------------------

    def list_classes(self, user_id: str, day_of_week: Optional[int] = None) -> List[ScheduleClass]:
        query = "SELECT * FROM schedule_classes WHERE user_id = ?"
        params: list = [user_id]
        if day_of_week is not None:
            query += " AND day_of_week = ?"
            params.append(day_of_week)
        query += " ORDER BY day_of_week, start_time"
        conn = self._db.connect()
        try:
            return [_row_to_class(row) for row in conn.execute(query, params).fetchall()]
        finally:
            conn.close()

    def classes_for_day(self, user_id: str, day: Optional[date] = None) -> List[ScheduleClass]:
        """Classes held on the weekday of ``day`` (today by default)."""
        day = day or date.today()
        return self.list_classes(user_id, day.weekday())

    def _get_class(self, conn: sqlite3.Connection, user_id: str, class_id: str) -> ScheduleClass:
        row = conn.execute(
            "SELECT * FROM schedule_classes WHERE user_id = ? AND id = ?", (user_id, class_id)
        ).fetchone()
        if not row:
            raise NotFoundError("class", class_id)
        return _row_to_class(row)

    def create_class(self, user_id: str, payload: ScheduleClassWrite) -> ScheduleClass:
        schedule_class = ScheduleClass(id=new_id(), **payload.model_dump())
        conn = self._db.connect()
        try:
            with conn:
                conn.execute(
                    "INSERT INTO schedule_classes (id, user_id, day_of_week, start_time, end_time, "
                    "subject, room, teacher, color, created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        schedule_class.id,
                        user_id,
                        schedule_class.day_of_week,
                        schedule_class.start_time,
                        schedule_class.end_time,
                        schedule_class.subject,
                        schedule_class.room,
                        schedule_class.teacher,
                        schedule_class.color,
                        utcnow_iso(),
                    ),
                )
            return schedule_class
        finally:
            conn.close()

    def update_class(
        self, user_id: str, class_id: str, payload: ScheduleClassWrite
    ) -> ScheduleClass:
        conn = self._db.connect()
        try:
            self._get_class(conn, user_id, class_id)
            with conn:
                conn.execute(
                    "UPDATE schedule_classes SET day_of_week = ?, start_time = ?, end_time = ?, "
                    "subject = ?, room = ?, teacher = ?, color = ? WHERE user_id = ? AND id = ?",
                    (
                        payload.day_of_week,
                        payload.start_time,
                        payload.end_time,
                        payload.subject,
                        payload.room,
                        payload.teacher,
                        payload.color,
                        user_id,
                        class_id,
                    ),
                )
            return self._get_class(conn, user_id, class_id)
        finally:
            conn.close()

    def delete_class(self, user_id: str, class_id: str) -> None:
        conn = self._db.connect()
        try:
            with conn:
                cursor = conn.execute(
                    "DELETE FROM schedule_classes WHERE user_id = ? AND id = ?", (user_id, class_id)
                )
            if cursor.rowcount == 0:
                raise NotFoundError("class", class_id)
        finally:
            conn.close()


_calendar_service: Optional[CalendarService] = None


def get_calendar_service() -> CalendarService:
    """Get or create the calendar service singleton."""
    global _calendar_service
    if _calendar_service is None:
        _calendar_service = CalendarService()
    return _calendar_service


__all__ = ["CalendarService", "UPCOMING_HORIZON_DAYS", "get_calendar_service", "is_upcoming"]
