"""User profile store and study streak tracking."""

from __future__ import annotations

import logging
import threading
import uuid
from datetime import date
from typing import Callable, Dict, List, Optional

from ..models.profile import Profile, ProfileUpdate, StudyStreak
from .database import DatabaseService, utcnow_iso

logger = logging.getLogger(__name__)

ProfileListener = Callable[[Profile], None]

PROFILE_FIELDS = ("name", "nickname", "profession", "university", "course")


class ProfileStore:
    """
    Observable per-user profile store.

    Components that display profile data subscribe once and receive every
    saved profile of that user. ``subscribe`` returns a callable that removes
    the listener again.
    """

    def __init__(self, db_service: DatabaseService | None = None):
        self._db = db_service or DatabaseService()
        self._listeners: Dict[str, List[ProfileListener]] = {}
        self._lock = threading.Lock()

    def subscribe(self, user_id: str, listener: ProfileListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.setdefault(user_id, []).append(listener)

        def unsubscribe() -> None:
            with self._lock:
                listeners = self._listeners.get(user_id, [])
                if listener in listeners:
                    listeners.remove(listener)
                if not listeners:
                    self._listeners.pop(user_id, None)

        return unsubscribe

    def _publish(self, user_id: str, profile: Profile) -> None:
        with self._lock:
            listeners = list(self._listeners.get(user_id, []))
        for listener in listeners:
            try:
                listener(profile)
            except Exception:
                logger.exception(f"Profile listener failed for user {user_id}")

    def get_profile(self, user_id: str) -> Profile:
        """Return the stored profile, creating an empty one with a fresh avatar seed."""
        conn = self._db.connect()
        try:
            row = conn.execute("SELECT * FROM profiles WHERE user_id = ?", (user_id,)).fetchone()
            if row:
                return Profile(**{key: row[key] for key in (*PROFILE_FIELDS, "avatar_seed")})
            profile = Profile(avatar_seed=str(uuid.uuid4()))
            with conn:
                conn.execute(
                    "INSERT OR IGNORE INTO profiles (user_id, avatar_seed, updated_at) VALUES (?, ?, ?)",
                    (user_id, profile.avatar_seed, utcnow_iso()),
                )
            return profile
        finally:
            conn.close()

    def update_profile(self, user_id: str, payload: ProfileUpdate) -> Profile:
        current = self.get_profile(user_id)
        changes = payload.model_dump(include=set(PROFILE_FIELDS), exclude_none=True)
        changes = {key: value.strip() for key, value in changes.items()}
        if payload.regenerate_avatar:
            changes["avatar_seed"] = str(uuid.uuid4())
        profile = current.model_copy(update=changes)

        conn = self._db.connect()
        try:
            with conn:
                conn.execute(
                    """
                    UPDATE profiles SET name = ?, nickname = ?, profession = ?,
                        university = ?, course = ?, avatar_seed = ?, updated_at = ?
                    WHERE user_id = ?
                    """,
                    (
                        profile.name,
                        profile.nickname,
                        profile.profession,
                        profile.university,
                        profile.course,
                        profile.avatar_seed,
                        utcnow_iso(),
                        user_id,
                    ),
                )
        finally:
            conn.close()
        logger.info(f"Updated profile for user {user_id}")
        self._publish(user_id, profile)
        return profile


def advance_streak(streak: StudyStreak, today: date) -> StudyStreak:
    """Apply one study day to a streak.

    Same day: unchanged. Next day: +1. Any longer gap: back to 1.
    """
    if streak.last_study_date == today:
        return streak
    current = streak.current_streak
    if streak.last_study_date is None:
        current = 1
    else:
        gap = (today - streak.last_study_date).days
        if gap == 1:
            current += 1
        elif gap > 1:
            current = 1
    return StudyStreak(
        current_streak=current,
        longest_streak=max(current, streak.longest_streak),
        last_study_date=today,
    )


class StreakService:
    """Persisted study streak per user."""

    def __init__(self, db_service: DatabaseService | None = None):
        self._db = db_service or DatabaseService()

    def get_streak(self, user_id: str) -> StudyStreak:
        conn = self._db.connect()
        try:
            row = conn.execute(
                "SELECT * FROM study_streaks WHERE user_id = ?", (user_id,)
            ).fetchone()
            if not row:
                return StudyStreak()
            return StudyStreak(
                current_streak=row["current_streak"],
                longest_streak=row["longest_streak"],
                last_study_date=(
                    date.fromisoformat(row["last_study_date"]) if row["last_study_date"] else None
                ),
            )
        finally:
            conn.close()

    def record_study_day(self, user_id: str, today: Optional[date] = None) -> StudyStreak:
        today = today or date.today()
        current = self.get_streak(user_id)
        updated = advance_streak(current, today)
        if updated is current:
            return current
        conn = self._db.connect()
        try:
            with conn:
                conn.execute(
                    """
                    INSERT INTO study_streaks (user_id, current_streak, longest_streak, last_study_date)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(user_id) DO UPDATE SET
                        current_streak = excluded.current_streak,
                        longest_streak = excluded.longest_streak,
                        last_study_date = excluded.last_study_date
                    """,
                    (
                        user_id,
                        updated.current_streak,
                        updated.longest_streak,
                        updated.last_study_date.isoformat(),
                    ),
                )
        finally:
            conn.close()
        return updated


_profile_store: Optional[ProfileStore] = None
_streak_service: Optional[StreakService] = None


def get_profile_store() -> ProfileStore:
    """Get or create the profile store singleton."""
    global _profile_store
    if _profile_store is None:
        _profile_store = ProfileStore()
    return _profile_store


def get_streak_service() -> StreakService:
    global _streak_service
    if _streak_service is None:
        _streak_service = StreakService()
    return _streak_service


__all__ = [
    "ProfileStore",
    "StreakService",
    "advance_streak",
    "get_profile_store",
    "get_streak_service",
]
