"""Profile and study streak models."""

from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, computed_field

AVATAR_URL_TEMPLATE = "https://api.dicebear.com/7.x/identicon/svg?seed={seed}"


class Profile(BaseModel):
    name: str = ""
    nickname: str = ""
    profession: str = ""
    university: str = ""
    course: str = ""
    avatar_seed: str = ""

    @computed_field  # type: ignore[misc]
    @property
    def avatar_url(self) -> str:
        return AVATAR_URL_TEMPLATE.format(seed=self.avatar_seed)


class ProfileUpdate(BaseModel):
    """Partial profile update. Only provided fields change."""

    name: Optional[str] = Field(None, max_length=128)
    nickname: Optional[str] = Field(None, max_length=64)
    profession: Optional[str] = Field(None, max_length=128)
    university: Optional[str] = Field(None, max_length=256)
    course: Optional[str] = Field(None, max_length=256)
    regenerate_avatar: bool = False


class StudyStreak(BaseModel):
    current_streak: int = 0
    longest_streak: int = 0
    last_study_date: Optional[date] = None


__all__ = ["AVATAR_URL_TEMPLATE", "Profile", "ProfileUpdate", "StudyStreak"]
