"""Cornell note models."""

from __future__ import annotations

from datetime import date as date_type, datetime
from typing import Optional
import uuid

from pydantic import BaseModel, ConfigDict, Field

from .tag import Priority, Tag


def _new_id() -> str:
    return str(uuid.uuid4())


class Keyword(BaseModel):
    """Cue-column keyword of a Cornell note."""

    id: str = Field(default_factory=_new_id)
    text: str = Field(..., max_length=256)


class CornellNoteFields(BaseModel):
    """Editable fields of a Cornell note."""

    title: str = Field(..., min_length=1, max_length=256)
    subject: Optional[str] = Field(None, max_length=256)
    date: date_type = Field(default_factory=date_type.today)
    lesson_number: Optional[str] = Field(None, max_length=64)
    keywords: list[Keyword] = Field(default_factory=list)
    main_notes: str = Field("", max_length=1_048_576)
    summary: str = Field("", max_length=65_536)
    priority: Priority = "medium"
    folder_id: Optional[str] = None


class CornellNoteWrite(CornellNoteFields):
    """Request payload to create or save a note (also the autosave draft shape)."""

    tag_ids: list[str] = Field(default_factory=list)


class CornellNote(CornellNoteFields):
    """Complete Cornell note."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "0b7c5c1e-4b0e-4a53-9d0c-3f5f0a1c2d11",
                "title": "Anatomia",
                "subject": "Biologia",
                "date": "2025-03-10",
                "keywords": [{"id": "k1", "text": "Osso"}],
                "main_notes": "O fêmur é o maior osso do corpo humano.",
                "summary": "Estrutura do fêmur.",
                "tags": [{"id": "t1", "name": "Importante", "color": "hsl(333, 71%, 50%)"}],
                "priority": "high",
                "created_at": "2025-03-10T12:00:00+00:00",
                "updated_at": "2025-03-10T12:05:00+00:00",
            }
        }
    )

    id: str
    tags: list[Tag] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


__all__ = ["Keyword", "CornellNoteFields", "CornellNoteWrite", "CornellNote"]
