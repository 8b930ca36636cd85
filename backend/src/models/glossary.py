"""Glossary models."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class GlossaryTermWrite(BaseModel):
    """Request payload to create or update a glossary term."""

    term: str = Field(..., max_length=256)
    definition: str = Field(..., max_length=8192)
    folder_id: Optional[str] = None

    @field_validator("term", "definition")
    @classmethod
    def _strip_required(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("must not be blank")
        return cleaned


class GlossaryTerm(BaseModel):
    id: str
    term: str
    definition: str
    folder_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime


__all__ = ["GlossaryTermWrite", "GlossaryTerm"]
