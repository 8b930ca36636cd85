"""Flashcard deck and card models."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from .tag import Tag


class DeckWrite(BaseModel):
    """Request payload to create or update a deck."""

    title: str = Field(..., min_length=1, max_length=256)
    description: str = Field("", max_length=4096)
    folder_id: Optional[str] = None
    tag_ids: list[str] = Field(default_factory=list)


class FlashcardDeck(BaseModel):
    """Deck with its tags and card count."""

    id: str
    title: str
    description: str = ""
    folder_id: Optional[str] = None
    tags: list[Tag] = Field(default_factory=list)
    card_count: int = 0
    created_at: datetime
    updated_at: datetime


class FlashcardWrite(BaseModel):
    """Front/back of a card."""

    front: str = Field(..., min_length=1, max_length=8192)
    back: str = Field(..., min_length=1, max_length=8192)


class Flashcard(FlashcardWrite):
    """A stored card."""

    id: str
    deck_id: str
    created_at: datetime
    updated_at: datetime


class CSVImportRequest(BaseModel):
    """Raw CSV text: first column front, second column back."""

    content: str = Field(..., min_length=1, max_length=1_048_576)


class CSVImportResponse(BaseModel):
    deck_id: str
    imported: int


__all__ = [
    "DeckWrite",
    "FlashcardDeck",
    "FlashcardWrite",
    "Flashcard",
    "CSVImportRequest",
    "CSVImportResponse",
]
