"""AI study assistant request/response models."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class AIAction(str, Enum):
    GENERATE_FLASHCARDS = "generate-flashcards"
    SUMMARIZE_NOTES = "summarize-notes"
    SUGGEST_KEYWORDS = "suggest-keywords"


class AIRequest(BaseModel):
    """Body of POST /api/ai/study-assistant."""

    action: str = Field(..., description="generate-flashcards | summarize-notes | suggest-keywords")
    text: str = Field("", max_length=200_000)
    count: Optional[int] = Field(None, ge=1, le=50, description="Flashcards to generate")


class GeneratedFlashcard(BaseModel):
    front: str
    back: str


class SuggestedKeyword(BaseModel):
    text: str
    definition: str = ""


class GenerateCardsRequest(BaseModel):
    """Generate cards from text and store them in a deck."""

    text: str = Field("", max_length=200_000)
    count: int = Field(5, ge=1, le=50)


__all__ = [
    "AIAction",
    "AIRequest",
    "GeneratedFlashcard",
    "SuggestedKeyword",
    "GenerateCardsRequest",
]
