"""Tag models shared by every taggable resource."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

Priority = Literal["low", "medium", "high", "critical"]

DEFAULT_TAG_COLOR = "hsl(200, 70%, 50%)"


class Tag(BaseModel):
    """A user-defined label."""

    id: str
    name: str
    color: str


class TagCreate(BaseModel):
    """Request payload to create a tag."""

    name: str = Field(..., min_length=1, max_length=64)
    color: str = Field(DEFAULT_TAG_COLOR, max_length=64)


class TagUpdate(BaseModel):
    """Partial tag update."""

    name: Optional[str] = Field(None, min_length=1, max_length=64)
    color: Optional[str] = Field(None, max_length=64)


__all__ = ["Priority", "Tag", "TagCreate", "TagUpdate", "DEFAULT_TAG_COLOR"]
