"""Mind map models."""

from __future__ import annotations

from datetime import datetime
from typing import Optional
import uuid

from pydantic import BaseModel, Field

from .tag import Priority, Tag


class MindMapNode(BaseModel):
    """A positioned node on the mind-map canvas."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    text: str = Field(..., max_length=1024)
    x: float = 0.0
    y: float = 0.0
    parent_id: Optional[str] = None
    color: Optional[str] = None


class MindMapFields(BaseModel):
    """Editable fields of a mind map."""

    title: str = Field("", max_length=256)
    central_concept: str = Field(..., min_length=1, max_length=512)
    nodes: list[MindMapNode] = Field(default_factory=list)
    priority: Priority = "medium"
    folder_id: Optional[str] = None


class MindMapWrite(MindMapFields):
    """Request payload to create or save a mind map (also the autosave draft shape)."""

    tag_ids: list[str] = Field(default_factory=list)


class MindMap(MindMapFields):
    """Complete mind map."""

    id: str
    tags: list[Tag] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


__all__ = ["MindMapNode", "MindMapFields", "MindMapWrite", "MindMap"]
