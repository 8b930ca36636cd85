"""Folder models."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field


class Folder(BaseModel):
    """A folder in the user's study tree."""

    id: str
    name: str
    parent_id: Optional[str] = None
    color: Optional[str] = None
    created_at: datetime


class FolderCreate(BaseModel):
    """Request payload to create a folder."""

    name: str = Field(..., min_length=1, max_length=128)
    parent_id: Optional[str] = None
    color: Optional[str] = Field(None, max_length=64)


class FolderUpdate(BaseModel):
    """Rename, recolor or move a folder. Only provided fields change."""

    name: Optional[str] = Field(None, min_length=1, max_length=128)
    color: Optional[str] = Field(None, max_length=64)
    parent_id: Optional[str] = Field(
        None, description="New parent folder; send an empty string to move to the root"
    )


class FolderItem(BaseModel):
    """Lightweight entry for anything filed in a folder."""

    id: str
    kind: Literal["cornell", "mindmap", "deck", "glossary", "concept"]
    title: str
    updated_at: datetime


class FolderContents(BaseModel):
    """A folder with its direct subfolders and items."""

    folder: Folder
    subfolders: list[Folder]
    items: list[FolderItem]


__all__ = ["Folder", "FolderCreate", "FolderUpdate", "FolderItem", "FolderContents"]
