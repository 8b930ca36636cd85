"""Autosave session models."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel

DraftKind = Literal["cornell", "mindmap"]


class AutosaveStatus(BaseModel):
    kind: DraftKind
    entity_id: str
    state: str
    is_saving: bool
    has_pending: bool
    last_saved_at: Optional[datetime] = None


class AutosaveClosed(BaseModel):
    kind: DraftKind
    entity_id: str
    flush_scheduled: bool


__all__ = ["DraftKind", "AutosaveStatus", "AutosaveClosed"]
