"""HTTP API routes for Cornell notes."""

from __future__ import annotations

import re
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.responses import PlainTextResponse

from ...models.note import CornellNote, CornellNoteWrite
from ...services.database import NotFoundError
from ...services.notes import NoteService, get_note_service
from ..middleware import AuthContext, bad_request, get_auth_context, not_found

router = APIRouter(prefix="/api/notes", tags=["notes"])


@router.get("", response_model=List[CornellNote])
async def list_notes(
    folder_id: Optional[str] = Query(None, description="Optional folder filter"),
    limit: Optional[int] = Query(None, ge=1, le=500),
    auth: AuthContext = Depends(get_auth_context),
    service: NoteService = Depends(get_note_service),
):
    """List notes, newest first."""
    return service.list_notes(auth.user_id, folder_id=folder_id, limit=limit)


@router.post("", response_model=CornellNote, status_code=status.HTTP_201_CREATED)
async def create_note(
    payload: CornellNoteWrite,
    auth: AuthContext = Depends(get_auth_context),
    service: NoteService = Depends(get_note_service),
):
    try:
        return service.create_note(auth.user_id, payload)
    except ValueError as exc:
        raise bad_request(exc) from exc


@router.get("/{note_id}", response_model=CornellNote)
async def get_note(
    note_id: str,
    auth: AuthContext = Depends(get_auth_context),
    service: NoteService = Depends(get_note_service),
):
    try:
        return service.get_note(auth.user_id, note_id)
    except NotFoundError as exc:
        raise not_found(exc) from exc


@router.put("/{note_id}", response_model=CornellNote)
async def save_note(
    note_id: str,
    payload: CornellNoteWrite,
    auth: AuthContext = Depends(get_auth_context),
    service: NoteService = Depends(get_note_service),
):
    """Create or replace the note with this id."""
    try:
        return service.upsert_note(auth.user_id, note_id, payload)
    except NotFoundError as exc:
        raise not_found(exc) from exc
    except ValueError as exc:
        raise bad_request(exc) from exc


@router.delete("/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_note(
    note_id: str,
    auth: AuthContext = Depends(get_auth_context),
    service: NoteService = Depends(get_note_service),
):
    try:
        service.delete_note(auth.user_id, note_id)
    except NotFoundError as exc:
        raise not_found(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{note_id}/export", response_class=PlainTextResponse)
async def export_note(
    note_id: str,
    auth: AuthContext = Depends(get_auth_context),
    service: NoteService = Depends(get_note_service),
):
    """Download the note as Markdown with YAML front matter."""
    try:
        note = service.get_note(auth.user_id, note_id)
        content = service.export_markdown(auth.user_id, note_id)
    except NotFoundError as exc:
        raise not_found(exc) from exc
    filename = re.sub(r"[^\w\-]+", "-", note.title).strip("-") or "note"
    return PlainTextResponse(
        content,
        media_type="text/markdown; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}.md"'},
    )
