"""Cornell note storage."""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import date, datetime
from typing import List, Optional

import frontmatter

from ..models.note import CornellNote, CornellNoteWrite, Keyword
from .database import DatabaseService, NotFoundError, new_id, require_folder, utcnow_iso
from .tags import load_tags, replace_tags

logger = logging.getLogger(__name__)

NOTE_TAGS = "cornell_note_tags"


def _row_to_note(row: sqlite3.Row, tags) -> CornellNote:
    return CornellNote(
        id=row["id"],
        title=row["title"],
        subject=row["subject"],
        date=date.fromisoformat(row["date"]),
        lesson_number=row["lesson_number"],
        keywords=[Keyword(**item) for item in json.loads(row["keywords"] or "[]")],
        main_notes=row["main_notes"],
        summary=row["summary"],
        priority=row["priority"],
        folder_id=row["folder_id"],
        tags=tags,
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


class NoteService:
    """CRUD and upsert for Cornell notes."""

    def __init__(self, db_service: DatabaseService | None = None):
        self._db = db_service or DatabaseService()

    def list_notes(
        self,
        user_id: str,
        *,
        folder_id: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[CornellNote]:
        """Notes newest first, optionally restricted to one folder."""
        query = "SELECT * FROM cornell_notes WHERE user_id = ?"
        params: list = [user_id]
        if folder_id:
            query += " AND folder_id = ?"
            params.append(folder_id)
        query += " ORDER BY created_at DESC"
        if limit:
            query += " LIMIT ?"
            params.append(limit)

        conn = self._db.connect()
        try:
            rows = conn.execute(query, params).fetchall()
            tags = load_tags(conn, NOTE_TAGS, [row["id"] for row in rows])
            return [_row_to_note(row, tags[row["id"]]) for row in rows]
        finally:
            conn.close()

    def get_note(self, user_id: str, note_id: str) -> CornellNote:
        conn = self._db.connect()
        try:
            row = conn.execute(
                "SELECT * FROM cornell_notes WHERE user_id = ? AND id = ?",
                (user_id, note_id),
            ).fetchone()
            if not row:
                raise NotFoundError("note", note_id)
            tags = load_tags(conn, NOTE_TAGS, [note_id])
            return _row_to_note(row, tags[note_id])
        finally:
            conn.close()

    def create_note(self, user_id: str, payload: CornellNoteWrite) -> CornellNote:
        return self.upsert_note(user_id, new_id(), payload)

    def upsert_note(self, user_id: str, note_id: str, payload: CornellNoteWrite) -> CornellNote:
        """
        Insert or replace a note by id.

        ``created_at`` of an existing note is preserved. This is the persist
        target of autosave sessions, so repeated calls with the same payload
        are harmless.
        """
        now = utcnow_iso()
        keywords = json.dumps([keyword.model_dump() for keyword in payload.keywords])
        conn = self._db.connect()
        try:
            owner = conn.execute(
                "SELECT user_id FROM cornell_notes WHERE id = ?", (note_id,)
            ).fetchone()
            if owner and owner["user_id"] != user_id:
                raise NotFoundError("note", note_id)
            require_folder(conn, user_id, payload.folder_id)
            with conn:
                conn.execute(
                    """
                    INSERT INTO cornell_notes (
                        id, user_id, title, subject, date, lesson_number, keywords,
                        main_notes, summary, priority, folder_id, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        title = excluded.title,
                        subject = excluded.subject,
                        date = excluded.date,
                        lesson_number = excluded.lesson_number,
                        keywords = excluded.keywords,
                        main_notes = excluded.main_notes,
                        summary = excluded.summary,
                        priority = excluded.priority,
                        folder_id = excluded.folder_id,
                        updated_at = excluded.updated_at
                    """,
                    (
                        note_id,
                        user_id,
                        payload.title,
                        payload.subject,
                        payload.date.isoformat(),
                        payload.lesson_number,
                        keywords,
                        payload.main_notes,
                        payload.summary,
                        payload.priority,
                        payload.folder_id,
                        now,
                        now,
                    ),
                )
                replace_tags(conn, NOTE_TAGS, note_id, user_id, payload.tag_ids)
            logger.debug(f"Saved note {note_id} for user {user_id}")
        finally:
            conn.close()
        return self.get_note(user_id, note_id)

    def delete_note(self, user_id: str, note_id: str) -> None:
        conn = self._db.connect()
        try:
            with conn:
                cursor = conn.execute(
                    "DELETE FROM cornell_notes WHERE user_id = ? AND id = ?",
                    (user_id, note_id),
                )
            if cursor.rowcount == 0:
                raise NotFoundError("note", note_id)
            logger.info(f"Deleted note {note_id} for user {user_id}")
        finally:
            conn.close()

    def export_markdown(self, user_id: str, note_id: str) -> str:
        """Render a note as Markdown with YAML front matter."""
        note = self.get_note(user_id, note_id)
        metadata = {
            "title": note.title,
            "date": note.date.isoformat(),
            "priority": note.priority,
            "keywords": [keyword.text for keyword in note.keywords],
            "tags": [tag.name for tag in note.tags],
        }
        if note.subject:
            metadata["subject"] = note.subject
        if note.lesson_number:
            metadata["lesson"] = note.lesson_number

        body_parts = [f"# {note.title}", "", note.main_notes.strip()]
        if note.summary.strip():
            body_parts.extend(["", "## Summary", "", note.summary.strip()])
        post = frontmatter.Post("\n".join(body_parts).strip() + "\n", **metadata)
        return frontmatter.dumps(post)


_note_service: Optional[NoteService] = None


def get_note_service() -> NoteService:
    """Get or create the note service singleton."""
    global _note_service
    if _note_service is None:
        _note_service = NoteService()
    return _note_service


__all__ = ["NoteService", "get_note_service"]
