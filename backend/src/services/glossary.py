"""Glossary term storage."""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from typing import List, Optional

from ..models.glossary import GlossaryTerm, GlossaryTermWrite
from .database import DatabaseService, NotFoundError, new_id, require_folder, utcnow_iso

logger = logging.getLogger(__name__)


def _row_to_term(row: sqlite3.Row) -> GlossaryTerm:
    return GlossaryTerm(
        id=row["id"],
        term=row["term"],
        definition=row["definition"],
        folder_id=row["folder_id"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


class GlossaryService:
    def __init__(self, db_service: DatabaseService | None = None):
        self._db = db_service or DatabaseService()

    def list_terms(self, user_id: str) -> List[GlossaryTerm]:
        """All terms, alphabetical (case-insensitive)."""
        conn = self._db.connect()
        try:
            rows = conn.execute(
                "SELECT * FROM glossary WHERE user_id = ? ORDER BY term COLLATE NOCASE",
                (user_id,),
            ).fetchall()
            return [_row_to_term(row) for row in rows]
        finally:
            conn.close()

    def get_term(self, user_id: str, term_id: str) -> GlossaryTerm:
        conn = self._db.connect()
        try:
            row = conn.execute(
                "SELECT * FROM glossary WHERE user_id = ? AND id = ?", (user_id, term_id)
            ).fetchone()
            if not row:
                raise NotFoundError("glossary term", term_id)
            return _row_to_term(row)
        finally:
            conn.close()

    def create_term(self, user_id: str, payload: GlossaryTermWrite) -> GlossaryTerm:
        term_id = new_id()
        now = utcnow_iso()
        conn = self._db.connect()
        try:
            require_folder(conn, user_id, payload.folder_id)
            with conn:
                conn.execute(
                    "INSERT INTO glossary (id, user_id, term, definition, folder_id, created_at, "
                    "updated_at) VALUES (?, ?, ?, ?, ?, ?, ?)",
                    (term_id, user_id, payload.term, payload.definition, payload.folder_id, now, now),
                )
        finally:
            conn.close()
        return self.get_term(user_id, term_id)

    def update_term(self, user_id: str, term_id: str, payload: GlossaryTermWrite) -> GlossaryTerm:
        conn = self._db.connect()
        try:
            require_folder(conn, user_id, payload.folder_id)
            with conn:
                cursor = conn.execute(
                    "UPDATE glossary SET term = ?, definition = ?, folder_id = ?, updated_at = ? "
                    "WHERE user_id = ? AND id = ?",
                    (
                        payload.term,
                        payload.definition,
                        payload.folder_id,
                        utcnow_iso(),
                        user_id,
                        term_id,
                    ),
                )
            if cursor.rowcount == 0:
                raise NotFoundError("glossary term", term_id)
        finally:
            conn.close()
        return self.get_term(user_id, term_id)

    def delete_term(self, user_id: str, term_id: str) -> None:
        conn = self._db.connect()
        try:
            with conn:
                cursor = conn.execute(
                    "DELETE FROM glossary WHERE user_id = ? AND id = ?", (user_id, term_id)
                )
            if cursor.rowcount == 0:
                raise NotFoundError("glossary term", term_id)
        finally:
            conn.close()


_glossary_service: Optional[GlossaryService] = None


def get_glossary_service() -> GlossaryService:
    global _glossary_service
    if _glossary_service is None:
        _glossary_service = GlossaryService()
    return _glossary_service


__all__ = ["GlossaryService", "get_glossary_service"]
