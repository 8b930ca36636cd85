"""Folder tree operations.

Deleting a folder removes its descendant folders (``parent_id`` cascades) and
detaches every note, map, deck, glossary term and concept that was filed in one
of them (``folder_id`` is set to NULL). Study content is never deleted
implicitly.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from typing import List, Optional

from ..models.folder import Folder, FolderContents, FolderCreate, FolderItem, FolderUpdate
from .database import DatabaseService, NotFoundError, new_id, utcnow_iso

logger = logging.getLogger(__name__)

_ROOT = object()

FOLDER_ITEMS_SQL = """
    SELECT id, 'cornell' AS kind, title, updated_at FROM cornell_notes
        WHERE user_id = :user_id AND folder_id = :folder_id
    UNION ALL
    SELECT id, 'mindmap', CASE WHEN title = '' THEN central_concept ELSE title END, updated_at
        FROM mind_maps WHERE user_id = :user_id AND folder_id = :folder_id
    UNION ALL
    SELECT id, 'deck', title, updated_at FROM flashcard_decks
        WHERE user_id = :user_id AND folder_id = :folder_id
    UNION ALL
    SELECT id, 'glossary', term, updated_at FROM glossary
        WHERE user_id = :user_id AND folder_id = :folder_id
    UNION ALL
    SELECT id, 'concept', title, updated_at FROM knowledge_concepts
        WHERE user_id = :user_id AND folder_id = :folder_id
    ORDER BY updated_at DESC
"""


def _row_to_folder(row: sqlite3.Row) -> Folder:
    return Folder(
        id=row["id"],
        name=row["name"],
        parent_id=row["parent_id"],
        color=row["color"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )


class FolderService:
    """Service for folder CRUD and tree queries."""

    def __init__(self, db_service: DatabaseService | None = None):
        self._db = db_service or DatabaseService()

    def list_folders(self, user_id: str, parent_id: object = _ROOT) -> List[Folder]:
        """List folders; pass ``parent_id`` (or None for top level) to list one level."""
        conn = self._db.connect()
        try:
            if parent_id is _ROOT:
                cursor = conn.execute(
                    "SELECT * FROM folders WHERE user_id = ? ORDER BY name", (user_id,)
                )
            elif parent_id is None:
                cursor = conn.execute(
                    "SELECT * FROM folders WHERE user_id = ? AND parent_id IS NULL ORDER BY name",
                    (user_id,),
                )
            else:
                cursor = conn.execute(
                    "SELECT * FROM folders WHERE user_id = ? AND parent_id = ? ORDER BY name",
                    (user_id, parent_id),
                )
            return [_row_to_folder(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def _fetch(self, conn: sqlite3.Connection, user_id: str, folder_id: str) -> Folder:
        row = conn.execute(
            "SELECT * FROM folders WHERE user_id = ? AND id = ?", (user_id, folder_id)
        ).fetchone()
        if not row:
            raise NotFoundError("folder", folder_id)
        return _row_to_folder(row)

    def get_folder(self, user_id: str, folder_id: str) -> Folder:
        conn = self._db.connect()
        try:
            return self._fetch(conn, user_id, folder_id)
        finally:
            conn.close()

    def create_folder(self, user_id: str, payload: FolderCreate) -> Folder:
        conn = self._db.connect()
        try:
            if payload.parent_id:
                self._fetch(conn, user_id, payload.parent_id)
            folder = Folder(
                id=new_id(),
                name=payload.name.strip(),
                parent_id=payload.parent_id or None,
                color=payload.color,
                created_at=datetime.fromisoformat(utcnow_iso()),
            )
            with conn:
                conn.execute(
                    "INSERT INTO folders (id, user_id, name, parent_id, color, created_at) "
                    "VALUES (?, ?, ?, ?, ?, ?)",
                    (
                        folder.id,
                        user_id,
                        folder.name,
                        folder.parent_id,
                        folder.color,
                        folder.created_at.isoformat(),
                    ),
                )
            logger.info(f"Created folder {folder.id} for user {user_id}")
            return folder
        finally:
            conn.close()

    def _descendant_ids(self, conn: sqlite3.Connection, user_id: str, folder_id: str) -> set[str]:
        cursor = conn.execute(
            """
            WITH RECURSIVE subtree(id) AS (
                SELECT id FROM folders WHERE user_id = ? AND parent_id = ?
                UNION
                SELECT f.id FROM folders f JOIN subtree s ON f.parent_id = s.id
            )
            SELECT id FROM subtree
            """,
            (user_id, folder_id),
        )
        return {row["id"] for row in cursor.fetchall()}

    def update_folder(self, user_id: str, folder_id: str, payload: FolderUpdate) -> Folder:
        conn = self._db.connect()
        try:
            current = self._fetch(conn, user_id, folder_id)
            parent_id = current.parent_id
            if payload.parent_id is not None:
                parent_id = payload.parent_id or None
                if parent_id is not None:
                    if parent_id == folder_id or parent_id in self._descendant_ids(
                        conn, user_id, folder_id
                    ):
                        raise ValueError("A folder cannot be moved inside itself")
                    self._fetch(conn, user_id, parent_id)

            updated = current.model_copy(
                update={
                    "name": payload.name.strip() if payload.name else current.name,
                    "color": payload.color if payload.color is not None else current.color,
                    "parent_id": parent_id,
                }
            )
            with conn:
                conn.execute(
                    "UPDATE folders SET name = ?, color = ?, parent_id = ? WHERE user_id = ? AND id = ?",
                    (updated.name, updated.color, updated.parent_id, user_id, folder_id),
                )
            return updated
        finally:
            conn.close()

    def delete_folder(self, user_id: str, folder_id: str) -> int:
        """Delete a folder subtree. Returns the number of folders removed."""
        conn = self._db.connect()
        try:
            self._fetch(conn, user_id, folder_id)
            removed = 1 + len(self._descendant_ids(conn, user_id, folder_id))
            with conn:
                conn.execute("DELETE FROM folders WHERE user_id = ? AND id = ?", (user_id, folder_id))
            logger.info(f"Deleted folder {folder_id} ({removed} folder(s)) for user {user_id}")
            return removed
        finally:
            conn.close()

    def get_contents(self, user_id: str, folder_id: str) -> FolderContents:
        conn = self._db.connect()
        try:
            folder = self._fetch(conn, user_id, folder_id)
            subfolders = [
                _row_to_folder(row)
                for row in conn.execute(
                    "SELECT * FROM folders WHERE user_id = ? AND parent_id = ? ORDER BY name",
                    (user_id, folder_id),
                ).fetchall()
            ]
            items = [
                FolderItem(
                    id=row["id"],
                    kind=row["kind"],
                    title=row["title"],
                    updated_at=datetime.fromisoformat(row["updated_at"]),
                )
                for row in conn.execute(
                    FOLDER_ITEMS_SQL, {"user_id": user_id, "folder_id": folder_id}
                ).fetchall()
            ]
            return FolderContents(folder=folder, subfolders=subfolders, items=items)
        finally:
            conn.close()


_folder_service: Optional[FolderService] = None


def get_folder_service() -> FolderService:
    """Get or create the folder service singleton."""
    global _folder_service
    if _folder_service is None:
        _folder_service = FolderService()
    return _folder_service


__all__ = ["FolderService", "get_folder_service"]
