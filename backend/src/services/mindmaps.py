"""Mind map storage."""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime
from typing import List, Optional

from ..models.mindmap import MindMap, MindMapNode, MindMapWrite
from .database import DatabaseService, NotFoundError, new_id, require_folder, utcnow_iso
from .tags import load_tags, replace_tags

logger = logging.getLogger(__name__)

MIND_MAP_TAGS = "mind_map_tags"


def _row_to_mind_map(row: sqlite3.Row, tags) -> MindMap:
    return MindMap(
        id=row["id"],
        title=row["title"],
        central_concept=row["central_concept"],
        nodes=[MindMapNode(**node) for node in json.loads(row["nodes"] or "[]")],
        priority=row["priority"],
        folder_id=row["folder_id"],
        tags=tags,
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


class MindMapService:
    """CRUD and upsert for mind maps. Nodes are stored as a JSON array."""

    def __init__(self, db_service: DatabaseService | None = None):
        self._db = db_service or DatabaseService()

    def list_mind_maps(
        self, user_id: str, *, folder_id: Optional[str] = None
    ) -> List[MindMap]:
        query = "SELECT * FROM mind_maps WHERE user_id = ?"
        params: list = [user_id]
        if folder_id:
            query += " AND folder_id = ?"
            params.append(folder_id)
        query += " ORDER BY created_at DESC"

        conn = self._db.connect()
        try:
            rows = conn.execute(query, params).fetchall()
            tags = load_tags(conn, MIND_MAP_TAGS, [row["id"] for row in rows])
            return [_row_to_mind_map(row, tags[row["id"]]) for row in rows]
        finally:
            conn.close()

    def get_mind_map(self, user_id: str, map_id: str) -> MindMap:
        conn = self._db.connect()
        try:
            row = conn.execute(
                "SELECT * FROM mind_maps WHERE user_id = ? AND id = ?", (user_id, map_id)
            ).fetchone()
            if not row:
                raise NotFoundError("mind map", map_id)
            tags = load_tags(conn, MIND_MAP_TAGS, [map_id])
            return _row_to_mind_map(row, tags[map_id])
        finally:
            conn.close()

    def create_mind_map(self, user_id: str, payload: MindMapWrite) -> MindMap:
        return self.upsert_mind_map(user_id, new_id(), payload)

    def upsert_mind_map(self, user_id: str, map_id: str, payload: MindMapWrite) -> MindMap:
        """Insert or replace a mind map by id, keeping the original created_at."""
        now = utcnow_iso()
        nodes = json.dumps([node.model_dump() for node in payload.nodes])
        conn = self._db.connect()
        try:
            owner = conn.execute(
                "SELECT user_id FROM mind_maps WHERE id = ?", (map_id,)
            ).fetchone()
            if owner and owner["user_id"] != user_id:
                raise NotFoundError("mind map", map_id)
            require_folder(conn, user_id, payload.folder_id)
            with conn:
                conn.execute(
                    """
                    INSERT INTO mind_maps (
                        id, user_id, title, central_concept, nodes, priority,
                        folder_id, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        title = excluded.title,
                        central_concept = excluded.central_concept,
                        nodes = excluded.nodes,
                        priority = excluded.priority,
                        folder_id = excluded.folder_id,
                        updated_at = excluded.updated_at
                    """,
                    (
                        map_id,
                        user_id,
                        payload.title,
                        payload.central_concept,
                        nodes,
                        payload.priority,
                        payload.folder_id,
                        now,
                        now,
                    ),
                )
                replace_tags(conn, MIND_MAP_TAGS, map_id, user_id, payload.tag_ids)
            logger.debug(f"Saved mind map {map_id} ({len(payload.nodes)} nodes)")
        finally:
            conn.close()
        return self.get_mind_map(user_id, map_id)

    def delete_mind_map(self, user_id: str, map_id: str) -> None:
        conn = self._db.connect()
        try:
            with conn:
                cursor = conn.execute(
                    "DELETE FROM mind_maps WHERE user_id = ? AND id = ?", (user_id, map_id)
                )
            if cursor.rowcount == 0:
                raise NotFoundError("mind map", map_id)
            logger.info(f"Deleted mind map {map_id} for user {user_id}")
        finally:
            conn.close()


_mind_map_service: Optional[MindMapService] = None


def get_mind_map_service() -> MindMapService:
    """Get or create the mind map service singleton."""
    global _mind_map_service
    if _mind_map_service is None:
        _mind_map_service = MindMapService()
    return _mind_map_service


__all__ = ["MindMapService", "get_mind_map_service"]
