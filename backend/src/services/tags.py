"""Tag CRUD plus helpers for the per-resource tag join tables."""

from __future__ import annotations

import logging
import sqlite3
from typing import Dict, Iterable, List, Optional, Sequence

from ..models.tag import Tag, TagCreate, TagUpdate
from .database import DatabaseService, NotFoundError, new_id, utcnow_iso

logger = logging.getLogger(__name__)

# join table -> owner column
TAG_LINKS = {
    "cornell_note_tags": "note_id",
    "mind_map_tags": "mind_map_id",
    "flashcard_deck_tags": "deck_id",
    "knowledge_concept_tags": "concept_id",
}


def _row_to_tag(row: sqlite3.Row) -> Tag:
    return Tag(id=row["id"], name=row["name"], color=row["color"])


def load_tags(
    conn: sqlite3.Connection, join_table: str, owner_ids: Sequence[str]
) -> Dict[str, List[Tag]]:
    """Return {owner_id: [Tag, ...]} for the given owners of a join table."""
    owner_column = TAG_LINKS[join_table]
    tags_by_owner: Dict[str, List[Tag]] = {owner_id: [] for owner_id in owner_ids}
    if not owner_ids:
        return tags_by_owner
    placeholders = ",".join("?" for _ in owner_ids)
    cursor = conn.execute(
        f"""
        SELECT j.{owner_column} AS owner_id, t.id, t.name, t.color
        FROM {join_table} j JOIN tags t ON t.id = j.tag_id
        WHERE j.{owner_column} IN ({placeholders})
        ORDER BY t.name
        """,
        tuple(owner_ids),
    )
    for row in cursor.fetchall():
        tags_by_owner[row["owner_id"]].append(_row_to_tag(row))
    return tags_by_owner


def replace_tags(
    conn: sqlite3.Connection,
    join_table: str,
    owner_id: str,
    user_id: str,
    tag_ids: Iterable[str],
) -> None:
    """Replace an owner's tag set. Tags that are not the user's are ignored."""
    owner_column = TAG_LINKS[join_table]
    conn.execute(f"DELETE FROM {join_table} WHERE {owner_column} = ?", (owner_id,))
    wanted = list(dict.fromkeys(tag_ids))
    if not wanted:
        return
    placeholders = ",".join("?" for _ in wanted)
    cursor = conn.execute(
        f"SELECT id FROM tags WHERE user_id = ? AND id IN ({placeholders})",
        (user_id, *wanted),
    )
    owned = {row["id"] for row in cursor.fetchall()}
    skipped = [tag_id for tag_id in wanted if tag_id not in owned]
    if skipped:
        logger.warning(f"Ignoring unknown tags for {join_table} {owner_id}: {skipped}")
    conn.executemany(
        f"INSERT INTO {join_table} ({owner_column}, tag_id) VALUES (?, ?)",
        [(owner_id, tag_id) for tag_id in wanted if tag_id in owned],
    )


class TagService:
    """Service for tag CRUD operations."""

    def __init__(self, db_service: DatabaseService | None = None):
        self._db = db_service or DatabaseService()

    def list_tags(self, user_id: str) -> List[Tag]:
        conn = self._db.connect()
        try:
            cursor = conn.execute(
                "SELECT id, name, color FROM tags WHERE user_id = ? ORDER BY name",
                (user_id,),
            )
            return [_row_to_tag(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def get_tag(self, user_id: str, tag_id: str) -> Tag:
        conn = self._db.connect()
        try:
            row = conn.execute(
                "SELECT id, name, color FROM tags WHERE user_id = ? AND id = ?",
                (user_id, tag_id),
            ).fetchone()
            if not row:
                raise NotFoundError("tag", tag_id)
            return _row_to_tag(row)
        finally:
            conn.close()

    def create_tag(self, user_id: str, payload: TagCreate) -> Tag:
        tag = Tag(id=new_id(), name=payload.name.strip(), color=payload.color)
        conn = self._db.connect()
        try:
            with conn:
                conn.execute(
                    "INSERT INTO tags (id, user_id, name, color, created_at) VALUES (?, ?, ?, ?, ?)",
                    (tag.id, user_id, tag.name, tag.color, utcnow_iso()),
                )
            logger.info(f"Created tag {tag.id} for user {user_id}")
            return tag
        finally:
            conn.close()

    def update_tag(self, user_id: str, tag_id: str, payload: TagUpdate) -> Tag:
        current = self.get_tag(user_id, tag_id)
        updated = Tag(
            id=current.id,
            name=payload.name.strip() if payload.name else current.name,
            color=payload.color or current.color,
        )
        conn = self._db.connect()
        try:
            with conn:
                conn.execute(
                    "UPDATE tags SET name = ?, color = ? WHERE user_id = ? AND id = ?",
                    (updated.name, updated.color, user_id, tag_id),
                )
            return updated
        finally:
            conn.close()

    def delete_tag(self, user_id: str, tag_id: str) -> None:
        """Delete a tag; join rows go with it through ON DELETE CASCADE."""
        conn = self._db.connect()
        try:
            with conn:
                cursor = conn.execute(
                    "DELETE FROM tags WHERE user_id = ? AND id = ?", (user_id, tag_id)
                )
            if cursor.rowcount == 0:
                raise NotFoundError("tag", tag_id)
            logger.info(f"Deleted tag {tag_id} for user {user_id}")
        finally:
            conn.close()


_tag_service: Optional[TagService] = None


def get_tag_service() -> TagService:
    """Get or create the tag service singleton."""
    global _tag_service
    if _tag_service is None:
        _tag_service = TagService()
    return _tag_service


__all__ = ["TagService", "get_tag_service", "load_tags", "replace_tags", "TAG_LINKS"]
