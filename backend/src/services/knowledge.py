"""Knowledge map: technical concepts and typed relationships between them."""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from typing import List, Optional

from ..models.knowledge import (
    ConceptWithRelations,
    ConceptWrite,
    KnowledgeConcept,
    KnowledgeRelationship,
    RelatedConcept,
    RelationshipWrite,
)
from .database import DatabaseService, NotFoundError, new_id, require_folder, utcnow_iso
from .tags import load_tags, replace_tags

logger = logging.getLogger(__name__)

CONCEPT_TAGS = "knowledge_concept_tags"


def _row_to_concept(row: sqlite3.Row, tags) -> KnowledgeConcept:
    return KnowledgeConcept(
        id=row["id"],
        title=row["title"],
        description=row["description"],
        code_example=row["code_example"],
        category=row["category"],
        technology=row["technology"],
        difficulty=row["difficulty"],
        folder_id=row["folder_id"],
        tags=tags,
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


def _row_to_relationship(row: sqlite3.Row) -> KnowledgeRelationship:
    return KnowledgeRelationship(
        id=row["id"],
        source_concept_id=row["source_concept_id"],
        target_concept_id=row["target_concept_id"],
        relationship_type=row["relationship_type"],
        description=row["description"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )


class KnowledgeService:
    """Concept and relationship storage.

    Relationships are deleted together with either of their concepts.
    """

    def __init__(self, db_service: DatabaseService | None = None):
        self._db = db_service or DatabaseService()

    def _concepts(self, conn: sqlite3.Connection, where: str, params) -> List[KnowledgeConcept]:
        rows = conn.execute(
            f"SELECT * FROM knowledge_concepts WHERE {where} ORDER BY updated_at DESC", params
        ).fetchall()
        tags = load_tags(conn, CONCEPT_TAGS, [row["id"] for row in rows])
        return [_row_to_concept(row, tags[row["id"]]) for row in rows]

    def list_concepts(self, user_id: str) -> List[KnowledgeConcept]:
        """Concepts, most recently updated first."""
        conn = self._db.connect()
        try:
            return self._concepts(conn, "user_id = ?", (user_id,))
        finally:
            conn.close()

    def _get(self, conn: sqlite3.Connection, user_id: str, concept_id: str) -> KnowledgeConcept:
        concepts = self._concepts(conn, "user_id = ? AND id = ?", (user_id, concept_id))
        if not concepts:
            raise NotFoundError("concept", concept_id)
        return concepts[0]

    def get_concept(self, user_id: str, concept_id: str) -> KnowledgeConcept:
        conn = self._db.connect()
        try:
            return self._get(conn, user_id, concept_id)
        finally:
            conn.close()

    def create_concept(self, user_id: str, payload: ConceptWrite) -> KnowledgeConcept:
        concept_id = new_id()
        now = utcnow_iso()
        conn = self._db.connect()
        try:
            require_folder(conn, user_id, payload.folder_id)
            with conn:
                conn.execute(
                    """
                    INSERT INTO knowledge_concepts (
                        id, user_id, title, description, code_example, category,
                        technology, difficulty, folder_id, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        concept_id,
                        user_id,
                        payload.title,
                        payload.description,
                        payload.code_example,
                        payload.category,
                        payload.technology,
                        payload.difficulty,
                        payload.folder_id,
                        now,
                        now,
                    ),
                )
                replace_tags(conn, CONCEPT_TAGS, concept_id, user_id, payload.tag_ids)
            logger.info(f"Created concept {concept_id} for user {user_id}")
            return self._get(conn, user_id, concept_id)
        finally:
            conn.close()

    def update_concept(
        self, user_id: str, concept_id: str, payload: ConceptWrite
    ) -> KnowledgeConcept:
        conn = self._db.connect()
        try:
            self._get(conn, user_id, concept_id)
            require_folder(conn, user_id, payload.folder_id)
            with conn:
                conn.execute(
                    """
                    UPDATE knowledge_concepts SET
                        title = ?, description = ?, code_example = ?, category = ?,
                        technology = ?, difficulty = ?, folder_id = ?, updated_at = ?
                    WHERE user_id = ? AND id = ?
                    """,
                    (
                        payload.title,
                        payload.description,
                        payload.code_example,
                        payload.category,
                        payload.technology,
                        payload.difficulty,
                        payload.folder_id,
                        utcnow_iso(),
                        user_id,
                        concept_id,
                    ),
                )
                replace_tags(conn, CONCEPT_TAGS, concept_id, user_id, payload.tag_ids)
            return self._get(conn, user_id, concept_id)
        finally:
            conn.close()

    def delete_concept(self, user_id: str, concept_id: str) -> None:
        conn = self._db.connect()
        try:
            with conn:
                cursor = conn.execute(
                    "DELETE FROM knowledge_concepts WHERE user_id = ? AND id = ?",
                    (user_id, concept_id),
                )
            if cursor.rowcount == 0:
                raise NotFoundError("concept", concept_id)
            logger.info(f"Deleted concept {concept_id} for user {user_id}")
        finally:
            conn.close()

    def list_relationships(self, user_id: str) -> List[KnowledgeRelationship]:
        conn = self._db.connect()
        try:
            rows = conn.execute(
                "SELECT * FROM knowledge_relationships WHERE user_id = ? ORDER BY created_at",
                (user_id,),
            ).fetchall()
            return [_row_to_relationship(row) for row in rows]
        finally:
            conn.close()

    def create_relationship(
        self, user_id: str, payload: RelationshipWrite
    ) -> KnowledgeRelationship:
        relationship = KnowledgeRelationship(
            id=new_id(),
            created_at=datetime.fromisoformat(utcnow_iso()),
            **payload.model_dump(),
        )
        conn = self._db.connect()
        try:
            self._get(conn, user_id, payload.source_concept_id)
            self._get(conn, user_id, payload.target_concept_id)
            with conn:
                conn.execute(
                    """
                    INSERT INTO knowledge_relationships (
                        id, user_id, source_concept_id, target_concept_id,
                        relationship_type, description, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        relationship.id,
                        user_id,
                        relationship.source_concept_id,
                        relationship.target_concept_id,
                        relationship.relationship_type,
                        relationship.description,
                        relationship.created_at.isoformat(),
                    ),
                )
            return relationship
        finally:
            conn.close()

    def delete_relationship(self, user_id: str, relationship_id: str) -> None:
        conn = self._db.connect()
        try:
            with conn:
                cursor = conn.execute(
                    "DELETE FROM knowledge_relationships WHERE user_id = ? AND id = ?",
                    (user_id, relationship_id),
                )
            if cursor.rowcount == 0:
                raise NotFoundError("relationship", relationship_id)
        finally:
            conn.close()

    def get_concept_with_relations(self, user_id: str, concept_id: str) -> ConceptWithRelations:
        """A concept with every concept linked to it, in either direction."""
        conn = self._db.connect()
        try:
            concept = self._get(conn, user_id, concept_id)
            rows = conn.execute(
                """
                SELECT * FROM knowledge_relationships
                WHERE user_id = ? AND (source_concept_id = ? OR target_concept_id = ?)
                ORDER BY created_at
                """,
                (user_id, concept_id, concept_id),
            ).fetchall()
            related: List[RelatedConcept] = []
            for row in rows:
                relationship = _row_to_relationship(row)
                outgoing = relationship.source_concept_id == concept_id
                other_id = (
                    relationship.target_concept_id if outgoing else relationship.source_concept_id
                )
                related.append(
                    RelatedConcept(
                        concept=self._get(conn, user_id, other_id),
                        relationship=relationship,
                        direction="outgoing" if outgoing else "incoming",
                    )
                )
            return ConceptWithRelations(**concept.model_dump(), related_concepts=related)
        finally:
            conn.close()


_knowledge_service: Optional[KnowledgeService] = None


def get_knowledge_service() -> KnowledgeService:
    """Get or create the knowledge service singleton."""
    global _knowledge_service
    if _knowledge_service is None:
        _knowledge_service = KnowledgeService()
    return _knowledge_service


__all__ = ["KnowledgeService", "get_knowledge_service"]
