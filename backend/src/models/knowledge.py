"""Knowledge map models: technical concepts and their relationships."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

from .tag import Tag

ConceptCategory = Literal[
    "backend",
    "frontend",
    "database",
    "devops",
    "architecture",
    "testing",
    "security",
    "other",
]
ConceptDifficulty = Literal["beginner", "intermediate", "advanced"]
RelationshipType = Literal[
    "depends_on",
    "implements",
    "extends",
    "uses",
    "related_to",
    "part_of",
]


class ConceptWrite(BaseModel):
    title: str = Field(..., min_length=1, max_length=256)
    description: str = Field("", max_length=65_536)
    code_example: Optional[str] = Field(None, max_length=65_536)
    category: ConceptCategory = "other"
    technology: Optional[str] = Field(None, max_length=128)
    difficulty: ConceptDifficulty = "beginner"
    folder_id: Optional[str] = None
    tag_ids: list[str] = Field(default_factory=list)


class KnowledgeConcept(BaseModel):
    id: str
    title: str
    description: str = ""
    code_example: Optional[str] = None
    category: ConceptCategory
    technology: Optional[str] = None
    difficulty: ConceptDifficulty
    folder_id: Optional[str] = None
    tags: list[Tag] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class RelationshipWrite(BaseModel):
    source_concept_id: str
    target_concept_id: str
    relationship_type: RelationshipType = "related_to"
    description: Optional[str] = Field(None, max_length=4096)

    @model_validator(mode="after")
    def _reject_self_link(self) -> "RelationshipWrite":
        if self.source_concept_id == self.target_concept_id:
            raise ValueError("a concept cannot be related to itself")
        return self


class KnowledgeRelationship(RelationshipWrite):
    id: str
    created_at: datetime


class RelatedConcept(BaseModel):
    concept: KnowledgeConcept
    relationship: KnowledgeRelationship
    direction: Literal["outgoing", "incoming"]


class ConceptWithRelations(KnowledgeConcept):
    related_concepts: list[RelatedConcept] = Field(default_factory=list)


__all__ = [
    "ConceptCategory",
    "ConceptDifficulty",
    "RelationshipType",
    "ConceptWrite",
    "KnowledgeConcept",
    "RelationshipWrite",
    "KnowledgeRelationship",
    "RelatedConcept",
    "ConceptWithRelations",
]
