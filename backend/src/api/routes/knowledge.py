"""HTTP API routes for the knowledge map."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Response, status

from ...models.knowledge import (
    ConceptWithRelations,
    ConceptWrite,
    KnowledgeConcept,
    KnowledgeRelationship,
    RelationshipWrite,
)
from ...services.database import NotFoundError
from ...services.knowledge import KnowledgeService, get_knowledge_service
from ..middleware import AuthContext, bad_request, get_auth_context, not_found

router = APIRouter(prefix="/api/knowledge", tags=["knowledge"])


@router.get("/concepts", response_model=List[KnowledgeConcept])
async def list_concepts(
    auth: AuthContext = Depends(get_auth_context),
    service: KnowledgeService = Depends(get_knowledge_service),
):
    return service.list_concepts(auth.user_id)


@router.post("/concepts", response_model=KnowledgeConcept, status_code=status.HTTP_201_CREATED)
async def create_concept(
    payload: ConceptWrite,
    auth: AuthContext = Depends(get_auth_context),
    service: KnowledgeService = Depends(get_knowledge_service),
):
    try:
        return service.create_concept(auth.user_id, payload)
    except ValueError as exc:
        raise bad_request(exc) from exc


@router.get("/concepts/{concept_id}", response_model=ConceptWithRelations)
async def get_concept(
    concept_id: str,
    auth: AuthContext = Depends(get_auth_context),
    service: KnowledgeService = Depends(get_knowledge_service),
):
    """A concept together with its related concepts."""
    try:
        return service.get_concept_with_relations(auth.user_id, concept_id)
    except NotFoundError as exc:
        raise not_found(exc) from exc


@router.put("/concepts/{concept_id}", response_model=KnowledgeConcept)
async def update_concept(
    concept_id: str,
    payload: ConceptWrite,
    auth: AuthContext = Depends(get_auth_context),
    service: KnowledgeService = Depends(get_knowledge_service),
):
    try:
        return service.update_concept(auth.user_id, concept_id, payload)
    except NotFoundError as exc:
        raise not_found(exc) from exc
    except ValueError as exc:
        raise bad_request(exc) from exc


@router.delete("/concepts/{concept_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_concept(
    concept_id: str,
    auth: AuthContext = Depends(get_auth_context),
    service: KnowledgeService = Depends(get_knowledge_service),
):
    try:
        service.delete_concept(auth.user_id, concept_id)
    except NotFoundError as exc:
        raise not_found(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/relationships", response_model=List[KnowledgeRelationship])
async def list_relationships(
    auth: AuthContext = Depends(get_auth_context),
    service: KnowledgeService = Depends(get_knowledge_service),
):
    return service.list_relationships(auth.user_id)


@router.post(
    "/relationships",
    response_model=KnowledgeRelationship,
    status_code=status.HTTP_201_CREATED,
)
async def create_relationship(
    payload: RelationshipWrite,
    auth: AuthContext = Depends(get_auth_context),
    service: KnowledgeService = Depends(get_knowledge_service),
):
    try:
        return service.create_relationship(auth.user_id, payload)
    except NotFoundError as exc:
        raise not_found(exc) from exc


@router.delete("/relationships/{relationship_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_relationship(
    relationship_id: str,
    auth: AuthContext = Depends(get_auth_context),
    service: KnowledgeService = Depends(get_knowledge_service),
):
    try:
        service.delete_relationship(auth.user_id, relationship_id)
    except NotFoundError as exc:
        raise not_found(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
