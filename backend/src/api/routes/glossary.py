"""HTTP API routes for glossary terms."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Response, status

from ...models.glossary import GlossaryTerm, GlossaryTermWrite
from ...services.database import NotFoundError
from ...services.glossary import GlossaryService, get_glossary_service
from ..middleware import AuthContext, bad_request, get_auth_context, not_found

router = APIRouter(prefix="/api/glossary", tags=["glossary"])


@router.get("", response_model=List[GlossaryTerm])
async def list_terms(
    auth: AuthContext = Depends(get_auth_context),
    service: GlossaryService = Depends(get_glossary_service),
):
    return service.list_terms(auth.user_id)


@router.post("", response_model=GlossaryTerm, status_code=status.HTTP_201_CREATED)
async def create_term(
    payload: GlossaryTermWrite,
    auth: AuthContext = Depends(get_auth_context),
    service: GlossaryService = Depends(get_glossary_service),
):
    try:
        return service.create_term(auth.user_id, payload)
    except ValueError as exc:
        raise bad_request(exc) from exc


@router.put("/{term_id}", response_model=GlossaryTerm)
async def update_term(
    term_id: str,
    payload: GlossaryTermWrite,
    auth: AuthContext = Depends(get_auth_context),
    service: GlossaryService = Depends(get_glossary_service),
):
    try:
        return service.update_term(auth.user_id, term_id, payload)
    except NotFoundError as exc:
        raise not_found(exc) from exc
    except ValueError as exc:
        raise bad_request(exc) from exc


@router.delete("/{term_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_term(
    term_id: str,
    auth: AuthContext = Depends(get_auth_context),
    service: GlossaryService = Depends(get_glossary_service),
):
    try:
        service.delete_term(auth.user_id, term_id)
    except NotFoundError as exc:
        raise not_found(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
