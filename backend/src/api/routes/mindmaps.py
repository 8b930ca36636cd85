"""HTTP API routes for mind maps."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from ...models.mindmap import MindMap, MindMapWrite
from ...services.database import NotFoundError
from ...services.mindmaps import MindMapService, get_mind_map_service
from ..middleware import AuthContext, bad_request, get_auth_context, not_found

router = APIRouter(prefix="/api/mindmaps", tags=["mindmaps"])


@router.get("", response_model=List[MindMap])
async def list_mind_maps(
    folder_id: Optional[str] = Query(None),
    auth: AuthContext = Depends(get_auth_context),
    service: MindMapService = Depends(get_mind_map_service),
):
    return service.list_mind_maps(auth.user_id, folder_id=folder_id)


@router.post("", response_model=MindMap, status_code=status.HTTP_201_CREATED)
async def create_mind_map(
    payload: MindMapWrite,
    auth: AuthContext = Depends(get_auth_context),
    service: MindMapService = Depends(get_mind_map_service),
):
    try:
        return service.create_mind_map(auth.user_id, payload)
    except ValueError as exc:
        raise bad_request(exc) from exc


@router.get("/{map_id}", response_model=MindMap)
async def get_mind_map(
    map_id: str,
    auth: AuthContext = Depends(get_auth_context),
    service: MindMapService = Depends(get_mind_map_service),
):
    try:
        return service.get_mind_map(auth.user_id, map_id)
    except NotFoundError as exc:
        raise not_found(exc) from exc


@router.put("/{map_id}", response_model=MindMap)
async def save_mind_map(
    map_id: str,
    payload: MindMapWrite,
    auth: AuthContext = Depends(get_auth_context),
    service: MindMapService = Depends(get_mind_map_service),
):
    try:
        return service.upsert_mind_map(auth.user_id, map_id, payload)
    except NotFoundError as exc:
        raise not_found(exc) from exc
    except ValueError as exc:
        raise bad_request(exc) from exc


@router.delete("/{map_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_mind_map(
    map_id: str,
    auth: AuthContext = Depends(get_auth_context),
    service: MindMapService = Depends(get_mind_map_service),
):
    try:
        service.delete_mind_map(auth.user_id, map_id)
    except NotFoundError as exc:
        raise not_found(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
