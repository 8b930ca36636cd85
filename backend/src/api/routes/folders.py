"""HTTP API routes for folders and tags."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from ...models.folder import Folder, FolderContents, FolderCreate, FolderUpdate
from ...models.tag import Tag, TagCreate, TagUpdate
from ...services.database import NotFoundError
from ...services.folders import FolderService, get_folder_service
from ...services.tags import TagService, get_tag_service
from ..middleware import AuthContext, bad_request, get_auth_context, not_found

router = APIRouter(tags=["folders"])


@router.get("/api/folders", response_model=List[Folder])
async def list_folders(
    parent_id: Optional[str] = Query(None, description="Only list children of this folder"),
    root_only: bool = Query(False, description="Only list top-level folders"),
    auth: AuthContext = Depends(get_auth_context),
    service: FolderService = Depends(get_folder_service),
):
    if parent_id:
        return service.list_folders(auth.user_id, parent_id)
    if root_only:
        return service.list_folders(auth.user_id, None)
    return service.list_folders(auth.user_id)


@router.post("/api/folders", response_model=Folder, status_code=status.HTTP_201_CREATED)
async def create_folder(
    payload: FolderCreate,
    auth: AuthContext = Depends(get_auth_context),
    service: FolderService = Depends(get_folder_service),
):
    try:
        return service.create_folder(auth.user_id, payload)
    except NotFoundError as exc:
        raise not_found(exc) from exc


@router.get("/api/folders/{folder_id}", response_model=FolderContents)
async def get_folder_contents(
    folder_id: str,
    auth: AuthContext = Depends(get_auth_context),
    service: FolderService = Depends(get_folder_service),
):
    """A folder with its direct subfolders and everything filed in it."""
    try:
        return service.get_contents(auth.user_id, folder_id)
    except NotFoundError as exc:
        raise not_found(exc) from exc


@router.patch("/api/folders/{folder_id}", response_model=Folder)
async def update_folder(
    folder_id: str,
    payload: FolderUpdate,
    auth: AuthContext = Depends(get_auth_context),
    service: FolderService = Depends(get_folder_service),
):
    try:
        return service.update_folder(auth.user_id, folder_id, payload)
    except NotFoundError as exc:
        raise not_found(exc) from exc
    except ValueError as exc:
        raise bad_request(exc) from exc


@router.delete("/api/folders/{folder_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_folder(
    folder_id: str,
    auth: AuthContext = Depends(get_auth_context),
    service: FolderService = Depends(get_folder_service),
):
    """Delete a folder and its subfolders; filed items move to the root."""
    try:
        service.delete_folder(auth.user_id, folder_id)
    except NotFoundError as exc:
        raise not_found(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/api/tags", response_model=List[Tag])
async def list_tags(
    auth: AuthContext = Depends(get_auth_context),
    service: TagService = Depends(get_tag_service),
):
    return service.list_tags(auth.user_id)


@router.post("/api/tags", response_model=Tag, status_code=status.HTTP_201_CREATED)
async def create_tag(
    payload: TagCreate,
    auth: AuthContext = Depends(get_auth_context),
    service: TagService = Depends(get_tag_service),
):
    if not payload.name.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "validation_error", "message": "Tag name is required"},
        )
    return service.create_tag(auth.user_id, payload)


@router.patch("/api/tags/{tag_id}", response_model=Tag)
async def update_tag(
    tag_id: str,
    payload: TagUpdate,
    auth: AuthContext = Depends(get_auth_context),
    service: TagService = Depends(get_tag_service),
):
    try:
        return service.update_tag(auth.user_id, tag_id, payload)
    except NotFoundError as exc:
        raise not_found(exc) from exc


@router.delete("/api/tags/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_tag(
    tag_id: str,
    auth: AuthContext = Depends(get_auth_context),
    service: TagService = Depends(get_tag_service),
):
    try:
        service.delete_tag(auth.user_id, tag_id)
    except NotFoundError as exc:
        raise not_found(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
