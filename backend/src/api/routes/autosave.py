"""HTTP API routes for autosave sessions.

An editor sends its draft on every change with ``PUT``. The first draft of a
session is the baseline; later differing drafts are saved after the configured
quiet period. ``DELETE`` closes the session and flushes an unsaved draft.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException, status
from pydantic import ValidationError

from ...models.autosave import AutosaveClosed, AutosaveStatus, DraftKind
from ...services.autosave import DRAFT_MODELS, AutosaveRegistry, get_autosave_registry
from ..middleware import AuthContext, get_auth_context

router = APIRouter(prefix="/api/autosave", tags=["autosave"])


def _no_session(kind: str, entity_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={
            "error": "not_found",
            "message": f"No autosave session for {kind} {entity_id}",
        },
    )


@router.put("/{kind}/{entity_id}", response_model=AutosaveStatus)
async def submit_draft(
    kind: DraftKind,
    entity_id: str,
    draft: Dict[str, Any] = Body(...),
    auth: AuthContext = Depends(get_auth_context),
    registry: AutosaveRegistry = Depends(get_autosave_registry),
):
    try:
        snapshot = DRAFT_MODELS[kind].model_validate(draft)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "validation_error",
                "message": f"Invalid {kind} draft",
                "detail": {"errors": exc.errors(include_context=False)},
            },
        ) from exc
    return registry.submit(auth.user_id, kind, entity_id, snapshot)


@router.get("/{kind}/{entity_id}", response_model=AutosaveStatus)
async def get_status(
    kind: DraftKind,
    entity_id: str,
    auth: AuthContext = Depends(get_auth_context),
    registry: AutosaveRegistry = Depends(get_autosave_registry),
):
    session_status = registry.status(auth.user_id, kind, entity_id)
    if session_status is None:
        raise _no_session(kind, entity_id)
    return session_status


@router.delete(
    "/{kind}/{entity_id}",
    response_model=AutosaveClosed,
    status_code=status.HTTP_202_ACCEPTED,
)
async def close_session(
    kind: DraftKind,
    entity_id: str,
    auth: AuthContext = Depends(get_auth_context),
    registry: AutosaveRegistry = Depends(get_autosave_registry),
):
    """Close the session; an unsaved draft is persisted in the background."""
    flush_scheduled = registry.close(auth.user_id, kind, entity_id)
    if flush_scheduled is None:
        raise _no_session(kind, entity_id)
    return AutosaveClosed(kind=kind, entity_id=entity_id, flush_scheduled=flush_scheduled)
