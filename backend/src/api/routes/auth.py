"""Token issuance and identity routes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from ...models.auth import CurrentUser, TokenResponse
from ...services.auth import AuthError, AuthService
from ...services.profile import ProfileStore, get_profile_store
from ..middleware import AuthContext, get_auth_context, get_auth_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


@router.post("/api/tokens", response_model=TokenResponse)
async def issue_token(
    auth: AuthContext = Depends(get_auth_context),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Issue a long-lived JWT for the authenticated user."""
    try:
        token, expires_at = auth_service.issue_token_response(auth.user_id)
    except AuthError as exc:
        raise HTTPException(
            status_code=exc.status_code,
            detail={"error": exc.error, "message": exc.message, "detail": exc.detail},
        ) from exc
    logger.info(f"Issued token for user {auth.user_id}")
    return TokenResponse(token=token, token_type="bearer", expires_at=expires_at)


@router.get("/api/me", response_model=CurrentUser)
async def get_current_user(
    auth: AuthContext = Depends(get_auth_context),
    store: ProfileStore = Depends(get_profile_store),
):
    return CurrentUser(user_id=auth.user_id, profile=store.get_profile(auth.user_id))
