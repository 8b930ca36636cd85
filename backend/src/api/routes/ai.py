"""HTTP API route for the AI study assistant."""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends

from ...models.ai import AIRequest
from ...services.ai_assistant import AIAssistantError, AIStudyAssistant, get_ai_assistant
from ..middleware import AuthContext, ai_error, get_auth_context

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ai", tags=["ai"])


@router.post("/study-assistant")
async def study_assistant(
    request: AIRequest,
    auth: AuthContext = Depends(get_auth_context),
    assistant: AIStudyAssistant = Depends(get_ai_assistant),
) -> Dict[str, Any]:
    """
    Run one assistant action over the given text.

    Returns ``{"flashcards": [...]}``, ``{"summary": "..."}`` or
    ``{"keywords": [...]}`` depending on ``action``.
    """
    logger.info(f"AI action {request.action} requested by user {auth.user_id}")
    try:
        return await assistant.invoke(request.action, request.text, request.count)
    except AIAssistantError as exc:
        raise ai_error(exc) from exc
