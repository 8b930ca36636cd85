"""HTTP API routes for flashcard decks and cards."""

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from ...models.ai import GenerateCardsRequest
from ...models.flashcard import (
    CSVImportRequest,
    CSVImportResponse,
    DeckWrite,
    Flashcard,
    FlashcardDeck,
    FlashcardWrite,
)
from ...services.ai_assistant import AIAssistantError, AIStudyAssistant, get_ai_assistant
from ...services.database import NotFoundError
from ...services.flashcards import FlashcardService, get_flashcard_service
from ..middleware import AuthContext, ai_error, bad_request, get_auth_context, not_found

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/flashcards", tags=["flashcards"])


@router.get("/decks", response_model=List[FlashcardDeck])
async def list_decks(
    folder_id: Optional[str] = Query(None),
    auth: AuthContext = Depends(get_auth_context),
    service: FlashcardService = Depends(get_flashcard_service),
):
    return service.list_decks(auth.user_id, folder_id=folder_id)


@router.post("/decks", response_model=FlashcardDeck, status_code=status.HTTP_201_CREATED)
async def create_deck(
    payload: DeckWrite,
    auth: AuthContext = Depends(get_auth_context),
    service: FlashcardService = Depends(get_flashcard_service),
):
    try:
        return service.create_deck(auth.user_id, payload)
    except ValueError as exc:
        raise bad_request(exc) from exc


@router.get("/decks/{deck_id}", response_model=FlashcardDeck)
async def get_deck(
    deck_id: str,
    auth: AuthContext = Depends(get_auth_context),
    service: FlashcardService = Depends(get_flashcard_service),
):
    try:
        return service.get_deck(auth.user_id, deck_id)
    except NotFoundError as exc:
        raise not_found(exc) from exc


@router.put("/decks/{deck_id}", response_model=FlashcardDeck)
async def update_deck(
    deck_id: str,
    payload: DeckWrite,
    auth: AuthContext = Depends(get_auth_context),
    service: FlashcardService = Depends(get_flashcard_service),
):
    try:
        return service.update_deck(auth.user_id, deck_id, payload)
    except NotFoundError as exc:
        raise not_found(exc) from exc
    except ValueError as exc:
        raise bad_request(exc) from exc


@router.delete("/decks/{deck_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_deck(
    deck_id: str,
    auth: AuthContext = Depends(get_auth_context),
    service: FlashcardService = Depends(get_flashcard_service),
):
    try:
        service.delete_deck(auth.user_id, deck_id)
    except NotFoundError as exc:
        raise not_found(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/decks/{deck_id}/cards", response_model=List[Flashcard])
async def list_cards(
    deck_id: str,
    auth: AuthContext = Depends(get_auth_context),
    service: FlashcardService = Depends(get_flashcard_service),
):
    try:
        return service.list_cards(auth.user_id, deck_id)
    except NotFoundError as exc:
        raise not_found(exc) from exc


@router.post(
    "/decks/{deck_id}/cards", response_model=Flashcard, status_code=status.HTTP_201_CREATED
)
async def add_card(
    deck_id: str,
    payload: FlashcardWrite,
    auth: AuthContext = Depends(get_auth_context),
    service: FlashcardService = Depends(get_flashcard_service),
):
    try:
        return service.add_card(auth.user_id, deck_id, payload)
    except NotFoundError as exc:
        raise not_found(exc) from exc


@router.post("/decks/{deck_id}/import", response_model=CSVImportResponse)
async def import_cards(
    deck_id: str,
    payload: CSVImportRequest,
    auth: AuthContext = Depends(get_auth_context),
    service: FlashcardService = Depends(get_flashcard_service),
):
    """Import ``front,back`` CSV rows into the deck."""
    try:
        imported = service.import_csv(auth.user_id, deck_id, payload.content)
    except NotFoundError as exc:
        raise not_found(exc) from exc
    except ValueError as exc:
        raise bad_request(exc) from exc
    return CSVImportResponse(deck_id=deck_id, imported=imported)


@router.post(
    "/decks/{deck_id}/generate",
    response_model=List[Flashcard],
    status_code=status.HTTP_201_CREATED,
)
async def generate_cards(
    deck_id: str,
    payload: GenerateCardsRequest,
    auth: AuthContext = Depends(get_auth_context),
    service: FlashcardService = Depends(get_flashcard_service),
    assistant: AIStudyAssistant = Depends(get_ai_assistant),
):
    """Generate cards from text with the AI assistant and store them in the deck."""
    try:
        service.get_deck(auth.user_id, deck_id)
        generated = await assistant.generate_flashcards(payload.text, payload.count)
        created = service.add_cards(
            auth.user_id, deck_id, [(card.front, card.back) for card in generated]
        )
    except NotFoundError as exc:
        raise not_found(exc) from exc
    except AIAssistantError as exc:
        raise ai_error(exc) from exc
    logger.info(f"Generated {len(created)} card(s) for deck {deck_id}")
    return created


@router.put("/cards/{card_id}", response_model=Flashcard)
async def update_card(
    card_id: str,
    payload: FlashcardWrite,
    auth: AuthContext = Depends(get_auth_context),
    service: FlashcardService = Depends(get_flashcard_service),
):
    try:
        return service.update_card(auth.user_id, card_id, payload)
    except NotFoundError as exc:
        raise not_found(exc) from exc


@router.delete("/cards/{card_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_card(
    card_id: str,
    auth: AuthContext = Depends(get_auth_context),
    service: FlashcardService = Depends(get_flashcard_service),
):
    try:
        service.delete_card(auth.user_id, card_id)
    except NotFoundError as exc:
        raise not_found(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
