"""HTTP API route for global search."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from ...models.search import SearchResponse
from ...services.mindmaps import MindMapService, get_mind_map_service
from ...services.notes import NoteService, get_note_service
from ...services.search import SearchCorpus, normalize_query, search, to_hit
from ...services.tags import TagService, get_tag_service
from ..middleware import AuthContext, get_auth_context

router = APIRouter(tags=["search"])


@router.get("/api/search", response_model=SearchResponse)
async def search_everything(
    q: str = Query("", max_length=256, description="Search query"),
    auth: AuthContext = Depends(get_auth_context),
    notes: NoteService = Depends(get_note_service),
    mind_maps: MindMapService = Depends(get_mind_map_service),
    tags: TagService = Depends(get_tag_service),
):
    """
    Search notes, keywords, mind maps and tags.

    ``state`` is ``prompt`` for an empty query, ``empty`` when nothing matched
    and ``results`` otherwise.
    """
    if not normalize_query(q):
        return SearchResponse(query=q, state="prompt", results=[], total=0)

    corpus = SearchCorpus(
        notes=notes.list_notes(auth.user_id),
        mind_maps=mind_maps.list_mind_maps(auth.user_id),
        tags=tags.list_tags(auth.user_id),
    )
    results = search(q, corpus)
    hits = [to_hit(result, q) for result in results]
    return SearchResponse(
        query=q,
        state="results" if hits else "empty",
        results=hits,
        total=len(hits),
    )
