"""Global search models."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

EntityKind = Literal["cornell", "mindmap", "keyword", "tag"]


class SearchResult(BaseModel):
    """One entry of the ranked result list (discovery order)."""

    id: str = Field(..., description="Entity id; nested keywords use '<note_id>-<keyword_id>'")
    kind: EntityKind
    title: str
    subtitle: Optional[str] = None
    matched_excerpt: Optional[str] = Field(
        None, description="Window around the first match when it is not in the title"
    )
    navigation_target: str


class HighlightSegment(BaseModel):
    text: str
    match: bool = False


class SearchHit(SearchResult):
    """Search result decorated with highlight segments for display."""

    title_segments: list[HighlightSegment] = Field(default_factory=list)
    excerpt_segments: Optional[list[HighlightSegment]] = None


class SearchResponse(BaseModel):
    query: str
    state: Literal["prompt", "empty", "results"]
    results: list[SearchHit]
    total: int


__all__ = ["EntityKind", "SearchResult", "HighlightSegment", "SearchHit", "SearchResponse"]
