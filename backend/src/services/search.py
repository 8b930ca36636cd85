"""
Incremental search over a user's notes, mind maps and tags.

``search`` is a pure function of the query and an in-memory corpus. Results are
emitted in discovery order (each note followed by its matching keywords, then
mind maps, then tags) and truncated to ``MAX_RESULTS``; there is no relevance
scoring.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

from ..models.mindmap import MindMap
from ..models.note import CornellNote
from ..models.search import HighlightSegment, SearchHit, SearchResult
from ..models.tag import Tag

MAX_RESULTS = 10
EXCERPT_CONTEXT = 30
ELLIPSIS = "..."

NOTE_TARGET = "/cornell"
MIND_MAP_TARGET = "/mindmap"
TAG_TARGET = "/"


@dataclass
class SearchCorpus:
    """Read-only snapshot of the collections search runs over."""

    notes: Sequence[CornellNote] = field(default_factory=list)
    mind_maps: Sequence[MindMap] = field(default_factory=list)
    tags: Sequence[Tag] = field(default_factory=list)


def normalize_query(query: str) -> str:
    return query.strip().lower()


def build_excerpt(text: str, term: str) -> Optional[str]:
    """Window of ``EXCERPT_CONTEXT`` chars around the first occurrence of ``term``.

    ``term`` must already be lowercased. Returns None when it does not occur.
    """
    index = text.lower().find(term)
    if index < 0:
        return None
    start = max(0, index - EXCERPT_CONTEXT)
    end = min(len(text), index + len(term) + EXCERPT_CONTEXT)
    prefix = ELLIPSIS if start > 0 else ""
    suffix = ELLIPSIS if end < len(text) else ""
    return f"{prefix}{text[start:end]}{suffix}"


def _first_excerpt(fields: Iterable[str], term: str) -> Tuple[bool, Optional[str]]:
    """Scan fields in order; return (matched, excerpt of the first matching field)."""
    for text in fields:
        if term in text.lower():
            return True, build_excerpt(text, term)
    return False, None


def _note_results(note: CornellNote, term: str) -> List[SearchResult]:
    results: List[SearchResult] = []
    title_match = term in note.title.lower()
    body_match, excerpt = _first_excerpt((note.summary, note.main_notes), term)
    matching_keywords = [kw for kw in note.keywords if term in kw.text.lower()]

    if title_match or body_match or matching_keywords:
        results.append(
            SearchResult(
                id=note.id,
                kind="cornell",
                title=note.title,
                subtitle=note.date.isoformat(),
                matched_excerpt=None if title_match else excerpt,
                navigation_target=NOTE_TARGET,
            )
        )
    for keyword in matching_keywords:
        results.append(
            SearchResult(
                id=f"{note.id}-{keyword.id}",
                kind="keyword",
                title=keyword.text,
                subtitle=f"Keyword in: {note.title}",
                navigation_target=NOTE_TARGET,
            )
        )
    return results


def _mind_map_result(mind_map: MindMap, term: str) -> Optional[SearchResult]:
    title_match = term in mind_map.title.lower()
    other_match, excerpt = _first_excerpt(
        [mind_map.central_concept, *(node.text for node in mind_map.nodes)], term
    )
    if not (title_match or other_match):
        return None
    return SearchResult(
        id=mind_map.id,
        kind="mindmap",
        title=mind_map.title or "Mind map",
        subtitle=f"Central concept: {mind_map.central_concept}",
        matched_excerpt=None if title_match else excerpt,
        navigation_target=MIND_MAP_TARGET,
    )


def _tag_usage(notes: Sequence[CornellNote], tag_id: str) -> int:
    return sum(1 for note in notes if any(tag.id == tag_id for tag in note.tags))


def search(query: str, corpus: SearchCorpus) -> List[SearchResult]:
    """Case-insensitive substring search, capped at ``MAX_RESULTS``."""
    term = normalize_query(query)
    if not term:
        return []

    results: List[SearchResult] = []
    for note in corpus.notes:
        results.extend(_note_results(note, term))
        if len(results) >= MAX_RESULTS:
            return results[:MAX_RESULTS]

    for mind_map in corpus.mind_maps:
        result = _mind_map_result(mind_map, term)
        if result is not None:
            results.append(result)
            if len(results) >= MAX_RESULTS:
                return results

    for tag in corpus.tags:
        if term in tag.name.lower():
            usage = _tag_usage(corpus.notes, tag.id)
            results.append(
                SearchResult(
                    id=tag.id,
                    kind="tag",
                    title=tag.name,
                    subtitle=f"Tag used in {usage} note(s)",
                    navigation_target=TAG_TARGET,
                )
            )
            if len(results) >= MAX_RESULTS:
                return results

    return results


def highlight(text: str, query: str) -> List[HighlightSegment]:
    """Split ``text`` into segments, marking every case-insensitive occurrence of ``query``."""
    term = query.strip()
    if not term:
        return [HighlightSegment(text=text)] if text else []
    segments: List[HighlightSegment] = []
    for index, part in enumerate(re.split(f"({re.escape(term)})", text, flags=re.IGNORECASE)):
        if part:
            # re.split puts captured matches at odd indexes
            segments.append(HighlightSegment(text=part, match=index % 2 == 1))
    return segments


def to_hit(result: SearchResult, query: str) -> SearchHit:
    return SearchHit(
        **result.model_dump(),
        title_segments=highlight(result.title, query),
        excerpt_segments=(
            highlight(result.matched_excerpt, query) if result.matched_excerpt else None
        ),
    )


class SearchNavigator:
    """
    Keyboard selection over a result list.

    Down/Up move within ``[0, len - 1]`` without wrapping. Enter yields the
    selected result, Escape asks the caller to close. Loading a new result list
    resets the selection to 0.
    """

    SELECT = "select"
    CLOSE = "close"

    def __init__(self, results: Sequence[SearchResult] = ()):
        self.results: List[SearchResult] = list(results)
        self.index = 0

    def reset(self, results: Sequence[SearchResult]) -> None:
        self.results = list(results)
        self.index = 0

    def down(self) -> int:
        self.index = max(0, min(self.index + 1, len(self.results) - 1))
        return self.index

    def up(self) -> int:
        self.index = max(self.index - 1, 0)
        return self.index

    def handle_key(self, key: str) -> Optional[Tuple[str, Optional[SearchResult]]]:
        """Apply a key press. Returns an (event, result) pair for Enter/Escape."""
        if key == "ArrowDown":
            self.down()
        elif key == "ArrowUp":
            self.up()
        elif key == "Enter":
            if self.results:
                return self.SELECT, self.results[self.index]
        elif key == "Escape":
            return self.CLOSE, None
        return None

    @property
    def selected(self) -> Optional[SearchResult]:
        return self.results[self.index] if self.results else None


__all__ = [
    "MAX_RESULTS",
    "SearchCorpus",
    "SearchNavigator",
    "build_excerpt",
    "highlight",
    "normalize_query",
    "search",
    "to_hit",
]
