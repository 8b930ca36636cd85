"""HTTP API route handlers."""

from . import (
    ai,
    auth,
    autosave,
    calendar,
    flashcards,
    folders,
    glossary,
    knowledge,
    mindmaps,
    notes,
    profile,
    search,
    study,
    system,
)

__all__ = [
    "ai",
    "auth",
    "autosave",
    "calendar",
    "flashcards",
    "folders",
    "glossary",
    "knowledge",
    "mindmaps",
    "notes",
    "profile",
    "search",
    "study",
    "system",
]
