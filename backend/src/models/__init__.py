"""Pydantic models for data validation and serialization."""

from .ai import AIAction, AIRequest, GeneratedFlashcard, SuggestedKeyword
from .auth import CurrentUser, JWTPayload, TokenResponse
from .autosave import AutosaveStatus
from .calendar import CalendarEvent, CalendarEventWrite, ScheduleClass, ScheduleClassWrite
from .flashcard import Flashcard, FlashcardDeck, FlashcardWrite, DeckWrite
from .folder import Folder, FolderContents, FolderCreate, FolderUpdate
from .glossary import GlossaryTerm, GlossaryTermWrite
from .knowledge import (
    ConceptWithRelations,
    ConceptWrite,
    KnowledgeConcept,
    KnowledgeRelationship,
    RelationshipWrite,
)
from .mindmap import MindMap, MindMapNode, MindMapWrite
from .note import CornellNote, CornellNoteWrite, Keyword
from .profile import Profile, ProfileUpdate, StudyStreak
from .search import SearchHit, SearchResponse, SearchResult
from .study import PomodoroSettings, StudySession, StudyStats
from .tag import Tag, TagCreate, TagUpdate

__all__ = [
    "AIAction",
    "AIRequest",
    "GeneratedFlashcard",
    "SuggestedKeyword",
    "CurrentUser",
    "JWTPayload",
    "TokenResponse",
    "AutosaveStatus",
    "CalendarEvent",
    "CalendarEventWrite",
    "ScheduleClass",
    "ScheduleClassWrite",
    "Flashcard",
    "FlashcardDeck",
    "FlashcardWrite",
    "DeckWrite",
    "Folder",
    "FolderContents",
    "FolderCreate",
    "FolderUpdate",
    "GlossaryTerm",
    "GlossaryTermWrite",
    "ConceptWithRelations",
    "ConceptWrite",
    "KnowledgeConcept",
    "KnowledgeRelationship",
    "RelationshipWrite",
    "MindMap",
    "MindMapNode",
    "MindMapWrite",
    "CornellNote",
    "CornellNoteWrite",
    "Keyword",
    "Profile",
    "ProfileUpdate",
    "StudyStreak",
    "SearchHit",
    "SearchResponse",
    "SearchResult",
    "PomodoroSettings",
    "StudySession",
    "StudyStats",
    "Tag",
    "TagCreate",
    "TagUpdate",
]
