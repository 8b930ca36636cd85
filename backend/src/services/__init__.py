"""Service layer for business logic and external integrations."""

from .ai_assistant import AIAssistantError, AIStudyAssistant, get_ai_assistant
from .auth import AuthError, AuthService
from .autosave import AutosaveCoordinator, AutosaveRegistry, AutosaveState, get_autosave_registry
from .calendar import CalendarService, get_calendar_service
from .config import AppConfig, get_config, reload_config
from .database import DatabaseService, NotFoundError, init_database
from .flashcards import CSVImportError, FlashcardService, get_flashcard_service
from .folders import FolderService, get_folder_service
from .glossary import GlossaryService, get_glossary_service
from .knowledge import KnowledgeService, get_knowledge_service
from .mindmaps import MindMapService, get_mind_map_service
from .notes import NoteService, get_note_service
from .profile import ProfileStore, StreakService, get_profile_store, get_streak_service
from .search import SearchCorpus, SearchNavigator
from .study import StudySessionService, get_study_session_service
from .tags import TagService, get_tag_service

__all__ = [
    "AIAssistantError",
    "AIStudyAssistant",
    "get_ai_assistant",
    "AuthError",
    "AuthService",
    "AutosaveCoordinator",
    "AutosaveRegistry",
    "AutosaveState",
    "get_autosave_registry",
    "CalendarService",
    "get_calendar_service",
    "AppConfig",
    "get_config",
    "reload_config",
    "DatabaseService",
    "NotFoundError",
    "init_database",
    "CSVImportError",
    "FlashcardService",
    "get_flashcard_service",
    "FolderService",
    "get_folder_service",
    "GlossaryService",
    "get_glossary_service",
    "KnowledgeService",
    "get_knowledge_service",
    "MindMapService",
    "get_mind_map_service",
    "NoteService",
    "get_note_service",
    "ProfileStore",
    "StreakService",
    "get_profile_store",
    "get_streak_service",
    "SearchCorpus",
    "SearchNavigator",
    "StudySessionService",
    "get_study_session_service",
    "TagService",
    "get_tag_service",
]
