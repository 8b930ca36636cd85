from datetime import date
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from backend.src.services import config as config_module
from backend.src.services.database import DatabaseService

USER_ID = "user-123"
LOCAL_USER = "local-dev"
AUTH_HEADERS = {"Authorization": "Bearer local-dev-token"}

# module path -> singleton attribute reset before every API test
SINGLETONS = (
    ("backend.src.api.middleware.auth_middleware", "_auth_service"),
    ("backend.src.services.ai_assistant", "_assistant"),
    ("backend.src.services.autosave", "_autosave_registry"),
    ("backend.src.services.calendar", "_calendar_service"),
    ("backend.src.services.flashcards", "_flashcard_service"),
    ("backend.src.services.folders", "_folder_service"),
    ("backend.src.services.glossary", "_glossary_service"),
    ("backend.src.services.knowledge", "_knowledge_service"),
    ("backend.src.services.mindmaps", "_mind_map_service"),
    ("backend.src.services.notes", "_note_service"),
    ("backend.src.services.profile", "_profile_store"),
    ("backend.src.services.profile", "_streak_service"),
    ("backend.src.services.study", "_study_session_service"),
    ("backend.src.services.tags", "_tag_service"),
)


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path: Path):
    """Point configuration at a throwaway database and a quiet environment."""
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "study.db"))
    monkeypatch.setenv("AUTOSAVE_DELAY_MS", "50")
    monkeypatch.setenv("ENABLE_LOCAL_MODE", "true")
    monkeypatch.setenv("LOCAL_DEV_TOKEN", "local-dev-token")
    for key in ("JWT_SECRET_KEY", "AI_GATEWAY_API_KEY", "ENVIRONMENT", "CORS_ORIGINS"):
        monkeypatch.delenv(key, raising=False)
    config_module.reload_config()
    yield
    config_module.get_config.cache_clear()


@pytest.fixture
def db(tmp_path: Path) -> DatabaseService:
    service = DatabaseService(tmp_path / "study.db")
    service.initialize()
    return service


@pytest.fixture
def today() -> date:
    # A Monday
    return date(2025, 3, 10)


@pytest.fixture
def client(monkeypatch):
    """TestClient running the app lifespan against the temporary database."""
    import importlib

    from backend.src.api.main import app

    for module_path, attribute in SINGLETONS:
        monkeypatch.setattr(importlib.import_module(module_path), attribute, None)

    with TestClient(app) as test_client:
        test_client.headers.update(AUTH_HEADERS)
        yield test_client
    app.dependency_overrides = {}
