from pathlib import Path

import pytest

from backend.src.services import config as config_module


@pytest.fixture(autouse=True)
def restore_config_cache():
    """
    Ensure configuration cache is cleared between tests.
    """
    config_module.reload_config()
    yield
    config_module.get_config.cache_clear()


def test_get_config_allows_missing_jwt_secret(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.delenv("JWT_SECRET_KEY", raising=False)
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "data" / "study.db"))

    cfg = config_module.reload_config()

    assert cfg.jwt_secret_key is None
    assert cfg.database_path == (tmp_path / "data" / "study.db").resolve()
    assert cfg.database_path.parent.is_dir()


def test_get_config_rejects_short_jwt_secret(monkeypatch) -> None:
    monkeypatch.setenv("JWT_SECRET_KEY", "short")

    with pytest.raises(ValueError):
        config_module.reload_config()


def test_blank_gateway_key_counts_as_missing(monkeypatch) -> None:
    monkeypatch.setenv("AI_GATEWAY_API_KEY", "   ")

    cfg = config_module.reload_config()

    assert cfg.ai_gateway_api_key is None


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("AUTOSAVE_DELAY_MS", "750")
    monkeypatch.setenv("AI_RESPONSE_LANGUAGE", "English")
    monkeypatch.setenv("CORS_ORIGINS", "https://study.example.com, http://localhost:5173")
    monkeypatch.setenv("ENABLE_LOCAL_MODE", "false")

    cfg = config_module.reload_config()

    assert cfg.autosave_delay_ms == 750
    assert cfg.ai_response_language == "English"
    assert cfg.cors_origins == ("https://study.example.com", "http://localhost:5173")
    assert cfg.enable_local_mode is False


def test_negative_autosave_delay_is_rejected(monkeypatch) -> None:
    monkeypatch.setenv("AUTOSAVE_DELAY_MS", "-1")

    with pytest.raises(ValueError):
        config_module.reload_config()
