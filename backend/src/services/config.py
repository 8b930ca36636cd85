"""Application configuration helpers."""

from __future__ import annotations

from functools import lru_cache
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

PROJECT_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_DATABASE_PATH = PROJECT_ROOT / "data" / "study.db"
DEFAULT_AI_GATEWAY_URL = "https://ai.gateway.lovable.dev/v1/chat/completions"
DEFAULT_AI_MODEL = "google/gemini-3-flash-preview"
DEFAULT_CORS_ORIGINS = ("http://localhost:5173", "http://localhost:8080", "http://localhost:3000")


class AppConfig(BaseModel):
    """Runtime configuration loaded from environment variables."""

    model_config = ConfigDict(frozen=True)

    jwt_secret_key: Optional[str] = Field(
        default=None,
        description="HMAC secret for JWT signing (required for JWT/HTTP auth)",
    )
    enable_local_mode: bool = Field(
        default=True,
        description="Allow local-dev token bypass when running locally",
    )
    local_dev_token: Optional[str] = Field(
        default="local-dev-token",
        description="Static token accepted in local mode for development",
    )
    database_path: Path = Field(
        default=DEFAULT_DATABASE_PATH, description="SQLite file holding study data"
    )
    ai_gateway_url: str = Field(
        default=DEFAULT_AI_GATEWAY_URL,
        description="OpenAI-compatible chat completions endpoint",
    )
    ai_gateway_api_key: Optional[str] = Field(
        default=None, description="Bearer credential for the AI gateway"
    )
    ai_model: str = Field(default=DEFAULT_AI_MODEL, description="Model used by the study assistant")
    ai_response_language: str = Field(
        default="Portuguese", description="Language the assistant answers in"
    )
    autosave_delay_ms: int = Field(
        default=2000, ge=0, description="Quiet period before a draft is persisted"
    )
    cors_origins: tuple[str, ...] = Field(default=DEFAULT_CORS_ORIGINS)

    @field_validator("database_path", mode="before")
    @classmethod
    def _normalize_database_path(cls, value: str | Path | None) -> Path:
        if value is None or value == "":
            raise ValueError("DATABASE_PATH cannot be empty")
        path = value if isinstance(value, Path) else Path(value)
        return path.expanduser().resolve()

    @field_validator("jwt_secret_key", mode="before")
    @classmethod
    def _ensure_secret(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = value.strip()
        if not cleaned:
            raise ValueError(
                "JWT_SECRET_KEY cannot be empty; unset the variable to disable JWT auth in local mode"
            )
        if len(cleaned) < 16:
            raise ValueError("JWT_SECRET_KEY must be at least 16 characters")
        return cleaned

    @field_validator("ai_gateway_api_key", mode="before")
    @classmethod
    def _blank_key_is_missing(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = value.strip()
        return cleaned or None


def _read_env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(key, default)


def _parse_origins(raw: Optional[str]) -> tuple[str, ...]:
    if not raw:
        return DEFAULT_CORS_ORIGINS
    return tuple(origin.strip() for origin in raw.split(",") if origin.strip())


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Load and cache application configuration."""
    enable_local_mode = _read_env("ENABLE_LOCAL_MODE", "true").lower() not in {
        "0",
        "false",
        "no",
    }

    config = AppConfig(
        jwt_secret_key=_read_env("JWT_SECRET_KEY"),
        enable_local_mode=enable_local_mode,
        local_dev_token=_read_env("LOCAL_DEV_TOKEN", "local-dev-token"),
        database_path=_read_env("DATABASE_PATH", str(DEFAULT_DATABASE_PATH)),
        ai_gateway_url=_read_env("AI_GATEWAY_URL", DEFAULT_AI_GATEWAY_URL),
        ai_gateway_api_key=_read_env("AI_GATEWAY_API_KEY"),
        ai_model=_read_env("AI_MODEL", DEFAULT_AI_MODEL),
        ai_response_language=_read_env("AI_RESPONSE_LANGUAGE", "Portuguese"),
        autosave_delay_ms=int(_read_env("AUTOSAVE_DELAY_MS", "2000")),
        cors_origins=_parse_origins(_read_env("CORS_ORIGINS")),
    )
    # Ensure the data directory exists for downstream services.
    config.database_path.parent.mkdir(parents=True, exist_ok=True)
    return config


def reload_config() -> AppConfig:
    """Clear cached config (useful for tests) and reload."""
    get_config.cache_clear()
    return get_config()


__all__ = [
    "AppConfig",
    "get_config",
    "reload_config",
    "PROJECT_ROOT",
    "DEFAULT_DATABASE_PATH",
]
