from datetime import timedelta

import pytest

from backend.src.services import config as config_module
from backend.src.services.auth import AuthError, AuthService


@pytest.fixture(autouse=True)
def restore_config_cache():
    config_module.reload_config()
    yield
    config_module.reload_config()


def test_auth_service_requires_secret(monkeypatch) -> None:
    monkeypatch.delenv("JWT_SECRET_KEY", raising=False)
    monkeypatch.delenv("ENVIRONMENT", raising=False)

    cfg = config_module.reload_config()
    service = AuthService(config=cfg)

    with pytest.raises(AuthError) as excinfo:
        service.create_jwt("user-123")

    assert excinfo.value.error == "missing_jwt_secret"
    assert excinfo.value.status_code == 500


def test_auth_service_signs_and_validates_with_secret(monkeypatch) -> None:
    secret = "a-secure-secret-value-123"
    monkeypatch.setenv("JWT_SECRET_KEY", secret)

    cfg = config_module.reload_config()
    service = AuthService(config=cfg)

    token = service.create_jwt("user-123")
    payload = service.validate_jwt(token)

    assert payload.sub == "user-123"


def test_expired_token_is_rejected(monkeypatch) -> None:
    monkeypatch.setenv("JWT_SECRET_KEY", "a-secure-secret-value-123")

    service = AuthService(config=config_module.reload_config())
    token = service.create_jwt("user-123", expires_in=timedelta(seconds=-10))

    with pytest.raises(AuthError) as excinfo:
        service.validate_jwt(token)

    assert excinfo.value.error == "token_expired"


def test_development_environment_uses_fallback_secret(monkeypatch) -> None:
    monkeypatch.delenv("JWT_SECRET_KEY", raising=False)
    monkeypatch.setenv("ENVIRONMENT", "development")

    service = AuthService(config=config_module.reload_config())
    token, expires_at = service.issue_token_response("user-123")

    assert service.validate_jwt(token).sub == "user-123"
    assert expires_at.tzinfo is not None
