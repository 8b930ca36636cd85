"""FastAPI middleware for authentication and error handling."""

from .auth_middleware import AuthContext, get_auth_context, get_auth_service, reset_auth_service
from .error_handlers import (
    ai_error,
    bad_request,
    http_exception_handler,
    internal_exception_handler,
    not_found,
    register_error_handlers,
    validation_exception_handler,
)

__all__ = [
    "AuthContext",
    "get_auth_context",
    "get_auth_service",
    "reset_auth_service",
    "ai_error",
    "bad_request",
    "not_found",
    "register_error_handlers",
    "validation_exception_handler",
    "http_exception_handler",
    "internal_exception_handler",
]
