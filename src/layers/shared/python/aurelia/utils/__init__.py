"""Utility functions and helpers."""

from aurelia.utils.auth import AuthContext, get_auth_context, require_admin
from aurelia.utils.exceptions import (
    AureliaError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from aurelia.utils.responses import error, success, validation_error

__all__ = [
    # Response helpers
    "success",
    "error",
    "validation_error",
    # Auth
    "get_auth_context",
    "require_admin",
    "AuthContext",
    # Exceptions
    "AureliaError",
    "NotFoundError",
    "ValidationError",
    "UnauthorizedError",
    "ForbiddenError",
    "ConflictError",
]
