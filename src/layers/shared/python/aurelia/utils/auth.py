"""Authentication context helpers for admin endpoints."""

from dataclasses import dataclass
from typing import Any

import structlog

from aurelia.utils.exceptions import ForbiddenError, UnauthorizedError

logger = structlog.get_logger()


@dataclass
class AuthContext:
    """Caller identity extracted from the API Gateway authorizer."""

    user_id: str
    email: str | None = None
    is_admin: bool = False


def get_auth_context(event: dict[str, Any]) -> AuthContext:
    """Extract authentication context from API Gateway event.

    Args:
        event: API Gateway event dict.

    Returns:
        AuthContext with user information.

    Raises:
        UnauthorizedError: If no user identity is present.
    """
    authorizer = (event.get("requestContext") or {}).get("authorizer") or {}

    # Lambda authorizers nest their context under "lambda" in payload v2
    context = authorizer.get("lambda", authorizer)

    user_id = context.get("userId") or context.get("user_id") or context.get("sub")
    if not user_id:
        logger.warning("No user ID in auth context")
        raise UnauthorizedError("No user ID in authentication context")

    is_admin = context.get("isAdmin", False) or context.get("is_admin", False)
    if isinstance(is_admin, str):
        is_admin = is_admin.lower() == "true"

    return AuthContext(user_id=user_id, email=context.get("email"), is_admin=bool(is_admin))


def require_admin(event: dict[str, Any]) -> AuthContext:
    """Extract the auth context and ensure the caller is an admin.

    Raises:
        UnauthorizedError: If the caller is not authenticated.
        ForbiddenError: If the caller is not an admin.
    """
    auth = get_auth_context(event)
    if not auth.is_admin:
        logger.warning("Admin access denied", user_id=auth.user_id)
        raise ForbiddenError("Admin access required", resource_type="VIPAlert", action="review")
    return auth
