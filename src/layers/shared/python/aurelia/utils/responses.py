"""API Gateway proxy response helpers."""

import json
import os
from datetime import datetime
from typing import Any

from pydantic import BaseModel as PydanticBaseModel

from aurelia.utils.exceptions import AureliaError

_ALLOWED_ORIGIN = os.environ.get("CORS_ALLOWED_ORIGIN", "https://dev.aurelia.ai")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": _ALLOWED_ORIGIN,
    "Access-Control-Allow-Headers": "Content-Type,Authorization,X-Amz-Date,X-Api-Key,X-Amz-Security-Token",
    "Access-Control-Allow-Methods": "GET,POST,PUT,OPTIONS",
    "Access-Control-Allow-Credentials": "true",
    "Content-Type": "application/json",
}


def _json_serializer(obj: Any) -> Any:
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, PydanticBaseModel):
        return obj.model_dump(mode="json")
    raise TypeError(f"Object of type {type(obj)} is not JSON serializable")


def _serialize(data: Any) -> str:
    return json.dumps(data, default=_json_serializer)


def success(data: Any, status_code: int = 200) -> dict:
    """Create a successful API response.

    Args:
        data: Response data (dict, list, or Pydantic model).
        status_code: HTTP status code (default 200).

    Returns:
        API Gateway response dict.
    """
    if isinstance(data, PydanticBaseModel):
        data = data.model_dump(mode="json")

    return {
        "statusCode": status_code,
        "headers": CORS_HEADERS,
        "body": _serialize(data),
    }


def error(
    message: str,
    status_code: int = 500,
    error_code: str | None = None,
    details: dict | None = None,
) -> dict:
    """Create an error API response.

    Args:
        message: Error message.
        status_code: HTTP status code.
        error_code: Machine-readable error code.
        details: Additional error details.

    Returns:
        API Gateway response dict.
    """
    body: dict[str, Any] = {"error": True, "message": message}
    if error_code:
        body["error_code"] = error_code
    if details:
        body["details"] = details

    return {
        "statusCode": status_code,
        "headers": CORS_HEADERS,
        "body": _serialize(body),
    }


def from_exception(exc: AureliaError) -> dict:
    """Create an error response from a domain exception."""
    return {
        "statusCode": exc.status_code,
        "headers": CORS_HEADERS,
        "body": _serialize(exc.to_dict()),
    }


def validation_error(errors: list[dict]) -> dict:
    """Create a 400 validation error response.

    Args:
        errors: List of validation errors with field and message.
    """
    return error(
        message="Validation failed",
        status_code=400,
        error_code="VALIDATION_ERROR",
        details={"errors": errors},
    )


def conflict(message: str = "Resource conflict") -> dict:
    """Create a 409 Conflict response."""
    return error(message=message, status_code=409, error_code="CONFLICT")


def rate_limited(retry_after: int) -> dict:
    """Create a 429 Too Many Requests response with Retry-After."""
    response = error(
        message="Too many requests. Please try again later.",
        status_code=429,
        error_code="RATE_LIMITED",
    )
    response["headers"] = {**CORS_HEADERS, "Retry-After": str(retry_after)}
    return response
