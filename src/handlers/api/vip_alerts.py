"""Admin VIP alert API handler.

All endpoints require an authorizer context with isAdmin=true.
"""

import json
from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError

from aurelia.models.vip_alert import AlertStatus, UpdateAlertStatusRequest
from aurelia.services.vip_alert_service import VIPAlertService
from aurelia.utils.auth import AuthContext, require_admin
from aurelia.utils.exceptions import AureliaError, ValidationError
from aurelia.utils.responses import conflict, error, from_exception, success, validation_error

logger = structlog.get_logger()


def handler(event: dict[str, Any], context: Any) -> dict:
    """Handle VIP alert review requests.

    Routes:
        GET /admin/vip-alerts[?status=]              - List alerts newest first
        GET /admin/vip-alerts/stats                  - Dashboard counters
        PUT /admin/vip-alerts/{alert_id}/status      - Apply a review transition
    """
    try:
        http_method = event.get("httpMethod", "").upper()
        path = event.get("path", "")
        path_params = event.get("pathParameters", {}) or {}

        auth = require_admin(event)

        if path == "/admin/vip-alerts" and http_method == "GET":
            return list_alerts(event)
        elif path == "/admin/vip-alerts/stats" and http_method == "GET":
            return get_stats()
        elif path.endswith("/status") and http_method == "PUT":
            return update_status(path_params.get("alert_id"), event, auth)
        else:
            return error("Not found", 404)

    except ValidationError as e:
        return validation_error(e.errors)
    except AureliaError as e:
        return from_exception(e)
    except ValueError as e:
        return error(str(e), 400)
    except Exception as e:
        logger.exception("VIP alerts handler error", error=str(e))
        return error("Internal server error", 500)


def list_alerts(event: dict) -> dict:
    """List alerts, optionally filtered by ?status=."""
    query_params = event.get("queryStringParameters", {}) or {}
    status = query_params.get("status")

    if status is not None:
        try:
            status = AlertStatus(status)
        except ValueError:
            return error(f"Unknown status '{status}'", 400)

    alerts = VIPAlertService().list_alerts(status=status)
    return success({"items": [a.model_dump(mode="json") for a in alerts]})


def get_stats() -> dict:
    """Return dashboard counters."""
    return success(VIPAlertService().get_stats())


def update_status(alert_id: str | None, event: dict, auth: AuthContext) -> dict:
    """Move an alert through the review state machine."""
    if not alert_id:
        return error("alert_id is required", 400)

    try:
        body = json.loads(event.get("body") or "{}")
        request = UpdateAlertStatusRequest.model_validate(body)
    except json.JSONDecodeError:
        return error("Invalid JSON body", 400)
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e) from e

    updated = VIPAlertService().update_status(
        alert_id,
        request.status,
        notes=request.notes,
        reviewed_by=auth.user_id,
    )
    if not updated:
        return conflict(f"Alert cannot move to '{AlertStatus(request.status).value}' from its current status")

    return success({"alert_id": alert_id, "status": AlertStatus(request.status).value, "updated": True})
