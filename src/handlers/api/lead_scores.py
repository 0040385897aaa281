"""Public lead score API handler (no authentication required)."""

import json
from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError

from aurelia.models.lead_score import SyncLeadScoreRequest
from aurelia.services.lead_sync_service import LeadSyncService
from aurelia.utils.exceptions import AureliaError, ValidationError
from aurelia.utils.rate_limiter import check_rate_limit, get_client_ip
from aurelia.utils.responses import error, from_exception, rate_limited, success, validation_error

logger = structlog.get_logger()


def handler(event: dict[str, Any], context: Any) -> dict:
    """Handle public lead score requests.

    Routes:
        POST /public/lead-scores/sync                   - Merge and score a signal snapshot
        POST /public/lead-scores/{session_id}/engaged   - Record concierge engagement
    """
    try:
        http_method = event.get("httpMethod", "").upper()
        path = event.get("path", "")
        path_params = event.get("pathParameters", {}) or {}

        if http_method != "POST":
            return error("Not found", 404)

        rate_check = check_rate_limit(identifier=get_client_ip(event), action="lead_score_sync")
        if not rate_check.allowed:
            return rate_limited(rate_check.retry_after or 60)

        if path == "/public/lead-scores/sync":
            return sync_lead_score(event)
        elif path.startswith("/public/lead-scores/") and path.endswith("/engaged"):
            return mark_engaged(path_params.get("session_id"))
        else:
            return error("Not found", 404)

    except ValidationError as e:
        return validation_error(e.errors)
    except AureliaError as e:
        return from_exception(e)
    except ValueError as e:
        return error(str(e), 400)
    except Exception as e:
        logger.exception("Lead scores handler error", error=str(e))
        return error("Internal server error", 500)


def sync_lead_score(event: dict) -> dict:
    """Merge the posted snapshot into the session's record and rescore it."""
    try:
        body = json.loads(event.get("body") or "{}")
        request = SyncLeadScoreRequest.model_validate(body)
    except json.JSONDecodeError:
        return error("Invalid JSON body", 400)
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e) from e

    record = LeadSyncService().sync(request.session_id, request.signals, email=request.email)

    logger.info(
        "Lead score synced",
        session_id=request.session_id,
        score=record.score,
        tier=record.tier,
    )
    return success(record.to_public_dict())


def mark_engaged(session_id: str | None) -> dict:
    """Record that the concierge assistant engaged the visitor."""
    if not session_id:
        return error("session_id is required", 400)

    changed = LeadSyncService().mark_orla_engaged(session_id)
    return success({"session_id": session_id, "orla_engaged": True, "changed": changed})
