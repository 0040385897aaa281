"""Rate limiting for the public lead score endpoints.

Counters live in the main table under RATELIMIT# partitions with a TTL,
one fixed window per minute and one per hour.
"""

import os
import time
from typing import NamedTuple

import boto3
import structlog
from botocore.exceptions import ClientError

logger = structlog.get_logger()

# Snapshot syncs fire every few seconds from an active tab
DEFAULT_REQUESTS_PER_MINUTE = 30
DEFAULT_REQUESTS_PER_HOUR = 600


class RateLimitResult(NamedTuple):
    """Result of a rate limit check."""

    allowed: bool
    requests_remaining: int
    retry_after: int | None  # Seconds until the window resets


def _increment(table, pk: str, identifier: str, ttl: int) -> int:
    response = table.update_item(
        Key={"PK": pk, "SK": identifier},
        UpdateExpression="SET #count = if_not_exists(#count, :zero) + :inc, #ttl = :ttl",
        ExpressionAttributeNames={"#count": "count", "#ttl": "ttl"},
        ExpressionAttributeValues={":zero": 0, ":inc": 1, ":ttl": ttl},
        ReturnValues="UPDATED_NEW",
    )
    return int(response["Attributes"]["count"])


def check_rate_limit(
    identifier: str,
    action: str,
    requests_per_minute: int = DEFAULT_REQUESTS_PER_MINUTE,
    requests_per_hour: int = DEFAULT_REQUESTS_PER_HOUR,
    now: int | None = None,
) -> RateLimitResult:
    """Count a request against the minute and hour windows.

    Args:
        identifier: Caller identifier (usually the client IP).
        action: Action being limited, e.g. "lead_score_sync".
        requests_per_minute: Max requests per minute.
        requests_per_hour: Max requests per hour.
        now: Current epoch seconds (defaults to time.time()).

    Returns:
        RateLimitResult. DynamoDB failures fail open.
    """
    table = boto3.resource("dynamodb").Table(os.environ.get("TABLE_NAME", "aurelia-dev"))
    current_time = int(now if now is not None else time.time())

    try:
        minute_count = _increment(
            table,
            f"RATELIMIT#{action}#MIN#{current_time // 60}",
            identifier,
            current_time + 120,
        )
        if minute_count > requests_per_minute:
            logger.warning(
                "Rate limit exceeded (minute)",
                identifier=identifier[:20],
                action=action,
                count=minute_count,
            )
            return RateLimitResult(False, 0, 60 - current_time % 60)

        hour_count = _increment(
            table,
            f"RATELIMIT#{action}#HOUR#{current_time // 3600}",
            identifier,
            current_time + 7200,
        )
        if hour_count > requests_per_hour:
            logger.warning(
                "Rate limit exceeded (hour)",
                identifier=identifier[:20],
                action=action,
                count=hour_count,
            )
            return RateLimitResult(False, 0, 3600 - current_time % 3600)

    except ClientError as e:
        logger.error("Rate limiter DynamoDB error", error=str(e), action=action)
        return RateLimitResult(allowed=True, requests_remaining=-1, retry_after=None)

    return RateLimitResult(
        allowed=True,
        requests_remaining=min(requests_per_minute - minute_count, requests_per_hour - hour_count),
        retry_after=None,
    )


def get_client_ip(event: dict) -> str:
    """Extract the client IP, preferring the first X-Forwarded-For hop."""
    headers = event.get("headers") or {}
    forwarded_for = headers.get("X-Forwarded-For") or headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    identity = (event.get("requestContext") or {}).get("identity") or {}
    return identity.get("sourceIp", "unknown")
