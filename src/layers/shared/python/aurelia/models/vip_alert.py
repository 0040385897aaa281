"""VIP alert model for the admin review queue.

DynamoDB keys:
    PK: VIPALERT#{id}
    SK: META
    GSI1PK: VIPALERTS
    GSI1SK: {id}  (ULIDs sort by creation time)
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel as PydanticBaseModel, Field

from aurelia.models.base import BaseModel


class AlertType(str, Enum):
    """VIP severity, lowest to highest."""

    QUALIFIED_LEAD = "qualified_lead"
    HIGH_INTENT = "high_intent"
    ULTRA_HIGH_INTENT = "ultra_high_intent"


ALERT_TYPE_RANK: dict[str, int] = {
    AlertType.QUALIFIED_LEAD.value: 1,
    AlertType.HIGH_INTENT.value: 2,
    AlertType.ULTRA_HIGH_INTENT.value: 3,
}


class AlertStatus(str, Enum):
    """Review status of a VIP alert."""

    NEW = "new"
    CONTACTED = "contacted"
    CONVERTED = "converted"
    DISMISSED = "dismissed"


# Allowed review transitions. converted and dismissed are terminal.
ALERT_TRANSITIONS: dict[str, frozenset[str]] = {
    AlertStatus.NEW.value: frozenset(
        {AlertStatus.CONTACTED.value, AlertStatus.CONVERTED.value, AlertStatus.DISMISSED.value}
    ),
    AlertStatus.CONTACTED.value: frozenset({AlertStatus.CONVERTED.value}),
    AlertStatus.CONVERTED.value: frozenset(),
    AlertStatus.DISMISSED.value: frozenset(),
}


def allowed_sources(target: str) -> list[str]:
    """Statuses from which ``target`` may be reached, in a stable order."""
    return sorted(src for src, targets in ALERT_TRANSITIONS.items() if target in targets)


def can_transition(current: str, target: str) -> bool:
    """Check whether an alert in ``current`` may move to ``target``."""
    return target in ALERT_TRANSITIONS.get(current, frozenset())


class VIPAlert(BaseModel):
    """A VIP escalation awaiting human review.

    Created exactly once per ultra-high-intent escalation, in the same
    transaction that flips the lead's admin_notified flag.
    """

    session_id: str = Field(..., description="Originating anonymous session")
    lead_score_id: str | None = Field(None, description="ID of the lead score record")
    email: str | None = None
    score: int = Field(..., ge=0)
    tier: str
    signals: dict[str, Any] = Field(default_factory=dict, description="Snapshot at escalation")
    breakdown: dict[str, int] = Field(default_factory=dict)
    alert_type: AlertType
    status: AlertStatus = AlertStatus.NEW
    notes: str | None = None
    reviewed_by: str | None = None
    reviewed_at: datetime | None = None

    def get_pk(self) -> str:
        """Get partition key: VIPALERT#{id}."""
        return f"VIPALERT#{self.id}"

    def get_sk(self) -> str:
        """Get sort key: META."""
        return "META"

    def get_gsi1_keys(self) -> dict[str, str]:
        """Get GSI1 keys for newest-first listing."""
        return {"GSI1PK": "VIPALERTS", "GSI1SK": self.id}


class UpdateAlertStatusRequest(PydanticBaseModel):
    """Request model for an admin review action."""

    status: AlertStatus
    notes: str | None = Field(None, max_length=5000)


class VIPStats(PydanticBaseModel):
    """Dashboard counters."""

    total_vips: int = 0
    new_alerts: int = 0
    converted: int = 0
    avg_score: int = 0
