"""Pydantic models for Aurelia entities."""

from aurelia.models.base import BaseModel, TimestampMixin
from aurelia.models.lead_score import (
    LeadScore,
    LeadScoreRecord,
    LeadTier,
    SignalSnapshot,
    SyncLeadScoreRequest,
)
from aurelia.models.vip_alert import (
    AlertStatus,
    AlertType,
    UpdateAlertStatusRequest,
    VIPAlert,
    VIPStats,
)

__all__ = [
    "AlertStatus",
    "AlertType",
    "BaseModel",
    "LeadScore",
    "LeadScoreRecord",
    "LeadTier",
    "SignalSnapshot",
    "SyncLeadScoreRequest",
    "TimestampMixin",
    "UpdateAlertStatusRequest",
    "VIPAlert",
    "VIPStats",
]
