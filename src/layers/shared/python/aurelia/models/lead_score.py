"""Lead scoring models.

A SignalSnapshot is the versioned accumulator of behavioral facts for one
anonymous session. LeadScore is derived from it and never edited by hand.
LeadScoreRecord is the persisted per-session row.

DynamoDB keys:
    PK: LEAD#{session_id}
    SK: SCORE
    GSI1PK: LEADS#VIP   (only once the session has become VIP)
    GSI1SK: {session_id}
"""

import re
from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel as PydanticBaseModel, Field, field_validator

from aurelia.models.base import BaseModel
from aurelia.models.vip_alert import AlertType

EMAIL_REGEX = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")

SNAPSHOT_SCHEMA_VERSION = 1


class LeadTier(str, Enum):
    """Coarse display classification of a score."""

    COLD = "cold"
    WARM = "warm"
    HOT = "hot"
    QUALIFIED = "qualified"


def _utm_key(snapshot: "SignalSnapshot") -> tuple[float, str, str]:
    # Newest attribution wins; ties resolved on the values so merge commutes.
    return (
        snapshot.utm_recorded_at if snapshot.utm_recorded_at is not None else -1.0,
        snapshot.utm_source or "",
        snapshot.utm_medium or "",
    )


def _max_optional(a: float | None, b: float | None) -> float | None:
    if a is None:
        return b
    if b is None:
        return a
    return max(a, b)


class SignalSnapshot(PydanticBaseModel):
    """Per-session behavioral facts with merge (not overwrite) semantics.

    Counters, time on site and scroll depth only grow, the page set only
    gains members, trial_started only goes false to true, and attribution
    is last-write-wins by utm_recorded_at.
    """

    schema_version: Literal[1] = SNAPSHOT_SCHEMA_VERSION

    pages_visited: list[str] = Field(default_factory=list)
    time_on_site_seconds: float = Field(default=0, ge=0)
    scroll_depth_percent: float = Field(default=0, ge=0, le=100)
    return_visits: int = Field(default=0, ge=0)
    services_viewed: int = Field(default=0, ge=0)
    form_interactions: int = Field(default=0, ge=0)

    utm_source: str | None = Field(None, max_length=200)
    utm_medium: str | None = Field(None, max_length=200)
    utm_recorded_at: float | None = Field(None, description="Epoch seconds of the attribution write")

    trial_started: bool = False
    last_activity_at: float | None = Field(None, description="Epoch seconds of the latest signal")

    @field_validator("scroll_depth_percent", mode="before")
    @classmethod
    def clamp_scroll_depth(cls, v: Any) -> Any:
        """Clamp browser-reported scroll depth into 0..100."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return min(max(v, 0), 100)
        return v

    @field_validator("pages_visited")
    @classmethod
    def normalize_pages(cls, v: list[str]) -> list[str]:
        """Store the page set as a sorted, de-duplicated list."""
        return sorted({p for p in v if p})

    def merge(self, other: "SignalSnapshot") -> "SignalSnapshot":
        """Merge another snapshot of the same session into this one.

        Associative, commutative and idempotent; neither input is modified.
        """
        newer_utm = max(self, other, key=_utm_key)
        return SignalSnapshot(
            pages_visited=list(set(self.pages_visited) | set(other.pages_visited)),
            time_on_site_seconds=max(self.time_on_site_seconds, other.time_on_site_seconds),
            scroll_depth_percent=max(self.scroll_depth_percent, other.scroll_depth_percent),
            return_visits=max(self.return_visits, other.return_visits),
            services_viewed=max(self.services_viewed, other.services_viewed),
            form_interactions=max(self.form_interactions, other.form_interactions),
            utm_source=newer_utm.utm_source,
            utm_medium=newer_utm.utm_medium,
            utm_recorded_at=newer_utm.utm_recorded_at,
            trial_started=self.trial_started or other.trial_started,
            last_activity_at=_max_optional(self.last_activity_at, other.last_activity_at),
        )


class LeadScore(PydanticBaseModel):
    """Weighted intent score derived from a snapshot."""

    total: int = Field(default=0, ge=0)
    breakdown: dict[str, int] = Field(default_factory=dict)
    tier: LeadTier = LeadTier.COLD


class LeadScoreRecord(BaseModel):
    """Persisted lead score, one per session.

    admin_notified and orla_engaged are one-way flags. They are only ever
    written by the conditional updates in LeadScoreRepository.
    """

    session_id: str
    signals: SignalSnapshot = Field(default_factory=SignalSnapshot)
    score: int = 0
    tier: LeadTier = LeadTier.COLD
    breakdown: dict[str, int] = Field(default_factory=dict)
    email: str | None = None

    is_vip: bool = False
    vip_alert_type: AlertType | None = None
    vip_detected_at: datetime | None = None

    admin_notified: bool = False
    admin_notified_at: datetime | None = None
    orla_engaged: bool = False
    orla_engaged_at: datetime | None = None

    last_activity_at: datetime | None = None

    def get_pk(self) -> str:
        """Get partition key: LEAD#{session_id}."""
        return f"LEAD#{self.session_id}"

    def get_sk(self) -> str:
        """Get sort key: SCORE."""
        return "SCORE"

    @property
    def should_engage_concierge(self) -> bool:
        """Whether the concierge assistant should reach out to this visitor."""
        return self.is_vip and not self.orla_engaged

    def to_public_dict(self) -> dict[str, Any]:
        """Fields safe to return to the anonymous client."""
        return {
            "session_id": self.session_id,
            "score": self.score,
            "tier": LeadTier(self.tier).value,
            "breakdown": self.breakdown,
            "is_vip": self.is_vip,
            "should_engage_concierge": self.should_engage_concierge,
        }


class SyncLeadScoreRequest(PydanticBaseModel):
    """Request body for the public sync endpoint."""

    session_id: str = Field(..., min_length=1, max_length=128)
    signals: SignalSnapshot = Field(default_factory=SignalSnapshot)
    email: str | None = Field(None, max_length=320)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str | None) -> str | None:
        """Validate and normalize email format."""
        if v is None or not v.strip():
            return None
        v = v.strip().lower()
        if not EMAIL_REGEX.match(v):
            raise ValueError("Invalid email format")
        return v
