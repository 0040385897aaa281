"""VIP classification (pure logic, no DB or I/O).

VIP thresholds are a separate, stricter scale from the display tiers: a
score can display as "qualified" (80+) on one scale and be classified
high_intent on the other, and anything from 70 is already VIP.
"""

from typing import NamedTuple

from aurelia.models.lead_score import LeadScore
from aurelia.models.vip_alert import ALERT_TYPE_RANK, AlertType

# Descending (minimum total, alert type)
VIP_THRESHOLDS: tuple[tuple[int, AlertType], ...] = (
    (90, AlertType.ULTRA_HIGH_INTENT),
    (80, AlertType.HIGH_INTENT),
    (70, AlertType.QUALIFIED_LEAD),
)


class VipClassification(NamedTuple):
    """Result of classifying a score."""

    is_vip: bool
    alert_type: AlertType | None

    @property
    def should_notify_admin(self) -> bool:
        """Only ultra-high-intent escalations page an admin."""
        return self.alert_type == AlertType.ULTRA_HIGH_INTENT


def classify_vip(score: LeadScore) -> VipClassification:
    """Classify a score into VIP status and severity."""
    for minimum, alert_type in VIP_THRESHOLDS:
        if score.total >= minimum:
            return VipClassification(is_vip=True, alert_type=alert_type)
    return VipClassification(is_vip=False, alert_type=None)


def highest_alert_type(
    current: AlertType | str | None,
    candidate: AlertType | str | None,
) -> AlertType | None:
    """Return the more severe of two alert types (either may be None)."""
    ranked = [AlertType(t) for t in (current, candidate) if t is not None]
    if not ranked:
        return None
    return max(ranked, key=lambda t: ALERT_TYPE_RANK[t.value])
