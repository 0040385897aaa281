"""Pure scoring and VIP classification functions."""

from aurelia.scoring.calculator import compute_score, tier_for_total
from aurelia.scoring.vip import VipClassification, classify_vip

__all__ = [
    "VipClassification",
    "classify_vip",
    "compute_score",
    "tier_for_total",
]
