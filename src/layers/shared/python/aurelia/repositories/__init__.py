"""Repository classes for DynamoDB data access."""

from aurelia.repositories.base import BaseRepository
from aurelia.repositories.lead_score import LeadScoreRepository
from aurelia.repositories.vip_alert import VIPAlertRepository

__all__ = [
    "BaseRepository",
    "LeadScoreRepository",
    "VIPAlertRepository",
]
