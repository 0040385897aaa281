"""VIP alert review service for the admin dashboard."""

from decimal import ROUND_HALF_UP, Decimal

import structlog

from aurelia.models.vip_alert import AlertStatus, VIPAlert, VIPStats
from aurelia.repositories.lead_score import LeadScoreRepository
from aurelia.repositories.vip_alert import DEFAULT_LIST_LIMIT, VIPAlertRepository
from aurelia.utils.exceptions import ConflictError

logger = structlog.get_logger()


def _round_half_up(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal(1), rounding=ROUND_HALF_UP))


class VIPAlertService:
    """Lists, counts and reviews VIP alerts."""

    def __init__(
        self,
        alert_repo: VIPAlertRepository | None = None,
        lead_repo: LeadScoreRepository | None = None,
    ):
        self.alert_repo = alert_repo or VIPAlertRepository()
        self.lead_repo = lead_repo or LeadScoreRepository()

    def list_alerts(
        self,
        status: AlertStatus | str | None = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> list[VIPAlert]:
        """List alerts newest first, optionally filtered by status."""
        return self.alert_repo.list_alerts(status=status, limit=limit)

    def get_stats(self) -> VIPStats:
        """Compute dashboard counters.

        total_vips and avg_score cover every lead ever classified VIP; the
        alert counters cover the review queue.
        """
        vips = self.lead_repo.list_vips()
        alerts = self.alert_repo.list_all()

        avg_score = _round_half_up(sum(v.score for v in vips) / len(vips)) if vips else 0

        return VIPStats(
            total_vips=len(vips),
            new_alerts=sum(1 for a in alerts if a.status == AlertStatus.NEW.value),
            converted=sum(1 for a in alerts if a.status == AlertStatus.CONVERTED.value),
            avg_score=avg_score,
        )

    def update_status(
        self,
        alert_id: str,
        status: AlertStatus | str,
        notes: str | None = None,
        reviewed_by: str | None = None,
    ) -> bool:
        """Apply a review transition.

        Args:
            alert_id: The alert ID.
            status: Target status.
            notes: Optional reviewer notes.
            reviewed_by: ID of the reviewing admin.

        Returns:
            True if the alert moved, False if the transition is not allowed
            from its current status (the alert is left unchanged).

        Raises:
            NotFoundError: If the alert does not exist.
        """
        try:
            self.alert_repo.transition_status(
                alert_id,
                status,
                notes=notes,
                reviewed_by=reviewed_by,
            )
        except ConflictError as e:
            logger.info(
                "VIP alert transition rejected",
                alert_id=alert_id,
                target=AlertStatus(status).value,
                reason=e.message,
            )
            return False

        logger.info(
            "VIP alert status updated",
            alert_id=alert_id,
            status=AlertStatus(status).value,
            reviewed_by=reviewed_by,
        )
        return True
