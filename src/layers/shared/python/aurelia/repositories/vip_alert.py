"""VIP alert repository for the admin review queue."""

import structlog
from botocore.exceptions import ClientError

from aurelia.models.base import utc_now
from aurelia.models.vip_alert import AlertStatus, VIPAlert, allowed_sources
from aurelia.repositories.base import BaseRepository, is_conditional_check_failure
from aurelia.utils.exceptions import ConflictError, NotFoundError

logger = structlog.get_logger()

ALERTS_GSI1_PK = "VIPALERTS"
DEFAULT_LIST_LIMIT = 100


class VIPAlertRepository(BaseRepository[VIPAlert]):
    """Repository for VIPAlert items."""

    def __init__(self, table_name: str | None = None):
        """Initialize VIP alert repository."""
        super().__init__(VIPAlert, table_name)

    def get_by_id(self, alert_id: str) -> VIPAlert | None:
        """Get an alert by ID.

        Args:
            alert_id: The alert ID.

        Returns:
            VIPAlert or None if not found.
        """
        return self.get(pk=f"VIPALERT#{alert_id}", sk="META")

    def list_alerts(
        self,
        status: AlertStatus | str | None = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> list[VIPAlert]:
        """List alerts newest first, optionally filtered by status.

        Args:
            status: Only return alerts in this status.
            limit: Maximum alerts to return.

        Returns:
            List of alerts.
        """
        if status is None:
            return self.query_gsi1(ALERTS_GSI1_PK, scan_forward=False, limit=limit)

        return self.query_gsi1(
            ALERTS_GSI1_PK,
            scan_forward=False,
            filter_expression="#status = :status",
            expression_names={"#status": "status"},
            expression_values={":status": AlertStatus(status).value},
            limit=limit,
        )

    def list_all(self) -> list[VIPAlert]:
        """List every alert (used for dashboard counters)."""
        return self.query_gsi1(ALERTS_GSI1_PK)

    def transition_status(
        self,
        alert_id: str,
        new_status: AlertStatus | str,
        notes: str | None = None,
        reviewed_by: str | None = None,
    ) -> VIPAlert:
        """Move an alert to a new review status.

        The write is conditional on the alert currently being in a status
        from which ``new_status`` is reachable, so two admins racing on the
        same alert cannot both succeed with incompatible transitions.

        Args:
            alert_id: The alert ID.
            new_status: Target status.
            notes: Optional reviewer notes (kept unchanged when None).
            reviewed_by: ID of the admin performing the review.

        Returns:
            The updated alert.

        Raises:
            NotFoundError: If the alert does not exist.
            ConflictError: If the transition is not allowed.
        """
        target = AlertStatus(new_status).value
        sources = allowed_sources(target)
        if not sources:
            raise ConflictError(
                f"Alerts cannot be moved to '{target}'",
                conflict_type="invalid_transition",
            )

        now = utc_now().isoformat()
        set_parts = ["#status = :status", "#reviewed_at = :now", "#updated_at = :now"]
        names = {
            "#status": "status",
            "#reviewed_at": "reviewed_at",
            "#updated_at": "updated_at",
        }
        values: dict = {":status": target, ":now": now}

        if notes is not None:
            set_parts.append("#notes = :notes")
            names["#notes"] = "notes"
            values[":notes"] = notes
        if reviewed_by is not None:
            set_parts.append("#reviewed_by = :reviewed_by")
            names["#reviewed_by"] = "reviewed_by"
            values[":reviewed_by"] = reviewed_by

        source_placeholders = []
        for i, source in enumerate(sources):
            values[f":src{i}"] = source
            source_placeholders.append(f":src{i}")

        try:
            response = self.table.update_item(
                Key={"PK": f"VIPALERT#{alert_id}", "SK": "META"},
                UpdateExpression=f"SET {', '.join(set_parts)}",
                ConditionExpression=(
                    f"attribute_exists(PK) AND #status IN ({', '.join(source_placeholders)})"
                ),
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
                ReturnValues="ALL_NEW",
            )
        except ClientError as e:
            if not is_conditional_check_failure(e):
                logger.error("DynamoDB alert status update failed", error=str(e), alert_id=alert_id)
                raise

            current = self.get_by_id(alert_id)
            if current is None:
                raise NotFoundError("VIPAlert", alert_id) from e
            raise ConflictError(
                f"Cannot move alert from '{current.status}' to '{target}'",
                conflict_type="invalid_transition",
            ) from e

        return VIPAlert.from_dynamodb(response["Attributes"])
