"""Lead score repository.

The per-session LeadScoreRecord is the only shared mutable resource in the
scoring pipeline, so every write here is conditional:

* snapshot upserts are guarded by the record version (optimistic locking)
  and only ever initialise the one-way flags with if_not_exists;
* admin_notified flips false -> true in the same transaction that creates
  the VIPAlert, so exactly one writer wins;
* orla_engaged flips false -> true with a conditional UpdateItem.
"""

from typing import Any

import structlog
from botocore.exceptions import ClientError

from aurelia.models.base import generate_ulid, to_dynamodb_value, utc_now
from aurelia.models.lead_score import LeadScore, LeadScoreRecord, SignalSnapshot
from aurelia.models.vip_alert import AlertType, VIPAlert
from aurelia.repositories.base import (
    BaseRepository,
    build_set_expression,
    is_conditional_check_failure,
)
from aurelia.utils.exceptions import ConflictError

logger = structlog.get_logger()

VIP_GSI1_PK = "LEADS#VIP"


class LeadScoreRepository(BaseRepository[LeadScoreRecord]):
    """Repository for LeadScoreRecord items."""

    def __init__(self, table_name: str | None = None):
        """Initialize lead score repository."""
        super().__init__(LeadScoreRecord, table_name)

    @staticmethod
    def _key(session_id: str) -> dict[str, str]:
        return {"PK": f"LEAD#{session_id}", "SK": "SCORE"}

    def get_by_session_id(self, session_id: str) -> LeadScoreRecord | None:
        """Get a lead score record by session ID.

        Args:
            session_id: Anonymous session ID.

        Returns:
            LeadScoreRecord or None if not found.
        """
        key = self._key(session_id)
        return self.get(key["PK"], key["SK"])

    def save_scored_snapshot(
        self,
        session_id: str,
        signals: SignalSnapshot,
        score: LeadScore,
        is_vip: bool,
        vip_alert_type: AlertType | None,
        email: str | None = None,
        expected_version: int | None = None,
    ) -> LeadScoreRecord:
        """Write a merged snapshot and its derived score.

        Args:
            session_id: Anonymous session ID.
            signals: The already-merged snapshot.
            score: Score computed from ``signals``.
            is_vip: Sticky VIP flag (stored value OR new classification).
            vip_alert_type: Highest severity reached so far.
            email: Visitor email, written only when known.
            expected_version: Version read before merging, or None to insert.

        Returns:
            The record as stored after the write.

        Raises:
            ConflictError: If another writer changed the record first.
        """
        now = utc_now().isoformat()
        new_version = (expected_version or 0) + 1

        values: dict[str, Any] = {
            "session_id": session_id,
            "signals": to_dynamodb_value(signals.model_dump(mode="json")),
            "score": score.total,
            "tier": score.tier.value,
            "breakdown": score.breakdown,
            "is_vip": is_vip,
            "last_activity_at": now,
            "updated_at": now,
            "version": new_version,
        }
        initial: dict[str, Any] = {
            "id": generate_ulid(),
            "created_at": now,
            "admin_notified": False,
            "orla_engaged": False,
        }

        if email:
            values["email"] = email
        if vip_alert_type is not None:
            values["vip_alert_type"] = AlertType(vip_alert_type).value
        if is_vip:
            values["GSI1PK"] = VIP_GSI1_PK
            values["GSI1SK"] = session_id
            initial["vip_detected_at"] = now

        update_expr, names, expr_values = build_set_expression(values, initial)

        if expected_version is None:
            condition = "attribute_not_exists(PK)"
        else:
            condition = "#version = :expected_version"
            expr_values[":expected_version"] = expected_version

        try:
            response = self.table.update_item(
                Key=self._key(session_id),
                UpdateExpression=update_expr,
                ConditionExpression=condition,
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=expr_values,
                ReturnValues="ALL_NEW",
            )
        except ClientError as e:
            if is_conditional_check_failure(e):
                raise ConflictError(
                    "Lead score was modified by another sync",
                    conflict_type="version",
                ) from e
            logger.error("DynamoDB lead score upsert failed", error=str(e), session_id=session_id)
            raise

        return LeadScoreRecord.from_dynamodb(response["Attributes"])

    def claim_admin_notification(self, session_id: str, alert: VIPAlert) -> bool:
        """Atomically set admin_notified and create the VIP alert.

        Both writes commit together or not at all. The update is conditional
        on admin_notified still being false, so among any number of
        concurrent callers exactly one gets True.

        Args:
            session_id: Anonymous session ID.
            alert: Alert to create if the claim succeeds.

        Returns:
            True if this caller won the claim, False if already notified.
        """
        now = utc_now().isoformat()
        alert_item = self.to_item(alert)

        try:
            self.dynamodb.meta.client.transact_write_items(
                TransactItems=[
                    {
                        "Update": {
                            "TableName": self.table_name,
                            "Key": self._key(session_id),
                            "UpdateExpression": (
                                "SET #notified = :true, #notified_at = :now, #updated_at = :now"
                            ),
                            "ConditionExpression": "attribute_exists(PK) AND #notified = :false",
                            "ExpressionAttributeNames": {
                                "#notified": "admin_notified",
                                "#notified_at": "admin_notified_at",
                                "#updated_at": "updated_at",
                            },
                            "ExpressionAttributeValues": {
                                ":true": True,
                                ":false": False,
                                ":now": now,
                            },
                        }
                    },
                    {
                        "Put": {
                            "TableName": self.table_name,
                            "Item": alert_item,
                            "ConditionExpression": "attribute_not_exists(PK)",
                        }
                    },
                ]
            )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") != "TransactionCanceledException":
                logger.error("Admin notification claim failed", error=str(e), session_id=session_id)
                raise

            reasons = [r.get("Code") for r in e.response.get("CancellationReasons", [])]
            if "ConditionalCheckFailed" in reasons:
                logger.info("Admin notification already claimed", session_id=session_id)
                return False

            current = self.get_by_session_id(session_id)
            if current is not None and current.admin_notified:
                logger.info("Admin notification already claimed", session_id=session_id)
                return False
            raise

        logger.info(
            "Admin notification claimed",
            session_id=session_id,
            alert_id=alert.id,
            alert_type=alert.alert_type,
        )
        return True

    def mark_orla_engaged(self, session_id: str) -> bool:
        """Flip orla_engaged from false to true.

        Args:
            session_id: Anonymous session ID.

        Returns:
            True if this call made the transition, False if the flag was
            already set or the record does not exist.
        """
        now = utc_now().isoformat()
        try:
            self.table.update_item(
                Key=self._key(session_id),
                UpdateExpression="SET #engaged = :true, #engaged_at = :now, #updated_at = :now",
                ConditionExpression="attribute_exists(PK) AND #engaged = :false",
                ExpressionAttributeNames={
                    "#engaged": "orla_engaged",
                    "#engaged_at": "orla_engaged_at",
                    "#updated_at": "updated_at",
                },
                ExpressionAttributeValues={":true": True, ":false": False, ":now": now},
            )
        except ClientError as e:
            if is_conditional_check_failure(e):
                return False
            logger.error("DynamoDB orla_engaged update failed", error=str(e), session_id=session_id)
            raise
        return True

    def list_vips(self) -> list[LeadScoreRecord]:
        """List every lead that has ever been classified VIP."""
        return self.query_gsi1(VIP_GSI1_PK)

