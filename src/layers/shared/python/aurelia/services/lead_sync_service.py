"""Lead score sync service.

Turns a client-side signal snapshot into a persisted, scored, classified
LeadScoreRecord and escalates ultra-high-intent visitors to an admin
exactly once.
"""

import structlog

from aurelia.models.lead_score import LeadScoreRecord, SignalSnapshot
from aurelia.models.vip_alert import AlertType, VIPAlert
from aurelia.repositories.lead_score import LeadScoreRepository
from aurelia.scoring import classify_vip, compute_score
from aurelia.scoring.vip import highest_alert_type
from aurelia.services.vip_notifier import AdminNotifier
from aurelia.utils.exceptions import ConflictError

logger = structlog.get_logger()

DEFAULT_MAX_ATTEMPTS = 5


class LeadSyncService:
    """Merge, score, classify and persist lead signals."""

    def __init__(
        self,
        lead_repo: LeadScoreRepository | None = None,
        notifier: AdminNotifier | None = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ):
        """Initialize the sync service.

        Args:
            lead_repo: Lead score repository.
            notifier: Admin notifier used after a successful claim.
            max_attempts: Upper bound on optimistic-lock retries.
        """
        self.lead_repo = lead_repo or LeadScoreRepository()
        self.notifier = notifier or AdminNotifier()
        self.max_attempts = max_attempts

    def sync(
        self,
        session_id: str,
        snapshot: SignalSnapshot,
        email: str | None = None,
    ) -> LeadScoreRecord:
        """Persist a snapshot for a session and return the stored record.

        The incoming snapshot is merged into what is already stored, so
        stale or out-of-order syncs never lose signals.

        Args:
            session_id: Anonymous session ID.
            snapshot: Latest client-side snapshot.
            email: Visitor email if captured.

        Returns:
            The stored LeadScoreRecord.

        Raises:
            ConflictError: If every attempt lost an optimistic-lock race.
        """
        record = self._save_with_retry(session_id, snapshot, email)

        if record.is_vip:
            logger.info(
                "vip_detected",
                session_id=session_id,
                score=record.score,
                tier=record.tier,
                alert_type=record.vip_alert_type,
                rules=sorted(record.breakdown),
            )

        if record.vip_alert_type == AlertType.ULTRA_HIGH_INTENT.value and not record.admin_notified:
            record = self._escalate(record)

        return record

    def _save_with_retry(
        self,
        session_id: str,
        snapshot: SignalSnapshot,
        email: str | None,
    ) -> LeadScoreRecord:
        for attempt in range(1, self.max_attempts + 1):
            current = self.lead_repo.get_by_session_id(session_id)

            merged = current.signals.merge(snapshot) if current else snapshot
            score = compute_score(merged)
            classification = classify_vip(score)

            is_vip = classification.is_vip or (current is not None and current.is_vip)
            alert_type = highest_alert_type(
                current.vip_alert_type if current else None,
                classification.alert_type,
            )

            try:
                return self.lead_repo.save_scored_snapshot(
                    session_id=session_id,
                    signals=merged,
                    score=score,
                    is_vip=is_vip,
                    vip_alert_type=alert_type,
                    email=email,
                    expected_version=current.version if current else None,
                )
            except ConflictError:
                logger.info(
                    "Lead score write conflict, retrying",
                    session_id=session_id,
                    attempt=attempt,
                )

        logger.warning("Lead score sync gave up after conflicts", session_id=session_id)
        raise ConflictError(
            f"Lead score for session {session_id} is under heavy contention",
            conflict_type="version",
        )

    def _escalate(self, record: LeadScoreRecord) -> LeadScoreRecord:
        alert = VIPAlert(
            session_id=record.session_id,
            lead_score_id=record.id,
            email=record.email,
            score=record.score,
            tier=record.tier,
            signals=record.signals.model_dump(mode="json"),
            breakdown=record.breakdown,
            alert_type=AlertType.ULTRA_HIGH_INTENT,
        )

        if not self.lead_repo.claim_admin_notification(record.session_id, alert):
            return self.lead_repo.get_by_session_id(record.session_id) or record

        # The claim is committed; a failed dispatch must not fail the sync
        try:
            self.notifier.dispatch(alert)
        except Exception as e:
            logger.exception("VIP alert dispatch failed", alert_id=alert.id, error=str(e))
        return record.model_copy(update={"admin_notified": True})

    def mark_orla_engaged(self, session_id: str) -> bool:
        """Record that the concierge assistant engaged this visitor.

        Args:
            session_id: Anonymous session ID.

        Returns:
            True on the first call for a session, False afterwards or if the
            session is unknown.
        """
        engaged = self.lead_repo.mark_orla_engaged(session_id)
        logger.info("Concierge engagement recorded", session_id=session_id, changed=engaged)
        return engaged
