"""Admin notification fan-out for VIP escalations.

Called only after LeadScoreRepository.claim_admin_notification returned
True, so each escalation reaches these channels at most once. A failing
channel is logged and skipped; it never undoes the claim.
"""

import os
from datetime import datetime, timezone
from typing import Any

import httpx
import structlog

from aurelia.models.vip_alert import AlertType, VIPAlert
from aurelia.services.email_service import EmailError, EmailService
from aurelia.services.twilio_service import TwilioError, TwilioService

logger = structlog.get_logger()

WEBHOOK_TIMEOUT_SECONDS = 10.0

BREAKDOWN_LABELS = {
    "pricing_page": "Viewed pricing",
    "services_page": "Viewed services",
    "contact_page": "Viewed contact page",
    "trial_page": "Viewed trial page",
    "services_viewed_3plus": "Viewed 3+ services",
    "time_engagement": "Time on site",
    "scroll_depth": "Scroll depth",
    "return_visitor": "Return visitor",
    "multiple_sessions": "Multiple sessions",
    "utm_quality": "Campaign source",
    "form_interaction": "Form interaction",
    "trial_started": "Started trial",
}


def build_subject(alert: VIPAlert) -> str:
    """Build the admin email subject for an alert."""
    urgency = "URGENT" if alert.alert_type == AlertType.ULTRA_HIGH_INTENT.value else "Priority"
    return f"{urgency}: {str(alert.tier).upper()} Lead Detected (Score: {alert.score})"


def build_text_body(alert: VIPAlert, dashboard_url: str | None = None) -> str:
    """Build the plain text admin email body."""
    lines = [
        f"A {str(alert.alert_type).replace('_', ' ')} visitor was detected.",
        "",
        f"Score: {alert.score}",
        f"Tier: {alert.tier}",
        f"Email: {alert.email or 'Not captured'}",
        f"Session: {alert.session_id[:20]}",
        "",
        "Score breakdown:",
    ]
    for rule, points in sorted(alert.breakdown.items(), key=lambda kv: -kv[1]):
        lines.append(f"  - {BREAKDOWN_LABELS.get(rule, rule)}: +{points}")

    if dashboard_url:
        lines.extend(["", f"Review: {dashboard_url.rstrip('/')}/admin/vip-alerts"])
    return "\n".join(lines)


def build_webhook_payload(alert: VIPAlert) -> dict[str, Any]:
    """Build the outbound webhook JSON body."""
    return {
        "event": "vip_detected",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "data": {
            "sessionId": alert.session_id,
            "email": alert.email,
            "score": alert.score,
            "tier": alert.tier,
            "alertType": alert.alert_type,
            "breakdown": alert.breakdown,
        },
    }


class AdminNotifier:
    """Sends VIP alerts to every configured admin channel."""

    def __init__(
        self,
        admin_email: str | None = None,
        admin_phone: str | None = None,
        webhook_url: str | None = None,
        dashboard_url: str | None = None,
        email_service: EmailService | None = None,
        twilio_service: TwilioService | None = None,
        http_client: httpx.Client | None = None,
    ):
        """Initialize the notifier.

        Args:
            admin_email: Recipient address. Falls back to ADMIN_NOTIFICATION_EMAIL.
            admin_phone: SMS recipient. Falls back to ADMIN_NOTIFICATION_PHONE.
            webhook_url: Webhook endpoint. Falls back to VIP_ALERT_WEBHOOK_URL.
            dashboard_url: Admin UI base URL. Falls back to ADMIN_DASHBOARD_URL.
            email_service: SES service (created lazily when omitted).
            twilio_service: Twilio service (created lazily when omitted).
            http_client: httpx client for the webhook.
        """
        self.admin_email = admin_email or os.environ.get("ADMIN_NOTIFICATION_EMAIL")
        self.admin_phone = admin_phone or os.environ.get("ADMIN_NOTIFICATION_PHONE")
        self.webhook_url = webhook_url or os.environ.get("VIP_ALERT_WEBHOOK_URL")
        self.dashboard_url = dashboard_url or os.environ.get("ADMIN_DASHBOARD_URL")
        self._email_service = email_service
        self._twilio_service = twilio_service
        self._http_client = http_client

    @property
    def email_service(self) -> EmailService:
        """Get email service (lazy initialization)."""
        if self._email_service is None:
            self._email_service = EmailService()
        return self._email_service

    @property
    def twilio_service(self) -> TwilioService:
        """Get Twilio service (lazy initialization)."""
        if self._twilio_service is None:
            self._twilio_service = TwilioService()
        return self._twilio_service

    def dispatch(self, alert: VIPAlert) -> list[str]:
        """Send an alert to all configured channels.

        Args:
            alert: The newly created alert.

        Returns:
            Names of the channels that accepted the alert.
        """
        delivered = []

        if self.admin_email:
            try:
                self.email_service.send_email(
                    to=self.admin_email,
                    subject=build_subject(alert),
                    body_text=build_text_body(alert, self.dashboard_url),
                    tags={"category": "vip_alert"},
                )
                delivered.append("email")
            except EmailError as e:
                logger.warning("VIP alert email failed", alert_id=alert.id, error=e.message)
            except Exception as e:
                logger.exception("VIP alert email error", alert_id=alert.id, error=str(e))

        if self.admin_phone:
            try:
                self.twilio_service.send_sms(
                    to=self.admin_phone,
                    body=f"{build_subject(alert)} - {alert.email or alert.session_id[:20]}",
                )
                delivered.append("sms")
            except TwilioError as e:
                logger.warning("VIP alert SMS failed", alert_id=alert.id, error=e.message)
            except Exception as e:
                logger.exception("VIP alert SMS error", alert_id=alert.id, error=str(e))

        if self.webhook_url:
            try:
                if self._post_webhook(alert):
                    delivered.append("webhook")
            except Exception as e:
                logger.exception("VIP alert webhook error", alert_id=alert.id, error=str(e))

        logger.info(
            "VIP alert dispatched",
            alert_id=alert.id,
            session_id=alert.session_id,
            channels=delivered,
        )
        return delivered

    def _post_webhook(self, alert: VIPAlert) -> bool:
        payload = build_webhook_payload(alert)
        try:
            if self._http_client is not None:
                response = self._http_client.post(self.webhook_url, json=payload)
            else:
                with httpx.Client(timeout=WEBHOOK_TIMEOUT_SECONDS) as client:
                    response = client.post(self.webhook_url, json=payload)
        except httpx.TimeoutException:
            logger.warning("VIP alert webhook timed out", alert_id=alert.id)
            return False
        except httpx.HTTPError as e:
            logger.warning("VIP alert webhook failed", alert_id=alert.id, error=str(e))
            return False

        if not response.is_success:
            logger.warning(
                "VIP alert webhook rejected",
                alert_id=alert.id,
                status_code=response.status_code,
            )
            return False
        return True
