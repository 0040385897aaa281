"""Services package for Aurelia."""

from aurelia.services.email_service import EmailError, EmailService
from aurelia.services.lead_sync_service import LeadSyncService
from aurelia.services.twilio_service import TwilioError, TwilioService
from aurelia.services.vip_alert_service import VIPAlertService
from aurelia.services.vip_notifier import AdminNotifier

__all__ = [
    "AdminNotifier",
    "EmailError",
    "EmailService",
    "LeadSyncService",
    "TwilioError",
    "TwilioService",
    "VIPAlertService",
]
