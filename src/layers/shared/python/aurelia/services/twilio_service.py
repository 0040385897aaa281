"""Twilio integration service for admin SMS alerts."""

import os
import re
from typing import Any

import structlog
from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client

logger = structlog.get_logger()

# SMS bodies longer than this are split into many billed segments
MAX_SMS_LENGTH = 480


class TwilioError(Exception):
    """Custom exception for Twilio-related errors."""

    def __init__(self, message: str, code: str | None = None, details: dict | None = None):
        """Initialize TwilioError.

        Args:
            message: Error message.
            code: Twilio error code.
            details: Additional error details.
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}


class TwilioService:
    """Service for sending SMS through the Twilio API."""

    def __init__(
        self,
        account_sid: str | None = None,
        auth_token: str | None = None,
        from_number: str | None = None,
    ):
        """Initialize Twilio service.

        Args:
            account_sid: Twilio Account SID. Falls back to TWILIO_ACCOUNT_SID env var.
            auth_token: Twilio Auth Token. Falls back to TWILIO_AUTH_TOKEN env var.
            from_number: Sender number. Falls back to TWILIO_PHONE_NUMBER env var.
        """
        self.account_sid = account_sid or os.environ.get("TWILIO_ACCOUNT_SID")
        self.auth_token = auth_token or os.environ.get("TWILIO_AUTH_TOKEN")
        self.from_number = from_number or os.environ.get("TWILIO_PHONE_NUMBER")
        self._client: Client | None = None

    @property
    def client(self) -> Client:
        """Get Twilio client (lazy initialization).

        Raises:
            TwilioError: If credentials are not configured.
        """
        if self._client is None:
            if not self.account_sid or not self.auth_token:
                raise TwilioError("Twilio credentials not configured", code="CREDENTIALS_MISSING")
            self._client = Client(self.account_sid, self.auth_token)
        return self._client

    @staticmethod
    def _normalize_phone(phone: str) -> str:
        digits = re.sub(r"[^\d+]", "", phone)
        if digits.startswith("+"):
            return digits
        if len(digits) == 10:
            return f"+1{digits}"
        return f"+{digits}"

    def send_sms(self, to: str, body: str) -> dict[str, Any]:
        """Send an SMS message.

        Args:
            to: Recipient phone number.
            body: Message content, truncated to MAX_SMS_LENGTH.

        Returns:
            Dict with message_sid and status.

        Raises:
            TwilioError: If sending fails.
        """
        if not self.from_number:
            raise TwilioError("Sender phone number is required", code="SENDER_MISSING")
        if not to:
            raise TwilioError("Recipient phone number is required", code="RECIPIENT_MISSING")
        if not body:
            raise TwilioError("Message body is required", code="BODY_MISSING")

        to = self._normalize_phone(to)
        logger.info("Sending SMS", to=to[:6] + "****", body_length=len(body))

        try:
            message = self.client.messages.create(
                to=to,
                from_=self._normalize_phone(self.from_number),
                body=body[:MAX_SMS_LENGTH],
            )
        except TwilioRestException as e:
            logger.error("Twilio SMS send failed", error_code=e.code, error_message=e.msg)
            raise TwilioError(
                f"Failed to send SMS: {e.msg}",
                code=str(e.code),
                details={"twilio_error": e.msg},
            ) from e

        logger.info("SMS sent successfully", message_sid=message.sid, status=message.status)
        return {"message_sid": message.sid, "status": message.status}
