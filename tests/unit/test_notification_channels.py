"""Tests for the SES email and Twilio SMS channel services."""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError
from twilio.base.exceptions import TwilioRestException

from aurelia.services.email_service import EmailError, EmailService
from aurelia.services.twilio_service import MAX_SMS_LENGTH, TwilioError, TwilioService


class TestEmailService:
    """Tests for EmailService.send_email."""

    def _service(self, **kwargs):
        service = EmailService(region_name="us-east-1", **kwargs)
        service._client = MagicMock()
        service._client.send_email.return_value = {"MessageId": "msg-123"}
        return service

    def test_sends_text_email(self):
        service = self._service(configuration_set="alerts")

        result = service.send_email(
            to="admin@example.com",
            subject="URGENT: QUALIFIED Lead Detected (Score: 98)",
            body_text="hello",
            from_email="alerts@example.com",
            tags={"category": "vip_alert"},
        )

        assert result == {"message_id": "msg-123", "status": "sent", "to": ["admin@example.com"]}
        kwargs = service.client.send_email.call_args.kwargs
        assert kwargs["Source"] == "alerts@example.com"
        assert kwargs["Destination"] == {"ToAddresses": ["admin@example.com"]}
        assert kwargs["Message"]["Body"] == {"Text": {"Data": "hello", "Charset": "UTF-8"}}
        assert kwargs["ConfigurationSetName"] == "alerts"
        assert kwargs["Tags"] == [{"Name": "category", "Value": "vip_alert"}]

    def test_requires_sender(self, monkeypatch):
        monkeypatch.delenv("SES_FROM_EMAIL", raising=False)
        service = self._service()

        with pytest.raises(EmailError) as exc_info:
            service.send_email(to="admin@example.com", subject="s", body_text="b")
        assert exc_info.value.code == "SENDER_MISSING"

    def test_wraps_ses_errors(self):
        service = self._service()
        service.client.send_email.side_effect = ClientError(
            {"Error": {"Code": "MessageRejected", "Message": "Email address is not verified"}},
            "SendEmail",
        )

        with pytest.raises(EmailError) as exc_info:
            service.send_email(
                to="admin@example.com",
                subject="s",
                body_text="b",
                from_email="alerts@example.com",
            )
        assert exc_info.value.code == "MessageRejected"


class TestTwilioService:
    """Tests for TwilioService.send_sms."""

    def _service(self):
        service = TwilioService(account_sid="AC123", auth_token="token", from_number="5550001111")
        service._client = MagicMock()
        message = MagicMock(sid="SM123", status="queued")
        service._client.messages.create.return_value = message
        return service

    def test_sends_sms(self):
        service = self._service()

        result = service.send_sms(to="(555) 222-3333", body="x" * 1000)

        assert result == {"message_sid": "SM123", "status": "queued"}
        kwargs = service.client.messages.create.call_args.kwargs
        assert kwargs["to"] == "+15552223333"
        assert kwargs["from_"] == "+15550001111"
        assert len(kwargs["body"]) == MAX_SMS_LENGTH

    def test_wraps_twilio_errors(self):
        service = self._service()
        service.client.messages.create.side_effect = TwilioRestException(
            400, "https://api.twilio.com", msg="Invalid 'To' number", code=21211
        )

        with pytest.raises(TwilioError) as exc_info:
            service.send_sms(to="+15552223333", body="hi")
        assert exc_info.value.code == "21211"

    def test_missing_credentials(self):
        service = TwilioService(account_sid=None, auth_token=None, from_number="+15550001111")
        service.account_sid = None
        service.auth_token = None

        with pytest.raises(TwilioError) as exc_info:
            service.send_sms(to="+15552223333", body="hi")
        assert exc_info.value.code == "CREDENTIALS_MISSING"
