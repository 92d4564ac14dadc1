"""
Unit Tests - Email and SMS Transports
"""
from unittest.mock import MagicMock

import pytest
import requests

from surveyor_stats.config.settings import EmailSettings, SMSSettings
from surveyor_stats.exceptions import ConfigurationError, TransportError
from surveyor_stats.notifications import SendGridEmailSender, TwilioSMSSender, normalize_phone_number


def response(status_code: int = 202, payload=None) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.ok = 200 <= status_code < 300
    resp.text = "error detail"
    resp.json.return_value = payload or {}
    return resp


@pytest.fixture
def email_config():
    return EmailSettings(api_key="SG.test", from_email="reports@example.com")


@pytest.fixture
def sms_config():
    return SMSSettings(account_sid="AC123", auth_token="token", phone_number="15550009999")


class TestNormalizePhoneNumber:
    """Tests for normalize_phone_number"""

    @pytest.mark.parametrize("raw, expected", [
        ("+15551234567", "+15551234567"),
        ("555-123-4567", "+15551234567"),
        ("(555) 123 4567", "+15551234567"),
        (" 5551234567 ", "+15551234567"),
    ])
    def test_formats(self, raw, expected):
        """Test numbers are prefixed and stripped to digits"""
        assert normalize_phone_number(raw) == expected

    def test_custom_country_code(self):
        """Test the configured country code is used"""
        assert normalize_phone_number("7700 900123", "+44") == "+447700900123"


class TestSendGridEmailSender:
    """Tests for SendGridEmailSender"""

    @pytest.mark.asyncio
    async def test_posts_html_message(self, email_config):
        """Test the v3 payload and bearer auth"""
        session = MagicMock()
        session.post.return_value = response(202)
        sender = SendGridEmailSender(email_config, session=session)

        assert await sender.send_email("admin@example.com", "Subject", "<p>Hi</p>") is True

        _, kwargs = session.post.call_args
        assert kwargs["json"] == {
            "personalizations": [{"to": [{"email": "admin@example.com"}]}],
            "from": {"email": "reports@example.com"},
            "subject": "Subject",
            "content": [{"type": "text/html", "value": "<p>Hi</p>"}],
        }
        assert kwargs["headers"]["Authorization"] == "Bearer SG.test"

    @pytest.mark.asyncio
    async def test_rejection_returns_false(self, email_config):
        """Test a non-2xx response is a rejection, not an exception"""
        session = MagicMock()
        session.post.return_value = response(400)

        assert await SendGridEmailSender(email_config, session=session).send_email("x@example.com", "s", "b") is False

    @pytest.mark.asyncio
    async def test_network_error_is_transport_error(self, email_config):
        """Test connection failures raise TransportError"""
        session = MagicMock()
        session.post.side_effect = requests.ConnectionError("refused")

        with pytest.raises(TransportError):
            await SendGridEmailSender(email_config, session=session).send_email("x@example.com", "s", "b")

    def test_unconfigured(self):
        """Test a missing API key is reported and refused"""
        sender = SendGridEmailSender(EmailSettings(api_key=None), session=MagicMock())

        assert not sender.is_configured()
        with pytest.raises(ConfigurationError):
            sender._send("x@example.com", "s", "b")


class TestTwilioSMSSender:
    """Tests for TwilioSMSSender"""

    @pytest.mark.asyncio
    async def test_posts_form_with_basic_auth(self, sms_config):
        """Test the message form and account URL"""
        session = MagicMock()
        session.post.return_value = response(201, {"sid": "SM1"})
        sender = TwilioSMSSender(sms_config, session=session)

        assert await sender.send_sms("555-123-4567", "Daily Report") is True

        args, kwargs = session.post.call_args
        assert args[0].endswith("/Accounts/AC123/Messages.json")
        assert kwargs["data"] == {"To": "+15551234567", "From": "+15550009999", "Body": "Daily Report"}
        assert kwargs["auth"] == ("AC123", "token")

    @pytest.mark.asyncio
    async def test_rejection_returns_false(self, sms_config):
        """Test an API error is a rejection"""
        session = MagicMock()
        session.post.return_value = response(400)

        assert await TwilioSMSSender(sms_config, session=session).send_sms("+15551234567", "hi") is False

    def test_is_configured(self, sms_config):
        """Test all three credentials are required"""
        assert TwilioSMSSender(sms_config, session=MagicMock()).is_configured()
        assert not TwilioSMSSender(SMSSettings(account_sid="AC123"), session=MagicMock()).is_configured()
