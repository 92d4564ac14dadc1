"""
Twilio SMS transport.
"""

import asyncio
import re
from typing import Optional

import requests
import structlog

from surveyor_stats.config.settings import SMSSettings, get_settings
from surveyor_stats.exceptions import ConfigurationError, TransportError
from surveyor_stats.interfaces import SMSSender

logger = structlog.get_logger(__name__)

TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"


def normalize_phone_number(number: str, country_code: str = "+1") -> str:
    """
    E.164-ish formatting.

    Numbers already starting with ``+`` are kept; anything else is stripped
    to digits and prefixed with ``country_code``.
    """
    number = number.strip()
    if number.startswith("+"):
        return number
    return f"{country_code}{re.sub(r'[^0-9]', '', number)}"


class TwilioSMSSender(SMSSender):
    """
    SMS delivery through the Twilio Messages API (basic auth).

    Example:
        sender = TwilioSMSSender()
        await sender.send_sms("555-123-4567", "Daily Report ...")
    """

    def __init__(self, config: Optional[SMSSettings] = None, session: Optional[requests.Session] = None):
        self.config = config or get_settings().sms
        self.session = session or requests.Session()

    def is_configured(self) -> bool:
        return bool(self.config.account_sid and self.config.auth_token and self.config.phone_number)

    @property
    def from_number(self) -> str:
        number = self.config.phone_number or ""
        return number if number.startswith("+") else f"+{number}"

    def _send(self, to: str, message: str) -> bool:
        if not self.is_configured():
            raise ConfigurationError("Twilio credentials are not configured")

        formatted_to = normalize_phone_number(to, self.config.default_country_code)
        url = f"{TWILIO_API_BASE}/Accounts/{self.config.account_sid}/Messages.json"
        try:
            response = self.session.post(
                url,
                data={"To": formatted_to, "From": self.from_number, "Body": message},
                auth=(self.config.account_sid, self.config.auth_token.get_secret_value()),
                timeout=self.config.timeout_seconds,
            )
        except requests.RequestException as e:
            raise TransportError(f"Twilio request failed: {e}") from e

        if not response.ok:
            logger.error(
                "Twilio rejected SMS",
                recipient=formatted_to,
                status_code=response.status_code,
                detail=response.text[:500],
            )
            return False

        logger.info("SMS sent", recipient=formatted_to, sid=response.json().get("sid"))
        return True

    async def send_sms(self, to: str, message: str) -> bool:
        return await asyncio.to_thread(self._send, to, message)
