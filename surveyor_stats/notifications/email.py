"""
SendGrid email transport.

Sends one HTML message per call through the v3 ``mail/send`` endpoint.
"""

import asyncio
from typing import Any, Dict, Optional

import requests
import structlog

from surveyor_stats.config.settings import EmailSettings, get_settings
from surveyor_stats.exceptions import ConfigurationError, TransportError
from surveyor_stats.interfaces import EmailSender

logger = structlog.get_logger(__name__)


class SendGridEmailSender(EmailSender):
    """
    Email delivery through SendGrid.

    A non-2xx response is a rejection (returns False); a network failure is a
    TransportError.
    """

    def __init__(
        self,
        config: Optional[EmailSettings] = None,
        session: Optional[requests.Session] = None,
        content_type: str = "text/html",
    ):
        self.config = config or get_settings().email
        self.session = session or requests.Session()
        self.content_type = content_type

    def is_configured(self) -> bool:
        return self.config.api_key is not None and bool(self.config.api_key.get_secret_value())

    def _payload(self, to: str, subject: str, body: str) -> Dict[str, Any]:
        return {
            "personalizations": [{"to": [{"email": to}]}],
            "from": {"email": self.config.from_email},
            "subject": subject,
            "content": [{"type": self.content_type, "value": body}],
        }

    def _send(self, to: str, subject: str, body: str) -> bool:
        if not self.is_configured():
            raise ConfigurationError("SENDGRID_API_KEY is not configured")

        try:
            response = self.session.post(
                self.config.api_url,
                json=self._payload(to, subject, body),
                headers={
                    "Authorization": f"Bearer {self.config.api_key.get_secret_value()}",
                    "Content-Type": "application/json",
                },
                timeout=self.config.timeout_seconds,
            )
        except requests.RequestException as e:
            raise TransportError(f"SendGrid request failed: {e}") from e

        if not response.ok:
            logger.error(
                "SendGrid rejected email",
                recipient=to,
                status_code=response.status_code,
                detail=response.text[:500],
            )
            return False

        logger.info("Email sent", recipient=to)
        return True

    async def send_email(self, to: str, subject: str, body: str) -> bool:
        return await asyncio.to_thread(self._send, to, subject, body)
