"""
Salesforce Report Client

Reads tabular reports from the Salesforce Analytics REST API.
Supports:
- OAuth password-grant authentication with an in-process token cache
- Report execution with detail rows
- Connection testing

HTTP is done with ``requests``; calls are moved off the event loop with
``asyncio.to_thread`` so the async pipeline is never blocked.
"""

import asyncio
import time
from typing import Any, Dict, Optional

import requests
import structlog

from surveyor_stats.config.settings import CRMSettings, get_settings
from surveyor_stats.exceptions import ConfigurationError, TransportError
from surveyor_stats.interfaces import ReportFetcher

logger = structlog.get_logger(__name__)


class SalesforceTokenProvider:
    """
    Opaque access token source.

    Tokens are cached for ``token_ttl_minutes``; ``invalidate()`` forces the
    next call to authenticate again.
    """

    def __init__(
        self,
        config: CRMSettings,
        session: Optional[requests.Session] = None,
        clock=time.monotonic,
    ):
        self.config = config
        self.session = session or requests.Session()
        self._clock = clock
        self._token: Optional[str] = None
        self._expires_at: float = 0.0

    def invalidate(self) -> None:
        self._token = None
        self._expires_at = 0.0

    def get_token(self) -> str:
        if self._token and self._clock() < self._expires_at:
            return self._token

        missing = self.config.missing_credentials()
        if missing:
            raise ConfigurationError(
                f"Missing Salesforce credentials: {', '.join(missing)}"
            )

        token_url = f"{self.config.instance_url.rstrip('/')}/services/oauth2/token"
        try:
            response = self.session.post(
                token_url,
                data={
                    "grant_type": "password",
                    "client_id": self.config.client_id,
                    "client_secret": self.config.client_secret.get_secret_value(),
                    "username": self.config.username,
                    "password": self.config.password.get_secret_value(),
                },
                timeout=self.config.request_timeout_seconds,
            )
        except requests.RequestException as e:
            raise TransportError(f"Salesforce auth request failed: {e}") from e

        if not response.ok:
            raise TransportError(
                f"Salesforce auth failed: {response.status_code} - {response.text}",
                status_code=response.status_code,
            )

        try:
            token = response.json()["access_token"]
        except (ValueError, KeyError, TypeError) as e:
            raise TransportError(f"Salesforce auth returned an unusable token response: {e!r}") from e
        if not token:
            raise TransportError("Salesforce auth returned an empty access token")

        self._token = token
        self._expires_at = self._clock() + self.config.token_ttl_minutes * 60
        logger.info("Salesforce authenticated")
        return self._token


class SalesforceReportClient(ReportFetcher):
    """
    Salesforce reporting API client.

    Example:
        client = SalesforceReportClient()
        payload = await client.fetch_report("00O5f000004XYZ")
    """

    def __init__(
        self,
        config: Optional[CRMSettings] = None,
        token_provider: Optional[SalesforceTokenProvider] = None,
        session: Optional[requests.Session] = None,
    ):
        self.config = config or get_settings().crm
        self.session = session or requests.Session()
        self.tokens = token_provider or SalesforceTokenProvider(self.config, session=self.session)

    def _api_url(self, path: str) -> str:
        base = (self.config.instance_url or "").rstrip("/")
        return f"{base}/services/data/{self.config.api_version}/{path.lstrip('/')}"

    def _get(self, url: str, params: Optional[Dict[str, str]] = None) -> requests.Response:
        token = self.tokens.get_token()
        try:
            response = self.session.get(
                url,
                params=params,
                headers={
                    "Authorization": f"Bearer {token}",
                    "Content-Type": "application/json",
                },
                timeout=self.config.request_timeout_seconds,
            )
        except requests.RequestException as e:
            raise TransportError(f"Salesforce request failed: {e}") from e

        if response.status_code == 401:
            self.tokens.invalidate()
        return response

    def _run_report(self, report_id: str) -> Dict[str, Any]:
        url = self._api_url(f"analytics/reports/{report_id}")
        response = self._get(url, params={"includeDetails": "true"})
        if not response.ok:
            raise TransportError(
                f"Report {report_id} fetch failed: {response.status_code} - {response.text}",
                status_code=response.status_code,
            )
        try:
            payload = response.json()
        except ValueError as e:
            raise TransportError(f"Report {report_id} returned a non-JSON body: {e}") from e
        if not isinstance(payload, dict):
            raise TransportError(f"Report {report_id} returned an unexpected payload: {type(payload).__name__}")
        return payload

    async def fetch_report(self, report_id: str) -> Dict[str, Any]:
        logger.info("Fetching Salesforce report", report_id=report_id)
        return await asyncio.to_thread(self._run_report, report_id)

    def _test_connection(self) -> bool:
        response = self._get(self._api_url("query"), params={"q": "SELECT Id FROM Lead LIMIT 1"})
        return response.ok

    async def test_connection(self) -> bool:
        """True when an authenticated query succeeds"""
        return await asyncio.to_thread(self._test_connection)
