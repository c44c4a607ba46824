"""Thin client for the upstream aggregator (Zwapgrid) REST API.

Every call carries the static API key (``x-api-key``) and a freshly generated
correlation id (``x-correlation-id``, UUID4) used for request tracing on the
upstream side. Responses are returned as parsed JSON.

Failures are surfaced as-is: a non-2xx response raises
:class:`~accounting_connect.errors.UpstreamError` carrying the status code and
raw body; transport errors raise the same type with ``status_code=None``. There
are no retries, no caching and no rate limiting here.
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import Any
from urllib.parse import quote

import requests

from .config import DEFAULT_ACCOUNTING_URL, DEFAULT_CONSENTS_URL, Settings
from .errors import MalformedResponseError, UpstreamError
from .logging_setup import get_logger

_logger = get_logger("accounting_connect.gateway")

API_KEY_HEADER = "x-api-key"
CORRELATION_ID_HEADER = "x-correlation-id"

# Income-statement detail levels accepted upstream (3 = account level).
MIN_REPORT_LEVEL = 1
MAX_REPORT_LEVEL = 3


def new_correlation_id() -> str:
    """Return a fresh per-call trace token."""

    return str(uuid.uuid4())


def _date_param(value: date | str) -> str:
    return value.isoformat() if isinstance(value, date) else str(value)


class GatewayClient:
    """One method per upstream capability.

    Parameters
    ----------
    api_key:
        Static credential sent on every call.
    consents_url, accounting_url:
        Base URLs of the consent-lifecycle and accounting-data APIs.
    timeout:
        Optional per-request timeout in seconds. ``None`` leaves the transport
        default in place.
    session:
        Optional ``requests.Session``-compatible object (tests inject a stub).
    """

    def __init__(
        self,
        *,
        api_key: str,
        consents_url: str = DEFAULT_CONSENTS_URL,
        accounting_url: str = DEFAULT_ACCOUNTING_URL,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("api_key must be a non-empty string")
        self._api_key = api_key
        self._consents_url = consents_url.rstrip("/")
        self._accounting_url = accounting_url.rstrip("/")
        self._timeout = timeout
        self._session = session if session is not None else requests.Session()

    @classmethod
    def from_settings(
        cls, settings: Settings, *, session: requests.Session | None = None
    ) -> GatewayClient:
        return cls(
            api_key=settings.require_api_key(),
            consents_url=settings.consents_url,
            accounting_url=settings.accounting_url,
            timeout=settings.timeout_seconds,
            session=session,
        )

    # ---- transport ---------------------------------------------------------

    def _consent_path(self, base: str, consent_id: str, suffix: str = "") -> str:
        path = f"{base}/api/v1/consents/{quote(consent_id, safe='')}"
        return f"{path}/{suffix}" if suffix else path

    def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> requests.Response:
        correlation_id = new_correlation_id()
        headers = {
            API_KEY_HEADER: self._api_key,
            CORRELATION_ID_HEADER: correlation_id,
        }
        _logger.debug("upstream %s %s correlation_id=%s", method, url, correlation_id)

        try:
            resp = self._session.request(
                method,
                url,
                headers=headers,
                params=params,
                json=json_body,
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            _logger.error(
                "upstream %s %s failed (correlation_id=%s): %s", method, url, correlation_id, e
            )
            raise UpstreamError(
                f"Upstream request {method} {url} failed", status_code=None, body=str(e)
            ) from e

        if not 200 <= resp.status_code < 300:
            body = resp.text
            _logger.error(
                "upstream %s %s returned %s (correlation_id=%s): %s",
                method,
                url,
                resp.status_code,
                correlation_id,
                body,
            )
            raise UpstreamError(
                f"Upstream request {method} {url} failed",
                status_code=resp.status_code,
                body=body,
            )
        return resp

    @staticmethod
    def _json(resp: requests.Response) -> Any:
        try:
            return resp.json()
        except ValueError as e:
            raise MalformedResponseError(
                f"Upstream returned a non-JSON body for {resp.url}"
            ) from e

    # ---- consent lifecycle -------------------------------------------------

    def create_consent(self, name: str) -> str | None:
        """Create a consent upstream and return the ``Location`` header.

        The new consent id is the final path segment of that reference; the
        header may be missing on a malformed response, in which case ``None``
        is returned and the caller decides how to fail.
        """

        resp = self._request(
            "POST", f"{self._consents_url}/api/v1/consents", json_body={"name": name}
        )
        return resp.headers.get("location")

    def get_consent(self, consent_id: str) -> dict[str, Any]:
        return self._json(self._request("GET", self._consent_path(self._consents_url, consent_id)))

    def generate_otc(self, consent_id: str) -> dict[str, Any]:
        """Request a one-time code binding a browser session to ``consent_id``."""

        return self._json(
            self._request("POST", self._consent_path(self._consents_url, consent_id, "otc"))
        )

    # ---- accounting data ---------------------------------------------------

    def get_company_information(self, consent_id: str) -> dict[str, Any]:
        url = self._consent_path(self._accounting_url, consent_id, "companyinformation")
        return self._json(self._request("GET", url))

    def get_accounting_periods(self, consent_id: str) -> Any:
        """Return the accounting periods payload (a list or a wrapping object)."""

        url = self._consent_path(self._accounting_url, consent_id, "accountingperiods")
        return self._json(self._request("GET", url))

    def get_income_statement(
        self,
        consent_id: str,
        *,
        start_date: date | str,
        end_date: date | str,
        level: int = MAX_REPORT_LEVEL,
    ) -> dict[str, Any]:
        """Fetch the income statement for ``[start_date, end_date]`` at ``level`` detail."""

        if isinstance(level, bool) or not MIN_REPORT_LEVEL <= level <= MAX_REPORT_LEVEL:
            raise ValueError(
                f"level must be between {MIN_REPORT_LEVEL} and {MAX_REPORT_LEVEL}, got {level!r}"
            )
        url = self._consent_path(self._accounting_url, consent_id, "incomestatement")
        params = {
            "StartDate": _date_param(start_date),
            "EndDate": _date_param(end_date),
            "Level": level,
        }
        return self._json(self._request("GET", url, params=params))


__all__ = [
    "API_KEY_HEADER",
    "CORRELATION_ID_HEADER",
    "GatewayClient",
    "MAX_REPORT_LEVEL",
    "MIN_REPORT_LEVEL",
    "new_correlation_id",
]
