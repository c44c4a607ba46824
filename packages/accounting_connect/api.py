"""Orchestration surface for ``accounting_connect``.

The proxy endpoints (:mod:`accounting_connect.server`) and the dashboard CLI
(:mod:`accounting_connect.cli`) both call into this module:

- :func:`create_and_enroll_consent`: create an upstream consent, record it
  locally, request a one-time code and build the onboarding redirect URL.
- :func:`list_enriched_consents`: local consent rows joined with live upstream
  status, one concurrent lookup per row.
- :func:`connected_consents` / :func:`attach_company_info`: dashboard helpers
  that keep connected consents and join company information.
- :func:`income_statement_rows` / :func:`default_report_window`: fetch and
  flatten an income statement for display.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import UTC, date, datetime
from urllib.parse import quote, urlsplit

from db.client import session_scope

from .config import DEFAULT_ENRICH_MAX_WORKERS, DEFAULT_ONBOARDING_URL, DEFAULT_REPORT_LANGUAGE
from .consents import PENDING_STATUS, insert_consent, list_consents
from .errors import GatewayError, OnboardingError
from .gateway import MAX_REPORT_LEVEL, GatewayClient
from .logging_setup import get_logger
from .models import ConsentRecord, DisplayRow, OnboardingResult
from .pmap import p_map_settled
from .report import clamp_end_date, extract_periods, normalize_financial_report, select_current_period

_logger = get_logger("accounting_connect.api")

# Upstream lifecycle code observed for a consent whose onboarding completed.
# Other codes are upstream-defined and treated as opaque.
CONNECTED_STATUS = 1


# ---------------------------------------------------------------------------
# Onboarding
# ---------------------------------------------------------------------------


def default_consent_name(now: datetime | None = None) -> str:
    """Return ``consent-<epoch milliseconds>``."""

    now = now or datetime.now(UTC)
    return f"consent-{int(now.timestamp() * 1000)}"


def consent_id_from_location(location: str | None) -> str | None:
    """Return the final path segment of a ``Location`` reference, if any."""

    if not location:
        return None
    segments = [s for s in urlsplit(location.strip()).path.split("/") if s]
    return segments[-1] if segments else None


def build_onboarding_url(base_url: str, consent_id: str, code: str) -> str:
    """Embed ``consent_id`` and the URL-escaped one-time ``code`` in the redirect URL."""

    # Same escaping as JavaScript's encodeURIComponent.
    encoded = quote(code, safe="!~*'()")
    return f"{base_url.rstrip('/')}/consent/{quote(consent_id, safe='')}/?otc={encoded}"


def _persist_consent(consent_id: str, name: str, *, database_url: str | None) -> bool:
    try:
        with session_scope(database_url=database_url) as session:
            insert_consent(session, consent_id=consent_id, name=name, status=PENDING_STATUS)
    except Exception as e:  # noqa: BLE001 - bookkeeping is best effort
        _logger.warning("Failed to store consent %s locally: %s", consent_id, e)
        return False
    return True


def create_and_enroll_consent(
    client: GatewayClient,
    *,
    name: str | None = None,
    database_url: str | None = None,
    onboarding_base_url: str = DEFAULT_ONBOARDING_URL,
    now: datetime | None = None,
) -> OnboardingResult:
    """Run the onboarding flow and return the consent id and redirect URL.

    Fatal steps (upstream creation, locating the new id, one-time code) raise
    :class:`OnboardingError` and stop the flow. The local insert is not fatal:
    a failure is logged and reported through ``OnboardingResult.persisted``.
    """

    resolved_name = (name or "").strip() or default_consent_name(now)

    try:
        location = client.create_consent(resolved_name)
    except GatewayError as e:
        _logger.error("Upstream consent creation failed: %s", e)
        raise OnboardingError("create", "Failed to create consent", cause=e) from e

    consent_id = consent_id_from_location(location)
    if not consent_id:
        _logger.error("Consent creation response had no usable location: %r", location)
        raise OnboardingError("location", "Failed to get consent ID from response")

    persisted = _persist_consent(consent_id, resolved_name, database_url=database_url)

    try:
        otc = client.generate_otc(consent_id)
    except GatewayError as e:
        _logger.error("Upstream OTC generation failed for %s: %s", consent_id, e)
        raise OnboardingError("otc", "Failed to generate OTC", cause=e) from e

    code = otc.get("code") if isinstance(otc, Mapping) else None
    if not isinstance(code, str) or not code:
        raise OnboardingError("otc", "Failed to generate OTC: response had no code")

    _logger.info("Consent %s created (persisted=%s)", consent_id, persisted)
    return OnboardingResult(
        consent_id=consent_id,
        onboarding_url=build_onboarding_url(onboarding_base_url, consent_id, code),
        persisted=persisted,
    )


# ---------------------------------------------------------------------------
# Listing and dashboard enrichment
# ---------------------------------------------------------------------------


def enrich_consent(client: GatewayClient, record: ConsentRecord) -> ConsentRecord:
    """Join live upstream ``source`` and ``status`` onto a local record.

    The local ``status`` is left untouched; the upstream value is exposed as
    ``zwapgrid_status``.
    """

    upstream = client.get_consent(record["consent_id"])
    return {**record, "source": upstream.get("source"), "zwapgrid_status": upstream.get("status")}


def _keep_local(record: ConsentRecord, exc: Exception) -> ConsentRecord:
    _logger.warning("Failed to fetch upstream data for consent %s: %s", record["consent_id"], exc)
    return record


def list_enriched_consents(
    client: GatewayClient,
    *,
    database_url: str | None = None,
    concurrency: int | None = DEFAULT_ENRICH_MAX_WORKERS,
) -> list[ConsentRecord]:
    """Return local consents (newest first), each enriched with upstream status.

    Lookups run concurrently. A failed lookup leaves that record with its
    local fields only and does not affect the others. Store read errors
    propagate.
    """

    with session_scope(database_url=database_url) as session:
        records = list_consents(session)

    return p_map_settled(
        records,
        lambda record: enrich_consent(client, record),
        fallback=_keep_local,
        concurrency=concurrency,
    )


def connected_consents(records: Sequence[ConsentRecord]) -> list[ConsentRecord]:
    """Keep records reported connected either upstream or locally."""

    return [
        r
        for r in records
        if r.get("zwapgrid_status") == CONNECTED_STATUS or r.get("status") == CONNECTED_STATUS
    ]


def attach_company_info(
    client: GatewayClient,
    records: Sequence[ConsentRecord],
    *,
    concurrency: int | None = DEFAULT_ENRICH_MAX_WORKERS,
) -> list[ConsentRecord]:
    """Add ``companyInfo`` to each record; failed lookups leave the record as-is."""

    def _with_company(record: ConsentRecord) -> ConsentRecord:
        info = client.get_company_information(record["consent_id"])
        return {**record, "companyInfo": info}

    return p_map_settled(records, _with_company, fallback=_keep_local, concurrency=concurrency)


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------


def default_report_window(
    client: GatewayClient, consent_id: str, *, today: date | None = None
) -> tuple[str, str] | None:
    """Choose ``(start, end)`` from the consent's accounting periods.

    Prefers the period containing ``today``, else the latest listed period;
    the end date is capped at ``today``. Returns ``None`` when no usable period
    exists.
    """

    today = today or date.today()
    period = select_current_period(
        extract_periods(client.get_accounting_periods(consent_id)), today
    )
    if period is None:
        return None
    start, end = period.get("startDate"), period.get("endDate")
    if not isinstance(start, str) or not isinstance(end, str):
        return None
    return start, clamp_end_date(end, today)


def income_statement_rows(
    client: GatewayClient,
    consent_id: str,
    *,
    start_date: date | str,
    end_date: date | str,
    level: int = MAX_REPORT_LEVEL,
    preferred_language: str = DEFAULT_REPORT_LANGUAGE,
) -> list[DisplayRow]:
    """Fetch the income statement and flatten it for display."""

    document = client.get_income_statement(
        consent_id, start_date=start_date, end_date=end_date, level=level
    )
    return normalize_financial_report(document, preferred_language=preferred_language)


__all__ = [
    "CONNECTED_STATUS",
    "attach_company_info",
    "build_onboarding_url",
    "connected_consents",
    "consent_id_from_location",
    "create_and_enroll_consent",
    "default_consent_name",
    "default_report_window",
    "enrich_consent",
    "income_statement_rows",
    "list_enriched_consents",
]
