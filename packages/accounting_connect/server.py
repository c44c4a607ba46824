"""FastAPI proxy surface consumed by the dashboard.

Each ``GET /api/consent/{consent_id}/...`` endpoint forwards to one upstream
call and returns its JSON. Upstream failures come back with the upstream HTTP
status (502 when no response was received) and a ``{error, details}`` body;
onboarding failures return 500 with the same body shape.

Run with ``accounting-connect serve`` or
``uvicorn accounting_connect.server:create_app --factory``.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Annotated, Any

from dotenv import load_dotenv
from fastapi import APIRouter, Depends, FastAPI, Query, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .api import create_and_enroll_consent, list_enriched_consents
from .config import Settings, load_settings
from .errors import MalformedResponseError, OnboardingError, UpstreamError
from .gateway import MAX_REPORT_LEVEL, MIN_REPORT_LEVEL, GatewayClient
from .logging_setup import configure_logging, get_logger
from .models import CreateConsentRequest, ErrorResponse, OnboardingResponse
from .report import normalize_financial_report

_logger = get_logger("accounting_connect.server")

# Report window used when the caller does not pass one.
DEFAULT_START_DATE = "2024-01-01"
DEFAULT_END_DATE = "2024-12-31"

router = APIRouter(prefix="/api")


def _error(message: str, details: str, status_code: int) -> JSONResponse:
    body = ErrorResponse(error=message, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def _proxy(message: str, call: Callable[[], Any]) -> Any:
    """Run one upstream call, mapping gateway failures onto the error body."""

    try:
        return call()
    except UpstreamError as e:
        _logger.error("%s: %s", message, e)
        code = e.status_code if e.status_code is not None else status.HTTP_502_BAD_GATEWAY
        return _error(message, e.body, code)
    except MalformedResponseError as e:
        _logger.error("%s: %s", message, e)
        return _error(message, str(e), status.HTTP_502_BAD_GATEWAY)


# ---- dependencies -------------------------------------------------------------


def get_gateway(request: Request) -> GatewayClient:
    return request.app.state.gateway


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_database_url(request: Request) -> str | None:
    return request.app.state.database_url


Gateway = Annotated[GatewayClient, Depends(get_gateway)]


# ---- consent lifecycle --------------------------------------------------------


@router.post(
    "/consent",
    response_model=OnboardingResponse,
    responses={500: {"model": ErrorResponse}},
)
def create_consent(
    gateway: Gateway,
    settings: Annotated[Settings, Depends(get_settings)],
    database_url: Annotated[str | None, Depends(get_database_url)],
    payload: CreateConsentRequest | None = None,
) -> Any:
    """Create and enroll a consent; returns the onboarding redirect URL."""

    try:
        result = create_and_enroll_consent(
            gateway,
            name=payload.name if payload is not None else None,
            database_url=database_url,
            onboarding_base_url=settings.onboarding_url,
        )
    except OnboardingError as e:
        return _error(str(e), e.details, status.HTTP_500_INTERNAL_SERVER_ERROR)
    return OnboardingResponse(consent_id=result.consent_id, onboarding_url=result.onboarding_url)


@router.get("/consents", responses={500: {"model": ErrorResponse}})
def list_consents(
    gateway: Gateway,
    settings: Annotated[Settings, Depends(get_settings)],
    database_url: Annotated[str | None, Depends(get_database_url)],
) -> Any:
    """All local consents, newest first, enriched with upstream status."""

    try:
        return list_enriched_consents(
            gateway, database_url=database_url, concurrency=settings.enrich_max_workers
        )
    except (SQLAlchemyError, RuntimeError) as e:
        _logger.error("Failed to list consents: %s", e)
        return _error(
            "Failed to list consents", str(e), status.HTTP_500_INTERNAL_SERVER_ERROR
        )


@router.get("/consent/{consent_id}")
def get_consent(consent_id: str, gateway: Gateway) -> Any:
    return _proxy("Failed to fetch consent", lambda: gateway.get_consent(consent_id))


# ---- accounting data ----------------------------------------------------------


@router.get("/consent/{consent_id}/company")
def get_company(consent_id: str, gateway: Gateway) -> Any:
    return _proxy(
        "Failed to fetch company info", lambda: gateway.get_company_information(consent_id)
    )


@router.get("/consent/{consent_id}/accounting-periods")
def get_accounting_periods(consent_id: str, gateway: Gateway) -> Any:
    return _proxy(
        "Failed to fetch accounting periods", lambda: gateway.get_accounting_periods(consent_id)
    )


ReportLevel = Annotated[int, Query(ge=MIN_REPORT_LEVEL, le=MAX_REPORT_LEVEL)]


@router.get("/consent/{consent_id}/income-statement")
def get_income_statement(
    consent_id: str,
    gateway: Gateway,
    start_date: Annotated[str, Query(alias="startDate")] = DEFAULT_START_DATE,
    end_date: Annotated[str, Query(alias="endDate")] = DEFAULT_END_DATE,
    level: ReportLevel = MAX_REPORT_LEVEL,
) -> Any:
    return _proxy(
        "Failed to fetch income statement",
        lambda: gateway.get_income_statement(
            consent_id, start_date=start_date, end_date=end_date, level=level
        ),
    )


@router.get("/consent/{consent_id}/income-statement/rows")
def get_income_statement_rows(
    consent_id: str,
    gateway: Gateway,
    settings: Annotated[Settings, Depends(get_settings)],
    start_date: Annotated[str, Query(alias="startDate")] = DEFAULT_START_DATE,
    end_date: Annotated[str, Query(alias="endDate")] = DEFAULT_END_DATE,
    level: ReportLevel = MAX_REPORT_LEVEL,
) -> Any:
    """Income statement flattened into display rows."""

    document = _proxy(
        "Failed to fetch income statement",
        lambda: gateway.get_income_statement(
            consent_id, start_date=start_date, end_date=end_date, level=level
        ),
    )
    if isinstance(document, JSONResponse):
        return document
    rows = normalize_financial_report(document, preferred_language=settings.report_language)
    return [row.to_json() for row in rows]


# ---- application factory ------------------------------------------------------


def create_app(
    settings: Settings | None = None,
    *,
    gateway: GatewayClient | None = None,
    database_url: str | None = None,
) -> FastAPI:
    """Build the proxy application.

    With no arguments, ``.env`` is loaded (without overriding the environment),
    logging is configured and the gateway client is built from
    :func:`~accounting_connect.config.load_settings`. ``DATABASE_URL`` is read
    by ``db.client`` when ``database_url`` is ``None``.
    """

    if settings is None:
        load_dotenv(override=False)
        configure_logging()
        settings = load_settings()

    app = FastAPI(title="accounting-connect proxy")
    app.state.settings = settings
    app.state.gateway = gateway if gateway is not None else GatewayClient.from_settings(settings)
    app.state.database_url = database_url

    @app.get("/healthz")
    def healthz() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(router)
    return app


__all__ = ["create_app", "router"]
