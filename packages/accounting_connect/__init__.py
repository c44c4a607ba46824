"""Public interface for the ``accounting_connect`` package.

Symbol re-exports only: the gateway client, the orchestration functions, the
report normalizer and the public models.
"""

from .api import (
    attach_company_info,
    connected_consents,
    create_and_enroll_consent,
    default_report_window,
    income_statement_rows,
    list_enriched_consents,
)
from .errors import GatewayError, MalformedResponseError, OnboardingError, UpstreamError
from .gateway import GatewayClient
from .models import ConsentRecord, DisplayRow, OnboardingResult
from .report import normalize_financial_report

__all__ = [
    # API
    "attach_company_info",
    "connected_consents",
    "create_and_enroll_consent",
    "default_report_window",
    "income_statement_rows",
    "list_enriched_consents",
    "normalize_financial_report",
    # Gateway
    "GatewayClient",
    # Errors
    "GatewayError",
    "MalformedResponseError",
    "OnboardingError",
    "UpstreamError",
    # Models / types
    "ConsentRecord",
    "DisplayRow",
    "OnboardingResult",
]
