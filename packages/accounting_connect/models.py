"""Data models and type aliases for ``accounting_connect``.

Upstream documents (consents, company information, reports) are kept as opaque
JSON mappings: their shape is owned by the aggregator and only the fields the
normalizer and dashboard read are interpreted. Locally-owned shapes are typed
here.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, NotRequired, TypeAlias, TypedDict

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ---------------------------------------------------------------------------
# Upstream documents
# ---------------------------------------------------------------------------

UpstreamDocument: TypeAlias = Mapping[str, Any]
"""A parsed JSON object returned by the aggregator (read-only)."""


# ---------------------------------------------------------------------------
# Consent records
# ---------------------------------------------------------------------------


class ConsentRecord(TypedDict):
    """A local consent row, optionally joined with live upstream fields.

    ``source`` and ``zwapgrid_status`` are only present when the upstream
    lookup for the record succeeded; ``companyInfo`` only when the dashboard
    fetched company information for it.
    """

    consent_id: str
    name: str
    status: int
    created_at: str | None
    source: NotRequired[Any]
    zwapgrid_status: NotRequired[Any]
    companyInfo: NotRequired[dict[str, Any]]


@dataclass(frozen=True, slots=True)
class OnboardingResult:
    """Outcome of the create → persist → OTC onboarding flow.

    ``persisted`` is ``False`` when the local bookkeeping insert failed; that
    step is non-fatal so the onboarding URL is still returned.
    """

    consent_id: str
    onboarding_url: str
    persisted: bool = True


# ---------------------------------------------------------------------------
# Report rows
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DisplayRow:
    """One flattened, render-ready line of a financial statement.

    ``level`` is the depth in the source tree (0 category, 1 subcategory,
    2 account); the synthetic trailing result row is level 0.
    """

    account_number: str
    account_name: str
    amount: float
    level: int
    is_category_row: bool

    def to_json(self) -> dict[str, Any]:
        return {
            "accountNumber": self.account_number,
            "accountName": self.account_name,
            "amount": self.amount,
            "level": self.level,
            "isCategoryRow": self.is_category_row,
        }


# ---------------------------------------------------------------------------
# HTTP request/response bodies
# ---------------------------------------------------------------------------


class CreateConsentRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    name: str | None = None

    @field_validator("name")
    @classmethod
    def _blank_to_none(cls, v: str | None) -> str | None:
        return v or None


class OnboardingResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    consent_id: str = Field(serialization_alias="consentId")
    onboarding_url: str = Field(serialization_alias="onboardingUrl")


class ErrorResponse(BaseModel):
    error: str
    details: str = ""


__all__ = [
    "ConsentRecord",
    "CreateConsentRequest",
    "DisplayRow",
    "ErrorResponse",
    "OnboardingResponse",
    "OnboardingResult",
    "UpstreamDocument",
]
