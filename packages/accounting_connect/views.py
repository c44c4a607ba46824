"""Terminal dashboard views built with ``rich``.

Two tables: the connected-companies list and a flattened financial statement.
Rendering only; data comes from :mod:`accounting_connect.api`.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from rich.table import Table
from rich.text import Text

from .models import ConsentRecord, DisplayRow

PLACEHOLDER = "—"
_INDENT = "  "


def format_amount(amount: float | None) -> str:
    """Whole-krona amount with space thousands separators, e.g. ``-12 500 kr``."""

    if amount is None:
        return PLACEHOLDER
    return f"{amount:,.0f}".replace(",", " ") + " kr"


def _legal_entity(record: Mapping[str, Any]) -> Mapping[str, Any]:
    info = record.get("companyInfo")
    entity = info.get("partyLegalEntity") if isinstance(info, Mapping) else None
    return entity if isinstance(entity, Mapping) else {}


def display_company_name(record: Mapping[str, Any]) -> str:
    name = _legal_entity(record).get("registrationName")
    return name if isinstance(name, str) and name else str(record.get("name") or PLACEHOLDER)


def display_org_number(record: Mapping[str, Any]) -> str:
    company_id = _legal_entity(record).get("companyId")
    org = company_id.get("id") if isinstance(company_id, Mapping) else None
    return str(org) if org else PLACEHOLDER


def status_label(record: Mapping[str, Any]) -> str:
    code = record.get("zwapgrid_status", record.get("status"))
    if code == 1 or record.get("status") == 1:
        return "Connected"
    if code == 0:
        return "Pending"
    return PLACEHOLDER if code is None else f"Status {code}"


def consents_table(records: Sequence[ConsentRecord], *, title: str = "Companies") -> Table:
    table = Table(title=title)
    table.add_column("Company", style="bold")
    table.add_column("Org Number")
    table.add_column("Source")
    table.add_column("Status")
    table.add_column("Connected")
    table.add_column("Consent ID", style="dim")

    for record in records:
        created = record.get("created_at") or ""
        table.add_row(
            display_company_name(record),
            display_org_number(record),
            str(record.get("source") or PLACEHOLDER),
            status_label(record),
            created[:10] or PLACEHOLDER,
            record["consent_id"],
        )
    return table


def report_table(rows: Sequence[DisplayRow], *, title: str = "Income Statement") -> Table:
    """Render rows with level-based indentation; category rows in bold."""

    table = Table(title=title)
    table.add_column("Account", style="dim")
    table.add_column("Name")
    table.add_column("Amount", justify="right")

    for row in rows:
        weight = "bold" if row.is_category_row else ""
        colour = "red" if row.amount < 0 else "green"
        table.add_row(
            row.account_number,
            Text(_INDENT * row.level + (row.account_name or PLACEHOLDER), style=weight),
            Text(format_amount(row.amount), style=f"{weight} {colour}".strip()),
        )
    return table


__all__ = [
    "consents_table",
    "display_company_name",
    "display_org_number",
    "format_amount",
    "report_table",
    "status_label",
]
