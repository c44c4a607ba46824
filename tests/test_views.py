from __future__ import annotations

import pytest
from rich.console import Console

from accounting_connect.models import DisplayRow
from accounting_connect.views import (
    PLACEHOLDER,
    consents_table,
    display_company_name,
    display_org_number,
    format_amount,
    report_table,
    status_label,
)


def _render(renderable) -> str:
    console = Console(width=160, record=True)
    console.print(renderable)
    return console.export_text()


@pytest.mark.parametrize(
    "amount, expected",
    [
        (0, "0 kr"),
        (1234567, "1 234 567 kr"),
        (-12500, "-12 500 kr"),
        (99.6, "100 kr"),
        (None, PLACEHOLDER),
    ],
)
def test_format_amount(amount, expected: str):
    assert format_amount(amount) == expected


def test_company_name_prefers_registration_name():
    record = {"name": "local", "companyInfo": {"partyLegalEntity": {"registrationName": "Acme AB"}}}

    assert display_company_name(record) == "Acme AB"
    assert display_company_name({"name": "local"}) == "local"
    assert display_company_name({}) == PLACEHOLDER


def test_org_number():
    record = {"companyInfo": {"partyLegalEntity": {"companyId": {"id": "556677-8899"}}}}

    assert display_org_number(record) == "556677-8899"
    assert display_org_number({"companyInfo": "junk"}) == PLACEHOLDER


@pytest.mark.parametrize(
    "record, expected",
    [
        ({"status": 0, "zwapgrid_status": 1}, "Connected"),
        ({"status": 1}, "Connected"),
        ({"status": 0}, "Pending"),
        ({"status": 0, "zwapgrid_status": 7}, "Status 7"),
        ({}, PLACEHOLDER),
    ],
)
def test_status_label(record, expected: str):
    assert status_label(record) == expected


def test_consents_table_renders_one_row_per_record():
    records = [
        {
            "consent_id": "c-1",
            "name": "n",
            "status": 1,
            "created_at": "2025-02-03T10:00:00+00:00",
            "source": "Fortnox",
        }
    ]

    text = _render(consents_table(records))  # type: ignore[arg-type]

    assert "c-1" in text
    assert "Fortnox" in text
    assert "2025-02-03" in text


def test_report_table_indents_by_level():
    rows = [
        DisplayRow("", "Revenue", 100, 0, True),
        DisplayRow("3001", "Sales", 100, 1, False),
    ]

    text = _render(report_table(rows))

    assert "Revenue" in text
    assert "  Sales" in text
    assert "3001" in text
    assert "100 kr" in text
