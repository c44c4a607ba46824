"""Flatten upstream financial-statement trees into render-ready rows.

The aggregator returns reports as a nested tree::

    categories[]            -> level 0 category rows
      subCategories[]       -> level 1 category rows
        accounts[]          -> level 2 account rows

plus an optional overall result (``profitLossBalance``). The normalizer walks
that tree depth-first in document order and emits one :class:`DisplayRow` per
node, followed by a synthetic ``Result`` row when the document carries an
overall figure. Rows are never sorted or deduplicated.

Missing optional fields never raise; they degrade to an empty account number,
the ``"Unknown"`` placeholder name, or an amount of zero. A malformed top-level
structure yields no rows.

The module also holds the small accounting-period helpers used to choose a
default reporting window.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from datetime import date
from typing import Any

from .config import DEFAULT_REPORT_LANGUAGE
from .models import DisplayRow

UNKNOWN_NAME = "Unknown"
RESULT_LABEL = "Result"

# Child collections of a category node, in emission order. Entries under
# ``subCategories`` are category rows one level deeper; entries under
# ``accounts`` are leaf account rows.
_SUBCATEGORY_KEY = "subCategories"
_ACCOUNTS_KEY = "accounts"


# ---------------------------------------------------------------------------
# Field resolution
# ---------------------------------------------------------------------------


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def resolve_description(
    descriptions: Any, *, preferred_language: str = DEFAULT_REPORT_LANGUAGE
) -> str:
    """Pick display text from ``[{languageId, text}, ...]``.

    Preference: the entry whose ``languageId`` equals ``preferred_language``,
    else the first entry, else :data:`UNKNOWN_NAME`. Entries with empty text
    are passed over.
    """

    candidates = [d for d in _as_list(descriptions) if isinstance(d, Mapping)]
    preferred = next(
        (d.get("text") for d in candidates if d.get("languageId") == preferred_language),
        None,
    )
    first = candidates[0].get("text") if candidates else None
    for text in (preferred, first):
        if isinstance(text, str) and text:
            return text
    return UNKNOWN_NAME


def _first_base_amount(balance: Any) -> int | float | None:
    if not isinstance(balance, Mapping):
        return None
    figures = _as_list(balance.get("baseCurrencies"))
    if not figures or not isinstance(figures[0], Mapping):
        return None
    amount = figures[0].get("baseAmount")
    return amount if _is_number(amount) else None


def extract_amount(balance: Any) -> int | float:
    """Return the first base-currency amount of ``balance`` (``0`` when absent)."""

    amount = _first_base_amount(balance)
    return 0 if amount is None else amount


def _account_row(account: Mapping[str, Any], level: int) -> DisplayRow:
    info = account.get("accountingAccount")
    info = info if isinstance(info, Mapping) else {}
    description = info.get("description")
    text = description.get("text") if isinstance(description, Mapping) else None
    number = info.get("id")
    return DisplayRow(
        account_number="" if number is None else str(number),
        account_name=text if isinstance(text, str) and text else UNKNOWN_NAME,
        amount=extract_amount(account.get("balance")),
        level=level,
        is_category_row=False,
    )


# ---------------------------------------------------------------------------
# Tree walk
# ---------------------------------------------------------------------------


def _walk_categories(
    nodes: Sequence[Any], level: int, preferred_language: str
) -> Iterator[DisplayRow]:
    for node in nodes:
        if not isinstance(node, Mapping):
            continue
        yield DisplayRow(
            account_number="",
            account_name=resolve_description(
                node.get("descriptions"), preferred_language=preferred_language
            ),
            amount=extract_amount(node.get("balance")),
            level=level,
            is_category_row=True,
        )
        yield from _walk_categories(
            _as_list(node.get(_SUBCATEGORY_KEY)), level + 1, preferred_language
        )
        # Top-level categories carry totals only; accounts hang off subcategories.
        if level == 0:
            continue
        for account in _as_list(node.get(_ACCOUNTS_KEY)):
            if isinstance(account, Mapping):
                yield _account_row(account, level + 1)


def _report_body(document: Any) -> Mapping[str, Any]:
    if not isinstance(document, Mapping):
        return {}
    wrapped = document.get("financialReport")
    return wrapped if isinstance(wrapped, Mapping) else document


def _result_amount(document: Any) -> int | float | None:
    if not isinstance(document, Mapping):
        return None
    amount = _first_base_amount(document.get("profitLossBalance"))
    if amount is None:
        amount = _first_base_amount(_report_body(document).get("profitLossBalance"))
    return amount


def normalize_financial_report(
    document: Any, *, preferred_language: str = DEFAULT_REPORT_LANGUAGE
) -> list[DisplayRow]:
    """Flatten a report document into ordered :class:`DisplayRow` items.

    ``document`` is either the raw upstream payload (tree under
    ``financialReport``) or the bare report mapping with ``categories`` at the
    top. The output is a pure function of the input's document order.
    """

    categories = _as_list(_report_body(document).get("categories"))
    rows = list(_walk_categories(categories, 0, preferred_language))

    result = _result_amount(document)
    if result is not None:
        rows.append(
            DisplayRow(
                account_number="",
                account_name=RESULT_LABEL,
                amount=result,
                level=0,
                is_category_row=True,
            )
        )
    return rows


# ---------------------------------------------------------------------------
# Accounting periods
# ---------------------------------------------------------------------------


def extract_periods(payload: Any) -> list[dict[str, Any]]:
    """Return the list of period mappings from an accounting-periods payload.

    Accepts a bare list or an object wrapping it under ``data``, ``periods``
    or ``items``.
    """

    if isinstance(payload, Mapping):
        for key in ("data", "periods", "items"):
            if isinstance(payload.get(key), list):
                payload = payload[key]
                break
        else:
            return []
    return [dict(p) for p in _as_list(payload) if isinstance(p, Mapping)]


def _parse_day(value: Any) -> date | None:
    if not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def select_current_period(
    periods: Sequence[Mapping[str, Any]], today: date
) -> Mapping[str, Any] | None:
    """Return the period containing ``today``, else the last one, else ``None``."""

    for period in periods:
        start = _parse_day(period.get("startDate"))
        end = _parse_day(period.get("endDate"))
        if start is not None and end is not None and start <= today <= end:
            return period
    return periods[-1] if periods else None


def clamp_end_date(end_date: str, today: date) -> str:
    """Cap a period end at ``today``; the upstream rejects future end dates."""

    end = _parse_day(end_date)
    if end is not None and end > today:
        return today.isoformat()
    return end_date


__all__ = [
    "RESULT_LABEL",
    "UNKNOWN_NAME",
    "clamp_end_date",
    "extract_amount",
    "extract_periods",
    "normalize_financial_report",
    "resolve_description",
    "select_current_period",
]
