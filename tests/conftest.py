"""Pytest configuration for test isolation.

Two pieces of process-wide state would otherwise leak between tests:

- environment variables read by ``accounting_connect.config`` and
  ``db.client`` (a developer's real ``ZWAPGRID_API_KEY`` or ``DATABASE_URL``
  must never reach a test);
- the shared SQLAlchemy engine in ``db.client``, which is bound to the first
  URL it sees.

An autouse fixture scrubs the former and resets the latter around every test.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from db.client import reset_engine

from tests.helpers.db import bootstrap_sqlite_db

_SCRUBBED_ENV = (
    "DATABASE_URL",
    "ZWAPGRID_API_KEY",
    "ZWAPGRID_CONSENTS_URL",
    "ZWAPGRID_ACCOUNTING_URL",
    "ZWAPGRID_ONBOARDING_URL",
    "REPORT_LANGUAGE",
    "ENRICH_MAX_WORKERS",
    "UPSTREAM_TIMEOUT_SECONDS",
    "ACCOUNTING_CONNECT_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolate_process_state(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for name in _SCRUBBED_ENV:
        monkeypatch.delenv(name, raising=False)
    reset_engine()
    yield
    reset_engine()


@pytest.fixture
def db_url(tmp_path: Path) -> str:
    """A fresh file-backed SQLite database with the consents table created."""

    return bootstrap_sqlite_db(tmp_path / "consents.db")
