from __future__ import annotations

import pytest

from accounting_connect.config import (
    DEFAULT_ACCOUNTING_URL,
    DEFAULT_CONSENTS_URL,
    Settings,
    load_settings,
)


def test_defaults():
    settings = load_settings({})

    assert settings == Settings()
    assert settings.consents_url == DEFAULT_CONSENTS_URL
    assert settings.accounting_url == DEFAULT_ACCOUNTING_URL
    assert settings.report_language == "SWE"
    assert settings.enrich_max_workers is None
    assert settings.timeout_seconds is None


def test_overrides_strip_trailing_slashes():
    settings = load_settings(
        {
            "ZWAPGRID_API_KEY": " key ",
            "ZWAPGRID_CONSENTS_URL": "http://localhost:9000/consents/",
            "REPORT_LANGUAGE": "ENG",
            "UPSTREAM_TIMEOUT_SECONDS": "2.5",
        }
    )

    assert settings.api_key == "key"
    assert settings.consents_url == "http://localhost:9000/consents"
    assert settings.report_language == "ENG"
    assert settings.timeout_seconds == 2.5


@pytest.mark.parametrize(
    "raw, expected",
    [("4", 4), ("1000", 1000), ("0", None), ("-3", None), ("many", None), ("", None)],
)
def test_worker_cap_is_opt_in(raw: str, expected: int | None):
    assert load_settings({"ENRICH_MAX_WORKERS": raw}).enrich_max_workers == expected


@pytest.mark.parametrize("raw", ["0", "-1", "soon"])
def test_invalid_timeout_means_none(raw: str):
    assert load_settings({"UPSTREAM_TIMEOUT_SECONDS": raw}).timeout_seconds is None


def test_reads_process_environment(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("ZWAPGRID_API_KEY", "from-env")

    assert load_settings().require_api_key() == "from-env"


def test_require_api_key_names_the_variable():
    with pytest.raises(RuntimeError, match="ZWAPGRID_API_KEY"):
        Settings().require_api_key()
