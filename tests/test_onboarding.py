from __future__ import annotations

from datetime import UTC, datetime
from urllib.parse import parse_qs, urlsplit

import pytest
from sqlalchemy.exc import OperationalError

import accounting_connect.api as api_mod
from accounting_connect.api import (
    build_onboarding_url,
    consent_id_from_location,
    create_and_enroll_consent,
    default_consent_name,
)
from accounting_connect.errors import MalformedResponseError, OnboardingError

from tests.helpers.db import fetch_consent_rows
from tests.helpers.gateway_stub import StubGateway, upstream_error

ONBOARDING = "https://onboarding.zwapgrid.com"


def test_happy_path_persists_pending_record_and_returns_url(db_url: str):
    gw = StubGateway()

    result = create_and_enroll_consent(gw, name="Acme AB", database_url=db_url)  # type: ignore[arg-type]

    assert result.consent_id == "c-123"
    assert result.persisted is True
    assert result.onboarding_url == f"{ONBOARDING}/consent/c-123/?otc=a%2Bb%2Fc%3D"
    assert gw.called("create_consent") == [("Acme AB",)]
    assert gw.called("generate_otc") == [("c-123",)]
    assert fetch_consent_rows(db_url) == [{"consent_id": "c-123", "name": "Acme AB", "status": 0}]


def test_otc_round_trips_through_query_string(db_url: str):
    gw = StubGateway()
    gw.on_generate_otc = lambda cid: {"code": "x y&z=1?#"}

    result = create_and_enroll_consent(gw, database_url=db_url)  # type: ignore[arg-type]

    query = parse_qs(urlsplit(result.onboarding_url).query)
    assert query == {"otc": ["x y&z=1?#"]}


@pytest.mark.parametrize("name", [None, "", "   "])
def test_default_name_is_used_upstream_and_locally(db_url: str, name: str | None):
    gw = StubGateway()
    now = datetime(2025, 1, 2, 3, 4, 5, tzinfo=UTC)

    create_and_enroll_consent(gw, name=name, database_url=db_url, now=now)  # type: ignore[arg-type]

    expected = f"consent-{int(now.timestamp() * 1000)}"
    assert gw.called("create_consent") == [(expected,)]
    assert fetch_consent_rows(db_url)[0]["name"] == expected


def test_create_failure_aborts_before_persisting_or_requesting_otc(db_url: str):
    gw = StubGateway()
    gw.fail("create_consent", upstream_error(400, "bad name"))

    with pytest.raises(OnboardingError) as excinfo:
        create_and_enroll_consent(gw, name="x", database_url=db_url)  # type: ignore[arg-type]

    assert excinfo.value.step == "create"
    assert excinfo.value.details == "bad name"
    assert gw.called("generate_otc") == []
    assert fetch_consent_rows(db_url) == []


@pytest.mark.parametrize("location", [None, "", "/"])
def test_missing_location_is_a_malformed_response(db_url: str, location: str | None):
    gw = StubGateway()
    gw.on_create_consent = lambda name: location

    with pytest.raises(OnboardingError) as excinfo:
        create_and_enroll_consent(gw, database_url=db_url)  # type: ignore[arg-type]

    assert excinfo.value.step == "location"
    assert gw.called("generate_otc") == []
    assert fetch_consent_rows(db_url) == []


def test_persistence_failure_is_not_fatal(db_url: str, monkeypatch: pytest.MonkeyPatch):
    def _broken_insert(*_a, **_kw):
        raise OperationalError("INSERT", {}, Exception("disk full"))

    monkeypatch.setattr(api_mod, "insert_consent", _broken_insert)
    gw = StubGateway()

    result = create_and_enroll_consent(gw, database_url=db_url)  # type: ignore[arg-type]

    assert result.persisted is False
    assert result.onboarding_url.startswith(f"{ONBOARDING}/consent/c-123/")
    assert gw.called("generate_otc") == [("c-123",)]


def test_missing_database_configuration_is_not_fatal():
    gw = StubGateway()

    # DATABASE_URL is scrubbed by conftest, so the store cannot be reached.
    result = create_and_enroll_consent(gw)  # type: ignore[arg-type]

    assert result.persisted is False
    assert result.consent_id == "c-123"


def test_otc_failure_is_fatal_but_record_stays(db_url: str):
    gw = StubGateway()
    gw.fail("generate_otc", upstream_error(503, "unavailable"))

    with pytest.raises(OnboardingError) as excinfo:
        create_and_enroll_consent(gw, database_url=db_url)  # type: ignore[arg-type]

    assert excinfo.value.step == "otc"
    assert str(excinfo.value) == "Failed to generate OTC"
    assert [r["consent_id"] for r in fetch_consent_rows(db_url)] == ["c-123"]


@pytest.mark.parametrize(
    "otc",
    [
        {},
        {"code": ""},
        {"code": 12345},
        ["code"],
    ],
)
def test_otc_without_code_is_fatal(db_url: str, otc):
    gw = StubGateway()
    gw.on_generate_otc = lambda cid: otc

    with pytest.raises(OnboardingError) as excinfo:
        create_and_enroll_consent(gw, database_url=db_url)  # type: ignore[arg-type]

    assert excinfo.value.step == "otc"


def test_malformed_otc_body_is_fatal(db_url: str):
    gw = StubGateway()
    gw.fail("generate_otc", MalformedResponseError("not json"))

    with pytest.raises(OnboardingError) as excinfo:
        create_and_enroll_consent(gw, database_url=db_url)  # type: ignore[arg-type]

    assert excinfo.value.step == "otc"
    assert excinfo.value.details == "not json"


# ---- Small helpers -------------------------------------------------------------


@pytest.mark.parametrize(
    "location, expected",
    [
        ("https://apione.zwapgrid.com/consents/api/v1/consents/abc", "abc"),
        ("/api/v1/consents/abc/", "abc"),
        ("/api/v1/consents/abc?x=1", "abc"),
        ("abc", "abc"),
        ("", None),
        (None, None),
    ],
)
def test_consent_id_from_location(location: str | None, expected: str | None):
    assert consent_id_from_location(location) == expected


def test_build_onboarding_url_escapes_like_encode_uri_component():
    url = build_onboarding_url("https://onboarding.test/", "c1", "A+B/C=D (e)!")

    assert url == "https://onboarding.test/consent/c1/?otc=A%2BB%2FC%3DD%20(e)!"


def test_default_consent_name_uses_epoch_milliseconds():
    now = datetime(2024, 1, 1, tzinfo=UTC)

    assert default_consent_name(now) == "consent-1704067200000"
