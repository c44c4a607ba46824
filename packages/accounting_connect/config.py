"""Runtime settings resolved from the environment.

Entrypoints load a local ``.env`` (``python-dotenv``) before calling
:func:`load_settings`; this module only reads ``os.environ`` (or a mapping
passed in by tests).
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

DEFAULT_CONSENTS_URL = "https://apione.zwapgrid.com/consents"
DEFAULT_ACCOUNTING_URL = "https://apione.zwapgrid.com/accounting"
DEFAULT_ONBOARDING_URL = "https://onboarding.zwapgrid.com"
DEFAULT_REPORT_LANGUAGE = "SWE"
# Enrichment fans out one lookup per record unless ENRICH_MAX_WORKERS caps it.
DEFAULT_ENRICH_MAX_WORKERS: int | None = None


@dataclass(frozen=True, slots=True)
class Settings:
    """Upstream endpoints, credentials and tuning knobs.

    ``api_key`` may be ``None`` here; :func:`require_api_key` is called when a
    gateway client is actually built so commands that never talk upstream keep
    working without one.
    """

    api_key: str | None = None
    consents_url: str = DEFAULT_CONSENTS_URL
    accounting_url: str = DEFAULT_ACCOUNTING_URL
    onboarding_url: str = DEFAULT_ONBOARDING_URL
    report_language: str = DEFAULT_REPORT_LANGUAGE
    enrich_max_workers: int | None = DEFAULT_ENRICH_MAX_WORKERS
    timeout_seconds: float | None = None

    def require_api_key(self) -> str:
        if not self.api_key:
            raise RuntimeError(
                "ZWAPGRID_API_KEY environment variable is required for upstream access"
            )
        return self.api_key


def _str_env(env: Mapping[str, str], name: str, default: str) -> str:
    value = (env.get(name) or "").strip()
    return value.rstrip("/") if value else default


def _workers_env(env: Mapping[str, str]) -> int | None:
    raw = (env.get("ENRICH_MAX_WORKERS") or "").strip()
    try:
        n = int(raw)
    except ValueError:
        return DEFAULT_ENRICH_MAX_WORKERS
    return n if n > 0 else DEFAULT_ENRICH_MAX_WORKERS


def _timeout_env(env: Mapping[str, str]) -> float | None:
    raw = (env.get("UPSTREAM_TIMEOUT_SECONDS") or "").strip()
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if value > 0 else None


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    """Build :class:`Settings` from ``env`` (defaults to ``os.environ``)."""

    env = os.environ if env is None else env
    api_key = (env.get("ZWAPGRID_API_KEY") or "").strip() or None
    return Settings(
        api_key=api_key,
        consents_url=_str_env(env, "ZWAPGRID_CONSENTS_URL", DEFAULT_CONSENTS_URL),
        accounting_url=_str_env(env, "ZWAPGRID_ACCOUNTING_URL", DEFAULT_ACCOUNTING_URL),
        onboarding_url=_str_env(env, "ZWAPGRID_ONBOARDING_URL", DEFAULT_ONBOARDING_URL),
        report_language=(env.get("REPORT_LANGUAGE") or "").strip() or DEFAULT_REPORT_LANGUAGE,
        enrich_max_workers=_workers_env(env),
        timeout_seconds=_timeout_env(env),
    )


__all__ = ["Settings", "load_settings"]
