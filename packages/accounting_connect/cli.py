# ruff: noqa: I001
"""CLI for the ``accounting_connect`` package.

A Typer console interface acting as the dashboard: start onboarding for a new
company, list connected companies, render an income statement, or run the
HTTP proxy. Environment variables (notably ``ZWAPGRID_API_KEY`` and
``DATABASE_URL``) are loaded from a local ``.env`` with ``python-dotenv``
before any command runs. Business logic lives in ``accounting_connect.api``.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from sqlalchemy.exc import SQLAlchemyError

from .config import Settings, load_settings
from .errors import GatewayError, OnboardingError
from .gateway import MAX_REPORT_LEVEL, MIN_REPORT_LEVEL, GatewayClient
from .logging_setup import configure_logging

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Connect accounting systems through the Zwapgrid aggregator and view "
        "their financial reports. Loads ZWAPGRID_API_KEY and DATABASE_URL from a "
        "local .env before running."
    ),
)

# Fallback report window when the consent exposes no accounting periods.
FALLBACK_START_DATE = "2024-01-01"
FALLBACK_END_DATE = "2024-12-31"


def _fail(message: str) -> typer.Exit:
    err_console.print(f"[red]Error:[/red] {message}")
    return typer.Exit(1)


def _gateway(settings: Settings) -> GatewayClient:
    try:
        return GatewayClient.from_settings(settings)
    except RuntimeError as e:
        raise _fail(str(e)) from e


DatabaseUrlOption = Annotated[
    str | None, typer.Option(help="Override DATABASE_URL (falls back to env var).")
]


@app.command("connect")
def connect_cmd(
    name: Annotated[
        str | None, typer.Option(help="Display name for the consent (default: consent-<ms>).")
    ] = None,
    database_url: DatabaseUrlOption = None,
    open_browser: Annotated[
        bool, typer.Option("--open/--no-open", help="Open the onboarding URL in a browser.")
    ] = False,
) -> None:
    """Create a consent and print the onboarding URL."""

    from .api import create_and_enroll_consent

    settings = load_settings()
    client = _gateway(settings)
    try:
        result = create_and_enroll_consent(
            client,
            name=name,
            database_url=database_url,
            onboarding_base_url=settings.onboarding_url,
        )
    except OnboardingError as e:
        detail = f" ({e.details})" if e.details else ""
        raise _fail(f"{e}{detail}") from e

    if not result.persisted:
        err_console.print("[yellow]Warning:[/yellow] consent was not stored locally")
    console.print(f"Consent: [bold]{result.consent_id}[/bold]")
    console.print(result.onboarding_url)
    if open_browser:
        typer.launch(result.onboarding_url)


@app.command("consents")
def consents_cmd(
    database_url: DatabaseUrlOption = None,
    show_all: Annotated[
        bool, typer.Option("--all", help="Include consents that are not connected yet.")
    ] = False,
) -> None:
    """List consents with live upstream status and company details."""

    from .api import attach_company_info, connected_consents, list_enriched_consents
    from .views import consents_table

    settings = load_settings()
    client = _gateway(settings)
    try:
        records = list_enriched_consents(
            client, database_url=database_url, concurrency=settings.enrich_max_workers
        )
    except (SQLAlchemyError, RuntimeError) as e:
        raise _fail(str(e)) from e

    if not show_all:
        records = connected_consents(records)
    records = attach_company_info(client, records, concurrency=settings.enrich_max_workers)

    if not records:
        console.print("No companies connected. Run `accounting-connect connect` to add one.")
        return
    console.print(consents_table(records))


@app.command("income-statement")
def income_statement_cmd(
    consent_id: Annotated[str, typer.Argument(help="Consent identifier")],
    start: Annotated[
        str | None, typer.Option(help="Start date YYYY-MM-DD (default: current period).")
    ] = None,
    end: Annotated[
        str | None, typer.Option(help="End date YYYY-MM-DD (default: current period).")
    ] = None,
    level: Annotated[
        int, typer.Option(min=MIN_REPORT_LEVEL, max=MAX_REPORT_LEVEL, help="Detail level.")
    ] = MAX_REPORT_LEVEL,
    as_json: Annotated[bool, typer.Option("--json", help="Print rows as JSON.")] = False,
) -> None:
    """Render the flattened income statement for a consent."""

    from .api import default_report_window, income_statement_rows
    from .views import report_table

    settings = load_settings()
    client = _gateway(settings)

    try:
        if start is None or end is None:
            window = default_report_window(client, consent_id)
            if window is None:
                window = (FALLBACK_START_DATE, FALLBACK_END_DATE)
                err_console.print("[yellow]No accounting periods; using calendar 2024.[/yellow]")
            start = start or window[0]
            end = end or window[1]
        rows = income_statement_rows(
            client,
            consent_id,
            start_date=start,
            end_date=end,
            level=level,
            preferred_language=settings.report_language,
        )
    except GatewayError as e:
        raise _fail(f"Failed to fetch income statement: {e}") from e

    if as_json:
        typer.echo(json.dumps([row.to_json() for row in rows], ensure_ascii=False, indent=2))
        return
    if not rows:
        console.print("No income statement data available")
        return
    console.print(report_table(rows, title=f"Income Statement {start} to {end}"))


@app.command("serve")
def serve_cmd(
    host: Annotated[str, typer.Option(help="Bind address.")] = "127.0.0.1",
    port: Annotated[int, typer.Option(help="Bind port.")] = 8000,
) -> None:
    """Run the HTTP proxy consumed by the web dashboard."""

    import uvicorn

    uvicorn.run("accounting_connect.server:create_app", factory=True, host=host, port=port)


@app.callback()
def _root() -> None:
    """Load ``.env`` from the working directory and configure logging."""

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()


if __name__ == "__main__":  # pragma: no cover
    app()
