"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import httpx
import typer
from rich.console import Console
from rich.table import Table

from adapters.http_client import build_async_client
from adapters.token_store import FileTokenStore
from core.config import AppSettings, write_user_env_vars

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_http(settings: AppSettings) -> tuple[bool, str]:
    """Any HTTP answer counts as reachable; only transport errors fail."""

    try:
        async with build_async_client(settings) as client:
            response = await client.get("/")
        return True, f"HTTP {response.status_code}"
    except httpx.HTTPError as exc:
        return False, str(exc) or type(exc).__name__


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="ledgerlink doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    table.add_row("API base_url", "OK", settings.api_base_url)
    table.add_row("Timeout", "OK", f"{settings.http_timeout_seconds:g}s")

    # Session
    store = FileTokenStore(settings.token_file)
    if store.get() is not None:
        table.add_row("Session", "OK", f"Tokens in {settings.token_file}")
    else:
        table.add_row("Session", "MISSING", "Not logged in -> run `ledgerlink login EMAIL`")

    # Connectivity (best-effort)
    ok_http, detail_http = asyncio.run(_check_http(settings))
    table.add_row("HTTP connectivity", "OK" if ok_http else "FAIL", detail_http)

    _console.print(table)

    if not ok_http:
        _console.print(
            "\n[yellow]Note:[/yellow] Set the backend URL with `ledgerlink doctor setup`."
        )


@app.command()
def setup() -> None:
    """Interactive backend setup (stores config in the user config .env)."""

    settings = AppSettings()
    base_url = typer.prompt("API base URL", default=settings.api_base_url, show_default=True).strip()
    timeout = typer.prompt(
        "Request timeout (seconds)",
        default=str(settings.http_timeout_seconds),
        show_default=True,
    ).strip()

    if not base_url.startswith(("http://", "https://")):
        raise typer.BadParameter("base URL must start with http:// or https://")
    try:
        float(timeout)
    except ValueError as exc:
        raise typer.BadParameter("timeout must be a number") from exc

    env_path = write_user_env_vars(
        {
            "LEDGERLINK_API_BASE_URL": base_url,
            "LEDGERLINK_HTTP_TIMEOUT_SECONDS": timeout,
        }
    )

    _console.print(f"[green]Saved backend config to:[/green] {env_path}")
