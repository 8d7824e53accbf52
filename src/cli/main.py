"""ledgerlink command-line interface."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Awaitable, Optional, TypeVar

import typer
from rich.console import Console

from adapters.api_client import ApiClient, unwrap_list
from adapters.endpoints import HIERARCHICAL_LISTS
from adapters.json_exporter import export_forest_json
from adapters.token_store import FileTokenStore
from cli import doctor
from cli.ui_components import build_error_panel, build_hierarchy_tree
from core.config import AppSettings
from core.domain.errors import ApiError
from core.domain.models import Blob
from core.log import configure_logging
from core.services.hierarchy import build_hierarchy, forest_size

T = TypeVar("T")

app = typer.Typer(no_args_is_help=True, help="Client for the accounting/billing REST backend.")
app.add_typer(doctor.app, name="doctor")

_console = Console()


def open_client(settings: AppSettings) -> ApiClient:
    """Client backed by the persisted token file."""

    return ApiClient(FileTokenStore(settings.token_file), settings)


def _run(coro: Awaitable[T]) -> T:
    try:
        return asyncio.run(coro)
    except ApiError as exc:
        _console.print(build_error_panel(exc))
        raise typer.Exit(code=1) from exc


def _parse_params(values: list[str]) -> dict[str, str]:
    params: dict[str, str] = {}
    for raw in values:
        if "=" not in raw:
            raise typer.BadParameter(f"expected key=value, got {raw!r}", param_hint="--param")
        key, value = raw.split("=", 1)
        params[key.strip()] = value.strip()
    return params


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    log_json: bool = typer.Option(False, "--log-json", help="Emit logs as JSON lines."),
) -> None:
    settings = AppSettings()
    configure_logging(verbose=verbose or settings.verbose, log_json=log_json or settings.log_json)


@app.command()
def login(
    email: str = typer.Argument(..., help="Account email."),
    password: str = typer.Option(..., prompt=True, hide_input=True, help="Account password."),
) -> None:
    """Log in and store the token pair."""

    settings = AppSettings()

    async def _login() -> dict[str, Any]:
        async with open_client(settings) as api:
            return await api.login(email, password)

    user = _run(_login())
    who = user.get("displayName") or user.get("email") or email
    _console.print(f"[green]Logged in as[/green] {who}")


@app.command()
def logout() -> None:
    """Revoke the session and forget the stored tokens."""

    settings = AppSettings()

    async def _logout() -> None:
        async with open_client(settings) as api:
            await api.logout()

    _run(_logout())
    _console.print("[green]Logged out.[/green]")


@app.command()
def get(
    path: str = typer.Argument(..., help="API path, e.g. /dashboard/metrics."),
    param: list[str] = typer.Option([], "--param", "-p", help="Query parameter as key=value."),
) -> None:
    """Authenticated GET; prints the JSON payload."""

    settings = AppSettings()
    params = _parse_params(param)

    async def _get() -> Any:
        async with open_client(settings) as api:
            return await api.get(path, params=params or None)

    payload = _run(_get())
    if isinstance(payload, Blob):
        _console.print(f"[dim]binary {payload.content_type}, {len(payload.content)} bytes[/dim]")
        return
    _console.print_json(data=payload)


@app.command()
def tree(
    source: Optional[str] = typer.Argument(
        None,
        help="API path or alias (accounts, categories).",
    ),
    from_file: Optional[Path] = typer.Option(
        None,
        "--from-file",
        exists=True,
        dir_okay=False,
        help="Read the flat list from a local JSON file instead of the API.",
    ),
    json_out: Optional[Path] = typer.Option(None, "--json-out", help="Also write the forest as JSON."),
) -> None:
    """Render a hierarchical list (accounts, item categories) as a tree."""

    if from_file is not None:
        try:
            raw = json.loads(from_file.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise typer.BadParameter(f"not valid JSON: {exc}", param_hint="--from-file") from exc
        items = unwrap_list(raw)
        forest = build_hierarchy(items)
        title = from_file.name
    elif source:
        settings = AppSettings()
        path = HIERARCHICAL_LISTS.get(source, source)

        async def _fetch() -> list[Any]:
            async with open_client(settings) as api:
                return await api.fetch_tree(path)

        forest = _run(_fetch())
        title = path
    else:
        raise typer.BadParameter("give an API path or --from-file")

    _console.print(build_hierarchy_tree(forest, title=title))
    _console.print(f"[dim]{forest_size(forest)} entities, {len(forest)} roots[/dim]")

    if json_out is not None:
        written = export_forest_json(forest=forest, output_path=json_out)
        _console.print(f"[green]Saved:[/green] {written}")


def run() -> None:
    app()
