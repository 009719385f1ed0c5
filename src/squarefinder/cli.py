"""squarefinder CLI."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import typer
from loguru import logger
from pydantic import SecretStr
from rich.console import Console
from rich.table import Table

from squarefinder.clients.browser import redact_endpoint
from squarefinder.engine import CaptureResult, SquareFinder
from squarefinder.errors import SquareFinderError
from squarefinder.settings import Settings

app = typer.Typer(help="Capture square?id= requests fired by a map address search")
console = Console()


def _configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def _settings_from_args(
    headed: bool | None = None,
    debug_dir: Path | None = None,
    remote_endpoint: str | None = None,
    always_save_artifacts: bool | None = None,
) -> Settings:
    settings = Settings()
    if headed is not None:
        settings.headless = not headed
    if debug_dir is not None:
        settings.debug_dir = debug_dir
    if remote_endpoint:
        settings.remote_endpoint = SecretStr(remote_endpoint)
    if always_save_artifacts:
        settings.debug_artifacts = "always"
    return settings


@app.command("find")
def find(
    address: str = typer.Argument(..., help="Address (or 'Lat: <n> Lng: <n>') to search"),
    headed: bool = typer.Option(False, "--headed", help="Show the browser window"),
    debug_dir: Path | None = typer.Option(None, "--debug-dir", help="Where debug artifacts are written"),
    remote_endpoint: str | None = typer.Option(None, "--remote-endpoint", help="CDP endpoint of a remote browser"),
    save_artifacts: bool = typer.Option(False, "--save-artifacts", help="Write debug artifacts on success too"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
    log_level: str = typer.Option("INFO", "--log-level"),
) -> None:
    """Search one address and print the matched request URLs."""

    _configure_logging(log_level)
    settings = _settings_from_args(
        headed=True if headed else None,
        debug_dir=debug_dir,
        remote_endpoint=remote_endpoint,
        always_save_artifacts=save_artifacts,
    )

    async def _run() -> CaptureResult:
        return await SquareFinder(settings).capture(address)

    try:
        result = asyncio.run(_run())
    except SquareFinderError as exc:
        console.print(f"[red]{type(exc).__name__}[/red]: {exc.message}")
        raise typer.Exit(code=1) from exc
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    if as_json:
        console.print_json(json.dumps({"address": address, "xhrUrls": result.urls, "count": len(result.urls)}))
        return

    for url in result.urls:
        console.print(url)
    console.print(
        f"capture complete: matches={len(result.urls)} navigation={result.navigation} input={result.input_strategy}"
    )


@app.command("serve")
def serve(
    host: str | None = typer.Option(None, "--host"),
    port: int | None = typer.Option(None, "--port"),
    log_level: str = typer.Option("INFO", "--log-level"),
) -> None:
    """Run the HTTP service."""

    import uvicorn

    from squarefinder.service import create_app

    _configure_logging(log_level)
    settings = Settings()
    uvicorn.run(create_app(settings), host=host or settings.host, port=port or settings.port)


@app.command("config")
def config() -> None:
    """Show effective settings (secrets masked)."""

    settings = Settings()
    table = Table(title="Settings")
    table.add_column("Setting")
    table.add_column("Value")
    for key, value in settings.model_dump().items():
        if key == "remote_endpoint" and settings.remote_endpoint is not None:
            value = redact_endpoint(settings.remote_endpoint.get_secret_value())
        table.add_row(key, str(value))
    console.print(table)


if __name__ == "__main__":
    app()
