"""CLI entrypoint using typer."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable
from typing import Any

import typer
from redis.exceptions import RedisError
from rich.console import Console
from rich.markup import escape

from rediskit_cache import __version__
from rediskit_cache.cache import Cache
from rediskit_cache.observability import (
    bind_cache_context,
    clear_cache_context,
    configure_logging,
)
from rediskit_core.config.settings import Settings
from rediskit_core.exceptions import RediskitError
from rediskit_core.models.connection import PathConnection

app = typer.Typer(
    name="rediskit",
    help="Inspect and manage a Redis cache from the command line",
)
console = Console()

_URL_HELP = "Connection URL; overrides RK_* settings"


@app.command()
def get(
    key: str = typer.Argument(..., help="Cache key"),
    url: str | None = typer.Option(None, "--url", help=_URL_HELP),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Enable debug logging"),
) -> None:
    """Print the value stored at KEY."""
    value = _run(_load_settings(url, verbose), lambda cache: cache.get(key))
    if value is None:
        console.print("[yellow](nil)[/yellow]")
        raise typer.Exit(code=1)
    if isinstance(value, str):
        console.print(value, markup=False, highlight=False)
    else:
        console.print_json(json.dumps(value))


@app.command("set")
def set_value(
    key: str = typer.Argument(..., help="Cache key"),
    value: str = typer.Argument(..., help="Value to store"),
    ttl: int | None = typer.Option(None, "--ttl", min=1, help="Expiry in seconds"),
    as_json: bool = typer.Option(False, "--json", help="Parse VALUE as JSON before storing"),
    url: str | None = typer.Option(None, "--url", help=_URL_HELP),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Enable debug logging"),
) -> None:
    """Store VALUE at KEY, optionally with a TTL."""
    payload: Any = value
    if as_json:
        try:
            payload = json.loads(value)
        except json.JSONDecodeError as exc:
            console.print(f"[red]Error:[/red] VALUE is not valid JSON ({exc.msg})")
            raise typer.Exit(code=1) from exc

    result = _run(_load_settings(url, verbose), lambda cache: cache.set(key, payload, ttl))
    console.print(f"[green]{result}[/green]")


@app.command()
def delete(
    key: str = typer.Argument(..., help="Cache key"),
    url: str | None = typer.Option(None, "--url", help=_URL_HELP),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Enable debug logging"),
) -> None:
    """Delete KEY and print how many keys were removed."""
    removed = _run(_load_settings(url, verbose), lambda cache: cache.delete(key))
    console.print(f"Deleted: {removed}")


@app.command()
def exists(
    key: str = typer.Argument(..., help="Cache key"),
    url: str | None = typer.Option(None, "--url", help=_URL_HELP),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Enable debug logging"),
) -> None:
    """Report whether KEY exists; exits 1 when it does not."""
    found = _run(_load_settings(url, verbose), lambda cache: cache.exists(key))
    console.print("true" if found else "false")
    if not found:
        raise typer.Exit(code=1)


@app.command()
def flush(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
    url: str | None = typer.Option(None, "--url", help=_URL_HELP),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Enable debug logging"),
) -> None:
    """Remove every key from the connected store."""
    if not yes:
        typer.confirm("This deletes every key in the store. Continue?", abort=True)
    result = _run(_load_settings(url, verbose), lambda cache: cache.flush())
    console.print(f"[green]{result}[/green]")


@app.command()
def ping(
    url: str | None = typer.Option(None, "--url", help=_URL_HELP),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Enable debug logging"),
) -> None:
    """Check that the store is reachable."""
    _run(_load_settings(url, verbose), lambda cache: cache.connect())
    console.print("[bold green]PONG[/bold green]")


@app.command()
def version() -> None:
    """Show version."""
    console.print(f"rediskit-cache v{__version__}")


def _load_settings(url: str | None, verbose: bool) -> Settings:
    """Load settings from the environment and apply CLI overrides."""
    try:
        settings = Settings()
    except ValueError as exc:
        console.print(f"[red]Error:[/red] invalid settings: {escape(str(exc))}")
        raise typer.Exit(code=2) from exc
    if url:
        settings.redis_url = url
        settings.cluster_nodes = []
        settings.sentinel_nodes = []
    if verbose:
        settings.log_level = "DEBUG"
    configure_logging(settings)
    return settings


def _run[R](settings: Settings, operation: Callable[[Cache], Awaitable[R]]) -> R:
    """Run one cache operation on a fresh Cache and close it afterwards."""
    try:
        return asyncio.run(_execute(settings, operation))
    except (RediskitError, RedisError) as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc


async def _execute[R](settings: Settings, operation: Callable[[Cache], Awaitable[R]]) -> R:
    """Open a Cache from settings, run ``operation`` and close the Cache."""
    connection = settings.connection()
    endpoint = connection.path if isinstance(connection, PathConnection) else None
    bind_cache_context(connection.kind, endpoint)
    cache = Cache(connection)
    try:
        return await operation(cache)
    finally:
        await cache.close()
        clear_cache_context()


if __name__ == "__main__":
    app()
