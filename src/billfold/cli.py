"""billfold command-line interface powered by Typer."""

import dataclasses
from pathlib import Path
from typing import Annotated

import typer

from billfold.config import Settings

app = typer.Typer(name="billfold", add_completion=False, no_args_is_help=True)


def _settings(data_dir: Path | None, host: str | None = None, port: int | None = None) -> Settings:
    """Environment settings with any explicit CLI options laid over them."""
    settings = Settings.from_env()
    overrides: dict[str, object] = {}
    if data_dir is not None:
        overrides.update(data_dir=data_dir, development=False)
    if host is not None:
        overrides["host"] = host
    if port is not None:
        overrides["port"] = port
    return dataclasses.replace(settings, **overrides)


def _route_table(data_dir: Path | None):
    from billfold.api import create_app

    return create_app(_settings(data_dir)).routes


# ------------------------------------------------------------------
# Commands
# ------------------------------------------------------------------


@app.command()
def serve(
    host: Annotated[str | None, typer.Option(help="Bind address.")] = None,
    port: Annotated[int | None, typer.Option(help="Bind port.")] = None,
    data_dir: Annotated[Path | None, typer.Option(help="Directory holding the JSON data.")] = None,
    dev: Annotated[bool, typer.Option("--dev", help="Auto-reload and debug logging.")] = False,
    workers: Annotated[int, typer.Option(help="Number of worker processes.")] = 1,
) -> None:
    """Start the budget API server."""
    from billfold._server import serve as run_server

    run_server(_settings(data_dir, host, port), dev=dev, workers=workers)


@app.command()
def routes(
    data_dir: Annotated[Path | None, typer.Option(help="Directory holding the JSON data.")] = None,
) -> None:
    """Print the route table in the order requests are matched against it."""
    for route in _route_table(data_dir):
        marker = " *" if route.has_path_param else ""
        typer.echo(f"{route.method:<7} {route.path}{marker}")


@app.command()
def match(
    method: Annotated[str, typer.Argument(help="HTTP method, e.g. GET.")],
    path: Annotated[str, typer.Argument(help="Request path, e.g. /api/months/2025-01/summary.")],
    data_dir: Annotated[Path | None, typer.Option(help="Directory holding the JSON data.")] = None,
) -> None:
    """Show which route would handle METHOD PATH."""
    route = _route_table(data_dir).select(path, method)
    if route is None:
        typer.echo(f"No route matches {method.upper()} {path}", err=True)
        raise typer.Exit(1)
    typer.echo(f"{route.method} {route.path} -> {getattr(route.handler, '__qualname__', route.handler)}")
