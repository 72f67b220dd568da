from __future__ import annotations

import logging
from pathlib import Path
import sys
from typing import Callable, Optional

from pydantic import ValidationError
import typer

from flux_lsp import __version__
from flux_lsp.config import load_settings
from flux_lsp.exceptions import FrontEndLoadError
from flux_lsp.frontend import load_frontend
from flux_lsp.schema import ServerSettings
from flux_lsp.server import build_server, create_router, start

app = typer.Typer(add_completion=False)

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"


def configure_logging(level: str) -> None:
    # stdout carries the protocol stream, so logs go to stderr.
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format=LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )


def resolve_settings(
    *,
    root: Optional[Path],
    config: Optional[Path],
    frontend: Optional[str],
    multi_file: Optional[bool],
    disable_folding: Optional[bool],
    log_level: Optional[str],
) -> ServerSettings:
    overrides = {
        "frontend": frontend,
        "multi_file": multi_file,
        "disable_folding": disable_folding,
        "log_level": log_level,
    }
    return load_settings(root=root, config_path=config, overrides=overrides)


def run_server(
    settings: ServerSettings,
    *,
    tcp: bool = False,
    host: str = "127.0.0.1",
    port: int = 2087,
    start_fn: Callable[[], None] | None = None,
) -> None:
    if not settings.frontend:
        raise FrontEndLoadError(
            "no front end configured; set [server].frontend or pass --frontend"
        )
    router = create_router(load_frontend(settings.frontend), settings)
    start(build_server(router), tcp=tcp, host=host, port=port, start_fn=start_fn)


def _start_hook(ctx: typer.Context) -> Callable[[], None] | None:
    obj = ctx.obj
    if isinstance(obj, dict):
        hook = obj.get("start_fn")
        if callable(hook):
            return hook
    return None


@app.command()
def serve(
    ctx: typer.Context,
    root: Optional[Path] = typer.Option(
        None, "--root", help="Workspace root holding flux-lsp.toml."
    ),
    config: Optional[Path] = typer.Option(
        None, "--config", help="Explicit configuration file."
    ),
    frontend: Optional[str] = typer.Option(
        None, "--frontend", help="Front end as module:attribute."
    ),
    multi_file: Optional[bool] = typer.Option(
        None, "--multi-file/--no-multi-file", help="Analyze sibling documents together."
    ),
    disable_folding: Optional[bool] = typer.Option(
        None, "--disable-folding/--enable-folding"
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level"),
    tcp: bool = typer.Option(False, "--tcp", help="Listen on TCP instead of stdio."),
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(2087, "--port"),
) -> None:
    """Run the Flux language server."""
    try:
        settings = resolve_settings(
            root=root,
            config=config,
            frontend=frontend,
            multi_file=multi_file,
            disable_folding=disable_folding,
            log_level=log_level,
        )
    except ValidationError as exc:
        typer.echo(f"invalid configuration: {exc}", err=True)
        raise typer.Exit(code=2)
    configure_logging(settings.log_level)
    try:
        run_server(settings, tcp=tcp, host=host, port=port, start_fn=_start_hook(ctx))
    except FrontEndLoadError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2)


@app.command()
def version() -> None:
    """Print the server version."""
    typer.echo(__version__)


def main() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
