"""Command-line entry point.

Entry point: ``spmhost`` (configured via pyproject.toml project.scripts).

    spmhost serve --max-artifacts-size 2GB --artifacts-path /srv/artifacts -p 8443

Options given on the command line override the ``SPMHOST_*`` environment.
"""

from __future__ import annotations

import logging
from typing import Optional

import typer
import uvicorn

from spmhost.artifacts.sizes import parse_size
from spmhost.core.config import Settings
from spmhost.core.logging import configure_structlog

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="spmhost",
    help="Host zip archives as Swift Package Manager binary targets.",
    no_args_is_help=True,
    add_completion=False,
)


def split_bind(bind: str) -> Optional[tuple[str, int]]:
    """Parse ``host:port``; anything else is ignored."""
    host, sep, port = bind.rpartition(":")
    if not sep or not host or not port.isdigit():
        return None
    return host, int(port)


def build_settings(
    max_artifacts_size: Optional[str] = None,
    artifacts_path: Optional[str] = None,
    hostname: Optional[str] = None,
    port: Optional[int] = None,
    bind: Optional[str] = None,
) -> Settings:
    overrides: dict = {}
    if max_artifacts_size is not None:
        overrides["max_artifacts_size"] = max_artifacts_size
    if artifacts_path is not None:
        overrides["artifacts_path"] = artifacts_path

    address = split_bind(bind) if bind else None
    if address is not None:
        overrides["host"], overrides["port"] = address
    else:
        if bind:
            logger.warning("Ignoring --bind %r: expected host:port", bind)
        if hostname is not None:
            overrides["host"] = hostname
        if port is not None:
            overrides["port"] = port

    return Settings(**overrides)


@app.callback()
def main() -> None:
    """spmhost artifact server."""


@app.command(name="serve", help="Serve the application with an optional artifact size limit.")
def serve_cmd(
    max_artifacts_size: Optional[str] = typer.Option(
        None, "--max-artifacts-size", help="Maximum size of the artifacts folder (e.g., 500MB, 1GB)."
    ),
    artifacts_path: Optional[str] = typer.Option(
        None, "--artifacts-path", help="Custom path for the artifacts folder."
    ),
    hostname: Optional[str] = typer.Option(
        None, "--hostname", "-H", help="Set the hostname the server will run on."
    ),
    port: Optional[int] = typer.Option(
        None, "--port", "-p", help="Set the port the server will run on."
    ),
    bind: Optional[str] = typer.Option(
        None, "--bind", "-b", help="Bind to the given address (hostname:port)."
    ),
) -> None:
    settings = build_settings(max_artifacts_size, artifacts_path, hostname, port, bind)
    configure_structlog(debug=settings.debug)

    if settings.max_artifacts_size:
        limit = parse_size(settings.max_artifacts_size)
        if limit is not None:
            logger.info(
                "Artifact size limit set to: %s (%d bytes)", settings.max_artifacts_size, limit
            )

    logger.info("Artifacts location: %s", settings.artifacts_path)

    from spmhost.main import create_app

    application = create_app(settings)
    tls = application.state.tls

    uvicorn.run(
        application,
        host=settings.host,
        port=settings.port,
        ssl_certfile=str(tls.cert_path) if tls else None,
        ssl_keyfile=str(tls.key_path) if tls else None,
        log_config=None,
    )
