#!/usr/bin/env python3
"""
Main CLI entry point for the patientql server.
"""

import os
import sys

import click
import uvicorn

from patientql import __version__
from patientql.config import settings
from patientql.database.cli import main as db_group
from patientql.logging import configure_logging, get_logger

logger = get_logger(__name__)


@click.group()
@click.version_option(version=__version__, prog_name="patientql")
def cli() -> None:
    """patientql CLI - run the API server and manage the database."""
    pass


@cli.command()
@click.option(
    "--host",
    default=settings.api_host,
    show_default=True,
    help="Host to bind to",
)
@click.option(
    "--port",
    default=settings.api_port,
    type=int,
    show_default=True,
    help="Port to bind to",
)
@click.option(
    "--reload",
    is_flag=True,
    default=False,
    help="Enable auto-reload for development",
)
@click.option(
    "--workers",
    default=1,
    type=int,
    help="Number of worker processes (default: 1)",
)
@click.option(
    "--log-level",
    default="info",
    type=click.Choice(["debug", "info", "warning", "error"]),
    help="Log level (default: info)",
)
def serve(host: str, port: int, reload: bool, workers: int, log_level: str) -> None:
    """Start the patientql API server."""
    configure_logging(debug=(log_level == "debug"), log_level=log_level)

    logger.info(
        "Starting patientql API server",
        host=host,
        port=port,
        reload=reload,
        workers=workers,
        log_level=log_level,
    )

    # The app reads its settings at import time, including in reloaded/worker processes
    if log_level == "debug":
        os.environ["PATIENTQL_DEBUG"] = "true"
    os.environ["PATIENTQL_LOG_LEVEL"] = log_level

    try:
        if reload or workers > 1:
            uvicorn.run(
                "patientql.api.app:app",
                host=host,
                port=port,
                reload=reload,
                workers=(workers if not reload else 1),
                log_level=log_level,
                access_log=True,
            )
        else:
            from patientql.api.app import app

            # Importing the app applies the settings' logging config; the CLI level wins
            configure_logging(debug=(log_level == "debug"), log_level=log_level)
            uvicorn.run(app, host=host, port=port, log_level=log_level, access_log=True)
    except KeyboardInterrupt:
        logger.info("Server shutdown requested by user")
    except Exception as e:
        logger.error("Server startup failed", error=str(e))
        sys.exit(1)


cli.add_command(db_group, name="db")


if __name__ == "__main__":
    cli()
