"""Run a service with uvicorn."""

import logging
from pathlib import Path

import click
import uvicorn

from entitykit.api.app import create_app
from entitykit.errors import ConfigurationError
from entitykit.service.bootstrap import build_service_state
from entitykit.service.config import ServiceConfig

LOG_LEVELS = ["critical", "error", "warning", "info", "debug"]


@click.command()
@click.option(
    "--config",
    "config_path",
    envvar="ENTITYKIT_CONFIG",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Service YAML file (defaults to ENTITYKIT_CONFIG).",
)
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=8000, show_default=True, type=int)
@click.option(
    "--log-level",
    envvar="ENTITYKIT_LOG_LEVEL",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="info",
    show_default=True,
)
def serve(config_path: Path, host: str, port: int, log_level: str):
    """Serve the entities configured in a service file."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        state = build_service_state(ServiceConfig.from_yaml(config_path))
    except ConfigurationError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        raise SystemExit(1)

    uvicorn.run(create_app(state), host=host, port=port, log_level=log_level.lower())
