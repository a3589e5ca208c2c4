"""Service config CLI commands."""

from pathlib import Path

import click

from entitykit.errors import ConfigurationError
from entitykit.service.bootstrap import resolve_entity_type
from entitykit.service.config import load_config_file, validate_config_data


@click.group()
def config():
    """Service configuration commands."""
    pass


@config.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--resolve/--no-resolve",
    default=True,
    help="Also import every configured entity class.",
)
def validate(path: Path, resolve: bool):
    """Validate a service YAML file against the config schema."""
    try:
        data = load_config_file(path)
    except ConfigurationError as e:
        click.echo(click.style(str(e), fg="red"))
        raise SystemExit(1)

    errors = validate_config_data(data)
    if not errors and resolve:
        for entry in data["repositories"]:
            try:
                resolve_entity_type(entry["entity"])
            except ConfigurationError as e:
                errors.append(f"{entry['entity']}: {e}")

    for error in errors:
        click.echo(click.style(f"[ERROR] {path}: {error}", fg="red"))

    if errors:
        click.echo(f"\n{len(errors)} error(s) found.")
        raise SystemExit(1)

    click.echo(
        click.style(
            f"{path} is valid ({len(data['repositories'])} repositories).", fg="green"
        )
    )
