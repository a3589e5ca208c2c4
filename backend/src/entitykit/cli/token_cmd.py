"""Bearer token CLI commands."""

import click

from entitykit.auth.jwt_service import JWTService


@click.group()
def token():
    """Bearer token commands."""
    pass


@token.command()
@click.argument("subject")
@click.option("--role", "roles", multiple=True, help="Role to grant (repeatable).")
@click.option(
    "--type",
    "token_type",
    type=click.Choice(["access", "service"]),
    default="access",
    show_default=True,
)
@click.option("--ttl", type=int, default=None, help="Lifetime in seconds.")
@click.option(
    "--secret-key",
    envvar="ENTITYKIT_SECRET_KEY",
    required=True,
    help="Signing key (defaults to ENTITYKIT_SECRET_KEY).",
)
def issue(subject: str, roles: tuple[str, ...], token_type: str, ttl: int | None, secret_key: str):
    """Issue a signed token for SUBJECT, e.g. an ENTITYKIT_SERVICE_TOKEN."""
    jwt_service = JWTService(secret_key)
    click.echo(jwt_service.issue_token(subject, roles=list(roles), token_type=token_type, ttl=ttl))
