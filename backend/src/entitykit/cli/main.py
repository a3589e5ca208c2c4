"""entitykit CLI entry point."""

import click


@click.group()
def cli():
    """entitykit: typed entity services over document stores."""
    pass


# Register subcommands
from entitykit.cli.config_cmd import config  # noqa: E402
from entitykit.cli.serve_cmd import serve  # noqa: E402
from entitykit.cli.token_cmd import token  # noqa: E402

cli.add_command(config)
cli.add_command(serve)
cli.add_command(token)
