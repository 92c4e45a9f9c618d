"""CLI entry point for the Help Scout command-line client."""

import logging
import os

import click
from dotenv import load_dotenv

from helpscout_cli.storage.credentials import FileCredentialStore

logger = logging.getLogger(__name__)


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Help Scout from the command line — every command prints JSON."""
    load_dotenv()
    logging.basicConfig(
        level=os.environ.get("HELPSCOUT_LOG_LEVEL", "WARNING").upper(),  # stdout stays pure JSON
        format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj = FileCredentialStore()


# Import and register commands after cli is defined to avoid circular imports.
from helpscout_cli.cli.auth import auth  # noqa: E402
from helpscout_cli.cli.conversations import conversations  # noqa: E402
from helpscout_cli.cli.customers import customers  # noqa: E402
from helpscout_cli.cli.mcp import mcp  # noqa: E402
from helpscout_cli.cli.resources import (  # noqa: E402
    mailboxes,
    saved_replies,
    tags,
    teams,
    users,
    workflows,
)

cli.add_command(auth)
cli.add_command(conversations)
cli.add_command(customers)
cli.add_command(tags)
cli.add_command(workflows)
cli.add_command(mailboxes)
cli.add_command(users)
cli.add_command(teams)
cli.add_command(saved_replies)
cli.add_command(mcp)
