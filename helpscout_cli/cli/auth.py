"""``helpscout auth`` — store app credentials and manage OAuth tokens."""

import click
from rich.console import Console
from rich.prompt import Prompt

from helpscout_cli.api.client import HelpScoutClient
from helpscout_cli.api.errors import HelpScoutCliError
from helpscout_cli.cli.utils import call_api, output_json, with_error_handling
from helpscout_cli.storage.credentials import CredentialField, CredentialStore

# Prompts go to stderr so stdout carries only the JSON result.
console = Console(stderr=True)


@click.group()
def auth() -> None:
    """Authentication commands."""


@auth.command()
@click.option("--app-id", default=None, help="Help Scout app ID (prompted when omitted).")
@click.option("--app-secret", default=None, help="Help Scout app secret (prompted when omitted).")
@click.pass_obj
@with_error_handling
def login(store: CredentialStore, app_id: str | None, app_secret: str | None) -> None:
    """Save app credentials and verify them with a token exchange."""
    app_id = app_id or Prompt.ask("App ID", console=console)
    app_secret = app_secret or Prompt.ask("App secret", console=console, password=True)
    if not app_id or not app_secret:
        raise HelpScoutCliError("Both app ID and app secret are required", 400)

    store.set(CredentialField.APP_ID, app_id.strip())
    store.set(CredentialField.APP_SECRET, app_secret.strip())
    store.clear(CredentialField.ACCESS_TOKEN)
    store.clear(CredentialField.REFRESH_TOKEN)

    call_api(store, lambda client: client.auth.authenticate())
    output_json({"message": "Authenticated"})


@auth.command()
@click.pass_obj
@with_error_handling
def logout(store: CredentialStore) -> None:
    """Remove stored credentials and tokens."""
    store.clear_all()
    output_json({"message": "Logged out"})


@auth.command()
@click.pass_obj
@with_error_handling
def status(store: CredentialStore) -> None:
    """Report whether credentials and tokens are present."""
    output_json({
        "authenticated": bool(
            store.get(CredentialField.APP_ID) and store.get(CredentialField.APP_SECRET)
        ),
        "hasAccessToken": store.get(CredentialField.ACCESS_TOKEN) is not None,
        "hasRefreshToken": store.get(CredentialField.REFRESH_TOKEN) is not None,
        "defaultMailbox": store.get(CredentialField.DEFAULT_MAILBOX),
    })


@auth.command()
@click.pass_obj
@with_error_handling
def refresh(store: CredentialStore) -> None:
    """Force a new access token."""

    async def _refresh(client: HelpScoutClient) -> None:
        client.auth.invalidate()
        await client.auth.authenticate()

    call_api(store, _refresh)
    output_json({"message": "Token refreshed"})
