"""Shared plumbing for CLI commands: API calls, JSON output, error exit, argument checks."""

import asyncio
import functools
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import click

from helpscout_cli.api.client import HelpScoutClient, helpscout_client
from helpscout_cli.api.errors import HelpScoutCliError, handle_error
from helpscout_cli.processing.text import plain_bodies
from helpscout_cli.storage.credentials import CredentialStore

logger = logging.getLogger(__name__)

T = TypeVar("T")
F = TypeVar("F", bound=Callable[..., Any])


def with_error_handling(fn: F) -> F:
    """Route every failure of a command through the canonical error exit.

    Click's own control-flow exceptions (usage errors, ``--help`` exits,
    aborts) pass through untouched.
    """

    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return fn(*args, **kwargs)
        except (click.ClickException, click.exceptions.Exit, click.Abort):
            raise
        except Exception as exc:  # noqa: BLE001
            handle_error(exc)

    return wrapper  # type: ignore[return-value]


def call_api(store: CredentialStore, action: Callable[[HelpScoutClient], Awaitable[T]]) -> T:
    """Open a client for ``store``, run ``action`` on it to completion and return the result."""

    async def _run() -> T:
        async with helpscout_client(store) as client:
            return await action(client)

    return asyncio.run(_run())


def output_json(data: Any, *, plain: bool = False) -> None:
    """Write ``data`` to stdout as indented JSON; ``plain`` converts HTML bodies to text."""
    if plain:
        data = plain_bodies(data)
    click.echo(json.dumps(data, indent=2, ensure_ascii=False))


def parse_id(value: str, label: str) -> int:
    """Parse a positive integer ID argument, failing with a cli_error otherwise."""
    try:
        parsed = int(value.strip())
    except (AttributeError, ValueError):
        raise HelpScoutCliError(f"Invalid {label} ID: {value!r}", 400) from None
    if parsed <= 0:
        raise HelpScoutCliError(f"Invalid {label} ID: {value!r}", 400)
    return parsed


def parse_page(value: str | None) -> int | None:
    return parse_id(value, "page") if value is not None else None


def require_confirmation(resource: str, skip: bool) -> None:
    """Ask before deleting ``resource`` unless ``--yes`` was given."""
    if skip:
        return
    if not click.confirm(f"Delete {resource}?", default=False, err=True):
        raise HelpScoutCliError("Operation cancelled", 1)


def require_at_least_one_field(data: dict[str, Any], operation: str) -> None:
    if not data:
        raise HelpScoutCliError(f"{operation} requires at least one field", 400)


def drop_empty(**fields: Any) -> dict[str, Any]:
    """Keep only the keyword arguments that were actually given."""
    return {k: v for k, v in fields.items() if v not in (None, "")}
