"""``helpscout mcp`` — run the MCP server and list the tools it exposes."""

import asyncio

import click
from dotenv import load_dotenv
from rich import box
from rich.console import Console
from rich.table import Table

from helpscout_cli.mcp.server import TOOL_DESCRIPTIONS, run_server
from helpscout_cli.storage.credentials import CredentialStore


@click.group()
def mcp() -> None:
    """Model Context Protocol server."""


@mcp.command()
@click.pass_obj
def serve(store: CredentialStore) -> None:
    """Serve Help Scout tools over stdio."""
    load_dotenv()
    asyncio.run(run_server(store))


@mcp.command()
def tools() -> None:
    """List the tools the MCP server exposes."""
    table = Table(
        title=f"MCP tools ({len(TOOL_DESCRIPTIONS)})",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("Tool", style="cyan", no_wrap=True)
    table.add_column("Description")
    for name, description in TOOL_DESCRIPTIONS.items():
        table.add_row(name, description)
    Console(width=200).print(table)
