"""Smaller resource groups: tags, workflows, mailboxes, users, teams and saved replies."""

import click

from helpscout_cli.api.client import HelpScoutClient
from helpscout_cli.api.errors import HelpScoutCliError
from helpscout_cli.cli.utils import (
    call_api,
    drop_empty,
    output_json,
    parse_id,
    parse_page,
    require_at_least_one_field,
    require_confirmation,
    with_error_handling,
)
from helpscout_cli.storage.credentials import CredentialField, CredentialStore

_page_option = click.option("--page", default=None, help="Page number.")


# ── Tags ───────────────────────────────────────────────────────────────────────


@click.group()
def tags() -> None:
    """Tag operations."""


@tags.command("list")
@_page_option
@click.pass_obj
@with_error_handling
def list_tags(store: CredentialStore, page: str | None) -> None:
    """List tags."""
    result = call_api(store, lambda client: client.list_tags(parse_page(page)))
    output_json(result.to_dict("tags"))


@tags.command("view")
@click.argument("tag_id")
@click.pass_obj
@with_error_handling
def view_tag(store: CredentialStore, tag_id: str) -> None:
    """View a tag."""
    tid = parse_id(tag_id, "tag")
    output_json(call_api(store, lambda client: client.get_tag(tid)))


# ── Workflows ──────────────────────────────────────────────────────────────────


@click.group()
def workflows() -> None:
    """Workflow operations."""


@workflows.command("list")
@click.option("-m", "--mailbox", default=None, help="Filter by mailbox ID.")
@click.option("--type", "workflow_type", type=click.Choice(["manual", "automatic"]), default=None)
@_page_option
@click.pass_obj
@with_error_handling
def list_workflows(
    store: CredentialStore, mailbox: str | None, workflow_type: str | None, page: str | None
) -> None:
    """List workflows."""
    mailbox_id = parse_id(mailbox, "mailbox") if mailbox else None
    result = call_api(
        store,
        lambda client: client.list_workflows(
            mailbox=mailbox_id, workflow_type=workflow_type, page=parse_page(page)
        ),
    )
    output_json(result.to_dict("workflows"))


@workflows.command("run")
@click.argument("workflow_id")
@click.option("--conversation-ids", required=True, help="Comma-separated conversation IDs.")
@click.pass_obj
@with_error_handling
def run_workflow(store: CredentialStore, workflow_id: str, conversation_ids: str) -> None:
    """Run a manual workflow on one or more conversations."""
    wid = parse_id(workflow_id, "workflow")
    ids = [parse_id(part, "conversation") for part in conversation_ids.split(",") if part.strip()]
    if not ids:
        raise HelpScoutCliError("At least one conversation ID is required", 400)
    call_api(store, lambda client: client.run_workflow(wid, ids))
    output_json({"message": f"Workflow run on {len(ids)} conversation(s)"})


@workflows.command("activate")
@click.argument("workflow_id")
@click.pass_obj
@with_error_handling
def activate_workflow(store: CredentialStore, workflow_id: str) -> None:
    """Activate a workflow."""
    wid = parse_id(workflow_id, "workflow")
    call_api(store, lambda client: client.update_workflow_status(wid, "active"))
    output_json({"message": "Workflow activated"})


@workflows.command("deactivate")
@click.argument("workflow_id")
@click.pass_obj
@with_error_handling
def deactivate_workflow(store: CredentialStore, workflow_id: str) -> None:
    """Deactivate a workflow."""
    wid = parse_id(workflow_id, "workflow")
    call_api(store, lambda client: client.update_workflow_status(wid, "inactive"))
    output_json({"message": "Workflow deactivated"})


# ── Mailboxes ──────────────────────────────────────────────────────────────────


@click.group()
def mailboxes() -> None:
    """Mailbox operations and the default mailbox setting."""


@mailboxes.command("list")
@_page_option
@click.pass_obj
@with_error_handling
def list_mailboxes(store: CredentialStore, page: str | None) -> None:
    """List mailboxes."""
    result = call_api(store, lambda client: client.list_mailboxes(parse_page(page)))
    output_json(result.to_dict("mailboxes"))


@mailboxes.command("view")
@click.argument("mailbox_id")
@click.pass_obj
@with_error_handling
def view_mailbox(store: CredentialStore, mailbox_id: str) -> None:
    """View a mailbox."""
    mid = parse_id(mailbox_id, "mailbox")
    output_json(call_api(store, lambda client: client.get_mailbox(mid)))


@mailboxes.command("fields")
@click.argument("mailbox_id")
@click.pass_obj
@with_error_handling
def mailbox_fields(store: CredentialStore, mailbox_id: str) -> None:
    """List custom fields defined on a mailbox."""
    mid = parse_id(mailbox_id, "mailbox")
    output_json(call_api(store, lambda client: client.list_mailbox_fields(mid)))


@mailboxes.command("set-default")
@click.argument("mailbox_id")
@click.pass_obj
@with_error_handling
def set_default(store: CredentialStore, mailbox_id: str) -> None:
    """Store a default mailbox for commands that need one."""
    mid = parse_id(mailbox_id, "mailbox")
    store.set(CredentialField.DEFAULT_MAILBOX, str(mid))
    output_json({"message": f"Default mailbox set to {mid}"})


@mailboxes.command("get-default")
@click.pass_obj
@with_error_handling
def get_default(store: CredentialStore) -> None:
    """Show the stored default mailbox."""
    output_json({"defaultMailbox": store.get(CredentialField.DEFAULT_MAILBOX)})


@mailboxes.command("clear-default")
@click.pass_obj
@with_error_handling
def clear_default(store: CredentialStore) -> None:
    """Forget the stored default mailbox."""
    store.clear(CredentialField.DEFAULT_MAILBOX)
    output_json({"message": "Default mailbox cleared"})


# ── Users ──────────────────────────────────────────────────────────────────────


@click.group()
def users() -> None:
    """User operations."""


@users.command("list")
@click.option("-m", "--mailbox", default=None, help="Only users with access to this mailbox.")
@_page_option
@click.pass_obj
@with_error_handling
def list_users(store: CredentialStore, mailbox: str | None, page: str | None) -> None:
    """List users."""
    mailbox_id = parse_id(mailbox, "mailbox") if mailbox else None
    result = call_api(store, lambda client: client.list_users(mailbox=mailbox_id, page=parse_page(page)))
    output_json(result.to_dict("users"))


@users.command("view")
@click.argument("user_id")
@click.pass_obj
@with_error_handling
def view_user(store: CredentialStore, user_id: str) -> None:
    """View a user."""
    uid = parse_id(user_id, "user")
    output_json(call_api(store, lambda client: client.get_user(uid)))


@users.command("me")
@click.pass_obj
@with_error_handling
def me(store: CredentialStore) -> None:
    """Show the user the credentials belong to."""
    output_json(call_api(store, lambda client: client.get_current_user()))


# ── Teams ──────────────────────────────────────────────────────────────────────


@click.group()
def teams() -> None:
    """Team operations."""


@teams.command("list")
@_page_option
@click.pass_obj
@with_error_handling
def list_teams(store: CredentialStore, page: str | None) -> None:
    """List teams."""
    result = call_api(store, lambda client: client.list_teams(parse_page(page)))
    output_json(result.to_dict("teams"))


@teams.command("view")
@click.argument("team_id")
@click.pass_obj
@with_error_handling
def view_team(store: CredentialStore, team_id: str) -> None:
    """View a team."""
    tid = parse_id(team_id, "team")
    output_json(call_api(store, lambda client: client.get_team(tid)))


@teams.command("members")
@click.argument("team_id")
@_page_option
@click.pass_obj
@with_error_handling
def team_members(store: CredentialStore, team_id: str, page: str | None) -> None:
    """List the members of a team."""
    tid = parse_id(team_id, "team")
    result = call_api(store, lambda client: client.list_team_members(tid, parse_page(page)))
    output_json(result.to_dict("users"))


# ── Saved replies ──────────────────────────────────────────────────────────────


@click.group("saved-replies")
def saved_replies() -> None:
    """Saved reply operations (scoped to a mailbox)."""


_mailbox_option = click.option(
    "-m", "--mailbox", default=None, help="Mailbox ID (defaults to the stored default mailbox)."
)


def _resolve_mailbox(client: HelpScoutClient, mailbox: str | None) -> int:
    return parse_id(client.get_mailbox_id(mailbox), "mailbox")


@saved_replies.command("list")
@_mailbox_option
@_page_option
@click.pass_obj
@with_error_handling
def list_saved_replies(store: CredentialStore, mailbox: str | None, page: str | None) -> None:
    """List saved replies for a mailbox."""
    page_number = parse_page(page)
    result = call_api(
        store,
        lambda client: client.list_saved_replies(_resolve_mailbox(client, mailbox), page_number),
    )
    output_json(result.to_dict("savedReplies"))


@saved_replies.command("view")
@click.argument("reply_id")
@_mailbox_option
@click.pass_obj
@with_error_handling
def view_saved_reply(store: CredentialStore, reply_id: str, mailbox: str | None) -> None:
    """View a saved reply."""
    rid = parse_id(reply_id, "saved reply")
    output_json(
        call_api(store, lambda client: client.get_saved_reply(_resolve_mailbox(client, mailbox), rid))
    )


@saved_replies.command("create")
@_mailbox_option
@click.option("--name", required=True, help="Saved reply name.")
@click.option("--text", required=True, help="Saved reply body.")
@click.pass_obj
@with_error_handling
def create_saved_reply(store: CredentialStore, mailbox: str | None, name: str, text: str) -> None:
    """Create a saved reply."""
    call_api(
        store,
        lambda client: client.create_saved_reply(_resolve_mailbox(client, mailbox), name, text),
    )
    output_json({"message": "Saved reply created"})


@saved_replies.command("update")
@click.argument("reply_id")
@_mailbox_option
@click.option("--name", default=None, help="New name.")
@click.option("--text", default=None, help="New body.")
@click.pass_obj
@with_error_handling
def update_saved_reply(
    store: CredentialStore, reply_id: str, mailbox: str | None, name: str | None, text: str | None
) -> None:
    """Update a saved reply."""
    rid = parse_id(reply_id, "saved reply")
    data = drop_empty(name=name, text=text)
    require_at_least_one_field(data, "Saved reply update")
    call_api(
        store,
        lambda client: client.update_saved_reply(_resolve_mailbox(client, mailbox), rid, data),
    )
    output_json({"message": "Saved reply updated"})


@saved_replies.command("delete")
@click.argument("reply_id")
@_mailbox_option
@click.option("-y", "--yes", is_flag=True, help="Skip confirmation.")
@click.pass_obj
@with_error_handling
def delete_saved_reply(store: CredentialStore, reply_id: str, mailbox: str | None, yes: bool) -> None:
    """Delete a saved reply."""
    rid = parse_id(reply_id, "saved reply")
    require_confirmation("saved reply", yes)
    call_api(
        store,
        lambda client: client.delete_saved_reply(_resolve_mailbox(client, mailbox), rid),
    )
    output_json({"message": "Saved reply deleted"})
