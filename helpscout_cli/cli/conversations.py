"""``helpscout conversations`` — list, inspect, summarize and modify conversations."""

import base64
import mimetypes
from pathlib import Path
from typing import Any

import click

from helpscout_cli.api.client import HelpScoutClient, build_update_operations
from helpscout_cli.api.query import build_date_query
from helpscout_cli.cli.utils import (
    call_api,
    output_json,
    parse_id,
    parse_page,
    require_confirmation,
    with_error_handling,
)
from helpscout_cli.processing.summarizer import extract_thread_info, summarize_conversations
from helpscout_cli.processing.types import COMMUNICATION_TYPES, ThreadType
from helpscout_cli.storage.credentials import CredentialStore

_STATUS_CHOICES = ["active", "all", "closed", "open", "pending", "spam"]


@click.group()
def conversations() -> None:
    """Conversation operations."""


@conversations.command("list")
@click.option("-m", "--mailbox", default=None, help="Filter by mailbox ID.")
@click.option("-s", "--status", type=click.Choice(_STATUS_CHOICES), default=None, help="Filter by status.")
@click.option("-t", "--tag", default=None, help="Filter by tag(s), comma-separated.")
@click.option("--assigned-to", default=None, help="Filter by assignee user ID.")
@click.option("--created-since", default=None, help="Created after this date (ISO 8601).")
@click.option("--created-before", default=None, help="Created before this date (ISO 8601).")
@click.option("--modified-since", default=None, help="Modified after this date (ISO 8601).")
@click.option("--modified-before", default=None, help="Modified before this date (ISO 8601).")
@click.option("--sort-field", default=None, help="createdAt, modifiedAt, number, status or subject.")
@click.option("--sort-order", type=click.Choice(["asc", "desc"]), default=None, help="Sort order.")
@click.option("--page", default=None, help="Page number.")
@click.option("--embed", default=None, help="Embed resources (threads).")
@click.option("-q", "--query", default=None, help="Advanced search query.")
@click.option("--summary", is_flag=True, help="Walk every page and print aggregated statistics instead.")
@click.pass_obj
@with_error_handling
def list_(
    store: CredentialStore,
    mailbox: str | None,
    status: str | None,
    tag: str | None,
    assigned_to: str | None,
    created_since: str | None,
    created_before: str | None,
    modified_since: str | None,
    modified_before: str | None,
    sort_field: str | None,
    sort_order: str | None,
    page: str | None,
    embed: str | None,
    query: str | None,
    summary: bool,
) -> None:
    """List conversations (one page), or summarize all of them with --summary."""
    search = build_date_query(
        created_since=created_since,
        created_before=created_before,
        modified_since=modified_since,
        modified_before=modified_before,
        query=query,
    )

    if summary:
        everything = call_api(
            store,
            lambda client: client.list_all_conversations(
                mailbox=mailbox,
                status=status,
                tag=tag,
                assigned_to=assigned_to,
                query=search,
                embed="threads",
            ),
        )
        output_json(summarize_conversations(everything).to_dict())
        return

    result = call_api(
        store,
        lambda client: client.list_conversations(
            mailbox=mailbox,
            status=status,
            tag=tag,
            assigned_to=assigned_to,
            sort_field=sort_field,
            sort_order=sort_order,
            page=parse_page(page),
            embed=embed,
            query=search,
        ),
    )
    output_json(result.to_dict("conversations"))


@conversations.command()
@click.argument("conversation_id")
@click.pass_obj
@with_error_handling
def view(store: CredentialStore, conversation_id: str) -> None:
    """View a conversation with its threads and derived participants."""
    cid = parse_id(conversation_id, "conversation")
    conversation = call_api(store, lambda client: client.get_conversation(cid, "threads"))
    threads = (conversation.get("_embedded") or {}).get("threads")
    output_json({**conversation, **extract_thread_info(threads).to_dict()}, plain=True)


@conversations.command()
@click.argument("conversation_id")
@click.option("--include-notes", is_flag=True, help="Include internal notes.")
@click.option("--all", "all_types", is_flag=True, help="Show every thread type (line items, workflows, ...).")
@click.option("-t", "--type", "types", default=None, help="Only these thread type(s), comma-separated.")
@click.option("--html", is_flag=True, help="Keep thread bodies as HTML (default is plain text).")
@click.pass_obj
@with_error_handling
def threads(
    store: CredentialStore,
    conversation_id: str,
    include_notes: bool,
    all_types: bool,
    types: str | None,
    html: bool,
) -> None:
    """List threads for a conversation (email communications only by default)."""
    cid = parse_id(conversation_id, "conversation")
    items = call_api(store, lambda client: client.get_conversation_threads(cid))

    if types:
        wanted = {t.strip().lower() for t in types.split(",") if t.strip()}
        items = [t for t in items if t.get("type") in wanted]
    elif not all_types:
        allowed = set(COMMUNICATION_TYPES)
        if include_notes:
            allowed.add(ThreadType.NOTE.value)
        items = [t for t in items if t.get("type") in allowed]

    output_json(items, plain=not html)


@conversations.command()
@click.argument("conversation_id")
@click.option("-y", "--yes", is_flag=True, help="Skip confirmation.")
@click.pass_obj
@with_error_handling
def delete(store: CredentialStore, conversation_id: str, yes: bool) -> None:
    """Delete a conversation."""
    cid = parse_id(conversation_id, "conversation")
    require_confirmation("conversation", yes)
    call_api(store, lambda client: client.delete_conversation(cid))
    output_json({"message": "Conversation deleted"})


@conversations.command("add-tag")
@click.argument("conversation_id")
@click.argument("tag")
@click.pass_obj
@with_error_handling
def add_tag(store: CredentialStore, conversation_id: str, tag: str) -> None:
    """Add a tag to a conversation."""
    cid = parse_id(conversation_id, "conversation")
    call_api(store, lambda client: client.add_conversation_tag(cid, tag))
    output_json({"message": f'Tag "{tag}" added'})


@conversations.command("remove-tag")
@click.argument("conversation_id")
@click.argument("tag")
@click.pass_obj
@with_error_handling
def remove_tag(store: CredentialStore, conversation_id: str, tag: str) -> None:
    """Remove a tag from a conversation."""
    cid = parse_id(conversation_id, "conversation")
    call_api(store, lambda client: client.remove_conversation_tag(cid, tag))
    output_json({"message": f'Tag "{tag}" removed'})


@conversations.command()
@click.argument("conversation_id")
@click.option("--text", required=True, help="Reply text.")
@click.option("--user", default=None, help="User ID sending the reply.")
@click.option("--draft", is_flag=True, help="Save as draft.")
@click.option("--status", type=click.Choice(["active", "closed", "pending"]), default=None,
              help="Conversation status after the reply.")
@click.pass_obj
@with_error_handling
def reply(
    store: CredentialStore,
    conversation_id: str,
    text: str,
    user: str | None,
    draft: bool,
    status: str | None,
) -> None:
    """Reply to a conversation (visible to the customer)."""
    cid = parse_id(conversation_id, "conversation")
    user_id = parse_id(user, "user") if user else None
    call_api(
        store,
        lambda client: client.create_reply(cid, text, user=user_id, draft=draft or None, status=status),
    )
    output_json({"message": "Reply sent"})


@conversations.command()
@click.argument("conversation_id")
@click.option("--text", required=True, help="Note text.")
@click.option("--user", default=None, help="User ID adding the note.")
@click.option("--status", type=click.Choice(["active", "closed", "pending"]), default=None,
              help="Conversation status after the note.")
@click.pass_obj
@with_error_handling
def note(
    store: CredentialStore,
    conversation_id: str,
    text: str,
    user: str | None,
    status: str | None,
) -> None:
    """Add a private note to a conversation."""
    cid = parse_id(conversation_id, "conversation")
    user_id = parse_id(user, "user") if user else None
    call_api(store, lambda client: client.create_note(cid, text, user=user_id, status=status))
    output_json({"message": "Note added"})


@conversations.command()
@click.argument("conversation_id")
@click.option("--status", type=click.Choice(["active", "closed", "pending", "spam"]), default=None,
              help="Change status.")
@click.option("--assignee", default=None, help='Assign to user ID, or "none" to unassign.')
@click.option("--customer", default=None, help="Change primary customer ID.")
@click.option("--subject", default=None, help="Update the subject line.")
@click.option("--mailbox", default=None, help="Move to another mailbox ID.")
@click.pass_obj
@with_error_handling
def update(
    store: CredentialStore,
    conversation_id: str,
    status: str | None,
    assignee: str | None,
    customer: str | None,
    subject: str | None,
    mailbox: str | None,
) -> None:
    """Update conversation properties without adding a thread."""
    cid = parse_id(conversation_id, "conversation")
    operations = build_update_operations(
        status=status,
        assignee="none" if assignee == "none" else (parse_id(assignee, "user") if assignee else None),
        customer=parse_id(customer, "customer") if customer else None,
        subject=subject,
        mailbox=parse_id(mailbox, "mailbox") if mailbox else None,
    )
    call_api(store, lambda client: client.update_conversation(cid, operations))
    output_json({"message": "Conversation updated"})


@conversations.command()
@click.argument("conversation_id")
@click.pass_obj
@with_error_handling
def fields(store: CredentialStore, conversation_id: str) -> None:
    """Show custom field values for a conversation."""
    cid = parse_id(conversation_id, "conversation")
    output_json(call_api(store, lambda client: client.get_conversation_fields(cid)))


@conversations.command("set-field")
@click.argument("conversation_id")
@click.option("--field-id", required=True, help="Custom field ID.")
@click.option("--value", required=True, help="Field value.")
@click.pass_obj
@with_error_handling
def set_field(store: CredentialStore, conversation_id: str, field_id: str, value: str) -> None:
    """Set a custom field value on a conversation."""
    cid = parse_id(conversation_id, "conversation")
    updates = [{"id": parse_id(field_id, "field"), "value": value}]
    call_api(store, lambda client: client.update_conversation_fields(cid, updates))
    output_json({"message": "Field updated"})


# ── Attachments ────────────────────────────────────────────────────────────────


@conversations.command()
@click.argument("conversation_id")
@click.pass_obj
@with_error_handling
def attachments(store: CredentialStore, conversation_id: str) -> None:
    """List every attachment in a conversation, across all threads."""
    cid = parse_id(conversation_id, "conversation")
    output_json(call_api(store, lambda client: client.list_conversation_attachments(cid)))


@conversations.command("attachment-download")
@click.argument("conversation_id")
@click.argument("attachment_id")
@click.option("-o", "--output", default=None, help="Output path (defaults to the attachment filename).")
@click.pass_obj
@with_error_handling
def attachment_download(
    store: CredentialStore, conversation_id: str, attachment_id: str, output: str | None
) -> None:
    """Download an attachment to a local file."""
    cid = parse_id(conversation_id, "conversation")
    aid = parse_id(attachment_id, "attachment")

    async def _fetch(client: HelpScoutClient) -> tuple[dict[str, Any] | None, dict[str, Any]]:
        listing = await client.list_conversation_attachments(cid)
        meta = next((a for a in listing["attachments"] if a.get("id") == aid), None)
        return meta, await client.get_attachment_data(cid, aid)

    meta, payload = call_api(store, _fetch)
    content = base64.b64decode(payload.get("data") or "")
    filename = (meta or {}).get("filename")
    # API-supplied names never leave the working directory
    safe_name = Path(filename or "").name
    if safe_name in ("", ".", ".."):
        safe_name = f"attachment-{aid}"
    path = Path(output or safe_name).resolve()
    path.write_bytes(content)

    output_json({
        "message": "Attachment downloaded",
        "path": str(path),
        "size": len(content),
        "filename": filename,
    })


@conversations.command("attachment-upload")
@click.argument("conversation_id")
@click.argument("thread_id")
@click.option("-f", "--file", "file_path", required=True, type=click.Path(exists=True, dir_okay=False),
              help="File to upload.")
@click.option("--filename", default=None, help="Override the filename.")
@click.option("--mime-type", default=None, help="Override the MIME type (guessed from the extension).")
@click.pass_obj
@with_error_handling
def attachment_upload(
    store: CredentialStore,
    conversation_id: str,
    thread_id: str,
    file_path: str,
    filename: str | None,
    mime_type: str | None,
) -> None:
    """Upload a file as an attachment to a thread."""
    cid = parse_id(conversation_id, "conversation")
    tid = parse_id(thread_id, "thread")
    path = Path(file_path).resolve()
    content = path.read_bytes()
    name = filename or path.name
    mime = mime_type or mimetypes.guess_type(path.name)[0] or "application/octet-stream"

    call_api(
        store,
        lambda client: client.create_attachment(
            cid, tid, file_name=name, mime_type=mime, data=base64.b64encode(content).decode("ascii")
        ),
    )
    output_json({"message": "Attachment uploaded", "filename": name, "mimeType": mime, "size": len(content)})


@conversations.command("attachment-delete")
@click.argument("conversation_id")
@click.argument("attachment_id")
@click.option("-y", "--yes", is_flag=True, help="Skip confirmation.")
@click.pass_obj
@with_error_handling
def attachment_delete(store: CredentialStore, conversation_id: str, attachment_id: str, yes: bool) -> None:
    """Delete an attachment (draft conversations only)."""
    cid = parse_id(conversation_id, "conversation")
    aid = parse_id(attachment_id, "attachment")
    require_confirmation("attachment", yes)
    call_api(store, lambda client: client.delete_attachment(cid, aid))
    output_json({"message": "Attachment deleted"})
