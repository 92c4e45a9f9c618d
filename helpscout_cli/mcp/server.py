"""Help Scout MCP server — exposes the client as FastMCP tools over stdio.

Every tool answers with pretty-printed JSON text.  Failures never take the
server down: they come back as ``{"error": <canonical error>}``.
"""

import json
import logging
import re
from collections.abc import Awaitable, Callable
from typing import Annotated, Any, Literal

from mcp.server.fastmcp import FastMCP
from pydantic import Field

from helpscout_cli.api.client import HelpScoutClient, build_update_operations, helpscout_client
from helpscout_cli.api.errors import normalize_error
from helpscout_cli.api.query import build_date_query
from helpscout_cli.processing.summarizer import count_conversations
from helpscout_cli.storage.credentials import CredentialStore

logger = logging.getLogger(__name__)

TOOL_DESCRIPTIONS: dict[str, str] = {
    "list_conversations": "List conversations with optional filtering by status, mailbox, tag, assignee, or date range",
    "get_conversation": "Get detailed information about a specific conversation including threads",
    "search_conversations": "Search all conversations matching a query (fetches all pages)",
    "get_conversations_summary": "Get aggregated summary of conversations by status and tag (for weekly briefings)",
    "update_conversation": "Update conversation properties without adding a thread",
    "list_mailboxes": "List all mailboxes in the Help Scout account",
    "get_mailbox": "Get detailed information about a specific mailbox",
    "list_mailbox_fields": "List custom fields for a mailbox",
    "list_customers": "List customers with optional filtering",
    "get_customer": "Get detailed information about a specific customer",
    "list_customer_emails": "List emails for a customer",
    "create_customer_email": "Add an email to a customer",
    "update_customer_email": "Update a customer email",
    "delete_customer_email": "Delete a customer email",
    "list_customer_phones": "List phones for a customer",
    "create_customer_phone": "Add a phone to a customer",
    "update_customer_phone": "Update a customer phone",
    "delete_customer_phone": "Delete a customer phone",
    "list_tags": "List all tags in the Help Scout account",
    "list_workflows": "List workflows with optional filtering",
    "list_saved_replies": "List saved replies for a mailbox",
    "get_saved_reply": "Get a saved reply with full text",
    "create_note": "Add a private note to a conversation",
    "create_reply": "Send a reply to a conversation (visible to customer)",
    "add_tag": "Add a tag to a conversation",
    "get_conversation_fields": "Get custom field values for a conversation",
    "update_conversation_fields": "Update custom field values on a conversation",
    "check_auth": "Check if Help Scout authentication is configured",
    "list_users": "List users with optional mailbox filter",
    "get_user": "Get detailed information about a specific user",
    "get_current_user": "Get the currently authenticated user",
    "list_teams": "List all teams",
    "get_team": "Get team details",
    "list_team_members": "List members of a team",
    "list_conversation_attachments": "List all attachments in a conversation (across all threads)",
    "get_attachment_data": "Get attachment content as base64-encoded data",
    "create_attachment": "Upload an attachment to a thread",
    "delete_attachment": "Delete an attachment (only works on draft conversations)",
    "search_tools": "Search for available tools by name or description using regex",
}

Status = Literal["active", "pending", "closed", "spam", "all"]

ConversationId = Annotated[int, Field(description="Conversation ID")]
CustomerId = Annotated[int, Field(description="Customer ID")]
MailboxId = Annotated[int, Field(description="Mailbox ID")]
Page = Annotated[int | None, Field(description="Page number")]
CreatedSince = Annotated[str | None, Field(description="Conversations created after this date (ISO 8601)")]
CreatedBefore = Annotated[str | None, Field(description="Conversations created before this date (ISO 8601)")]
ModifiedSince = Annotated[str | None, Field(description="Conversations modified after this date (ISO 8601)")]
ModifiedBefore = Annotated[str | None, Field(description="Conversations modified before this date (ISO 8601)")]


def _dumps(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


async def _respond(call: Callable[[], Awaitable[Any]]) -> str:
    """Run one tool body; any failure becomes the canonical error payload."""
    try:
        return _dumps(await call())
    except Exception as exc:  # noqa: BLE001
        logger.warning("Tool call failed: %s", exc)
        return _dumps({"error": normalize_error(exc).to_dict()})


def search_tool_descriptions(pattern: str) -> dict[str, Any]:
    """Match ``pattern`` case-insensitively against tool names and descriptions."""
    try:
        regex = re.compile(pattern, re.IGNORECASE)
    except re.error:
        return {"error": "Invalid regex pattern"}
    matches = [
        {"name": name, "description": description}
        for name, description in TOOL_DESCRIPTIONS.items()
        if regex.search(name) or regex.search(description)
    ]
    return {"tools": matches}


def create_server(client: HelpScoutClient) -> FastMCP:
    """Build a FastMCP server whose tools all delegate to ``client``."""
    server = FastMCP("helpscout")

    def tool(fn: Callable[..., Awaitable[str]]) -> Callable[..., Awaitable[str]]:
        return server.tool(name=fn.__name__, description=TOOL_DESCRIPTIONS[fn.__name__])(fn)

    # ── Conversations ──────────────────────────────────────────────────────────

    @tool
    async def list_conversations(
        status: Annotated[Status | None, Field(description="Conversation status filter")] = None,
        mailbox: Annotated[str | None, Field(description="Mailbox ID to filter by")] = None,
        tag: Annotated[str | None, Field(description="Tag to filter by")] = None,
        assigned_to: Annotated[str | None, Field(description="User ID assigned to")] = None,
        query: Annotated[str | None, Field(description="Search query")] = None,
        page: Page = None,
        created_since: CreatedSince = None,
        created_before: CreatedBefore = None,
        modified_since: ModifiedSince = None,
        modified_before: ModifiedBefore = None,
    ) -> str:
        async def call() -> Any:
            search = build_date_query(
                created_since=created_since,
                created_before=created_before,
                modified_since=modified_since,
                modified_before=modified_before,
                query=query,
            )
            result = await client.list_conversations(
                status=status, mailbox=mailbox, tag=tag, assigned_to=assigned_to, query=search, page=page
            )
            return result.to_dict("conversations")

        return await _respond(call)

    @tool
    async def get_conversation(
        conversation_id: ConversationId,
        include_threads: Annotated[bool, Field(description="Include conversation threads")] = False,
    ) -> str:
        async def call() -> Any:
            conversation = await client.get_conversation(conversation_id)
            if include_threads:
                threads = await client.get_conversation_threads(conversation_id)
                return {**conversation, "threads": threads}
            return conversation

        return await _respond(call)

    @tool
    async def search_conversations(
        query: Annotated[str | None, Field(description='Search query (e.g. "email:domain.com", "subject:billing")')] = None,
        status: Annotated[Status | None, Field(description="Status filter")] = None,
        created_since: CreatedSince = None,
        created_before: CreatedBefore = None,
        modified_since: ModifiedSince = None,
        modified_before: ModifiedBefore = None,
    ) -> str:
        async def call() -> Any:
            search = build_date_query(
                created_since=created_since,
                created_before=created_before,
                modified_since=modified_since,
                modified_before=modified_before,
                query=query,
            )
            return await client.list_all_conversations(query=search, status=status)

        return await _respond(call)

    @tool
    async def get_conversations_summary(
        status: Annotated[Status | None, Field(description="Status filter")] = None,
        mailbox: Annotated[str | None, Field(description="Mailbox ID to filter by")] = None,
        tag: Annotated[str | None, Field(description="Tag to filter by")] = None,
        created_since: CreatedSince = None,
        created_before: CreatedBefore = None,
        modified_since: ModifiedSince = None,
        modified_before: ModifiedBefore = None,
    ) -> str:
        async def call() -> Any:
            search = build_date_query(
                created_since=created_since,
                created_before=created_before,
                modified_since=modified_since,
                modified_before=modified_before,
                query=None,
            )
            conversations = await client.list_all_conversations(
                status=status, mailbox=mailbox, tag=tag, query=search
            )
            return count_conversations(conversations).to_dict(include_conversations=False)

        return await _respond(call)

    @tool
    async def update_conversation(
        conversation_id: ConversationId,
        status: Annotated[Literal["active", "pending", "closed", "spam"] | None, Field(description="New status")] = None,
        assignee: Annotated[str | None, Field(description='User ID to assign, or "none" to unassign')] = None,
        customer: Annotated[int | None, Field(description="New primary customer ID")] = None,
        subject: Annotated[str | None, Field(description="New subject")] = None,
        mailbox: Annotated[int | None, Field(description="Mailbox ID to move the conversation to")] = None,
    ) -> str:
        async def call() -> Any:
            operations = build_update_operations(
                status=status, assignee=assignee, customer=customer, subject=subject, mailbox=mailbox
            )
            return await client.update_conversation(conversation_id, operations)

        return await _respond(call)

    @tool
    async def create_note(
        conversation_id: ConversationId,
        text: Annotated[str, Field(description="Note text")],
        user: Annotated[int | None, Field(description="User ID adding the note")] = None,
        status: Annotated[Literal["active", "pending", "closed"] | None, Field(description="Status after the note")] = None,
    ) -> str:
        return await _respond(lambda: client.create_note(conversation_id, text, user=user, status=status))

    @tool
    async def create_reply(
        conversation_id: ConversationId,
        text: Annotated[str, Field(description="Reply text")],
        user: Annotated[int | None, Field(description="User ID sending the reply")] = None,
        draft: Annotated[bool | None, Field(description="Save as draft instead of sending")] = None,
        status: Annotated[Literal["active", "pending", "closed"] | None, Field(description="Status after the reply")] = None,
    ) -> str:
        return await _respond(
            lambda: client.create_reply(conversation_id, text, user=user, draft=draft, status=status)
        )

    @tool
    async def add_tag(
        conversation_id: ConversationId,
        tag: Annotated[str, Field(description="Tag name")],
    ) -> str:
        return await _respond(lambda: client.add_conversation_tag(conversation_id, tag))

    @tool
    async def get_conversation_fields(conversation_id: ConversationId) -> str:
        return await _respond(lambda: client.get_conversation_fields(conversation_id))

    @tool
    async def update_conversation_fields(
        conversation_id: ConversationId,
        fields: Annotated[
            list[dict[str, Any]],
            Field(description='Field updates, e.g. [{"id": 123, "value": "Gold"}]'),
        ],
    ) -> str:
        return await _respond(lambda: client.update_conversation_fields(conversation_id, fields))

    # ── Attachments ────────────────────────────────────────────────────────────

    @tool
    async def list_conversation_attachments(conversation_id: ConversationId) -> str:
        return await _respond(lambda: client.list_conversation_attachments(conversation_id))

    @tool
    async def get_attachment_data(
        conversation_id: ConversationId,
        attachment_id: Annotated[int, Field(description="Attachment ID")],
    ) -> str:
        return await _respond(lambda: client.get_attachment_data(conversation_id, attachment_id))

    @tool
    async def create_attachment(
        conversation_id: ConversationId,
        thread_id: Annotated[int, Field(description="Thread ID")],
        file_name: Annotated[str, Field(description="Name of the attachment file")],
        mime_type: Annotated[str, Field(description='MIME type (e.g. "image/png", "application/pdf")')],
        data: Annotated[str, Field(description="Base64-encoded file content")],
    ) -> str:
        return await _respond(
            lambda: client.create_attachment(
                conversation_id, thread_id, file_name=file_name, mime_type=mime_type, data=data
            )
        )

    @tool
    async def delete_attachment(
        conversation_id: ConversationId,
        attachment_id: Annotated[int, Field(description="Attachment ID")],
    ) -> str:
        return await _respond(lambda: client.delete_attachment(conversation_id, attachment_id))

    # ── Mailboxes, tags, workflows, saved replies ──────────────────────────────

    @tool
    async def list_mailboxes(page: Page = None) -> str:
        async def call() -> Any:
            return (await client.list_mailboxes(page)).to_dict("mailboxes")

        return await _respond(call)

    @tool
    async def get_mailbox(mailbox_id: MailboxId) -> str:
        return await _respond(lambda: client.get_mailbox(mailbox_id))

    @tool
    async def list_mailbox_fields(mailbox_id: MailboxId) -> str:
        return await _respond(lambda: client.list_mailbox_fields(mailbox_id))

    @tool
    async def list_tags(page: Page = None) -> str:
        async def call() -> Any:
            return (await client.list_tags(page)).to_dict("tags")

        return await _respond(call)

    @tool
    async def list_workflows(
        mailbox: Annotated[int | None, Field(description="Mailbox ID to filter by")] = None,
        workflow_type: Annotated[Literal["manual", "automatic"] | None, Field(description="Workflow type")] = None,
        page: Page = None,
    ) -> str:
        async def call() -> Any:
            result = await client.list_workflows(mailbox=mailbox, workflow_type=workflow_type, page=page)
            return result.to_dict("workflows")

        return await _respond(call)

    @tool
    async def list_saved_replies(
        mailbox_id: Annotated[int | None, Field(description="Mailbox ID (defaults to the configured mailbox)")] = None,
        page: Page = None,
    ) -> str:
        async def call() -> Any:
            resolved = int(client.get_mailbox_id(mailbox_id))
            return (await client.list_saved_replies(resolved, page)).to_dict("savedReplies")

        return await _respond(call)

    @tool
    async def get_saved_reply(
        saved_reply_id: Annotated[int, Field(description="Saved reply ID")],
        mailbox_id: Annotated[int | None, Field(description="Mailbox ID (defaults to the configured mailbox)")] = None,
    ) -> str:
        async def call() -> Any:
            return await client.get_saved_reply(int(client.get_mailbox_id(mailbox_id)), saved_reply_id)

        return await _respond(call)

    # ── Customers ──────────────────────────────────────────────────────────────

    @tool
    async def list_customers(
        mailbox: Annotated[str | None, Field(description="Mailbox ID to filter by")] = None,
        first_name: Annotated[str | None, Field(description="First name filter")] = None,
        last_name: Annotated[str | None, Field(description="Last name filter")] = None,
        query: Annotated[str | None, Field(description="Search query")] = None,
        page: Page = None,
    ) -> str:
        async def call() -> Any:
            result = await client.list_customers(
                mailbox=mailbox, first_name=first_name, last_name=last_name, query=query, page=page
            )
            return result.to_dict("customers")

        return await _respond(call)

    @tool
    async def get_customer(customer_id: CustomerId) -> str:
        return await _respond(lambda: client.get_customer(customer_id))

    @tool
    async def list_customer_emails(customer_id: CustomerId) -> str:
        return await _respond(lambda: client.list_customer_emails(customer_id))

    @tool
    async def create_customer_email(
        customer_id: CustomerId,
        value: Annotated[str, Field(description="Email address")],
        type: Annotated[Literal["home", "work", "other"], Field(description="Email type")] = "work",
    ) -> str:
        return await _respond(lambda: client.create_customer_email(customer_id, type, value))

    @tool
    async def update_customer_email(
        customer_id: CustomerId,
        email_id: Annotated[int, Field(description="Email ID")],
        value: Annotated[str | None, Field(description="New email address")] = None,
        type: Annotated[Literal["home", "work", "other"] | None, Field(description="New email type")] = None,
    ) -> str:
        data = {k: v for k, v in {"value": value, "type": type}.items() if v is not None}
        return await _respond(lambda: client.update_customer_email(customer_id, email_id, data))

    @tool
    async def delete_customer_email(
        customer_id: CustomerId,
        email_id: Annotated[int, Field(description="Email ID")],
    ) -> str:
        return await _respond(lambda: client.delete_customer_email(customer_id, email_id))

    @tool
    async def list_customer_phones(customer_id: CustomerId) -> str:
        return await _respond(lambda: client.list_customer_phones(customer_id))

    @tool
    async def create_customer_phone(
        customer_id: CustomerId,
        value: Annotated[str, Field(description="Phone number")],
        type: Annotated[
            Literal["home", "work", "mobile", "fax", "pager", "other"], Field(description="Phone type")
        ] = "work",
    ) -> str:
        return await _respond(lambda: client.create_customer_phone(customer_id, type, value))

    @tool
    async def update_customer_phone(
        customer_id: CustomerId,
        phone_id: Annotated[int, Field(description="Phone ID")],
        value: Annotated[str | None, Field(description="New phone number")] = None,
        type: Annotated[
            Literal["home", "work", "mobile", "fax", "pager", "other"] | None,
            Field(description="New phone type"),
        ] = None,
    ) -> str:
        data = {k: v for k, v in {"value": value, "type": type}.items() if v is not None}
        return await _respond(lambda: client.update_customer_phone(customer_id, phone_id, data))

    @tool
    async def delete_customer_phone(
        customer_id: CustomerId,
        phone_id: Annotated[int, Field(description="Phone ID")],
    ) -> str:
        return await _respond(lambda: client.delete_customer_phone(customer_id, phone_id))

    # ── Users, teams, auth ─────────────────────────────────────────────────────

    @tool
    async def check_auth() -> str:
        async def call() -> Any:
            return {"authenticated": client.is_authenticated()}

        return await _respond(call)

    @tool
    async def list_users(
        mailbox: Annotated[int | None, Field(description="Mailbox ID to filter by")] = None,
        page: Page = None,
    ) -> str:
        async def call() -> Any:
            return (await client.list_users(mailbox=mailbox, page=page)).to_dict("users")

        return await _respond(call)

    @tool
    async def get_user(user_id: Annotated[int, Field(description="User ID")]) -> str:
        return await _respond(lambda: client.get_user(user_id))

    @tool
    async def get_current_user() -> str:
        return await _respond(client.get_current_user)

    @tool
    async def list_teams(page: Page = None) -> str:
        async def call() -> Any:
            return (await client.list_teams(page)).to_dict("teams")

        return await _respond(call)

    @tool
    async def get_team(team_id: Annotated[int, Field(description="Team ID")]) -> str:
        return await _respond(lambda: client.get_team(team_id))

    @tool
    async def list_team_members(
        team_id: Annotated[int, Field(description="Team ID")],
        page: Page = None,
    ) -> str:
        async def call() -> Any:
            return (await client.list_team_members(team_id, page)).to_dict("users")

        return await _respond(call)

    @tool
    async def search_tools(
        query: Annotated[str, Field(description="Regex matched against tool names and descriptions (case-insensitive)")],
    ) -> str:
        return _dumps(search_tool_descriptions(query))

    logger.debug("MCP server built with %d tools", len(TOOL_DESCRIPTIONS))
    return server


async def run_server(store: CredentialStore) -> None:
    """Serve the Help Scout tools over stdio until the peer disconnects."""
    async with helpscout_client(store) as client:
        logger.info("Starting Help Scout MCP server on stdio")
        await create_server(client).run_stdio_async()
