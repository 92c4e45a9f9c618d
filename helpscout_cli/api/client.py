"""Help Scout resource client — one async method per remote operation."""

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from importlib.metadata import PackageNotFoundError, version
from typing import Any

import httpx

from helpscout_cli.api.auth import TOKEN_URL, AuthSession
from helpscout_cli.api.errors import HelpScoutCliError
from helpscout_cli.api.executor import API_BASE, RequestExecutor
from helpscout_cli.api.pagination import collect_all_pages
from helpscout_cli.api.types import PagedResult
from helpscout_cli.storage.credentials import CredentialField, CredentialStore

logger = logging.getLogger(__name__)

try:
    _VERSION = version("helpscout-cli")
except PackageNotFoundError:
    _VERSION = "dev"

USER_AGENT = f"helpscout-cli/{_VERSION}"

_HTTP_TIMEOUT = httpx.Timeout(30.0, connect=10.0)

NO_MAILBOX_MESSAGE = (
    "No mailbox specified. Use --mailbox, set a default with "
    '"helpscout mailboxes set-default", or set HELPSCOUT_MAILBOX_ID'
)

_SUCCESS: dict[str, bool] = {"success": True}


def build_update_operations(
    *,
    status: str | None = None,
    assignee: int | str | None = None,
    customer: int | None = None,
    subject: str | None = None,
    mailbox: int | None = None,
) -> list[dict[str, Any]]:
    """Translate conversation update options into JSON-patch operations.

    ``assignee="none"`` unassigns.  Raises HelpScoutCliError when nothing
    would change.
    """
    operations: list[dict[str, Any]] = []
    if status:
        operations.append({"op": "replace", "path": "/status", "value": status})
    if assignee == "none":
        operations.append({"op": "remove", "path": "/assignTo"})
    elif assignee:
        operations.append({"op": "replace", "path": "/assignTo", "value": _user_id(assignee)})
    if customer:
        operations.append({"op": "replace", "path": "/primaryCustomer.id", "value": customer})
    if subject:
        operations.append({"op": "replace", "path": "/subject", "value": subject})
    if mailbox:
        operations.append({"op": "replace", "path": "/mailboxId", "value": mailbox})

    if not operations:
        raise HelpScoutCliError("At least one update option is required", 400)
    return operations


def _user_id(value: int | str) -> int:
    try:
        parsed = int(str(value).strip())
    except ValueError:
        raise HelpScoutCliError(f"Invalid user ID: {value!r}", 400) from None
    if parsed <= 0:
        raise HelpScoutCliError(f"Invalid user ID: {value!r}", 400)
    return parsed


class HelpScoutClient:
    """Typed async wrapper around the Help Scout Mailbox API v2.

    List methods return a single ``PagedResult``; callers that need every
    page go through ``list_all_conversations`` (or ``collect_all_pages``).
    Mutations that the API answers with 201/204 return ``{"success": True}``.

    Use the ``helpscout_client()`` context manager to construct and tear down
    the underlying HTTP connection pool correctly.
    """

    def __init__(self, executor: RequestExecutor, store: CredentialStore) -> None:
        self._executor = executor
        self._store = store

    # ── Session / config ───────────────────────────────────────────────────────

    @property
    def auth(self) -> AuthSession:
        return self._executor.auth

    def is_authenticated(self) -> bool:
        return self.auth.is_configured()

    def get_mailbox_id(self, explicit: str | int | None = None) -> str:
        """Resolve a mailbox: explicit value, stored default, then HELPSCOUT_MAILBOX_ID."""
        mailbox_id = (
            explicit
            or self._store.get(CredentialField.DEFAULT_MAILBOX)
            or os.environ.get("HELPSCOUT_MAILBOX_ID")
        )
        if not mailbox_id:
            raise HelpScoutCliError(NO_MAILBOX_MESSAGE, 400)
        return str(mailbox_id)

    # ── Conversations ──────────────────────────────────────────────────────────

    async def list_conversations(
        self,
        *,
        mailbox: str | int | None = None,
        status: str | None = None,
        tag: str | None = None,
        assigned_to: str | int | None = None,
        modified_since: str | None = None,
        sort_field: str | None = None,
        sort_order: str | None = None,
        page: int | None = None,
        embed: str | None = None,
        query: str | None = None,
    ) -> PagedResult:
        raw = await self._executor.request(
            "GET",
            "/conversations",
            params={
                "mailbox": mailbox,
                "status": status,
                "tag": tag,
                "assigned_to": assigned_to,
                "modifiedSince": modified_since,
                "sortField": sort_field,
                "sortOrder": sort_order,
                "page": page,
                "embed": embed,
                "query": query,
            },
        )
        return PagedResult.from_envelope(raw, "conversations")

    async def list_all_conversations(self, **filters: Any) -> list[dict[str, Any]]:
        """Fetch every page of ``list_conversations`` for the given filters."""
        filters.pop("page", None)

        async def fetch(page: int) -> PagedResult:
            return await self.list_conversations(page=page, **filters)

        conversations = await collect_all_pages(fetch)
        logger.info("Fetched %d conversation(s) across all pages", len(conversations))
        return conversations

    async def get_conversation(self, conversation_id: int, embed: str | None = None) -> dict[str, Any]:
        return await self._executor.request(
            "GET", f"/conversations/{conversation_id}", params={"embed": embed}
        )

    async def get_conversation_threads(self, conversation_id: int) -> list[dict[str, Any]]:
        raw = await self._executor.request("GET", f"/conversations/{conversation_id}/threads")
        return PagedResult.from_envelope(raw, "threads").items

    async def update_conversation(
        self, conversation_id: int, operations: list[dict[str, Any]]
    ) -> dict[str, bool]:
        """Apply JSON-patch operations, one PATCH request per operation, in order."""
        for operation in operations:
            await self._executor.request(
                "PATCH", f"/conversations/{conversation_id}", body=operation
            )
        return dict(_SUCCESS)

    async def delete_conversation(self, conversation_id: int) -> dict[str, bool]:
        await self._executor.request("DELETE", f"/conversations/{conversation_id}")
        return dict(_SUCCESS)

    async def add_conversation_tag(self, conversation_id: int, tag: str) -> dict[str, bool]:
        """Add ``tag`` while keeping the conversation's existing tags."""
        conversation = await self.get_conversation(conversation_id)
        tags = _tag_names(conversation)
        if tag not in tags:
            tags.append(tag)
        await self._executor.request(
            "PUT", f"/conversations/{conversation_id}/tags", body={"tags": tags}
        )
        return dict(_SUCCESS)

    async def remove_conversation_tag(self, conversation_id: int, tag: str) -> dict[str, bool]:
        conversation = await self.get_conversation(conversation_id)
        tags = [t for t in _tag_names(conversation) if t != tag]
        await self._executor.request(
            "PUT", f"/conversations/{conversation_id}/tags", body={"tags": tags}
        )
        return dict(_SUCCESS)

    async def create_reply(
        self,
        conversation_id: int,
        text: str,
        *,
        user: int | None = None,
        draft: bool | None = None,
        status: str | None = None,
    ) -> dict[str, bool]:
        """Reply to the conversation's primary customer (looked up first; the API requires it)."""
        conversation = await self.get_conversation(conversation_id)
        customer_id = (conversation.get("primaryCustomer") or {}).get("id")
        if not customer_id:
            raise HelpScoutCliError("Could not determine customer ID from conversation", 400)

        body = _drop_none({
            "customer": {"id": customer_id},
            "text": text,
            "user": user,
            "draft": draft,
            "status": status,
        })
        await self._executor.request("POST", f"/conversations/{conversation_id}/reply", body=body)
        return dict(_SUCCESS)

    async def create_note(
        self,
        conversation_id: int,
        text: str,
        *,
        user: int | None = None,
        status: str | None = None,
    ) -> dict[str, bool]:
        body = _drop_none({"text": text, "user": user, "status": status})
        await self._executor.request("POST", f"/conversations/{conversation_id}/notes", body=body)
        return dict(_SUCCESS)

    async def get_conversation_fields(self, conversation_id: int) -> dict[str, Any]:
        conversation = await self.get_conversation(conversation_id)
        return {"conversationId": conversation_id, "fields": conversation.get("customFields") or []}

    async def update_conversation_fields(
        self, conversation_id: int, fields: list[dict[str, Any]]
    ) -> dict[str, bool]:
        await self._executor.request(
            "PUT", f"/conversations/{conversation_id}/fields", body={"fields": fields}
        )
        return dict(_SUCCESS)

    # ── Attachments ────────────────────────────────────────────────────────────

    async def list_conversation_attachments(self, conversation_id: int) -> dict[str, Any]:
        """Collect attachment metadata from every thread, tagging each with its thread ID."""
        threads = await self.get_conversation_threads(conversation_id)
        attachments: list[dict[str, Any]] = []
        for thread in threads:
            embedded = thread.get("_embedded") or {}
            for attachment in embedded.get("attachments") or []:
                attachments.append({**attachment, "threadId": thread.get("id")})
        return {"conversationId": conversation_id, "attachments": attachments}

    async def get_attachment_data(self, conversation_id: int, attachment_id: int) -> dict[str, Any]:
        """Return ``{"data": <base64>}`` for one attachment."""
        return await self._executor.request(
            "GET", f"/conversations/{conversation_id}/attachments/{attachment_id}/data"
        )

    async def create_attachment(
        self,
        conversation_id: int,
        thread_id: int,
        *,
        file_name: str,
        mime_type: str,
        data: str,
    ) -> dict[str, bool]:
        await self._executor.request(
            "POST",
            f"/conversations/{conversation_id}/threads/{thread_id}/attachments",
            body={"fileName": file_name, "mimeType": mime_type, "data": data},
        )
        return dict(_SUCCESS)

    async def delete_attachment(self, conversation_id: int, attachment_id: int) -> dict[str, bool]:
        await self._executor.request(
            "DELETE", f"/conversations/{conversation_id}/attachments/{attachment_id}"
        )
        return dict(_SUCCESS)

    # ── Customers ──────────────────────────────────────────────────────────────

    async def list_customers(
        self,
        *,
        mailbox: str | int | None = None,
        first_name: str | None = None,
        last_name: str | None = None,
        modified_since: str | None = None,
        sort_field: str | None = None,
        sort_order: str | None = None,
        page: int | None = None,
        query: str | None = None,
    ) -> PagedResult:
        raw = await self._executor.request(
            "GET",
            "/customers",
            params={
                "mailbox": mailbox,
                "firstName": first_name,
                "lastName": last_name,
                "modifiedSince": modified_since,
                "sortField": sort_field,
                "sortOrder": sort_order,
                "page": page,
                "query": query,
            },
        )
        return PagedResult.from_envelope(raw, "customers")

    async def get_customer(self, customer_id: int) -> dict[str, Any]:
        return await self._executor.request("GET", f"/customers/{customer_id}")

    async def create_customer(self, data: dict[str, Any]) -> dict[str, bool]:
        await self._executor.request("POST", "/customers", body=data)
        return dict(_SUCCESS)

    async def update_customer(self, customer_id: int, data: dict[str, Any]) -> dict[str, bool]:
        await self._executor.request("PUT", f"/customers/{customer_id}", body=data)
        return dict(_SUCCESS)

    async def delete_customer(self, customer_id: int) -> dict[str, bool]:
        await self._executor.request("DELETE", f"/customers/{customer_id}")
        return dict(_SUCCESS)

    async def list_customer_emails(self, customer_id: int) -> list[dict[str, Any]]:
        raw = await self._executor.request("GET", f"/customers/{customer_id}/emails")
        return PagedResult.from_envelope(raw, "emails").items

    async def create_customer_email(self, customer_id: int, email_type: str, value: str) -> dict[str, bool]:
        await self._executor.request(
            "POST", f"/customers/{customer_id}/emails", body={"type": email_type, "value": value}
        )
        return dict(_SUCCESS)

    async def update_customer_email(
        self, customer_id: int, email_id: int, data: dict[str, Any]
    ) -> dict[str, bool]:
        await self._executor.request("PUT", f"/customers/{customer_id}/emails/{email_id}", body=data)
        return dict(_SUCCESS)

    async def delete_customer_email(self, customer_id: int, email_id: int) -> dict[str, bool]:
        await self._executor.request("DELETE", f"/customers/{customer_id}/emails/{email_id}")
        return dict(_SUCCESS)

    async def list_customer_phones(self, customer_id: int) -> list[dict[str, Any]]:
        raw = await self._executor.request("GET", f"/customers/{customer_id}/phones")
        return PagedResult.from_envelope(raw, "phones").items

    async def create_customer_phone(self, customer_id: int, phone_type: str, value: str) -> dict[str, bool]:
        await self._executor.request(
            "POST", f"/customers/{customer_id}/phones", body={"type": phone_type, "value": value}
        )
        return dict(_SUCCESS)

    async def update_customer_phone(
        self, customer_id: int, phone_id: int, data: dict[str, Any]
    ) -> dict[str, bool]:
        await self._executor.request("PUT", f"/customers/{customer_id}/phones/{phone_id}", body=data)
        return dict(_SUCCESS)

    async def delete_customer_phone(self, customer_id: int, phone_id: int) -> dict[str, bool]:
        await self._executor.request("DELETE", f"/customers/{customer_id}/phones/{phone_id}")
        return dict(_SUCCESS)

    # ── Tags ───────────────────────────────────────────────────────────────────

    async def list_tags(self, page: int | None = None) -> PagedResult:
        raw = await self._executor.request("GET", "/tags", params={"page": page})
        return PagedResult.from_envelope(raw, "tags")

    async def get_tag(self, tag_id: int) -> dict[str, Any]:
        return await self._executor.request("GET", f"/tags/{tag_id}")

    # ── Workflows ──────────────────────────────────────────────────────────────

    async def list_workflows(
        self,
        *,
        mailbox: int | None = None,
        workflow_type: str | None = None,
        page: int | None = None,
    ) -> PagedResult:
        raw = await self._executor.request(
            "GET",
            "/workflows",
            params={"mailboxId": mailbox, "type": workflow_type, "page": page},
        )
        return PagedResult.from_envelope(raw, "workflows")

    async def run_workflow(self, workflow_id: int, conversation_ids: list[int]) -> dict[str, bool]:
        await self._executor.request(
            "POST", f"/workflows/{workflow_id}/run", body={"conversationIds": conversation_ids}
        )
        return dict(_SUCCESS)

    async def update_workflow_status(self, workflow_id: int, status: str) -> dict[str, bool]:
        await self._executor.request(
            "PATCH",
            f"/workflows/{workflow_id}",
            body={"op": "replace", "path": "/status", "value": status},
        )
        return dict(_SUCCESS)

    # ── Mailboxes ──────────────────────────────────────────────────────────────

    async def list_mailboxes(self, page: int | None = None) -> PagedResult:
        raw = await self._executor.request("GET", "/mailboxes", params={"page": page})
        return PagedResult.from_envelope(raw, "mailboxes")

    async def get_mailbox(self, mailbox_id: int) -> dict[str, Any]:
        return await self._executor.request("GET", f"/mailboxes/{mailbox_id}")

    async def list_mailbox_fields(self, mailbox_id: int) -> list[dict[str, Any]]:
        raw = await self._executor.request("GET", f"/mailboxes/{mailbox_id}/fields")
        return PagedResult.from_envelope(raw, "fields").items

    # ── Saved replies ──────────────────────────────────────────────────────────

    async def list_saved_replies(self, mailbox_id: int, page: int | None = None) -> PagedResult:
        """List saved replies.  The endpoint answers with either a bare array or an envelope."""
        raw = await self._executor.request(
            "GET", f"/mailboxes/{mailbox_id}/saved-replies", params={"page": page}
        )
        if isinstance(raw, list):
            return PagedResult(items=raw)
        return PagedResult.from_envelope(raw, "savedReplies")

    async def get_saved_reply(self, mailbox_id: int, saved_reply_id: int) -> dict[str, Any]:
        return await self._executor.request(
            "GET", f"/mailboxes/{mailbox_id}/saved-replies/{saved_reply_id}"
        )

    async def create_saved_reply(self, mailbox_id: int, name: str, text: str) -> dict[str, bool]:
        await self._executor.request(
            "POST", f"/mailboxes/{mailbox_id}/saved-replies", body={"name": name, "text": text}
        )
        return dict(_SUCCESS)

    async def update_saved_reply(
        self, mailbox_id: int, saved_reply_id: int, data: dict[str, Any]
    ) -> dict[str, bool]:
        await self._executor.request(
            "PUT", f"/mailboxes/{mailbox_id}/saved-replies/{saved_reply_id}", body=data
        )
        return dict(_SUCCESS)

    async def delete_saved_reply(self, mailbox_id: int, saved_reply_id: int) -> dict[str, bool]:
        await self._executor.request(
            "DELETE", f"/mailboxes/{mailbox_id}/saved-replies/{saved_reply_id}"
        )
        return dict(_SUCCESS)

    # ── Users & teams ──────────────────────────────────────────────────────────

    async def list_users(self, *, mailbox: int | None = None, page: int | None = None) -> PagedResult:
        raw = await self._executor.request("GET", "/users", params={"mailbox": mailbox, "page": page})
        return PagedResult.from_envelope(raw, "users")

    async def get_user(self, user_id: int) -> dict[str, Any]:
        return await self._executor.request("GET", f"/users/{user_id}")

    async def get_current_user(self) -> dict[str, Any]:
        return await self._executor.request("GET", "/users/me")

    async def list_teams(self, page: int | None = None) -> PagedResult:
        raw = await self._executor.request("GET", "/teams", params={"page": page})
        return PagedResult.from_envelope(raw, "teams")

    async def get_team(self, team_id: int) -> dict[str, Any]:
        return await self._executor.request("GET", f"/teams/{team_id}")

    async def list_team_members(self, team_id: int, page: int | None = None) -> PagedResult:
        raw = await self._executor.request(
            "GET", f"/teams/{team_id}/members", params={"page": page}
        )
        return PagedResult.from_envelope(raw, "users")


def _tag_names(conversation: dict[str, Any]) -> list[str]:
    return [str(t["name"]) for t in conversation.get("tags") or [] if t.get("name")]


def _drop_none(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


@asynccontextmanager
async def helpscout_client(
    store: CredentialStore,
    *,
    base_url: str = API_BASE,
    token_url: str = TOKEN_URL,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AsyncIterator[HelpScoutClient]:
    """Async context manager that yields a ready-to-use HelpScoutClient.

    Owns the ``httpx.AsyncClient`` connection pool for the duration of the
    block.  ``transport`` lets tests substitute ``httpx.MockTransport``.

    Example::

        async with helpscout_client(FileCredentialStore()) as client:
            page = await client.list_mailboxes()
    """
    async with httpx.AsyncClient(
        timeout=_HTTP_TIMEOUT,
        headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
        transport=transport,
    ) as http:
        auth = AuthSession(store, http, token_url)
        yield HelpScoutClient(RequestExecutor(http, auth, base_url), store)
