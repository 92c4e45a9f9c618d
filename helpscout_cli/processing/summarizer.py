"""Conversation summarizer — participant and aggregate statistics without network calls."""

import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Any

from helpscout_cli.processing.text import html_to_text
from helpscout_cli.processing.types import (
    ConversationDigest,
    ConversationSummary,
    ParticipantInfo,
    ThreadInfo,
    ThreadType,
)

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 300


def truncate(text: str, limit: int = MAX_MESSAGE_LENGTH) -> str:
    """Cut ``text`` at ``limit`` characters, trim trailing whitespace and append ``...``."""
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + "..."


def build_name(first: str | None, last: str | None) -> str | None:
    """Join first and last name, skipping blanks.  None when both are empty."""
    name = " ".join(part for part in (first, last) if part)
    return name or None


def _created_at(thread: dict[str, Any]) -> float:
    """Thread timestamp as epoch seconds; unparseable or missing sorts first."""
    value = thread.get("createdAt")
    if not isinstance(value, str) or not value:
        return float("-inf")
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return float("-inf")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def _participant(
    identity: dict[str, Any] | None,
    count: int,
    body_thread: dict[str, Any] | None,
) -> ParticipantInfo:
    identity = identity or {}
    first_message = None
    if body_thread is not None:
        first_message = truncate(html_to_text(str(body_thread["body"])))
    return ParticipantInfo(
        message_count=count,
        name=build_name(identity.get("first"), identity.get("last")),
        email=identity.get("email"),
        first_message=first_message,
    )


def extract_thread_info(threads: list[dict[str, Any]] | None) -> ThreadInfo:
    """Derive the customer and staff participants of one conversation.

    Threads are ordered by ``createdAt``.  Only ``customer`` and ``message``
    threads count; notes, chats, line items and the rest are ignored.

    - Customer identity and ``firstMessage`` come from the first customer
      thread that has a body (identity from its ``customer``, else
      ``createdBy``).
    - Staff identity comes from the *most recent* staff thread's
      ``createdBy`` (who last responded), while ``firstMessage`` is the first
      staff thread with a body (earliest substantive reply).
    """
    if not threads:
        return ThreadInfo()

    ordered = sorted(threads, key=_created_at)
    customer_threads = [t for t in ordered if t.get("type") == ThreadType.CUSTOMER.value]
    user_threads = [t for t in ordered if t.get("type") == ThreadType.MESSAGE.value]

    first_customer_with_body = next((t for t in customer_threads if t.get("body")), None)
    first_user_with_body = next((t for t in user_threads if t.get("body")), None)
    most_recent_user = user_threads[-1] if user_threads else None

    customer_identity = None
    if first_customer_with_body is not None:
        customer_identity = (
            first_customer_with_body.get("customer") or first_customer_with_body.get("createdBy")
        )
    user_identity = most_recent_user.get("createdBy") if most_recent_user else None

    return ThreadInfo(
        customer=_participant(customer_identity, len(customer_threads), first_customer_with_body),
        user=_participant(user_identity, len(user_threads), first_user_with_body),
    )


def _embedded_threads(conversation: dict[str, Any]) -> list[dict[str, Any]]:
    embedded = conversation.get("_embedded") or {}
    return list(embedded.get("threads") or [])


def _tag_names(conversation: dict[str, Any]) -> list[str]:
    return [str(tag.get("name")) for tag in conversation.get("tags") or [] if tag.get("name")]


def count_conversations(conversations: list[dict[str, Any]]) -> ConversationSummary:
    """Aggregate-only summary: total, per-status and per-tag counts."""
    by_status: Counter[str] = Counter()
    by_tag: Counter[str] = Counter()
    for conversation in conversations:
        by_status[str(conversation.get("status") or "unknown")] += 1
        for tag in _tag_names(conversation):
            by_tag[tag] += 1
    return ConversationSummary(
        total=len(conversations),
        by_status=dict(by_status),
        by_tag=dict(by_tag),
    )


def summarize_conversations(conversations: list[dict[str, Any]]) -> ConversationSummary:
    """Full summary: the aggregates plus a participant digest for every conversation."""
    counts = count_conversations(conversations)
    digests = [
        ConversationDigest(
            id=conversation.get("id"),
            subject=conversation.get("subject"),
            status=conversation.get("status"),
            tags=_tag_names(conversation),
            thread_info=extract_thread_info(_embedded_threads(conversation)),
        )
        for conversation in conversations
    ]
    logger.debug("Summarized %d conversation(s)", counts.total)
    return ConversationSummary(
        total=counts.total,
        by_status=counts.by_status,
        by_tag=counts.by_tag,
        conversations=digests,
    )
