"""Types for conversation summarization."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ThreadType(str, Enum):
    """Thread ``type`` discriminants the API returns."""

    CUSTOMER = "customer"
    MESSAGE = "message"
    NOTE = "note"
    CHAT = "chat"
    PHONE = "phone"
    LINEITEM = "lineitem"
    FORWARD_CHILD = "forwardchild"
    FORWARD_PARENT = "forwardparent"
    BEACON_CHAT = "beaconchat"


#: Thread types shown by ``conversations threads`` when no filter is given.
COMMUNICATION_TYPES: tuple[str, ...] = (
    ThreadType.CUSTOMER.value,
    ThreadType.MESSAGE.value,
    ThreadType.CHAT.value,
    ThreadType.PHONE.value,
)


@dataclass(frozen=True)
class ParticipantInfo:
    """Who spoke on one side of a conversation, and what they said first."""

    message_count: int = 0
    name: str | None = None
    email: str | None = None
    first_message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Render with camelCase keys, omitting unknown fields."""
        data: dict[str, Any] = {}
        if self.name is not None:
            data["name"] = self.name
        if self.email is not None:
            data["email"] = self.email
        data["messageCount"] = self.message_count
        if self.first_message is not None:
            data["firstMessage"] = self.first_message
        return data


@dataclass(frozen=True)
class ThreadInfo:
    """Both participants derived from a conversation's threads."""

    customer: ParticipantInfo = field(default_factory=ParticipantInfo)
    user: ParticipantInfo = field(default_factory=ParticipantInfo)

    def to_dict(self) -> dict[str, Any]:
        return {"customer": self.customer.to_dict(), "user": self.user.to_dict()}


@dataclass(frozen=True)
class ConversationDigest:
    """Per-conversation line of a full summary."""

    id: Any
    subject: str | None
    status: str | None
    tags: list[str]
    thread_info: ThreadInfo

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "subject": self.subject,
            "status": self.status,
            "tags": list(self.tags),
            **self.thread_info.to_dict(),
        }


@dataclass(frozen=True)
class ConversationSummary:
    """Aggregate counts over a set of conversations; derived, never persisted.

    ``conversations`` is empty for the lightweight (aggregates-only) form.
    """

    total: int
    by_status: dict[str, int]
    by_tag: dict[str, int]
    conversations: list[ConversationDigest] = field(default_factory=list)

    def to_dict(self, *, include_conversations: bool = True) -> dict[str, Any]:
        data: dict[str, Any] = {
            "total": self.total,
            "byStatus": dict(self.by_status),
            "byTag": dict(self.by_tag),
        }
        if include_conversations:
            data["conversations"] = [c.to_dict() for c in self.conversations]
        return data
