"""Data types shared across the API client modules."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class PagedResult:
    """One page of a Help Scout list envelope, unwrapped from ``_embedded``.

    ``page`` is the API's page block as returned:
    ``{"number", "size", "totalElements", "totalPages"}``.
    """

    items: list[dict[str, Any]] = field(default_factory=list)
    page: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_envelope(cls, envelope: Any, key: str) -> "PagedResult":
        """Build from ``{"_embedded": {key: [...]}, "page": {...}}``; tolerates missing parts."""
        if not isinstance(envelope, dict):
            return cls()
        embedded = envelope.get("_embedded")
        items = (embedded.get(key) if isinstance(embedded, dict) else None) or []
        page = envelope.get("page") or {}
        return cls(items=list(items), page=dict(page))

    def to_dict(self, key: str) -> dict[str, Any]:
        """Render as the CLI's list output: ``{key: items, "page": page}``."""
        return {key: self.items, "page": self.page}
