"""Error hierarchy and normalization into the canonical ``{name, detail, statusCode}`` shape.

Every failure, whatever raised it, leaves the process through
``normalize_error()`` so the CLI and MCP surfaces never expose a raw
exception type.  ``handle_error()`` is the single terminal exit point for
CLI commands.
"""

import json
import logging
import re
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, NoReturn

import click

logger = logging.getLogger(__name__)

REDACTED = "[REDACTED]"
MAX_DETAIL_LENGTH = 500
DEFAULT_API_DETAIL = "An error occurred"
DEFAULT_UNKNOWN_DETAIL = "An unexpected error occurred"
RATE_LIMIT_NOTE = "Help Scout API limit: 200 requests/minute. Wait a moment and retry."

ERROR_STATUS_CODES: dict[str, int] = {
    "bad_request": 400,
    "unauthorized": 401,
    "forbidden": 403,
    "not_found": 404,
    "conflict": 409,
    "too_many_requests": 429,
    "internal_server_error": 500,
    "service_unavailable": 503,
}

_SENSITIVE_PATTERNS = [
    re.compile(r"Bearer\s+[\w\-._~+/]+=*", re.IGNORECASE),
    re.compile(r"token[=:]\s*[\w\-._~+/]+=*", re.IGNORECASE),
    re.compile(r"client[_-]?secret[=:]\s*[\w\-._~+/]+=*", re.IGNORECASE),
    re.compile(r"authorization:\s*bearer\s+[\w\-._~+/]+=*", re.IGNORECASE),
]


class HelpScoutError(Exception):
    """Base class for failures the normalizer knows how to classify."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class HelpScoutCliError(HelpScoutError):
    """A local precondition failed: missing config, bad argument, cancelled prompt."""


class HelpScoutApiError(HelpScoutError):
    """A non-2xx response from Help Scout, carrying the decoded error body."""

    def __init__(self, body: Mapping[str, Any], status_code: int) -> None:
        self.body: dict[str, Any] = dict(body)
        message = str(
            self.body.get("error_description")
            or self.body.get("message")
            or self.body.get("error")
            or f"HTTP {status_code}"
        )
        super().__init__(message, status_code)


@dataclass(frozen=True)
class CanonicalError:
    """The normalized error every surface emits."""

    name: str
    detail: str
    status_code: int

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "detail": self.detail, "statusCode": self.status_code}


def sanitize_error_message(message: str) -> str:
    """Redact credentials from ``message`` and cap it at 500 characters."""
    sanitized = message
    for pattern in _SENSITIVE_PATTERNS:
        sanitized = pattern.sub(REDACTED, sanitized)
    if len(sanitized) > MAX_DETAIL_LENGTH:
        return sanitized[:MAX_DETAIL_LENGTH] + "..."
    return sanitized


def sanitize_api_error(error: Any) -> CanonicalError:
    """Extract a readable name/detail pair from a Help Scout error body.

    Detail preference: ``error_description``, then ``message``, then the
    ``_embedded.errors`` entries joined with ``"; "``.  The returned status
    code is a placeholder (500); callers resolve the real one.
    """
    if not isinstance(error, Mapping):
        return CanonicalError("api_error", DEFAULT_API_DETAIL, 500)

    detail = DEFAULT_API_DETAIL
    embedded = error.get("_embedded")
    nested = embedded.get("errors") if isinstance(embedded, Mapping) else None

    if error.get("error_description"):
        detail = str(error["error_description"])
    elif error.get("message"):
        detail = str(error["message"])
    elif isinstance(nested, list) and nested:
        parts = [
            str(item.get("message") or item.get("path") or "")
            for item in nested
            if isinstance(item, Mapping)
        ]
        detail = "; ".join(p for p in parts if p)

    name = str(error.get("error") or "api_error")
    return CanonicalError(name, sanitize_error_message(detail), 500)


def _with_rate_limit_note(name: str, detail: str) -> str:
    if name == "too_many_requests":
        return f"{detail}\n\n{RATE_LIMIT_NOTE}"
    return detail


def normalize_error(error: object) -> CanonicalError:
    """Classify any raised value into a ``CanonicalError``.

    Shapes are checked in priority order: local CLI error, API error body
    with an ``error`` field, anything else with a message, then the opaque
    fallback.
    """
    if isinstance(error, HelpScoutCliError):
        name = "cli_error"
        detail = sanitize_error_message(str(error))
        status = error.status_code or 1
    elif isinstance(error, HelpScoutApiError) and error.body.get("error"):
        parsed = sanitize_api_error(error.body)
        name = parsed.name
        detail = parsed.detail
        status = error.status_code or ERROR_STATUS_CODES.get(name, 500)
    elif isinstance(error, BaseException) and str(error):
        name = "unknown_error"
        detail = sanitize_error_message(str(error))
        status = getattr(error, "status_code", None) or 1
    else:
        name = "unknown_error"
        detail = DEFAULT_UNKNOWN_DETAIL
        status = 1

    return CanonicalError(name, _with_rate_limit_note(name, detail), status)


def handle_error(error: object) -> NoReturn:
    """Emit the canonical error as one JSON line on stderr and exit non-zero."""
    canonical = normalize_error(error)
    logger.debug("Command failed: %s (%s)", canonical.name, canonical.status_code)
    click.echo(json.dumps({"error": canonical.to_dict()}), err=True)
    sys.exit(1)
