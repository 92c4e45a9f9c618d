"""Build Help Scout search-query strings from date-range filters."""

from datetime import datetime, timezone

from helpscout_cli.api.errors import HelpScoutCliError


def to_search_timestamp(value: str) -> str:
    """Normalise an ISO 8601 date or datetime to Help Scout's ``YYYY-MM-DDTHH:MM:SSZ``.

    Naive values are taken as UTC.  Raises HelpScoutCliError on anything
    ``datetime.fromisoformat`` cannot read.
    """
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise HelpScoutCliError(
            f"Invalid date {value!r}. Use ISO 8601, e.g. 2026-01-05 or 2026-01-05T09:00:00Z",
            400,
        ) from None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _range_clause(field: str, since: str | None, before: str | None) -> str | None:
    if not since and not before:
        return None
    start = to_search_timestamp(since) if since else "*"
    end = to_search_timestamp(before) if before else "*"
    return f"{field}:[{start} TO {end}]"


def build_date_query(
    *,
    created_since: str | None = None,
    created_before: str | None = None,
    modified_since: str | None = None,
    modified_before: str | None = None,
    query: str | None = None,
) -> str | None:
    """Combine date ranges and a free-form query into one search expression.

    Each part is parenthesised and joined with ``AND``::

        >>> build_date_query(created_since="2026-01-05", query="email:acme.com")
        '(email:acme.com) AND (createdAt:[2026-01-05T00:00:00Z TO *])'

    Returns the bare ``query`` (or None) when no date filter is given.
    """
    clauses = [
        c
        for c in (
            _range_clause("createdAt", created_since, created_before),
            _range_clause("modifiedAt", modified_since, modified_before),
        )
        if c
    ]
    if not clauses:
        return query or None

    parts = ([query] if query else []) + clauses
    return " AND ".join(f"({p})" for p in parts)
