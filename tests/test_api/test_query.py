"""Tests for date-range search query building."""

import pytest

from helpscout_cli.api.errors import HelpScoutCliError
from helpscout_cli.api.query import build_date_query, to_search_timestamp


class TestToSearchTimestamp:
    def test_date_only_is_midnight_utc(self) -> None:
        assert to_search_timestamp("2026-01-05") == "2026-01-05T00:00:00Z"

    def test_z_suffix(self) -> None:
        assert to_search_timestamp("2026-01-05T09:30:00Z") == "2026-01-05T09:30:00Z"

    def test_offset_converted_to_utc(self) -> None:
        assert to_search_timestamp("2026-01-05T10:00:00+02:00") == "2026-01-05T08:00:00Z"

    def test_invalid_date_is_cli_error(self) -> None:
        with pytest.raises(HelpScoutCliError) as excinfo:
            to_search_timestamp("last tuesday")
        assert excinfo.value.status_code == 400


class TestBuildDateQuery:
    def test_no_filters_returns_query(self) -> None:
        assert build_date_query(query="email:acme.com") == "email:acme.com"

    def test_nothing_returns_none(self) -> None:
        assert build_date_query() is None
        assert build_date_query(query="") is None

    def test_created_since_only(self) -> None:
        assert build_date_query(created_since="2026-01-05") == "(createdAt:[2026-01-05T00:00:00Z TO *])"

    def test_closed_range(self) -> None:
        result = build_date_query(modified_since="2026-01-01", modified_before="2026-02-01")
        assert result == "(modifiedAt:[2026-01-01T00:00:00Z TO 2026-02-01T00:00:00Z])"

    def test_query_and_ranges_combined(self) -> None:
        result = build_date_query(
            created_since="2026-01-05",
            modified_before="2026-03-01",
            query="subject:billing",
        )
        assert result == (
            "(subject:billing) AND (createdAt:[2026-01-05T00:00:00Z TO *])"
            " AND (modifiedAt:[* TO 2026-03-01T00:00:00Z])"
        )
