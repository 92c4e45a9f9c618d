"""Tests for the sequential page walker."""

from unittest.mock import AsyncMock, call

from helpscout_cli.api.pagination import collect_all_pages
from helpscout_cli.api.types import PagedResult


def _page(number: int, size: int, total_pages: int) -> PagedResult:
    items = [{"id": number * 1000 + i} for i in range(size)]
    return PagedResult(items=items, page={"number": number, "size": 50, "totalPages": total_pages})


class TestCollectAllPages:
    async def test_three_pages_in_order(self) -> None:
        fetch = AsyncMock(side_effect=[_page(1, 50, 3), _page(2, 50, 3), _page(3, 7, 3)])

        items = await collect_all_pages(fetch)

        assert len(items) == 107
        assert fetch.await_args_list == [call(1), call(2), call(3)]
        assert items[0] == {"id": 1000}
        assert items[-1] == {"id": 3006}

    async def test_single_page(self) -> None:
        fetch = AsyncMock(return_value=_page(1, 3, 1))
        assert len(await collect_all_pages(fetch)) == 3
        assert fetch.await_count == 1

    async def test_missing_total_pages_means_one_page(self) -> None:
        fetch = AsyncMock(return_value=PagedResult(items=[{"id": 1}]))
        assert await collect_all_pages(fetch) == [{"id": 1}]
        assert fetch.await_count == 1

    async def test_empty_page_stops_walk(self) -> None:
        fetch = AsyncMock(side_effect=[_page(1, 50, 5), _page(2, 0, 5)])
        assert len(await collect_all_pages(fetch)) == 50
        assert fetch.await_count == 2

    async def test_stale_page_number_still_advances(self) -> None:
        stale = [
            PagedResult(items=[{"id": n}], page={"number": 1, "totalPages": 3})
            for n in range(3)
        ]
        fetch = AsyncMock(side_effect=stale)

        assert len(await collect_all_pages(fetch)) == 3
        assert fetch.await_args_list == [call(1), call(2), call(3)]

    async def test_custom_start_page(self) -> None:
        fetch = AsyncMock(side_effect=[_page(2, 50, 3), _page(3, 1, 3)])
        assert len(await collect_all_pages(fetch, start_page=2)) == 51
        assert fetch.await_args_list == [call(2), call(3)]


class TestPagedResult:
    def test_from_envelope(self) -> None:
        envelope = {"_embedded": {"tags": [{"id": 1}]}, "page": {"number": 1, "totalPages": 1}}
        result = PagedResult.from_envelope(envelope, "tags")
        assert result.items == [{"id": 1}]
        assert result.to_dict("tags") == {"tags": [{"id": 1}], "page": {"number": 1, "totalPages": 1}}

    def test_from_envelope_tolerates_missing_parts(self) -> None:
        assert PagedResult.from_envelope({}, "tags") == PagedResult()
        assert PagedResult.from_envelope({"_embedded": None}, "tags").items == []
        assert PagedResult.from_envelope([], "tags") == PagedResult()
