"""Sequential walk over a paged listing call."""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from helpscout_cli.api.types import PagedResult

logger = logging.getLogger(__name__)

PageFetcher = Callable[[int], Awaitable[PagedResult]]


async def collect_all_pages(fetch_page: PageFetcher, start_page: int = 1) -> list[dict[str, Any]]:
    """Call ``fetch_page`` for consecutive page numbers and concatenate the items.

    Stops once the reported page number reaches ``totalPages``, when
    ``totalPages`` is 0 or missing (a single implicit page), or when a page
    comes back empty.  Page numbers only ever increase, so no page is
    requested twice.
    """
    items: list[dict[str, Any]] = []
    page_number = start_page

    while True:
        result = await fetch_page(page_number)
        items.extend(result.items)

        total_pages = int(result.page.get("totalPages") or 0)
        current = max(int(result.page.get("number") or page_number), page_number)
        logger.debug("Fetched page %d/%d (%d items)", current, total_pages, len(result.items))

        if not total_pages or current >= total_pages or not result.items:
            break
        page_number = current + 1

    return items
