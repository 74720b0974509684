"""Generic fetch-until-short-page pager over a page-fetch capability."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Generic, Protocol, TypeVar

from ghstats.errors import PagingError

if TYPE_CHECKING:
    from ghstats.models import Page

LOGGER = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100
"""Maximum page size accepted by the GitHub REST API."""

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


class PageFetcher(Protocol[T_co]):
    """Capability returning page ``page_number`` of ``page_size`` items."""

    async def __call__(self, page_number: int, page_size: int) -> Page[T_co]:
        """Fetch a single page of items."""
        ...


class PagedFetcher(Generic[T]):
    """Collect every item of a paged resource by requesting pages until a short one.

    Page ``N + 1`` is requested only after page ``N`` came back full, so pages are
    fetched strictly one after another. A failure on any page discards the items
    collected so far and surfaces as :class:`~ghstats.errors.PagingError`.
    """

    def __init__(
        self,
        fetch_page: PageFetcher[T],
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        resource: str = "items",
        request_delay: float = 0.0,
    ) -> None:
        """Configure the pager with its page capability and paging policy."""
        if page_size < 1:
            msg = f"page_size must be positive, got {page_size}"
            raise ValueError(msg)
        self._fetch_page = fetch_page
        self._page_size = page_size
        self._resource = resource
        self._request_delay = request_delay

    @property
    def page_size(self) -> int:
        """Return the number of items requested per page."""
        return self._page_size

    async def fetch_all(self) -> list[T]:
        """Return the items of every page, in page order."""
        collected: list[T] = []
        page_number = 1
        while True:
            try:
                page = await self._fetch_page(page_number, self._page_size)
            except Exception as exc:
                raise PagingError(self._resource, page_number, exc) from exc
            collected.extend(page.items)
            LOGGER.debug(
                "Loaded %s %s from page #%s (%s so far)",
                len(page.items),
                self._resource,
                page_number,
                len(collected),
            )
            if page.is_last:
                return collected
            page_number += 1
            if self._request_delay:
                await asyncio.sleep(self._request_delay)
