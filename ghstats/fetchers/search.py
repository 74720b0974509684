"""Issue search fetchers used to discover pull requests by author or reviewer."""

import logging
from datetime import date
from typing import TYPE_CHECKING

from pydantic import BaseModel

from ghstats.fetchers.pager import DEFAULT_PAGE_SIZE, PagedFetcher
from ghstats.models import Issue, IssueSearchResult, Page

if TYPE_CHECKING:
    from ghstats.github_client import GitHubClient

LOGGER = logging.getLogger(__name__)

SEARCH_RESULT_LIMIT = 1000
"""Most results the search API returns for a single query."""


class DateRange(BaseModel):
    """Inclusive creation-date bounds for pull request searches."""

    after: date | None = None
    before: date | None = None

    def to_qualifier(self) -> str | None:
        """Return the ``created:`` search qualifier for the range, if bounded."""
        if self.after and self.before:
            return f"created:{self.after.isoformat()}..{self.before.isoformat()}"
        if self.after:
            return f"created:>={self.after.isoformat()}"
        if self.before:
            return f"created:<={self.before.isoformat()}"
        return None


def author_query(owner: str, repo: str, author: str, date_range: DateRange | None = None) -> str:
    """Build the search query for merged pull requests created by ``author``."""
    return _merged_pr_query(owner, repo, f"author:{author}", date_range)


def reviewer_query(owner: str, repo: str, reviewer: str, date_range: DateRange | None = None) -> str:
    """Build the search query for merged pull requests reviewed by ``reviewer``."""
    return _merged_pr_query(owner, repo, f"reviewed-by:{reviewer}", date_range)


def _merged_pr_query(owner: str, repo: str, user_qualifier: str, date_range: DateRange | None) -> str:
    qualifiers = ["is:pr", "is:closed", "is:merged", f"repo:{owner}/{repo}", user_qualifier]
    if date_range is not None:
        created = date_range.to_qualifier()
        if created:
            qualifiers.append(created)
    return " ".join(qualifiers)


async def fetch_issue_search_page(
    client: "GitHubClient",
    query: str,
    page_number: int,
    page_size: int,
) -> Page[Issue]:
    """Return one page of issue search results for ``query``.

    The search API serves at most ``SEARCH_RESULT_LIMIT`` results per query and
    rejects pages starting beyond it, so such pages are returned empty without
    a request.
    """
    offset = (page_number - 1) * page_size
    if offset >= SEARCH_RESULT_LIMIT:
        LOGGER.debug("Search page #%s starts past the %s result limit", page_number, SEARCH_RESULT_LIMIT)
        return Page[Issue](items=[], page_number=page_number, page_size=page_size)
    payload = await client.get_json(
        "/search/issues",
        params={
            "q": query,
            "sort": "created",
            "order": "desc",
            "page": page_number,
            "per_page": page_size,
        },
    )
    result = IssueSearchResult.model_validate(payload)
    if result.total_count > SEARCH_RESULT_LIMIT and offset + len(result.items) >= SEARCH_RESULT_LIMIT:
        LOGGER.warning(
            "Search %r matched %s results; only the first %s are returned",
            query,
            result.total_count,
            SEARCH_RESULT_LIMIT,
        )
    return Page[Issue](items=result.items, page_number=page_number, page_size=page_size)


async def search_pull_requests(
    client: "GitHubClient",
    query: str,
    *,
    page_size: int = DEFAULT_PAGE_SIZE,
    request_delay: float = 0.0,
) -> list[Issue]:
    """Return every pull request matching ``query``, skipping plain issues."""

    async def fetch_page(page_number: int, size: int) -> Page[Issue]:
        return await fetch_issue_search_page(client, query, page_number, size)

    pager = PagedFetcher(
        fetch_page,
        page_size=page_size,
        resource="search results",
        request_delay=request_delay,
    )
    return [issue for issue in await pager.fetch_all() if issue.is_pull_request]
