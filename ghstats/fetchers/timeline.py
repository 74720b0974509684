"""Timeline event fetchers for pull requests."""

from typing import TYPE_CHECKING

from ghstats.fetchers.pager import DEFAULT_PAGE_SIZE, PagedFetcher
from ghstats.models import TIMELINE_EVENTS_ADAPTER, Page, TimelineEvent

if TYPE_CHECKING:
    from ghstats.github_client import GitHubClient


async def fetch_timeline_page(
    client: "GitHubClient",
    owner: str,
    repo: str,
    number: int,
    page_number: int,
    page_size: int,
) -> Page[TimelineEvent]:
    """Return one page of timeline events for a pull request."""
    payload = await client.get_json(
        f"/repos/{owner}/{repo}/issues/{number}/timeline",
        params={"page": page_number, "per_page": page_size},
    )
    events = TIMELINE_EVENTS_ADAPTER.validate_python(payload)
    return Page[TimelineEvent](items=events, page_number=page_number, page_size=page_size)


async def fetch_timeline_events(
    client: "GitHubClient",
    owner: str,
    repo: str,
    number: int,
    *,
    page_size: int = DEFAULT_PAGE_SIZE,
    request_delay: float = 0.0,
) -> list[TimelineEvent]:
    """Return every timeline event of a pull request in API order."""

    async def fetch_page(page_number: int, size: int) -> Page[TimelineEvent]:
        return await fetch_timeline_page(client, owner, repo, number, page_number, size)

    pager = PagedFetcher(
        fetch_page,
        page_size=page_size,
        resource=f"timeline events of {owner}/{repo}#{number}",
        request_delay=request_delay,
    )
    return await pager.fetch_all()
