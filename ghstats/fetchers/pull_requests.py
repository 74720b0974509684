"""Pull request and review comment fetchers."""

from typing import TYPE_CHECKING

from pydantic import TypeAdapter

from ghstats.fetchers.pager import DEFAULT_PAGE_SIZE, PagedFetcher
from ghstats.models import CodeReviewComment, Page, PullRequest

if TYPE_CHECKING:
    from ghstats.github_client import GitHubClient

_REVIEW_COMMENTS_ADAPTER = TypeAdapter(list[CodeReviewComment])


async def fetch_pull_request(
    client: "GitHubClient",
    owner: str,
    repo: str,
    number: int,
) -> PullRequest:
    """Fetch the details of a single pull request."""
    payload = await client.get_json(f"/repos/{owner}/{repo}/pulls/{number}")
    return PullRequest.model_validate(payload)


async def fetch_review_comments_page(
    client: "GitHubClient",
    owner: str,
    repo: str,
    number: int,
    page_number: int,
    page_size: int,
) -> Page[CodeReviewComment]:
    """Return one page of diff review comments for a pull request."""
    payload = await client.get_json(
        f"/repos/{owner}/{repo}/pulls/{number}/comments",
        params={"page": page_number, "per_page": page_size},
    )
    comments = _REVIEW_COMMENTS_ADAPTER.validate_python(payload)
    return Page[CodeReviewComment](items=comments, page_number=page_number, page_size=page_size)


async def fetch_review_comments(
    client: "GitHubClient",
    owner: str,
    repo: str,
    number: int,
    *,
    page_size: int = DEFAULT_PAGE_SIZE,
    request_delay: float = 0.0,
) -> list[CodeReviewComment]:
    """Return every diff review comment of a pull request."""

    async def fetch_page(page_number: int, size: int) -> Page[CodeReviewComment]:
        return await fetch_review_comments_page(client, owner, repo, number, page_number, size)

    pager = PagedFetcher(
        fetch_page,
        page_size=page_size,
        resource=f"review comments of {owner}/{repo}#{number}",
        request_delay=request_delay,
    )
    return await pager.fetch_all()
