"""Statistics pipeline: search pull requests, reduce their timelines, aggregate per user."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from ghstats.fetchers import pull_requests, search, timeline
from ghstats.github_client import GitHubClient
from ghstats.stats.aggregator import aggregate
from ghstats.stats.models import PrStats, ReportsByUser
from ghstats.stats.reducer import pr_ready_at, reduce_timeline
from ghstats.worktime.duration import diff_working_duration

if TYPE_CHECKING:
    from ghstats.config import AppSettings
    from ghstats.fetchers.search import DateRange
    from ghstats.models import CodeReviewComment, TimelineEvent, UserId
    from ghstats.worktime.calendar import TimeZoneLike

LOGGER = logging.getLogger(__name__)


class PullRequestStatsService:
    """Compute author and reviewer statistics for merged pull requests of a repository."""

    def __init__(
        self,
        settings: AppSettings,
        *,
        client_factory: Callable[[AppSettings], GitHubClient] | None = None,
    ) -> None:
        """Initialize the service with runtime settings and an optional client factory."""
        self._settings = settings
        self._client_factory: Callable[[AppSettings], GitHubClient] = client_factory or GitHubClient
        self._ignored_users = frozenset(settings.bot_user_ids)

    async def compute_author_stats(
        self,
        owner: str,
        repo: str,
        author_id: UserId,
        tz: TimeZoneLike,
        date_range: DateRange | None = None,
    ) -> ReportsByUser:
        """Return reviewer reports over the merged pull requests authored by ``author_id``."""
        query = search.author_query(owner, repo, author_id, date_range)
        async with self._client_factory(self._settings) as client:
            stats = await self._collect(client, owner, repo, query, tz)
        LOGGER.info("Computed statistics of %s pull requests authored by %s", len(stats), author_id)
        return aggregate(stats)

    async def compute_reviewer_stats(
        self,
        owner: str,
        repo: str,
        reviewer_id: UserId,
        tz: TimeZoneLike,
        date_range: DateRange | None = None,
    ) -> ReportsByUser:
        """Return the report of ``reviewer_id`` over the merged pull requests they reviewed."""
        query = search.reviewer_query(owner, repo, reviewer_id, date_range)
        async with self._client_factory(self._settings) as client:
            stats = await self._collect(client, owner, repo, query, tz)
        LOGGER.info("Computed statistics of %s pull requests reviewed by %s", len(stats), reviewer_id)
        return aggregate(item.only_users({reviewer_id}) for item in stats)

    async def pr_stats(self, owner: str, repo: str, number: int, tz: TimeZoneLike) -> PrStats | None:
        """Return the statistics of a single pull request, or None when it is not merged."""
        async with self._client_factory(self._settings) as client:
            return await self._pr_stats(client, owner, repo, number, tz)

    async def _collect(
        self,
        client: GitHubClient,
        owner: str,
        repo: str,
        query: str,
        tz: TimeZoneLike,
    ) -> list[PrStats]:
        issues = await search.search_pull_requests(
            client,
            query,
            page_size=self._settings.per_page,
            request_delay=self._settings.api_request_delay,
        )
        LOGGER.debug("Search '%s' matched %s pull requests", query, len(issues))
        semaphore = asyncio.Semaphore(self._settings.max_concurrency)
        tasks = [
            asyncio.create_task(self._bounded_pr_stats(semaphore, client, owner, repo, issue.number, tz))
            for issue in issues
        ]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return [result for result in results if result is not None]

    async def _bounded_pr_stats(
        self,
        semaphore: asyncio.Semaphore,
        client: GitHubClient,
        owner: str,
        repo: str,
        number: int,
        tz: TimeZoneLike,
    ) -> PrStats | None:
        async with semaphore:
            try:
                return await self._pr_stats(client, owner, repo, number, tz)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                LOGGER.error("Failed to compute statistics for %s/%s#%s: %s", owner, repo, number, exc)
                raise

    async def _pr_stats(
        self,
        client: GitHubClient,
        owner: str,
        repo: str,
        number: int,
        tz: TimeZoneLike,
    ) -> PrStats | None:
        pull_request = await pull_requests.fetch_pull_request(client, owner, repo, number)
        if not pull_request.is_merged or pull_request.merged_at is None:
            LOGGER.debug("Skipping unmerged pull request %s/%s#%s", owner, repo, number)
            return None
        events, comments = await self._fetch_activity(client, owner, repo, number)
        ready_at = pr_ready_at(pull_request.created_at, events)
        users = reduce_timeline(
            pull_request.created_at,
            pull_request.merged_at,
            events,
            tz,
            pull_request.user.login,
            ready_at=ready_at,
            review_comments=comments,
            ignored_users=self._ignored_users,
            zone_for=self._settings.time_zone_for,
            pr_number=number,
        )
        return PrStats(
            pull_request=pull_request,
            ready_at=ready_at,
            merged_at=pull_request.merged_at,
            merge_time=diff_working_duration(ready_at, pull_request.merged_at, tz),
            users=users,
        )

    async def _fetch_activity(
        self,
        client: GitHubClient,
        owner: str,
        repo: str,
        number: int,
    ) -> tuple[list[TimelineEvent], list[CodeReviewComment]]:
        events = await timeline.fetch_timeline_events(
            client,
            owner,
            repo,
            number,
            page_size=self._settings.per_page,
            request_delay=self._settings.api_request_delay,
        )
        comments = await pull_requests.fetch_review_comments(
            client,
            owner,
            repo,
            number,
            page_size=self._settings.per_page,
            request_delay=self._settings.api_request_delay,
        )
        return events, comments
