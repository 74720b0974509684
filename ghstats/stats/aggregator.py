"""Fold per-PR statistics into per-user reports."""

from __future__ import annotations

from collections import defaultdict
from datetime import timedelta
from typing import TYPE_CHECKING

from ghstats.stats.models import ReportsByUser, ReviewEntry, UserComments, UserReport

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ghstats.models import UserId
    from ghstats.stats.models import PerUserPrMetrics, PrStats


def aggregate(pr_stats: Iterable[PrStats]) -> ReportsByUser:
    """Build one report per user appearing in any of the pull request statistics.

    The result does not depend on the order of ``pr_stats``: entries are sorted
    by pull request number and users by total PRs (descending) then user id.
    Averages only consider entries where the duration was recorded and are
    ``None`` when there is no such entry.
    """
    entries_by_user: dict[UserId, dict[int, ReviewEntry]] = defaultdict(dict)
    for stats in pr_stats:
        for user_id, metrics in stats.users.items():
            entries_by_user[user_id][stats.number] = _entry(stats, metrics)

    reports = [_report(user_id, list(entries.values())) for user_id, entries in entries_by_user.items()]
    reports.sort(key=lambda report: (-report.total_prs, report.user_id))
    return {report.user_id: report for report in reports}


def average(durations: Iterable[timedelta | None]) -> timedelta | None:
    """Return the arithmetic mean of the recorded durations, or None without samples."""
    samples = [duration for duration in durations if duration is not None]
    if not samples:
        return None
    return sum(samples, timedelta(0)) / len(samples)


def _entry(stats: PrStats, metrics: PerUserPrMetrics) -> ReviewEntry:
    pull_request = stats.pull_request
    return ReviewEntry(
        pr_number=pull_request.number,
        pr_title=pull_request.title,
        pr_author=stats.author_id,
        html_url=str(pull_request.html_url) if pull_request.html_url else None,
        initial_response_time=metrics.initial_response_time,
        approval_time=metrics.approval_time,
        merge_time=stats.merge_time,
        comments=metrics.comments,
    )


def _report(user_id: UserId, entries: list[ReviewEntry]) -> UserReport:
    entries.sort(key=lambda entry: entry.pr_number)
    comments = UserComments()
    for entry in entries:
        comments = comments.add(entry.comments)
    return UserReport(
        user_id=user_id,
        entries=entries,
        total_prs=len(entries),
        comments=comments,
        average_initial_response_time=average(entry.initial_response_time for entry in entries),
        average_approval_time=average(entry.approval_time for entry in entries),
        average_merge_time=average(entry.merge_time for entry in entries),
    )
