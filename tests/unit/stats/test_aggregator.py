"""Tests for folding per-PR statistics into per-user reports."""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

from ghstats.stats.aggregator import aggregate, average
from tests.factories import build_pr_stats

if TYPE_CHECKING:
    from ghstats.stats.models import PrStats


def _sample_stats() -> list[PrStats]:
    return [
        build_pr_stats(
            3,
            {
                "bob": {"initial_response_time": timedelta(hours=2), "issue_comments": 1},
                "carol": {"approval_time": timedelta(hours=6), "review_submission_comments": 2},
            },
            merge_time=timedelta(hours=8),
        ),
        build_pr_stats(
            1,
            {"bob": {"initial_response_time": timedelta(hours=4), "approval_time": timedelta(hours=5)}},
            author="dave",
            merge_time=timedelta(hours=4),
        ),
    ]


def test_aggregate_totals_and_averages() -> None:
    """Totals should sum over entries and averages only cover recorded values."""
    reports = aggregate(_sample_stats())

    bob = reports["bob"]
    assert bob.total_prs == 2
    assert [entry.pr_number for entry in bob.entries] == [1, 3]
    assert bob.total_comments == 1
    assert bob.average_initial_response_time == timedelta(hours=3)
    assert bob.average_approval_time == timedelta(hours=5)
    assert bob.average_merge_time == timedelta(hours=6)

    carol = reports["carol"]
    assert carol.total_prs == 1
    assert carol.comments.review_submission_comments == 2
    assert carol.average_initial_response_time is None
    assert carol.average_approval_time == timedelta(hours=6)


def test_aggregate_orders_users_by_total_prs_then_id() -> None:
    """Users with more pull requests should come first, ties broken by id."""
    stats = [*_sample_stats(), build_pr_stats(5, {"alan": {}})]

    assert list(aggregate(stats)) == ["bob", "alan", "carol"]


def test_aggregate_is_order_independent_and_idempotent() -> None:
    """Folding the same statistics in any order or twice should give equal reports."""
    stats = _sample_stats()

    forward = aggregate(stats)

    assert aggregate(reversed(stats)) == forward
    assert aggregate(stats) == forward
    assert aggregate([*stats, *stats]) == forward


def test_aggregate_of_nothing_is_empty() -> None:
    """No pull requests should produce no reports."""
    assert aggregate([]) == {}


def test_average_without_samples_is_absent() -> None:
    """Averages of zero samples are absent rather than zero."""
    assert average([]) is None
    assert average([None, None]) is None
    assert average([timedelta(hours=2), None]) == timedelta(hours=2)


def test_reviewed_for_groups_entries_by_author() -> None:
    """A reviewer's entries should be grouped by the author of each pull request."""
    reports = aggregate(_sample_stats())

    grouped = reports["bob"].reviewed_for()

    assert list(grouped) == ["alice", "dave"]
    assert [entry.pr_number for entry in grouped["dave"]] == [1]
