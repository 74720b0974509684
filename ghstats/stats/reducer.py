"""Fold one pull request's timeline into per-user review metrics."""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import timedelta
from typing import TYPE_CHECKING, cast

from ghstats.errors import MalformedTimelineError
from ghstats.models import EventKind, ReviewState, UserId
from ghstats.stats.models import PerUserPrMetrics, UserComments
from ghstats.worktime.duration import diff_working_duration

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from ghstats.models import CodeReviewComment, ReviewedEvent, ReviewRequestedEvent, TimelineEvent
    from ghstats.worktime.calendar import TimeZoneLike

LOGGER = logging.getLogger(__name__)

_REVIEW_COMMENT_STATES = frozenset({ReviewState.COMMENTED, ReviewState.CHANGES_REQUESTED})
_TERMINAL_KINDS = frozenset({EventKind.MERGED, EventKind.CLOSED})


@dataclass
class _UserTally:
    initial_response_time: timedelta | None = None
    approval_time: timedelta | None = None
    issue_comments: int = 0
    code_review_comments: int = 0
    review_submission_comments: int = 0

    def freeze(self, user_id: UserId) -> PerUserPrMetrics:
        return PerUserPrMetrics(
            user_id=user_id,
            initial_response_time=self.initial_response_time,
            approval_time=self.approval_time,
            comments=UserComments(
                issue_comments=self.issue_comments,
                code_review_comments=self.code_review_comments,
                review_submission_comments=self.review_submission_comments,
            ),
        )


@dataclass
class _Timeline:
    tallies: dict[UserId, _UserTally] = field(default_factory=dict)

    def tally(self, user_id: UserId) -> _UserTally:
        return self.tallies.setdefault(user_id, _UserTally())


def pr_ready_at(pr_created_at: datetime, events: Iterable[TimelineEvent]) -> datetime:
    """Return when the pull request became reviewable.

    That is the first ``ready_for_review`` event for pull requests opened as
    drafts, and the creation time otherwise.
    """
    for event in events:
        if event.kind is EventKind.READY_FOR_REVIEW and event.timestamp is not None:
            return event.timestamp
    return pr_created_at


def reduce_timeline(
    pr_created_at: datetime,
    pr_merged_at: datetime | None,
    events: Sequence[TimelineEvent],
    tz: TimeZoneLike,
    author_id: UserId,
    *,
    ready_at: datetime | None = None,
    review_comments: Iterable[CodeReviewComment] = (),
    ignored_users: Collection[UserId] = (),
    zone_for: Callable[[UserId], TimeZoneLike] | None = None,
    pr_number: int | None = None,
) -> dict[UserId, PerUserPrMetrics]:
    """Compute the metrics of every non-author participant of one pull request.

    Events are consumed once, in the order given. Durations are measured in
    working time from ``ready_at`` (the creation time unless given) and are
    only recorded for activity between that instant and the first merge or
    close event. Comments are counted regardless of when they were made.

    A reviewer's approval time starts at the first review request naming
    them when that request comes after ``ready_at``. Each participant's
    durations use ``zone_for(user_id)`` when given, and ``tz`` otherwise.

    Raises:
        MalformedTimelineError: If an event is timestamped before ``pr_created_at``.
    """
    ready = ready_at or pr_created_at
    skipped = {author_id, *ignored_users}
    timeline = _Timeline()
    requested_at: dict[UserId, datetime] = {}
    measuring = True

    for event in events:
        timestamp = event.timestamp
        if timestamp is not None and timestamp < pr_created_at:
            raise MalformedTimelineError(event.kind.value, timestamp, pr_created_at, pr_number=pr_number)
        if event.kind in _TERMINAL_KINDS:
            measuring = False
            continue
        if event.kind is EventKind.REVIEW_REQUESTED:
            reviewer = cast("ReviewRequestedEvent", event).requested_reviewer
            if reviewer is not None and timestamp is not None:
                requested_at.setdefault(reviewer.login, timestamp)
            continue
        if event.kind not in (EventKind.COMMENTED, EventKind.REVIEWED):
            continue
        user_id = event.actor_id
        if user_id is None or user_id in skipped or timestamp is None:
            continue
        review_state = cast("ReviewedEvent", event).state if event.kind is EventKind.REVIEWED else None
        if review_state is ReviewState.PENDING:
            continue

        tally = timeline.tally(user_id)
        if review_state is None:
            tally.issue_comments += 1
        elif review_state in _REVIEW_COMMENT_STATES:
            tally.review_submission_comments += 1

        if pr_merged_at is not None and timestamp > pr_merged_at:
            measuring = False
        if not measuring or timestamp < ready:
            continue
        zone = zone_for(user_id) if zone_for is not None else tz
        if tally.initial_response_time is None:
            tally.initial_response_time = diff_working_duration(ready, timestamp, zone)
        if review_state is ReviewState.APPROVED and tally.approval_time is None:
            start = max(ready, requested_at.get(user_id, ready))
            tally.approval_time = diff_working_duration(start, timestamp, zone)

    for comment in review_comments:
        user_id = comment.author_id
        if user_id is None or user_id in skipped:
            continue
        timeline.tally(user_id).code_review_comments += 1

    LOGGER.debug("Reduced timeline of PR #%s into %s participants", pr_number, len(timeline.tallies))
    return {user_id: tally.freeze(user_id) for user_id, tally in sorted(timeline.tallies.items())}
