"""Factories for constructing common domain objects and API payloads in tests."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

import pendulum

from ghstats.models import (
    ClosedEvent,
    CodeReviewComment,
    CommentedEvent,
    GitHubUser,
    MergedEvent,
    PullRequest,
    ReadyForReviewEvent,
    ReviewedEvent,
    ReviewRequestedEvent,
    ReviewState,
)
from ghstats.stats.models import PerUserPrMetrics, PrStats, UserComments

NEW_YORK = "America/New_York"

# Monday 2024-01-08 09:00 in New York.
MONDAY_OPEN = pendulum.datetime(2024, 1, 8, 9, tz=NEW_YORK)


def at(day_offset: int, hour: int, minute: int = 0) -> pendulum.DateTime:
    """Return a New York instant ``day_offset`` days after Monday 2024-01-08."""
    return MONDAY_OPEN.add(days=day_offset).set(hour=hour, minute=minute)


def user(login: str) -> GitHubUser:
    """Create a GitHub user with a deterministic id."""
    return GitHubUser(login=login, id=sum(map(ord, login)), type="User")


def build_pull_request(
    number: int = 42,
    *,
    author: str = "alice",
    created_at: datetime = MONDAY_OPEN,
    merged_at: datetime | None = None,
    title: str | None = None,
) -> PullRequest:
    """Create a pull request authored by ``author``."""
    return PullRequest(
        id=1000 + number,
        number=number,
        title=title or f"Change #{number}",
        state="closed" if merged_at else "open",
        html_url=f"https://github.com/octo/widgets/pull/{number}",
        user=user(author),
        draft=False,
        merged=merged_at is not None,
        created_at=created_at,
        merged_at=merged_at,
        closed_at=merged_at,
    )


def commented(login: str, when: datetime) -> CommentedEvent:
    """Create a conversation comment event."""
    return CommentedEvent(user=user(login), actor=user(login), created_at=when, body="Looks reasonable")


def reviewed(login: str, when: datetime, state: ReviewState = ReviewState.COMMENTED) -> ReviewedEvent:
    """Create a submitted review event."""
    return ReviewedEvent(user=user(login), state=state, submitted_at=when)


def merged(login: str, when: datetime) -> MergedEvent:
    """Create a merge event."""
    return MergedEvent(actor=user(login), created_at=when)


def closed(login: str, when: datetime) -> ClosedEvent:
    """Create a close event."""
    return ClosedEvent(actor=user(login), created_at=when)


def ready_for_review(login: str, when: datetime) -> ReadyForReviewEvent:
    """Create a ready-for-review event."""
    return ReadyForReviewEvent(actor=user(login), created_at=when)


def review_requested(requester: str, reviewer: str, when: datetime) -> ReviewRequestedEvent:
    """Create an event asking ``reviewer`` for a review."""
    return ReviewRequestedEvent(
        actor=user(requester),
        created_at=when,
        requested_reviewer=user(reviewer),
        review_requester=user(requester),
    )


def review_comment(login: str, when: datetime, comment_id: int = 1) -> CodeReviewComment:
    """Create a diff comment left during a review."""
    return CodeReviewComment(id=comment_id, user=user(login), body="nit", created_at=when)


def build_pr_stats(
    number: int,
    users: dict[str, dict[str, Any]],
    *,
    author: str = "alice",
    merge_time: timedelta | None = timedelta(hours=4),
) -> PrStats:
    """Assemble per-PR statistics from plain per-user metric keyword arguments."""
    pull_request = build_pull_request(number, author=author, merged_at=MONDAY_OPEN.add(days=1))
    metrics = {
        login: PerUserPrMetrics(
            user_id=login,
            initial_response_time=values.get("initial_response_time"),
            approval_time=values.get("approval_time"),
            comments=UserComments(
                issue_comments=values.get("issue_comments", 0),
                code_review_comments=values.get("code_review_comments", 0),
                review_submission_comments=values.get("review_submission_comments", 0),
            ),
        )
        for login, values in users.items()
    }
    return PrStats(
        pull_request=pull_request,
        ready_at=pull_request.created_at,
        merged_at=pull_request.merged_at,
        merge_time=merge_time,
        users=metrics,
    )


def issue_payload(number: int, *, author: str = "alice", is_pull_request: bool = True) -> dict[str, Any]:
    """Return an issue search item as served by the GitHub API."""
    payload: dict[str, Any] = {
        "id": 5000 + number,
        "number": number,
        "title": f"Change #{number}",
        "state": "closed",
        "html_url": f"https://github.com/octo/widgets/pull/{number}",
        "user": {"login": author, "id": 10},
        "created_at": "2024-01-08T14:00:00Z",
        "closed_at": "2024-01-09T14:00:00Z",
    }
    if is_pull_request:
        payload["pull_request"] = {
            "url": f"https://api.github.com/repos/octo/widgets/pulls/{number}",
            "merged_at": "2024-01-09T14:00:00Z",
        }
    return payload


def pull_request_payload(
    number: int,
    *,
    author: str = "alice",
    created_at: str = "2024-01-08T14:00:00Z",
    merged_at: str | None = "2024-01-09T16:00:00Z",
) -> dict[str, Any]:
    """Return a pull request as served by the GitHub API."""
    return {
        "id": 1000 + number,
        "number": number,
        "title": f"Change #{number}",
        "state": "closed" if merged_at else "open",
        "html_url": f"https://github.com/octo/widgets/pull/{number}",
        "user": {"login": author, "id": 10},
        "draft": False,
        "merged": merged_at is not None,
        "created_at": created_at,
        "updated_at": merged_at or created_at,
        "closed_at": merged_at,
        "merged_at": merged_at,
    }
