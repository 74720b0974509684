"""Models representing per-PR metrics and aggregated per-user reports."""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field, computed_field

from ghstats.models import PullRequest, UserId


class UserComments(BaseModel):
    """Comment counts of one user on one pull request, per category."""

    model_config = ConfigDict(frozen=True)

    issue_comments: int = 0
    code_review_comments: int = 0
    review_submission_comments: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total(self) -> int:
        """Return the number of comments across every category."""
        return self.issue_comments + self.code_review_comments + self.review_submission_comments

    def add(self, other: UserComments) -> UserComments:
        """Return a new UserComments representing the sum with another instance."""
        return UserComments(
            issue_comments=self.issue_comments + other.issue_comments,
            code_review_comments=self.code_review_comments + other.code_review_comments,
            review_submission_comments=self.review_submission_comments + other.review_submission_comments,
        )


class PerUserPrMetrics(BaseModel):
    """Metrics of one user on one pull request."""

    model_config = ConfigDict(frozen=True)

    user_id: UserId
    initial_response_time: timedelta | None = None
    approval_time: timedelta | None = None
    comments: UserComments = Field(default_factory=UserComments)


class PrStats(BaseModel):
    """Metrics computed for one merged pull request."""

    model_config = ConfigDict(frozen=True)

    pull_request: PullRequest
    ready_at: datetime
    merged_at: datetime | None = None
    merge_time: timedelta | None = None
    users: dict[UserId, PerUserPrMetrics] = Field(default_factory=dict)

    @property
    def number(self) -> int:
        """Return the pull request number."""
        return self.pull_request.number

    @property
    def author_id(self) -> UserId:
        """Return the login of the pull request author."""
        return self.pull_request.user.login

    def only_users(self, user_ids: set[UserId]) -> PrStats:
        """Return a copy keeping only the metrics of ``user_ids``."""
        kept = {user_id: metrics for user_id, metrics in self.users.items() if user_id in user_ids}
        return self.model_copy(update={"users": kept})


class ReviewEntry(BaseModel):
    """Contribution of a user to a single pull request within a report."""

    model_config = ConfigDict(frozen=True)

    pr_number: int
    pr_title: str
    pr_author: UserId
    html_url: str | None = None
    initial_response_time: timedelta | None = None
    approval_time: timedelta | None = None
    merge_time: timedelta | None = None
    comments: UserComments = Field(default_factory=UserComments)


def _empty_entries() -> list[ReviewEntry]:
    return []


class UserReport(BaseModel):
    """Aggregated statistics of one user over many pull requests."""

    model_config = ConfigDict(frozen=True)

    user_id: UserId
    entries: list[ReviewEntry] = Field(default_factory=_empty_entries)
    total_prs: int = 0
    comments: UserComments = Field(default_factory=UserComments)
    average_initial_response_time: timedelta | None = None
    average_approval_time: timedelta | None = None
    average_merge_time: timedelta | None = None

    @property
    def total_comments(self) -> int:
        """Return the number of comments across every contributing pull request."""
        return self.comments.total

    def reviewed_for(self) -> dict[UserId, list[ReviewEntry]]:
        """Group the report entries by pull request author."""
        grouped: dict[UserId, list[ReviewEntry]] = defaultdict(list)
        for entry in self.entries:
            grouped[entry.pr_author].append(entry)
        return dict(sorted(grouped.items()))


ReportsByUser = dict[UserId, UserReport]
"""Aggregated reports keyed by user id, ordered by total PRs then user id."""
