"""Pydantic models describing GitHub entities used by the statistics pipeline."""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, ClassVar, Generic, Literal, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, HttpUrl, Tag, TypeAdapter, field_validator

UserId = str
"""GitHub user login used as the key of every per-user statistic."""

T = TypeVar("T")


class GitHubUser(BaseModel):
    """Subset of GitHub user metadata used in metrics."""

    login: str
    id: int | None = None
    type: str | None = None
    html_url: HttpUrl | None = None
    avatar_url: HttpUrl | None = None


class IssuePullRequest(BaseModel):
    """Pull request marker attached to issue search results that are PRs."""

    url: str | None = None
    html_url: HttpUrl | None = None
    merged_at: datetime | None = None


class Issue(BaseModel):
    """Issue or pull request item returned by the issue search endpoint."""

    id: int
    number: int
    title: str
    state: str
    html_url: HttpUrl | None = None
    user: GitHubUser
    created_at: datetime
    closed_at: datetime | None = None
    pull_request: IssuePullRequest | None = None

    @property
    def is_pull_request(self) -> bool:
        """Return True when the search hit is a pull request rather than an issue."""
        return self.pull_request is not None


class IssueSearchResult(BaseModel):
    """One page of the issue search API."""

    total_count: int
    incomplete_results: bool = False
    items: list[Issue]


class PullRequest(BaseModel):
    """Core pull request payload fields required for statistics."""

    id: int
    number: int
    title: str
    state: str
    html_url: HttpUrl | None = None
    user: GitHubUser
    draft: bool | None = None
    merged: bool | None = None
    created_at: datetime
    updated_at: datetime | None = None
    closed_at: datetime | None = None
    merged_at: datetime | None = None

    @property
    def is_merged(self) -> bool:
        """Return True when GitHub reports the pull request as merged."""
        return bool(self.merged) or self.merged_at is not None


class CodeReviewComment(BaseModel):
    """Comment left on a portion of the unified diff during a review."""

    id: int
    user: GitHubUser | None = None
    body: str = ""
    created_at: datetime
    pull_request_review_id: int | None = None
    html_url: HttpUrl | None = None

    @property
    def author_id(self) -> UserId | None:
        """Return the login of the commenter, if GitHub still knows the account."""
        return self.user.login if self.user else None


class EventKind(str, Enum):
    """Discriminant of the timeline event variants used for statistics."""

    COMMENTED = "commented"
    REVIEWED = "reviewed"
    MERGED = "merged"
    CLOSED = "closed"
    READY_FOR_REVIEW = "ready_for_review"
    REVIEW_REQUESTED = "review_requested"
    OTHER = "other"


class ReviewState(str, Enum):
    """States of a submitted pull request review."""

    APPROVED = "approved"
    CHANGES_REQUESTED = "changes_requested"
    COMMENTED = "commented"
    DISMISSED = "dismissed"
    PENDING = "pending"


class _TimelineEventBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    kind: ClassVar[EventKind]

    actor: GitHubUser | None = None

    @property
    def actor_id(self) -> UserId | None:
        """Return the login of the user who performed the event."""
        return self.actor.login if self.actor else None

    @property
    def timestamp(self) -> datetime | None:
        """Return the instant the event happened, when GitHub provides one."""
        return None


class CommentedEvent(_TimelineEventBase):
    """Issue comment left on the pull request conversation."""

    kind: ClassVar[EventKind] = EventKind.COMMENTED

    event: Literal["commented"] = "commented"
    id: int | None = None
    user: GitHubUser | None = None
    body: str | None = None
    html_url: HttpUrl | None = None
    created_at: datetime

    @property
    def actor_id(self) -> UserId | None:
        if self.user is not None:
            return self.user.login
        return super().actor_id

    @property
    def timestamp(self) -> datetime:
        return self.created_at


class ReviewedEvent(_TimelineEventBase):
    """Submitted pull request review."""

    kind: ClassVar[EventKind] = EventKind.REVIEWED

    event: Literal["reviewed"] = "reviewed"
    id: int | None = None
    user: GitHubUser | None = None
    state: ReviewState
    submitted_at: datetime | None = None
    html_url: HttpUrl | None = None

    @field_validator("state", mode="before")
    @classmethod
    def _normalize_state(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.lower()
        return value

    @property
    def actor_id(self) -> UserId | None:
        if self.user is not None:
            return self.user.login
        return super().actor_id

    @property
    def timestamp(self) -> datetime | None:
        return self.submitted_at


class MergedEvent(_TimelineEventBase):
    """Pull request merged into its base branch."""

    kind: ClassVar[EventKind] = EventKind.MERGED

    event: Literal["merged"] = "merged"
    id: int | None = None
    created_at: datetime

    @property
    def timestamp(self) -> datetime:
        return self.created_at


class ClosedEvent(_TimelineEventBase):
    """Pull request closed, merged or not."""

    kind: ClassVar[EventKind] = EventKind.CLOSED

    event: Literal["closed"] = "closed"
    id: int | None = None
    created_at: datetime

    @property
    def timestamp(self) -> datetime:
        return self.created_at


class ReadyForReviewEvent(_TimelineEventBase):
    """Draft pull request marked as ready for review."""

    kind: ClassVar[EventKind] = EventKind.READY_FOR_REVIEW

    event: Literal["ready_for_review"] = "ready_for_review"
    id: int | None = None
    created_at: datetime

    @property
    def timestamp(self) -> datetime:
        return self.created_at


class ReviewRequestedEvent(_TimelineEventBase):
    """Review requested from a user or a team."""

    kind: ClassVar[EventKind] = EventKind.REVIEW_REQUESTED

    event: Literal["review_requested"] = "review_requested"
    id: int | None = None
    created_at: datetime
    requested_reviewer: GitHubUser | None = None
    review_requester: GitHubUser | None = None

    @property
    def timestamp(self) -> datetime:
        return self.created_at


class OtherEvent(_TimelineEventBase):
    """Any timeline event kind that does not contribute to statistics."""

    kind: ClassVar[EventKind] = EventKind.OTHER

    event: str = EventKind.OTHER.value
    created_at: datetime | None = None

    @property
    def timestamp(self) -> datetime | None:
        return self.created_at


_KNOWN_EVENT_TAGS = frozenset(kind.value for kind in EventKind if kind is not EventKind.OTHER)


def _timeline_event_tag(value: Any) -> str:
    raw = value.get("event") if isinstance(value, dict) else getattr(value, "event", None)
    if raw in _KNOWN_EVENT_TAGS:
        return str(raw)
    return EventKind.OTHER.value


TimelineEvent = Annotated[
    Union[
        Annotated[CommentedEvent, Tag(EventKind.COMMENTED.value)],
        Annotated[ReviewedEvent, Tag(EventKind.REVIEWED.value)],
        Annotated[MergedEvent, Tag(EventKind.MERGED.value)],
        Annotated[ClosedEvent, Tag(EventKind.CLOSED.value)],
        Annotated[ReadyForReviewEvent, Tag(EventKind.READY_FOR_REVIEW.value)],
        Annotated[ReviewRequestedEvent, Tag(EventKind.REVIEW_REQUESTED.value)],
        Annotated[OtherEvent, Tag(EventKind.OTHER.value)],
    ],
    Discriminator(_timeline_event_tag),
]
"""Tagged union over the GitHub timeline event payloads, keyed on ``event``."""

TIMELINE_EVENTS_ADAPTER: TypeAdapter[list[TimelineEvent]] = TypeAdapter(list[TimelineEvent])


class Page(BaseModel, Generic[T]):
    """A bounded batch of items returned by a paged endpoint."""

    model_config = ConfigDict(frozen=True)

    items: list[T]
    page_number: int = Field(ge=1)
    page_size: int = Field(ge=1)

    @property
    def is_last(self) -> bool:
        """Return True when the page is short, meaning no further pages exist."""
        return len(self.items) < self.page_size
