"""Error taxonomy for the review statistics pipeline."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime


class StatsError(RuntimeError):
    """Base class for failures surfaced by the statistics pipeline."""


class InvalidIntervalError(StatsError):
    """Raised when a duration is requested for an end instant before its start."""

    def __init__(self, start: datetime, end: datetime) -> None:
        """Keep both instants so callers can report the offending interval."""
        super().__init__(f"The end time {end.isoformat()} is before {start.isoformat()}")
        self.start = start
        self.end = end


class PagingError(StatsError):
    """Raised when a page of a paged resource could not be fetched or decoded."""

    def __init__(self, resource: str, page_number: int, cause: BaseException) -> None:
        """Attach the failing page and underlying cause to the exception."""
        super().__init__(f"Failed to fetch {resource} page {page_number}: {cause}")
        self.resource = resource
        self.page_number = page_number
        self.cause = cause


class MalformedTimelineError(StatsError):
    """Raised when a timeline event predates the pull request it belongs to."""

    def __init__(
        self,
        event_kind: str,
        timestamp: datetime,
        pr_created_at: datetime,
        *,
        pr_number: int | None = None,
    ) -> None:
        """Describe the event that violated the timeline ordering contract."""
        subject = f"PR #{pr_number}" if pr_number is not None else "pull request"
        super().__init__(
            f"Timeline event '{event_kind}' at {timestamp.isoformat()} precedes "
            f"{subject} creation at {pr_created_at.isoformat()}",
        )
        self.event_kind = event_kind
        self.timestamp = timestamp
        self.pr_created_at = pr_created_at
        self.pr_number = pr_number
