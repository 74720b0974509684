"""Persist and summarize computed review statistics."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

import orjson
import pendulum

from ghstats.worktime.duration import format_working_duration

if TYPE_CHECKING:
    from datetime import datetime, timedelta

    from ghstats.models import UserId
    from ghstats.stats.models import ReportsByUser, UserReport

LOGGER = logging.getLogger(__name__)


class JsonReportWriter:
    """Write reports as indented JSON documents, one file per queried user."""

    def __init__(self, *, output_dir: Path, generated_at: datetime | None = None) -> None:
        """Point the writer at the directory receiving report files."""
        self._output_dir = Path(output_dir)
        self._generated_at = generated_at

    def write(self, kind: str, user_id: UserId, reports: ReportsByUser) -> Path:
        """Write ``<output_dir>/<kind>-<user_id>.json`` and return its path."""
        self._output_dir.mkdir(parents=True, exist_ok=True)
        target = self._output_dir / f"{kind}-{user_id}.json"
        payload = {
            "kind": kind,
            "user_id": user_id,
            "generated_at": (self._generated_at or pendulum.now("UTC")).isoformat(),
            "users": [_report_payload(report) for report in reports.values()],
        }
        target.write_bytes(orjson.dumps(payload, option=orjson.OPT_INDENT_2))
        LOGGER.info("Wrote %s %s reports to %s", len(reports), kind, target)
        return target


def summary_lines(reports: ReportsByUser) -> list[str]:
    """Return one human readable line per user report."""
    return [
        (
            f"{report.user_id}: {report.total_prs} PRs, {report.total_comments} comments, "
            f"initial response {_describe(report.average_initial_response_time)}, "
            f"approval {_describe(report.average_approval_time)}, "
            f"merge {_describe(report.average_merge_time)}"
        )
        for report in reports.values()
    ]


def _report_payload(report: UserReport) -> dict[str, Any]:
    payload = report.model_dump(mode="json")
    payload["total_comments"] = report.total_comments
    payload["formatted"] = {
        "average_initial_response_time": _describe(report.average_initial_response_time),
        "average_approval_time": _describe(report.average_approval_time),
        "average_merge_time": _describe(report.average_merge_time),
    }
    return payload


def _describe(duration: timedelta | None) -> str:
    if duration is None:
        return "n/a"
    return format_working_duration(duration)
