"""Command-line entry point for the ghstats tool."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Annotated, NoReturn

import typer

from ghstats.config import AppSettings, load_settings
from ghstats.errors import StatsError
from ghstats.fetchers.search import DateRange
from ghstats.github_client import GitHubAPIError, GitHubClient
from ghstats.render.service import JsonReportWriter, summary_lines
from ghstats.stats.models import ReportsByUser
from ghstats.stats.service import PullRequestStatsService

app = typer.Typer(add_completion=False, help="GitHub pull request review statistics.")

UsersOption = Annotated[
    list[str] | None,
    typer.Option("--user", "-u", help="GitHub login to report on; repeatable. Defaults to GHSTATS_USER_IDS."),
]
AfterOption = Annotated[
    str | None,
    typer.Option("--after", help="Only include pull requests created on or after this date (YYYY-MM-DD)."),
]
BeforeOption = Annotated[
    str | None,
    typer.Option("--before", help="Only include pull requests created on or before this date (YYYY-MM-DD)."),
]
OutputOption = Annotated[
    Path | None,
    typer.Option("--output-dir", help="Override the configured report directory."),
]


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s - %(message)s")


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", help="Enable verbose logging output.")] = False,
) -> None:
    """Configure logging before executing a sub-command."""
    _configure_logging(verbose)


@app.command()
def authors(
    user: UsersOption = None,
    after: AfterOption = None,
    before: BeforeOption = None,
    output_dir: OutputOption = None,
) -> None:
    """Report how reviewers responded to the pull requests of each author."""
    _run_reports("author", user, after=after, before=before, output_dir=output_dir)


@app.command()
def reviewers(
    user: UsersOption = None,
    after: AfterOption = None,
    before: BeforeOption = None,
    output_dir: OutputOption = None,
) -> None:
    """Report how quickly each reviewer responded to the pull requests they reviewed."""
    _run_reports("reviewer", user, after=after, before=before, output_dir=output_dir)


@app.command()
def doctor() -> None:
    """Validate configuration and verify GitHub API connectivity."""
    try:
        settings = load_settings()
    except ValueError as exc:
        _handle_settings_error(exc)
    typer.echo(f"Loaded configuration for repository: {settings.repo_owner}/{settings.repo_name}")
    asyncio.run(_doctor(settings))


async def _doctor(settings: AppSettings) -> None:
    try:
        async with GitHubClient(settings) as client:
            payload = await client.get_json("/user")
    except Exception as exc:  # pragma: no cover - direct user feedback
        typer.echo(f"Failed to reach GitHub API: {exc}")
        raise typer.Exit(code=1) from exc
    typer.echo(f"Authenticated as: {payload.get('login', 'unknown')}")


def _run_reports(
    kind: str,
    users: list[str] | None,
    *,
    after: str | None,
    before: str | None,
    output_dir: Path | None,
) -> None:
    try:
        settings = load_settings()
        user_ids = list(users or settings.user_ids)
        if not user_ids:
            msg = "GHSTATS_USER_IDS or --user must be provided"
            raise ValueError(msg)
        date_range = DateRange(after=after or settings.date_after, before=before or settings.date_before)
    except ValueError as exc:
        _handle_settings_error(exc)

    service = PullRequestStatsService(settings)
    writer = JsonReportWriter(output_dir=output_dir or settings.output_dir)
    for user_id in user_ids:
        try:
            reports = asyncio.run(_compute(service, settings, kind, user_id, date_range))
        except (StatsError, GitHubAPIError) as exc:
            _handle_pipeline_error(kind, user_id, exc)
        target = writer.write(kind, user_id, reports)
        typer.echo(f"{kind.capitalize()} {user_id}: {len(reports)} users written to {target}")
        for line in summary_lines(reports):
            typer.echo(f"  {line}")


async def _compute(
    service: PullRequestStatsService,
    settings: AppSettings,
    kind: str,
    user_id: str,
    date_range: DateRange,
) -> ReportsByUser:
    tz = settings.time_zone_for(user_id)
    if kind == "author":
        return await service.compute_author_stats(
            settings.repo_owner,
            settings.repo_name,
            user_id,
            tz,
            date_range,
        )
    return await service.compute_reviewer_stats(
        settings.repo_owner,
        settings.repo_name,
        user_id,
        tz,
        date_range,
    )


def _handle_settings_error(exc: ValueError) -> NoReturn:
    typer.secho(f"Configuration error: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1) from exc


def _handle_pipeline_error(kind: str, user_id: str, exc: Exception) -> NoReturn:
    typer.secho(f"Failed to compute {kind} statistics for {user_id}: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1) from exc


if __name__ == "__main__":
    app()
