"""Shared pytest fixtures for the ghstats test suite."""

from __future__ import annotations

import pytest

from ghstats.config import AppSettings

pytest_plugins = ("respx",)


@pytest.fixture
def settings() -> AppSettings:
    """Provide application settings with deterministic defaults for tests."""
    return AppSettings.model_validate(
        {
            "github_api_base": "https://api.github.com",
            "github_token": "token",  # pragma: allowlist secret
            "repo_owner": "octo",
            "repo_name": "widgets",
            "user_ids": "alice,bob",
            "bot_user_ids": "dependabot[bot]",
            "default_time_zone": "America/New_York",
            "user_time_zones": {"bob": "Asia/Kolkata"},
            "per_page": 2,
        },
    )
