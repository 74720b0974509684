"""Tests for the GitHub REST client retry and error handling."""

from typing import TYPE_CHECKING

import pytest
from httpx import Response

from ghstats.github_client import GitHubAPIError, GitHubClient

if TYPE_CHECKING:
    from respx import MockRouter

    from ghstats.config import AppSettings

USER_URL = "https://api.github.com/user"


@pytest.mark.asyncio
async def test_get_json_sends_github_headers(settings: "AppSettings", respx_mock: "MockRouter") -> None:
    """Requests should carry the token and the GitHub media type."""
    route = respx_mock.get(USER_URL).mock(return_value=Response(200, json={"login": "octocat"}))

    async with GitHubClient(settings) as client:
        payload = await client.get_json("/user")

    request = route.calls.last.request
    assert payload == {"login": "octocat"}
    assert request.headers["Authorization"] == "Bearer token"
    assert request.headers["Accept"] == "application/vnd.github+json"


@pytest.mark.asyncio
async def test_client_errors_are_not_retried(settings: "AppSettings", respx_mock: "MockRouter") -> None:
    """Non-retryable statuses should raise immediately with the status code."""
    route = respx_mock.get(USER_URL).mock(return_value=Response(404, json={"message": "Not Found"}))

    async with GitHubClient(settings) as client:
        with pytest.raises(GitHubAPIError) as excinfo:
            await client.get_json("/user")

    assert excinfo.value.status_code == 404
    assert route.call_count == 1


@pytest.mark.asyncio
async def test_rate_limited_request_is_retried(settings: "AppSettings", respx_mock: "MockRouter") -> None:
    """A rate limited response should be retried after the advertised delay."""
    route = respx_mock.get(USER_URL).mock(
        side_effect=[
            Response(403, headers={"X-RateLimit-Remaining": "0", "Retry-After": "0"}),
            Response(200, json={"login": "octocat"}),
        ],
    )

    async with GitHubClient(settings) as client:
        payload = await client.get_json("/user")

    assert payload["login"] == "octocat"
    assert route.call_count == 2


@pytest.mark.asyncio
async def test_invalid_json_raises_api_error(settings: "AppSettings", respx_mock: "MockRouter") -> None:
    """Undecodable bodies should raise a descriptive API error."""
    respx_mock.get(USER_URL).mock(return_value=Response(200, text="<html>", headers={"Content-Type": "text/html"}))

    async with GitHubClient(settings) as client:
        with pytest.raises(GitHubAPIError, match="invalid JSON"):
            await client.get_json("/user")
