"""Async GitHub REST API client with retry and rate limit handling."""

import asyncio
import logging
import time
from types import TracebackType
from typing import Any, Self, TYPE_CHECKING
from collections.abc import Mapping

import httpx
from tenacity import AsyncRetrying, RetryError, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

if TYPE_CHECKING:
    from ghstats.config import AppSettings

LOGGER = logging.getLogger(__name__)

_RETRY_FAILURE_MESSAGE = "GitHub API request failed after retries"
_FORBIDDEN_STATUS = 403
_RATE_LIMIT_STATUS = 429
_SERVER_ERROR_LOWER = 500
_SERVER_ERROR_UPPER = 600
_MAX_RATE_LIMIT_WAIT = 60.0
_API_VERSION = "2022-11-28"


class RateLimitError(RuntimeError):
    """Raised when the GitHub API responds with a primary or secondary rate limit."""

    def __init__(self, retry_after: float | None = None) -> None:
        """Store the retry delay suggested by the server."""
        super().__init__("GitHub API rate limit encountered")
        self.retry_after = retry_after or 1.0


class GitHubAPIError(RuntimeError):
    """Raised when the GitHub API returns a non-retryable error."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Attach HTTP status metadata to the exception instance."""
        super().__init__(message)
        self.status_code = status_code


class GitHubClient:
    """High-level asynchronous client for interacting with the GitHub REST API."""

    def __init__(
        self,
        settings: "AppSettings",
        *,
        timeout: float = 60.0,
        max_attempts: int = 5,
    ) -> None:
        """Configure the HTTP client with authentication headers and retry policy."""
        self._settings = settings
        headers = {
            "User-Agent": "ghstats/0.1",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": _API_VERSION,
        }
        token = settings.github_token.get_secret_value()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=str(settings.github_api_base),
            headers=headers,
            timeout=httpx.Timeout(timeout),
        )
        self._max_attempts = max_attempts

    async def __aenter__(self) -> Self:
        """Enter the async context manager and return the client."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        """Ensure the underlying HTTP client is closed when exiting the context."""
        del exc_type, exc, tb
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying httpx client."""
        await self._client.aclose()

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        """Perform an HTTP request with retry and rate limit handling."""
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            retry=retry_if_exception_type((RateLimitError, httpx.HTTPStatusError, httpx.TransportError)),
            wait=wait_exponential_jitter(initial=1, max=10),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    response = await self._client.request(method, path, params=params, headers=headers)
                    if _is_rate_limited(response):
                        retry_after = _parse_retry_after(response.headers)
                        LOGGER.warning("Rate limit hit on %s, retrying in %ss", path, retry_after)
                        await asyncio.sleep(retry_after)
                        raise RateLimitError(retry_after)
                    try:
                        response.raise_for_status()
                    except httpx.HTTPStatusError as exc:
                        status_code = exc.response.status_code
                        if _SERVER_ERROR_LOWER <= status_code < _SERVER_ERROR_UPPER:
                            raise
                        error_message = (
                            f"GitHub API returned {status_code}: {exc.response.text}"
                        )
                        raise GitHubAPIError(
                            error_message,
                            status_code=status_code,
                        ) from exc
                    return response
        except httpx.HTTPStatusError as exc:
            raise GitHubAPIError(
                f"{_RETRY_FAILURE_MESSAGE}: {exc.response.status_code} on {path}",
                status_code=exc.response.status_code,
            ) from exc
        except (RateLimitError, httpx.TransportError) as exc:
            raise GitHubAPIError(f"{_RETRY_FAILURE_MESSAGE}: {exc}") from exc
        except RetryError as exc:  # pragma: no cover - defensive
            raise GitHubAPIError(_RETRY_FAILURE_MESSAGE) from exc
        raise GitHubAPIError(_RETRY_FAILURE_MESSAGE)

    async def get_json(
        self,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
    ) -> Any:
        """Issue a GET request and decode its JSON body."""
        response = await self.request("GET", path, params=params)
        return self.parse_json(response)

    def parse_json(self, response: httpx.Response) -> Any:
        """Decode a JSON response or raise a GitHubAPIError on failure."""
        try:
            return response.json()
        except ValueError as exc:
            content_type = response.headers.get("Content-Type", "unknown")
            message = (
                "GitHub API returned an invalid JSON payload "
                f"(status {response.status_code}, content-type {content_type})"
            )
            raise GitHubAPIError(message, status_code=response.status_code) from exc


def _is_rate_limited(response: httpx.Response) -> bool:
    if response.status_code == _RATE_LIMIT_STATUS:
        return True
    return (
        response.status_code == _FORBIDDEN_STATUS
        and response.headers.get("X-RateLimit-Remaining") == "0"
    )


def _parse_retry_after(headers: httpx.Headers) -> float:
    retry_after = headers.get("Retry-After")
    if retry_after:
        try:
            return float(retry_after)
        except ValueError:  # pragma: no cover - defensive against non-numeric headers
            return 1.0
    reset_at = headers.get("X-RateLimit-Reset")
    if reset_at:
        try:
            wait = float(reset_at) - time.time()
        except ValueError:  # pragma: no cover - defensive against non-numeric headers
            return 1.0
        return min(max(wait, 1.0), _MAX_RATE_LIMIT_WAIT)
    return 1.0
