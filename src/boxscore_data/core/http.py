"""
Async HTTP transport for upstream box score sources.

BaseApiClient wraps a lazily created httpx.AsyncClient with request pacing
and a retry policy:

- 429 waits for Retry-After (capped) and tries again
- 5xx and transport errors back off exponentially
- any other non-2xx status fails at once

Subclasses set BASE_URL and call _get:

    class MLBStatsProvider(BaseApiClient, BoxScoreProvider):
        BASE_URL = "https://statsapi.mlb.com/api/v1"

        async def discover_games(self, day):
            payload = await self._get("/schedule", {"sportId": 1, "date": day.isoformat()})
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)

USER_AGENT = "boxscore-data"
DEFAULT_RETRY_AFTER = 60


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class ExternalAPIError(Exception):
    """Upstream request failed (transport error, bad status or bad body)."""

    def __init__(
        self,
        message: str,
        code: str = "EXTERNAL_API_ERROR",
        status_code: int = 500,
        path: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.path = path


class RateLimitError(ExternalAPIError):
    def __init__(self, message: str, retry_after: int = DEFAULT_RETRY_AFTER, path: Optional[str] = None):
        super().__init__(message, code="RATE_LIMITED", status_code=429, path=path)
        self.retry_after = retry_after


def parse_retry_after(value: Optional[str], default: int = DEFAULT_RETRY_AFTER) -> int:
    """Seconds from a Retry-After header; HTTP-date or garbage falls back to default."""
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return default


# ---------------------------------------------------------------------------
# Pacing and retries
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RetryPolicy:
    attempts: int = 3
    backoff_base: float = 1.0
    max_rate_limit_wait: float = 30.0

    def backoff(self, attempt: int) -> float:
        return self.backoff_base * 2 ** attempt

    def is_last(self, attempt: int) -> bool:
        return attempt >= self.attempts - 1


class RequestPacer:
    """
    Hands out request slots no closer than 60/requests_per_minute seconds.

    Each caller reserves the next free slot before sleeping, so concurrent
    fetches queue up behind each other instead of all firing at once.
    """

    def __init__(self, requests_per_minute: int = 120):
        self.interval = 60.0 / requests_per_minute if requests_per_minute > 0 else 0.0
        self._next_slot = 0.0

    async def wait(self) -> None:
        now = time.monotonic()
        slot = max(now, self._next_slot)
        self._next_slot = slot + self.interval
        if slot > now:
            await asyncio.sleep(slot - now)


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class BaseApiClient:
    """
    Paced, retrying JSON GET client.

    The httpx client is created on first use; call close() (or use the
    instance as an async context manager) to release it.
    """

    BASE_URL: str = ""

    def __init__(
        self,
        *,
        base_url: str | None = None,
        headers: dict[str, str] | None = None,
        requests_per_minute: int = 120,
        timeout: float = 30.0,
        max_retries: int = 3,
        backoff_base: float = 1.0,
    ):
        self._base_url = (base_url or self.BASE_URL).rstrip("/")
        self._headers = {"User-Agent": USER_AGENT, "Accept": "application/json", **(headers or {})}
        self._timeout = timeout
        self._pacer = RequestPacer(requests_per_minute)
        self._retry = RetryPolicy(attempts=max(1, max_retries), backoff_base=backoff_base)
        self._client: httpx.AsyncClient | None = None
        self.request_count = 0

    async def __aenter__(self) -> "BaseApiClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers=self._headers,
                timeout=httpx.Timeout(self._timeout),
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """
        GET path and decode the JSON body.

        Raises:
            RateLimitError: still rate limited on the last attempt
            ExternalAPIError: non-retryable status, undecodable body, or
                retries exhausted
        """
        for attempt in range(self._retry.attempts):
            await self._pacer.wait()
            self.request_count += 1
            try:
                response = await self.client.get(path, params=params)
            except httpx.RequestError as e:
                error = ExternalAPIError(f"Request to {path} failed: {e!r}", path=path)
                wait = self._retry.backoff(attempt)
            else:
                if response.is_success:
                    return self._decode(path, response)
                error, wait = self._failure(path, response, attempt)

            if self._retry.is_last(attempt):
                raise error
            logger.warning(
                f"GET {path} attempt {attempt + 1}/{self._retry.attempts} failed "
                f"({error.message}); retrying in {wait:.1f}s"
            )
            await asyncio.sleep(wait)

        raise ExternalAPIError(f"Request to {path} was never attempted", path=path)

    def _failure(self, path: str, response: httpx.Response, attempt: int) -> tuple[ExternalAPIError, float]:
        """Error and wait for a retryable response; raises for the rest."""
        status = response.status_code
        if status == 429:
            retry_after = parse_retry_after(response.headers.get("retry-after"))
            error = RateLimitError(
                f"Rate limited on {path}, retry in {retry_after}s",
                retry_after=retry_after,
                path=path,
            )
            return error, min(retry_after, self._retry.max_rate_limit_wait)

        error = ExternalAPIError(
            f"HTTP {status} for {path}: {response.text[:200]}",
            status_code=status,
            path=path,
        )
        if status < 500:
            raise error
        return error, self._retry.backoff(attempt)

    @staticmethod
    def _decode(path: str, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise ExternalAPIError(
                f"Invalid JSON from {path}: {e}",
                code="INVALID_RESPONSE",
                status_code=response.status_code,
                path=path,
            ) from e
