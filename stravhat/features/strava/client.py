"""
Strava API client.

Fetches pages of the athlete's activities. Rate limiting is handled by
reacting to HTTP 429: wait Retry-After plus an exponential backoff, then
retry the same page, up to SyncConfig.MAX_RATE_LIMIT_RETRIES times.

Strava API Limits:
- 200 requests per 15 minutes
- 2,000 requests per day
"""

import asyncio
import logging
import math
from typing import Awaitable, Callable, Optional

import httpx

from stravhat.config import Settings, settings as default_settings
from .exceptions import RateLimitExceededError, StravaAPIError, StravaAuthError
from .sync.config import SyncConfig

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


def parse_retry_after(value: Optional[str]) -> float:
    """Retry-After in seconds; 0 when absent or not a finite number."""
    if value is None:
        return 0.0
    try:
        seconds = float(value)
    except ValueError:
        return 0.0
    return seconds if math.isfinite(seconds) else 0.0


def backoff_seconds(attempt: int, retry_after: float = 0.0) -> float:
    """
    Wait before retry number `attempt` (0-based).

    max(1s, retry_after + 2^attempt * 0.5s)
    """
    return max(
        SyncConfig.RATE_LIMIT_MIN_WAIT_SECONDS,
        retry_after + (2 ** attempt) * SyncConfig.RATE_LIMIT_BACKOFF_BASE_SECONDS,
    )


class StravaClient:
    """
    Async client for the Strava activities endpoint.

    Usage:
        client = StravaClient()
        page = await client.fetch_page(access_token, page=1)

    Pass `client` to reuse an httpx.AsyncClient (or a MockTransport one in
    tests) and `sleep` to replace asyncio.sleep.
    """

    def __init__(
        self,
        settings: Settings = default_settings,
        client: Optional[httpx.AsyncClient] = None,
        sleep: SleepFunc = asyncio.sleep,
        per_page: int = SyncConfig.ACTIVITIES_PER_PAGE,
        max_retries: int = SyncConfig.MAX_RATE_LIMIT_RETRIES,
    ):
        self.activities_url = f"{settings.strava_api_url}/athlete/activities"
        self.timeout = settings.strava_http_timeout_seconds
        self.per_page = per_page
        self.max_retries = max_retries
        self._client = client
        self._sleep = sleep

    async def fetch_page(self, access_token: str, page: int) -> list[dict]:
        """
        Fetch one page of activities.

        An empty list means there are no more pages.

        Raises:
            StravaAuthError: 401, token invalid
            RateLimitExceededError: Still 429 after max_retries waits
            StravaAPIError: Any other non-2xx
        """
        if self._client is not None:
            return await self._fetch_with_retry(self._client, access_token, page)

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await self._fetch_with_retry(client, access_token, page)

    async def _fetch_with_retry(
        self,
        client: httpx.AsyncClient,
        access_token: str,
        page: int,
    ) -> list[dict]:
        attempt = 0
        while True:
            response = await client.get(
                self.activities_url,
                headers={"Authorization": f"Bearer {access_token}"},
                params={"per_page": self.per_page, "page": page},
                timeout=self.timeout,
            )

            if response.status_code != 429:
                break

            if attempt >= self.max_retries:
                logger.error(f"Strava rate limit persisted after {attempt} retries (page {page})")
                raise RateLimitExceededError(attempt)

            retry_after = parse_retry_after(response.headers.get("Retry-After"))
            wait = backoff_seconds(attempt, retry_after)
            logger.warning(
                f"Strava rate limited on page {page}, waiting {wait:.1f}s "
                f"(attempt {attempt + 1}/{self.max_retries})"
            )
            await self._sleep(wait)
            attempt += 1

        if "X-RateLimit-Usage" in response.headers:
            logger.debug(
                f"Strava rate limit: {response.headers.get('X-RateLimit-Usage')} "
                f"/ {response.headers.get('X-RateLimit-Limit')}"
            )

        if response.status_code == 401:
            raise StravaAuthError(response.status_code, response.text)
        if not response.is_success:
            raise StravaAPIError(response.status_code, response.text)

        return response.json()
