"""Async HTTP client with rate limiting and retries."""

import asyncio
import time
from typing import Any

import httpx

from upgradescope.utils.logging import get_logger

logger = get_logger(__name__)

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})
RETRYABLE_ERRORS = (httpx.ConnectError, httpx.ReadTimeout, httpx.RemoteProtocolError)


class RateLimiter:
    """Token bucket rate limiter for API requests.

    The bucket refills continuously. When a response reports the server-side
    quota (GitHub's ``X-RateLimit-*`` headers), ``observe`` clamps the bucket
    to what the server says is left, so a quota shared with other tools is
    respected too.
    """

    def __init__(
        self,
        requests_per_window: int,
        window_seconds: float,
    ) -> None:
        """Initialize the rate limiter.

        Args:
            requests_per_window: Maximum requests allowed per window.
            window_seconds: Time window in seconds.
        """
        self.requests_per_window = requests_per_window
        self.window_seconds = window_seconds
        self.tokens = float(requests_per_window)
        self.last_update = time.monotonic()
        self._lock = asyncio.Lock()

    @property
    def refill_rate(self) -> float:
        """Tokens added per second."""
        return self.requests_per_window / self.window_seconds

    def _refill(self) -> None:
        now = time.monotonic()
        self.tokens = min(
            float(self.requests_per_window),
            self.tokens + (now - self.last_update) * self.refill_rate,
        )
        self.last_update = now

    async def acquire(self) -> None:
        """Take a token, sleeping until one is available."""
        async with self._lock:
            self._refill()
            if self.tokens < 1:
                wait_time = (1 - self.tokens) / self.refill_rate
                logger.debug("Rate limit: waiting %.2f seconds", wait_time)
                await asyncio.sleep(wait_time)
                self._refill()
            self.tokens = max(self.tokens - 1, 0.0)

    def observe(self, response: httpx.Response) -> None:
        """Clamp the bucket to the quota reported by the server, if any."""
        remaining = response.headers.get("X-RateLimit-Remaining")
        if remaining is None or not remaining.isdigit():
            return
        if int(remaining) < self.tokens:
            logger.debug("Server reports %s requests remaining", remaining)
            self.tokens = float(remaining)


class AsyncHttpClient:
    """Async HTTP client with retry and rate limiting support.

    Transient failures (429, 5xx, dropped connections, read timeouts) are
    retried up to ``max_retries`` times. A ``Retry-After`` header wins over
    the backoff schedule. Any other error status is raised immediately as
    ``httpx.HTTPStatusError`` for the caller to translate.
    """

    DEFAULT_TIMEOUT = 30.0
    DEFAULT_RETRIES = 3
    RETRY_DELAYS = [1.0, 2.0, 4.0]

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_RETRIES,
        rate_limiter: RateLimiter | None = None,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the HTTP client.

        Args:
            base_url: Base URL for requests.
            timeout: Request timeout in seconds.
            max_retries: Maximum number of retries.
            rate_limiter: Optional rate limiter instance.
            headers: Default headers for all requests.
            transport: Optional httpx transport, e.g. ``httpx.MockTransport``.
        """
        self.base_url = base_url
        self.timeout = timeout
        self.max_retries = max_retries
        self.rate_limiter = rate_limiter
        self.default_headers = headers or {}
        self.transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "AsyncHttpClient":
        self._client = httpx.AsyncClient(
            base_url=self.base_url or "",
            timeout=self.timeout,
            headers=self.default_headers,
            follow_redirects=True,
            transport=self.transport,
        )
        return self

    async def __aexit__(
        self,
        exc_type: type | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get the underlying httpx client."""
        if self._client is None:
            raise RuntimeError("Client not initialized. Use async with statement.")
        return self._client

    def _backoff(self, attempt: int, response: httpx.Response | None = None) -> float:
        if response is not None:
            retry_after = response.headers.get("Retry-After")
            if retry_after and retry_after.isdigit():
                return float(retry_after)
        return self.RETRY_DELAYS[min(attempt, len(self.RETRY_DELAYS) - 1)]

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        if self.rate_limiter:
            await self.rate_limiter.acquire()
        response = await self.client.request(method, url, **kwargs)
        if self.rate_limiter:
            self.rate_limiter.observe(response)
        return response

    async def _request(
        self,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """Make an HTTP request, retrying transient failures.

        Args:
            method: HTTP method.
            url: Request URL, relative to ``base_url``.
            **kwargs: Additional arguments for httpx.

        Returns:
            A successful response.

        Raises:
            httpx.HTTPStatusError: On a non-retryable status, or a retryable
                one once retries are exhausted.
            httpx.TransportError: If the connection keeps failing.
        """
        attempt = 0
        while True:
            try:
                response = await self._send(method, url, **kwargs)
            except RETRYABLE_ERRORS as e:
                if attempt >= self.max_retries:
                    raise
                delay = self._backoff(attempt)
                logger.warning("Connection error, retrying in %.1f seconds: %s", delay, e)
            else:
                if (
                    response.status_code not in RETRYABLE_STATUS_CODES
                    or attempt >= self.max_retries
                ):
                    response.raise_for_status()
                    return response
                delay = self._backoff(attempt, response)
                logger.warning(
                    "%s %s returned %d, retrying in %.1f seconds",
                    method,
                    response.request.url,
                    response.status_code,
                    delay,
                )

            attempt += 1
            await asyncio.sleep(delay)

    async def get(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Make a GET request."""
        return await self._request("GET", url, params=params, headers=headers)

    async def get_json(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Make a GET request and decode the JSON body.

        Raises:
            ValueError: If the body is not valid JSON.
        """
        response = await self.get(url, params=params, headers=headers)
        return response.json()


def create_github_rate_limiter(authenticated: bool = False) -> RateLimiter:
    """Create a rate limiter sized for the GitHub REST API.

    Args:
        authenticated: Whether requests carry a token.

    Returns:
        Configured rate limiter (5000/hour with a token, 60/hour without).
    """
    if authenticated:
        return RateLimiter(requests_per_window=5000, window_seconds=3600)
    return RateLimiter(requests_per_window=60, window_seconds=3600)


def create_registry_rate_limiter() -> RateLimiter:
    """Create a rate limiter for the npm registry."""
    return RateLimiter(requests_per_window=100, window_seconds=60)
