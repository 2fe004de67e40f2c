"""GitHub Releases API client."""

from typing import Any

import httpx

from upgradescope.core.models import Release, RepositoryIdentity
from upgradescope.errors import (
    GitHubAuthenticationError,
    GitHubNotFoundError,
    GitHubRateLimitError,
    NetworkError,
)
from upgradescope.utils.http import AsyncHttpClient, RateLimiter, create_github_rate_limiter
from upgradescope.utils.logging import get_logger

logger = get_logger(__name__)

GITHUB_API_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"


class GitHubReleasesClient:
    """Client for listing a repository's published releases."""

    def __init__(
        self,
        token: str | None = None,
        api_url: str = GITHUB_API_URL,
        timeout: float = AsyncHttpClient.DEFAULT_TIMEOUT,
        max_retries: int = AsyncHttpClient.DEFAULT_RETRIES,
        rate_limiter: RateLimiter | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the releases client.

        Args:
            token: Optional GitHub token; raises the rate limit to 5000/hour.
            api_url: GitHub API base URL.
            timeout: Request timeout in seconds.
            max_retries: Retries on transient errors.
            rate_limiter: Optional rate limiter.
            transport: Optional httpx transport.
        """
        self.token = token
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.rate_limiter = rate_limiter or create_github_rate_limiter(bool(token))
        self.transport = transport

        if not token:
            logger.warning(
                "GITHUB_TOKEN environment variable not set. "
                "GitHub API requests will be rate-limited."
            )

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github.v3+json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _http(self) -> AsyncHttpClient:
        return AsyncHttpClient(
            base_url=self.api_url,
            timeout=self.timeout,
            max_retries=self.max_retries,
            rate_limiter=self.rate_limiter,
            headers=self._headers(),
            transport=self.transport,
        )

    def _translate_status_error(
        self,
        error: httpx.HTTPStatusError,
        repository: RepositoryIdentity,
    ) -> Exception:
        response = error.response
        status = response.status_code

        if status == 401:
            return GitHubAuthenticationError()
        if status == 404:
            return GitHubNotFoundError(repository.full_name)
        if status == 429 or (
            status == 403 and response.headers.get("X-RateLimit-Remaining") == "0"
        ):
            retry_after = response.headers.get("Retry-After")
            return GitHubRateLimitError(
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
                authenticated=bool(self.token),
            )
        return NetworkError(
            "GitHub",
            message=f"GitHub API error ({status}) for {repository.full_name} releases",
        )

    async def fetch_releases(
        self,
        repository: RepositoryIdentity,
        per_page: int = 100,
        max_pages: int = 1,
    ) -> list[Release]:
        """Fetch releases for a repository, newest first as GitHub returns them.

        Args:
            repository: Repository to list.
            per_page: Page size (GitHub caps it at 100).
            max_pages: Number of pages to walk before stopping.

        Returns:
            Releases in provider order; entries without a tag are skipped.

        Raises:
            GitHubNotFoundError: If the repository does not exist.
            GitHubRateLimitError: If the API quota is exhausted.
            GitHubAuthenticationError: If the token is rejected.
            NetworkError: On any other transport or HTTP failure.
        """
        path = f"/repos/{repository.owner}/{repository.repo}/releases"
        releases: list[Release] = []

        async with self._http() as client:
            for page in range(1, max_pages + 1):
                logger.debug("Fetching GitHub releases: %s page %d", path, page)
                try:
                    payload: Any = await client.get_json(
                        path, params={"per_page": per_page, "page": page}
                    )
                except httpx.HTTPStatusError as e:
                    raise self._translate_status_error(e, repository) from e
                except (httpx.HTTPError, ValueError) as e:
                    raise NetworkError("GitHub", e) from e

                if not isinstance(payload, list) or not payload:
                    break

                releases.extend(
                    Release.from_github(entry)
                    for entry in payload
                    if isinstance(entry, dict) and entry.get("tag_name")
                )

                if len(payload) < per_page:
                    break

        logger.info("Fetched %d releases for %s", len(releases), repository.full_name)
        return releases
