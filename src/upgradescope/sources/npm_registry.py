"""npm registry client for package metadata."""

from typing import Any

import httpx

from upgradescope.analysis.repository import repository_web_url
from upgradescope.core.models import PackageInfo
from upgradescope.utils.http import AsyncHttpClient, RateLimiter, create_registry_rate_limiter
from upgradescope.utils.logging import get_logger

logger = get_logger(__name__)

NPM_REGISTRY_URL = "https://registry.npmjs.org"
NPM_WEB_URL = "https://www.npmjs.com/package"


class NpmRegistryClient:
    """Client for the npm registry's package metadata endpoints."""

    def __init__(
        self,
        registry_url: str = NPM_REGISTRY_URL,
        timeout: float = AsyncHttpClient.DEFAULT_TIMEOUT,
        max_retries: int = AsyncHttpClient.DEFAULT_RETRIES,
        rate_limiter: RateLimiter | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the registry client.

        Args:
            registry_url: Registry base URL.
            timeout: Request timeout in seconds.
            max_retries: Retries on transient errors.
            rate_limiter: Optional rate limiter.
            transport: Optional httpx transport.
        """
        self.registry_url = registry_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.rate_limiter = rate_limiter or create_registry_rate_limiter()
        self.transport = transport

    def _http(self) -> AsyncHttpClient:
        return AsyncHttpClient(
            base_url=self.registry_url,
            timeout=self.timeout,
            max_retries=self.max_retries,
            rate_limiter=self.rate_limiter,
            headers={"Accept": "application/json"},
            transport=self.transport,
        )

    async def fetch_package(
        self,
        package_name: str,
        version: str | None = None,
    ) -> dict[str, Any] | None:
        """Fetch the metadata document for a package version.

        Args:
            package_name: npm package name, scoped names included.
            version: Version or dist-tag; defaults to ``latest``.

        Returns:
            The version document, or None if it could not be fetched.
        """
        path = f"/{package_name}/{version or 'latest'}"
        logger.debug("Fetching npm info: %s%s", self.registry_url, path)

        async with self._http() as client:
            try:
                data = await client.get_json(path)
            except (httpx.HTTPError, ValueError) as e:
                logger.error(
                    "Error fetching npm metadata for %s%s: %s",
                    package_name,
                    f"@{version}" if version else "",
                    e,
                )
                return None

        if not isinstance(data, dict):
            logger.error("Unexpected npm metadata payload for %s", package_name)
            return None
        return data


def summarize_package(
    data: dict[str, Any],
    package_name: str,
    version: str | None = None,
) -> PackageInfo:
    """Reduce a registry document to the fields users care about."""
    npm_url = f"{NPM_WEB_URL}/{package_name}"
    if version:
        npm_url += f"/v/{version}"

    return PackageInfo(
        name=data.get("name") or package_name,
        version=data.get("version"),
        description=data.get("description"),
        homepage=data.get("homepage"),
        repository_url=repository_web_url(data),
        npm_url=npm_url,
    )
