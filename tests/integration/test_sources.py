"""Integration tests for the registry and releases clients over a mock transport."""

import json
import logging

import httpx
import pytest

from upgradescope.core.models import RepositoryIdentity
from upgradescope.errors import (
    GitHubAuthenticationError,
    GitHubNotFoundError,
    GitHubRateLimitError,
    NetworkError,
)
from upgradescope.sources.github_releases import GitHubReleasesClient
from upgradescope.sources.npm_registry import NpmRegistryClient, summarize_package

WIDGET = RepositoryIdentity(owner="acme", repo="widget")


def _json_transport(status: int, payload: object, seen: list[httpx.Request]) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(status, json=payload)

    return httpx.MockTransport(handler)


class TestNpmRegistryClient:
    """Tests for NpmRegistryClient."""

    @pytest.mark.asyncio
    async def test_fetch_latest(self, npm_metadata: dict) -> None:
        """Test fetching the latest version document."""
        seen: list[httpx.Request] = []
        client = NpmRegistryClient(
            registry_url="https://registry.test/",
            transport=_json_transport(200, npm_metadata, seen),
        )

        data = await client.fetch_package("widget")

        assert data == npm_metadata
        assert str(seen[0].url) == "https://registry.test/widget/latest"
        assert seen[0].headers["Accept"] == "application/json"

    @pytest.mark.asyncio
    async def test_fetch_version(self, npm_metadata: dict) -> None:
        """Test fetching a specific version of a scoped package."""
        seen: list[httpx.Request] = []
        client = NpmRegistryClient(
            registry_url="https://registry.test",
            transport=_json_transport(200, npm_metadata, seen),
        )

        await client.fetch_package("@acme/widget", "1.2.0")

        assert seen[0].url.path == "/@acme/widget/1.2.0"

    @pytest.mark.asyncio
    async def test_not_found_returns_none(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test that a 404 yields None and an error log."""
        client = NpmRegistryClient(
            registry_url="https://registry.test",
            transport=_json_transport(404, {"error": "Not found"}, []),
        )

        with caplog.at_level(logging.ERROR):
            assert await client.fetch_package("missing-pkg") is None
        assert "missing-pkg" in caplog.text

    @pytest.mark.asyncio
    async def test_server_error_returns_none(self) -> None:
        """Test that a 5xx after retries yields None."""
        client = NpmRegistryClient(
            registry_url="https://registry.test",
            max_retries=0,
            transport=_json_transport(503, {}, []),
        )
        assert await client.fetch_package("widget") is None

    @pytest.mark.asyncio
    async def test_invalid_json_returns_none(self) -> None:
        """Test that a non-JSON body yields None."""
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>"))
        client = NpmRegistryClient(registry_url="https://registry.test", transport=transport)
        assert await client.fetch_package("widget") is None

    def test_summarize_package(self, npm_metadata: dict) -> None:
        """Test reducing a registry document."""
        info = summarize_package(npm_metadata, "widget", "2.0.0")
        assert info.name == "widget"
        assert info.version == "2.0.0"
        assert info.repository_url == "https://github.com/acme/widget"
        assert info.npm_url == "https://www.npmjs.com/package/widget/v/2.0.0"

    def test_summarize_package_without_repository(self) -> None:
        """Test a package that is not on GitHub."""
        info = summarize_package({}, "widget")
        assert info.name == "widget"
        assert info.repository_url is None
        assert info.npm_url == "https://www.npmjs.com/package/widget"


class TestGitHubReleasesClient:
    """Tests for GitHubReleasesClient."""

    @pytest.mark.asyncio
    async def test_fetch_releases(self, github_release_payload: list[dict]) -> None:
        """Test listing releases with auth headers."""
        seen: list[httpx.Request] = []
        client = GitHubReleasesClient(
            token="secret",
            api_url="https://api.github.test",
            transport=_json_transport(200, github_release_payload, seen),
        )

        releases = await client.fetch_releases(WIDGET, per_page=100)

        assert [r.tag for r in releases] == ["v2.0.0", "v1.1.0", "v1.0.0"]
        request = seen[0]
        assert request.url.path == "/repos/acme/widget/releases"
        assert request.url.params["per_page"] == "100"
        assert request.url.params["page"] == "1"
        assert request.headers["Authorization"] == "Bearer secret"
        assert request.headers["Accept"] == "application/vnd.github.v3+json"
        assert request.headers["X-GitHub-Api-Version"] == "2022-11-28"

    @pytest.mark.asyncio
    async def test_anonymous_warns(
        self,
        github_release_payload: list[dict],
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test that a missing token is logged and no auth header is sent."""
        seen: list[httpx.Request] = []
        with caplog.at_level(logging.WARNING):
            client = GitHubReleasesClient(
                transport=_json_transport(200, github_release_payload, seen),
            )
        assert "GITHUB_TOKEN" in caplog.text

        await client.fetch_releases(WIDGET)
        assert "Authorization" not in seen[0].headers

    @pytest.mark.asyncio
    async def test_entries_without_tag_skipped(self) -> None:
        """Test that malformed entries are dropped."""
        payload = [{"name": "draft"}, {"tag_name": "v1.0.0", "html_url": "u"}, "junk"]
        client = GitHubReleasesClient(token="t", transport=_json_transport(200, payload, []))
        releases = await client.fetch_releases(WIDGET)
        assert [r.tag for r in releases] == ["v1.0.0"]

    @pytest.mark.asyncio
    async def test_pagination(self) -> None:
        """Test walking pages until a short page."""
        pages = {
            "1": [{"tag_name": "v1.0.2"}, {"tag_name": "v1.0.1"}],
            "2": [{"tag_name": "v1.0.0"}],
        }
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            page = request.url.params["page"]
            seen.append(page)
            return httpx.Response(200, content=json.dumps(pages.get(page, [])))

        client = GitHubReleasesClient(token="t", transport=httpx.MockTransport(handler))
        releases = await client.fetch_releases(WIDGET, per_page=2, max_pages=5)

        assert [r.tag for r in releases] == ["v1.0.2", "v1.0.1", "v1.0.0"]
        assert seen == ["1", "2"]

    @pytest.mark.asyncio
    async def test_not_found(self) -> None:
        """Test that a 404 raises GitHubNotFoundError."""
        client = GitHubReleasesClient(
            token="t", transport=_json_transport(404, {"message": "Not Found"}, [])
        )
        with pytest.raises(GitHubNotFoundError) as exc_info:
            await client.fetch_releases(WIDGET)
        assert "acme/widget" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_bad_credentials(self) -> None:
        """Test that a 401 raises GitHubAuthenticationError."""
        client = GitHubReleasesClient(
            token="bad", transport=_json_transport(401, {"message": "Bad credentials"}, [])
        )
        with pytest.raises(GitHubAuthenticationError):
            await client.fetch_releases(WIDGET)

    @pytest.mark.asyncio
    async def test_rate_limited(self) -> None:
        """Test that an exhausted quota raises GitHubRateLimitError."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                403,
                headers={"X-RateLimit-Remaining": "0", "Retry-After": "60"},
                json={"message": "API rate limit exceeded"},
            )

        client = GitHubReleasesClient(transport=httpx.MockTransport(handler))
        with pytest.raises(GitHubRateLimitError) as exc_info:
            await client.fetch_releases(WIDGET)
        assert "60 seconds" in exc_info.value.message
        assert "GITHUB_TOKEN" in exc_info.value.hint

    @pytest.mark.asyncio
    async def test_server_error(self) -> None:
        """Test that a 5xx after retries raises NetworkError."""
        client = GitHubReleasesClient(
            token="t", max_retries=0, transport=_json_transport(502, {}, [])
        )
        with pytest.raises(NetworkError) as exc_info:
            await client.fetch_releases(WIDGET)
        assert "502" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_connection_error(self) -> None:
        """Test that a transport failure raises NetworkError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = GitHubReleasesClient(
            token="t", max_retries=0, transport=httpx.MockTransport(handler)
        )
        with pytest.raises(NetworkError) as exc_info:
            await client.fetch_releases(WIDGET)
        assert "connection refused" in exc_info.value.message
