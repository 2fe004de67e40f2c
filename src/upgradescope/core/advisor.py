"""Upgrade advisor.

Coordinates the upgrade workflow for one package:
1. Validate the version interval
2. Fetch package metadata from the npm registry
3. Locate the GitHub repository
4. Fetch releases and select those inside the interval
5. Render a changelog or scan the notes for breaking changes
"""

from collections.abc import Sequence

from upgradescope.analysis.breaking_changes import build_keyword_pattern, scan_releases
from upgradescope.analysis.releases import select_releases, sort_releases
from upgradescope.analysis.repository import locate
from upgradescope.config import UpgradescopeConfig
from upgradescope.core.models import (
    BreakingChangeReport,
    ChangelogResult,
    PackageInfo,
    Release,
    RepositoryIdentity,
    VersionInterval,
)
from upgradescope.errors import PackageNotFoundError, RepositoryNotResolvedError
from upgradescope.sources.github_releases import GitHubReleasesClient
from upgradescope.sources.npm_registry import NpmRegistryClient, summarize_package
from upgradescope.utils.logging import get_logger

logger = get_logger(__name__)


class UpgradeAdvisor:
    """Answers upgrade questions about npm packages hosted on GitHub."""

    def __init__(
        self,
        config: UpgradescopeConfig | None = None,
        npm_client: NpmRegistryClient | None = None,
        releases_client: GitHubReleasesClient | None = None,
    ) -> None:
        """Initialize the advisor.

        Args:
            config: Loaded configuration; defaults are used when omitted.
            npm_client: Registry client, built from config when omitted.
            releases_client: Releases client, built from config when omitted.
        """
        self._config = config or UpgradescopeConfig()
        self._npm = npm_client or NpmRegistryClient(
            registry_url=self._config.registry.url,
            timeout=self._config.http.timeout,
            max_retries=self._config.http.max_retries,
        )
        self._releases = releases_client or GitHubReleasesClient(
            token=self._config.github.token,
            api_url=self._config.github.api_url,
            timeout=self._config.http.timeout,
            max_retries=self._config.http.max_retries,
        )

    @property
    def config(self) -> UpgradescopeConfig:
        """Configuration in effect."""
        return self._config

    async def resolve_repository(self, package: str) -> RepositoryIdentity:
        """Find the GitHub repository that publishes a package.

        Raises:
            PackageNotFoundError: If registry metadata cannot be fetched.
            RepositoryNotResolvedError: If the metadata has no GitHub repository.
        """
        metadata = await self._npm.fetch_package(package)
        if metadata is None:
            raise PackageNotFoundError(package)

        identity = locate(metadata)
        if identity is None:
            raise RepositoryNotResolvedError(package)

        logger.debug("Resolved %s to %s", package, identity.full_name)
        return identity

    async def _releases_between(
        self,
        package: str,
        from_version: str,
        to_version: str,
    ) -> tuple[RepositoryIdentity, list[Release]]:
        interval = VersionInterval.parse(from_version, to_version)
        repository = await self.resolve_repository(package)

        releases = await self._releases.fetch_releases(
            repository, per_page=self._config.github.releases_per_page
        )
        selected = select_releases(releases, interval)
        logger.info(
            "%d of %d releases of %s fall in %s",
            len(selected),
            len(releases),
            repository.full_name,
            interval,
        )
        return repository, selected

    async def find_upgrade_changelog(
        self,
        package: str,
        from_version: str,
        to_version: str,
    ) -> ChangelogResult:
        """Collect the releases published between two versions of a package.

        Args:
            package: npm package name.
            from_version: Installed version (exclusive).
            to_version: Target version (inclusive).

        Returns:
            The releases in ascending version order; may be empty.

        Raises:
            InvalidVersionError: If either version is not a semantic version.
            PackageNotFoundError: If registry metadata cannot be fetched.
            RepositoryNotResolvedError: If no GitHub repository is found.
        """
        repository, releases = await self._releases_between(package, from_version, to_version)
        return ChangelogResult(
            package=package,
            from_version=from_version,
            to_version=to_version,
            repository=repository,
            releases=releases,
        )

    async def check_breaking_changes(
        self,
        package: str,
        from_version: str,
        to_version: str,
        keywords: Sequence[str] | None = None,
        merge_overlapping: bool | None = None,
    ) -> BreakingChangeReport:
        """Scan the notes of releases between two versions for breaking changes.

        Args:
            package: npm package name.
            from_version: Installed version (exclusive).
            to_version: Target version (inclusive).
            keywords: Keywords to search for; falls back to configuration.
            merge_overlapping: Fold overlapping findings; falls back to
                configuration.

        Returns:
            The scanned releases and their findings.

        Raises:
            InvalidVersionError: If either version is not a semantic version.
            PackageNotFoundError: If registry metadata cannot be fetched.
            RepositoryNotResolvedError: If no GitHub repository is found.
        """
        pattern = build_keyword_pattern(keywords or self._config.scanner.keywords)
        if merge_overlapping is None:
            merge_overlapping = self._config.scanner.merge_overlapping

        repository, releases = await self._releases_between(package, from_version, to_version)
        findings = scan_releases(releases, pattern, merge_overlapping=merge_overlapping)
        logger.info("Found %d potential breaking changes for %s", len(findings), package)

        return BreakingChangeReport(
            package=package,
            from_version=from_version,
            to_version=to_version,
            repository=repository,
            releases=releases,
            findings=findings,
        )

    async def recent_releases(
        self,
        owner: str,
        repo: str,
        limit: int | None = None,
    ) -> list[Release]:
        """Fetch the most recent releases of a repository, sorted by version.

        Args:
            owner: Repository owner.
            repo: Repository name.
            limit: Number of releases; defaults to ``github.recent_limit``.

        Returns:
            Releases in ascending version order, unparsable tags last.
        """
        limit = limit or self._config.github.recent_limit
        repository = RepositoryIdentity(owner=owner, repo=repo)
        releases = await self._releases.fetch_releases(repository, per_page=limit)
        return sort_releases(releases[:limit])

    async def package_info(self, package: str, version: str | None = None) -> PackageInfo:
        """Summarize registry metadata for a package.

        Raises:
            PackageNotFoundError: If registry metadata cannot be fetched.
        """
        metadata = await self._npm.fetch_package(package, version)
        if metadata is None:
            raise PackageNotFoundError(package, version)
        return summarize_package(metadata, package, version)
