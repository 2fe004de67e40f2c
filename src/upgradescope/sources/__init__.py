"""Clients for the npm registry and the GitHub Releases API."""

from upgradescope.sources.github_releases import GitHubReleasesClient
from upgradescope.sources.npm_registry import NpmRegistryClient, summarize_package

__all__ = [
    "GitHubReleasesClient",
    "NpmRegistryClient",
    "summarize_package",
]
