"""Resolve a GitHub repository from npm package metadata.

The npm ``repository`` field is either a bare string or an object with a
``url`` key. ``extract_repository_url`` collapses both shapes into a single
string; everything downstream only ever sees that string.
"""

from typing import Any
from urllib.parse import urlsplit

from upgradescope.core.models import GITHUB_WEB_URL, RepositoryIdentity
from upgradescope.utils.logging import get_logger

logger = get_logger(__name__)

GITHUB_HOST = "github.com"
GITHUB_SHORTHAND_PREFIX = "github:"


def extract_repository_url(metadata: dict[str, Any] | None) -> str | None:
    """Extract the raw repository URL string from package metadata.

    Args:
        metadata: Package metadata as returned by the npm registry.

    Returns:
        The repository URL string, or None if absent or malformed.
    """
    if not metadata:
        return None

    repository = metadata.get("repository")
    if isinstance(repository, dict):
        repository = repository.get("url")

    if isinstance(repository, str) and repository.strip():
        return repository.strip()
    return None


def normalize_repository_url(raw_url: str) -> str:
    """Apply the ``git+``/``.git``/``github:`` rewrites to a repository URL."""
    url = raw_url.strip()
    if url.startswith("git+"):
        url = url[len("git+"):]
    if url.endswith(".git"):
        url = url[: -len(".git")]
    if url.startswith(GITHUB_SHORTHAND_PREFIX):
        url = f"{GITHUB_WEB_URL}/{url[len(GITHUB_SHORTHAND_PREFIX):]}"
    return url


def parse_github_url(url: str) -> RepositoryIdentity | None:
    """Parse owner and repository name from a GitHub URL.

    Args:
        url: A URL whose host must be exactly ``github.com``.

    Returns:
        The repository identity, or None if the URL does not point at one.
    """
    try:
        parsed = urlsplit(url)
        hostname = parsed.hostname
    except ValueError as e:
        logger.debug("Error parsing repository URL %s: %s", url, e)
        return None

    if hostname != GITHUB_HOST:
        return None

    segments = [segment for segment in parsed.path.split("/") if segment]
    if len(segments) < 2:
        return None

    return RepositoryIdentity(owner=segments[0], repo=segments[1])


def locate(metadata: dict[str, Any] | None) -> RepositoryIdentity | None:
    """Locate the GitHub repository for a package.

    Args:
        metadata: Package metadata with an optional ``repository`` field.

    Returns:
        The repository identity, or None if it cannot be determined.
    """
    raw_url = extract_repository_url(metadata)
    if raw_url is None:
        logger.debug("Package metadata has no usable repository field")
        return None

    identity = parse_github_url(normalize_repository_url(raw_url))
    if identity is None:
        logger.debug("Repository URL is not a GitHub repository: %s", raw_url)
    return identity


def repository_web_url(metadata: dict[str, Any] | None) -> str | None:
    """Return the canonical GitHub web URL for a package's repository."""
    identity = locate(metadata)
    return identity.html_url if identity else None
