"""Select and order releases inside a version interval."""

from collections.abc import Iterable

from upgradescope.core.models import Release, VersionInterval
from upgradescope.utils.logging import get_logger

logger = get_logger(__name__)


def select_releases(
    releases: Iterable[Release],
    interval: VersionInterval,
) -> list[Release]:
    """Return the releases inside ``(lower, upper]``, oldest first.

    Providers may return pages newest-first or unordered, so the result is
    always re-sorted by semantic-version precedence. Releases whose tags do
    not parse are dropped.

    Args:
        releases: Releases as returned by the provider.
        interval: Version bounds, lower exclusive and upper inclusive.

    Returns:
        Qualifying releases in ascending version order. Empty when nothing
        qualifies, including when ``lower >= upper``.
    """
    selected: list[Release] = []
    skipped = 0

    for release in releases:
        if release.normalized_version is None:
            skipped += 1
            continue
        if interval.contains(release.normalized_version):
            selected.append(release)

    if skipped:
        logger.debug("Skipped %d releases with unparsable tags", skipped)

    selected.sort(key=lambda release: release.normalized_version)
    return selected


def sort_releases(releases: Iterable[Release]) -> list[Release]:
    """Order releases by version; unparsable tags go last in provider order."""
    releases = list(releases)
    versioned = [r for r in releases if r.normalized_version is not None]
    unversioned = [r for r in releases if r.normalized_version is None]
    versioned.sort(key=lambda release: release.normalized_version)
    return versioned + unversioned
