"""Render release notes as a markdown changelog digest."""

from collections.abc import Iterable

from upgradescope.core.models import ChangelogResult, Release

SECTION_SEPARATOR = "\n\n---\n\n"
NO_BODY_MARKER = "*No release body provided.*"
NO_DATE_MARKER = "N/A"


def format_release(release: Release) -> str:
    """Render one release as a markdown section.

    Args:
        release: The release to render.

    Returns:
        ``## [tag](url) (date) - title`` followed by the release body.
    """
    published = (
        release.published_at.date().isoformat()
        if release.published_at
        else NO_DATE_MARKER
    )
    heading = f"## [{release.tag}]({release.url}) ({published})"
    if release.title:
        heading += f" - {release.title}"

    body = release.body if release.body and release.body.strip() else NO_BODY_MARKER
    return f"{heading}\n\n{body}"


def format_changelog(releases: Iterable[Release]) -> str:
    """Render releases in the order given, separated by horizontal rules."""
    return SECTION_SEPARATOR.join(format_release(release) for release in releases)


def render_changelog_digest(result: ChangelogResult) -> str:
    """Render an upgrade changelog with a heading, or an empty-range notice."""
    if result.is_empty:
        return (
            f"No GitHub releases found for {result.package} between versions "
            f"{result.from_version} and {result.to_version}. "
            "Check the repository manually."
        )

    return (
        f"**Changelog for {result.package} "
        f"({result.from_version} -> {result.to_version})**:\n\n"
        f"{format_changelog(result.releases)}"
    )
