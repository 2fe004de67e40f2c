"""Keyword scan of release notes for breaking changes and deprecations.

This is a lexical heuristic. A keyword inside an unrelated sentence is still
reported, and a breaking change described without any keyword is missed.
Each matching line yields its own finding; pass ``merge_overlapping=True``
to fold findings whose context windows overlap within one release.
"""

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Union

from upgradescope.analysis.changelog import SECTION_SEPARATOR
from upgradescope.core.models import BreakingChangeReport, Finding, Release

DEFAULT_KEYWORDS: tuple[str, ...] = (
    "breaking change",
    "breaking",
    "deprecated",
    "deprecation",
    "removed",
    "removal",
    "migrate",
    "migration",
)

# A line that opens a section: a markdown heading (1-4 levels) or a bullet item.
SECTION_START_PATTERN = re.compile(r"^(?:#{1,4} |\* |- )")

# Window end is exclusive: the matched line plus the two lines after it.
CONTEXT_END_OFFSET = 3

KeywordPattern = Union[str, re.Pattern[str], Sequence[str], None]


def build_keyword_pattern(keywords: Iterable[str]) -> re.Pattern[str]:
    """Compile a case-insensitive pattern matching any of the keywords.

    Args:
        keywords: Literal keywords or phrases.

    Returns:
        Compiled alternation pattern.

    Raises:
        ValueError: If no non-blank keyword is given.
    """
    terms = [keyword.strip() for keyword in keywords if keyword and keyword.strip()]
    if not terms:
        raise ValueError("At least one keyword is required")
    return re.compile("(" + "|".join(re.escape(term) for term in terms) + ")", re.IGNORECASE)


DEFAULT_BREAKING_PATTERN = build_keyword_pattern(DEFAULT_KEYWORDS)


def resolve_pattern(pattern: KeywordPattern = None) -> re.Pattern[str]:
    """Turn a caller-supplied pattern, regex string or keyword list into a regex."""
    if pattern is None:
        return DEFAULT_BREAKING_PATTERN
    if isinstance(pattern, re.Pattern):
        return pattern
    if isinstance(pattern, str):
        return re.compile(pattern, re.IGNORECASE)
    return build_keyword_pattern(pattern)


def find_matching_lines(lines: Sequence[str], pattern: re.Pattern[str]) -> list[int]:
    """Return the indices of lines containing a keyword match, top to bottom."""
    return [index for index, line in enumerate(lines) if pattern.search(line)]


def context_window(lines: Sequence[str], index: int) -> tuple[int, int]:
    """Compute the ``[start, end)`` line window around a matched line.

    The start walks backward from ``index`` (inclusive) to the nearest
    heading or bullet line. The walk is bounded by the top of the body, so
    its worst case is ``index`` steps and it never goes below zero.

    Args:
        lines: Body lines.
        index: Index of the matched line.

    Returns:
        ``(start, end)`` with ``0 <= start <= index < end <= len(lines)``.
    """
    start = index
    while start > 0 and not SECTION_START_PATTERN.match(lines[start]):
        start -= 1
    end = min(index + CONTEXT_END_OFFSET, len(lines))
    return start, end


@dataclass
class _Window:
    start: int
    end: int
    index: int


def scan_release(
    release: Release,
    pattern: re.Pattern[str] = DEFAULT_BREAKING_PATTERN,
    merge_overlapping: bool = False,
) -> list[Finding]:
    """Scan one release body for keyword matches.

    Args:
        release: Release to scan.
        pattern: Keyword pattern tested against each line.
        merge_overlapping: Fold findings whose windows overlap.

    Returns:
        Findings in line order. Empty for a missing or blank body.
    """
    if not release.body or not release.body.strip():
        return []

    lines = release.body.splitlines()
    windows: list[_Window] = []

    for index in find_matching_lines(lines, pattern):
        start, end = context_window(lines, index)
        if merge_overlapping and windows and start < windows[-1].end:
            windows[-1].end = max(windows[-1].end, end)
            continue
        windows.append(_Window(start=start, end=end, index=index))

    return [
        Finding(
            release_tag=release.tag,
            release_url=release.url,
            snippet="\n".join(lines[window.start:window.end]),
            line_number=window.index + 1,
            matched_line=lines[window.index],
        )
        for window in windows
    ]


def scan_releases(
    releases: Iterable[Release],
    pattern: KeywordPattern = None,
    merge_overlapping: bool = False,
) -> list[Finding]:
    """Scan releases, in the order given, for breaking-change keywords.

    Args:
        releases: Releases ordered oldest first.
        pattern: Compiled pattern, regex string or keyword list. Defaults to
            ``DEFAULT_KEYWORDS``.
        merge_overlapping: Fold findings whose windows overlap within a release.

    Returns:
        Findings ordered by release, then by line.
    """
    compiled = resolve_pattern(pattern)
    findings: list[Finding] = []
    for release in releases:
        findings.extend(scan_release(release, compiled, merge_overlapping))
    return findings


def format_finding(finding: Finding) -> str:
    """Render a finding as a markdown block."""
    return (
        f"**Release {finding.release_tag}:**\n...\n{finding.snippet}\n...\n"
        f"*Full note: {finding.release_url}*"
    )


def render_findings_report(report: BreakingChangeReport) -> str:
    """Render a breaking-change report as markdown."""
    span = f"{report.package} ({report.from_version} -> {report.to_version})"

    if report.is_empty:
        return (
            f"No GitHub releases found for {report.package} between versions "
            f"{report.from_version} and {report.to_version} to scan for breaking changes."
        )

    if not report.has_findings:
        return (
            "No obvious breaking changes or deprecations found based on keyword "
            f"search in release notes for {span}. Manual review is still recommended."
        )

    body = SECTION_SEPARATOR.join(format_finding(f) for f in report.findings)
    return (
        f"**Potential Breaking Changes/Deprecations Found for {span}**:\n\n"
        f"{body}\n\n"
        "*Note: This is based on a keyword search and may include false positives "
        "or miss complex changes. Always review the full changelog.*"
    )
