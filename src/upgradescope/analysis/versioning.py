"""Semantic version parsing and comparison for release tags.

Release tags come in free form (``v1.2.3``, ``1.2.3``, ``nightly-build-42``).
``normalize`` turns a tag into a ``SemanticVersion`` or ``None``; it never
raises, so one malformed tag cannot abort processing of a whole release list.

Two modes are supported:

- strict (default): only full SemVer 2.0.0 strings are accepted. Interval
  membership and ordering always use strict mode.
- coerce: the first ``major[.minor[.patch]]`` run in the string is taken and
  missing parts default to zero. Used for compatibility map lookups only,
  where ``"50"`` should mean ``50.0.0``.
"""

import re
from dataclasses import dataclass, field
from functools import total_ordering
from typing import Union

# https://semver.org/#is-there-a-suggested-regular-expression-regex-to-check-a-semver-string
SEMVER_PATTERN = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-((?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)"
    r"(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
    r"(?:\+([0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
)

COERCE_PATTERN = re.compile(r"(?<!\d)(\d+)(?:\.(\d+))?(?:\.(\d+))?")

PrereleaseIdentifier = Union[int, str]


@total_ordering
@dataclass(frozen=True, eq=False)
class SemanticVersion:
    """A parsed semantic version.

    Ordering and equality follow SemVer precedence: build metadata is
    carried for display but ignored when comparing.
    """

    major: int
    minor: int
    patch: int
    prerelease: tuple[PrereleaseIdentifier, ...] = field(default_factory=tuple)
    build: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_prerelease(self) -> bool:
        """Whether the version carries prerelease identifiers."""
        return bool(self.prerelease)

    @property
    def core(self) -> tuple[int, int, int]:
        """The ``(major, minor, patch)`` triple."""
        return (self.major, self.minor, self.patch)

    def _precedence_key(self) -> tuple:
        if not self.prerelease:
            # A release ranks above every prerelease of the same core.
            return (self.core, (1,))
        identifiers = tuple(
            (0, part, "") if isinstance(part, int) else (1, 0, part)
            for part in self.prerelease
        )
        return (self.core, (0, identifiers))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self._precedence_key() == other._precedence_key()

    def __lt__(self, other: "SemanticVersion") -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self._precedence_key() < other._precedence_key()

    def __hash__(self) -> int:
        return hash(self._precedence_key())

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += "-" + ".".join(str(part) for part in self.prerelease)
        if self.build:
            text += "+" + ".".join(self.build)
        return text

    def successor(self) -> "SemanticVersion":
        """Return the next version a range lower bound like ``>1.2.3`` admits."""
        if self.prerelease:
            return SemanticVersion(
                self.major, self.minor, self.patch, self.prerelease + (0,)
            )
        return SemanticVersion(self.major, self.minor, self.patch + 1)


def _parse_prerelease(text: str | None) -> tuple[PrereleaseIdentifier, ...]:
    if not text:
        return ()
    return tuple(int(part) if part.isdigit() else part for part in text.split("."))


def clean_tag(raw: str) -> str:
    """Trim whitespace and strip a single leading ``v``/``V`` or ``=``."""
    return re.sub(r"^[=vV]", "", raw.strip())


def normalize(raw: str | None, coerce: bool = False) -> SemanticVersion | None:
    """Normalize a tag or version string into a semantic version.

    Args:
        raw: Tag or version string, e.g. ``v1.2.3``.
        coerce: Accept partial forms such as ``"2"`` or ``"sdk-50.1"``.

    Returns:
        The parsed version, or None if the input cannot be parsed.
    """
    if not raw or not isinstance(raw, str):
        return None

    cleaned = clean_tag(raw)

    match = SEMVER_PATTERN.match(cleaned)
    if match:
        major, minor, patch, prerelease, build = match.groups()
        return SemanticVersion(
            major=int(major),
            minor=int(minor),
            patch=int(patch),
            prerelease=_parse_prerelease(prerelease),
            build=tuple(build.split(".")) if build else (),
        )

    if not coerce:
        return None

    match = COERCE_PATTERN.search(cleaned)
    if not match:
        return None
    major, minor, patch = match.groups()
    return SemanticVersion(int(major), int(minor or 0), int(patch or 0))


def is_valid(raw: str | None) -> bool:
    """Check whether a string is a strictly valid semantic version."""
    return normalize(raw) is not None
