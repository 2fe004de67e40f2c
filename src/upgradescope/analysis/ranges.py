"""npm-style version range evaluation.

Supports the range syntax found in ``package.json`` dependency specs:
``||`` unions, space-separated comparator sets, caret and tilde ranges,
primitive comparators, x-ranges (``1.x``, ``1.2.*``, ``*``), hyphen ranges
and partial versions. Ranges that cannot be parsed (tags such as
``latest``, git URLs, ``workspace:`` specs) never satisfy anything.
"""

import re
from dataclasses import dataclass

from upgradescope.analysis.versioning import SemanticVersion, normalize

PARTIAL_PATTERN = re.compile(
    r"^v?(\d+|[xX*])"
    r"(?:\.(\d+|[xX*]))?"
    r"(?:\.(\d+|[xX*]))?"
    r"(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?$"
)
COMPARATOR_PATTERN = re.compile(r"^(<=|>=|<|>|=|\^|~>|~)?(.*)$")
HYPHEN_PATTERN = re.compile(r"^(\S+)\s+-\s+(\S+)$")
OPERATOR_SPACING = re.compile(r"(<=|>=|<|>|=|\^|~>|~)\s+")

ZERO = SemanticVersion(0, 0, 0)


@dataclass(frozen=True)
class Comparator:
    """A single ``<op><version>`` test."""

    operator: str
    version: SemanticVersion

    def test(self, version: SemanticVersion) -> bool:
        if self.operator == "<":
            return version < self.version
        if self.operator == "<=":
            return version <= self.version
        if self.operator == ">":
            return version > self.version
        if self.operator == ">=":
            return version >= self.version
        return version == self.version


@dataclass(frozen=True)
class _Partial:
    major: int | None
    minor: int | None
    patch: int | None
    prerelease: tuple

    def floor(self) -> SemanticVersion:
        return SemanticVersion(
            self.major or 0,
            self.minor or 0,
            self.patch or 0,
            self.prerelease if self.patch is not None else (),
        )


def _wildcard(part: str | None) -> int | None:
    if part is None or part in ("x", "X", "*"):
        return None
    return int(part)


def _parse_partial(text: str) -> _Partial | None:
    match = PARTIAL_PATTERN.match(text)
    if not match:
        return None
    major, minor, patch, prerelease = match.groups()
    parsed_major = _wildcard(major)
    parsed_minor = None if parsed_major is None else _wildcard(minor)
    parsed_patch = None if parsed_minor is None else _wildcard(patch)
    pre: tuple = ()
    if prerelease and parsed_patch is not None:
        pre = tuple(int(p) if p.isdigit() else p for p in prerelease.split("."))
    return _Partial(parsed_major, parsed_minor, parsed_patch, pre)


def _exclusive_upper(major: int, minor: int = 0, patch: int = 0) -> SemanticVersion:
    """Lowest prerelease of a version; ``<X-0`` excludes X's prereleases too."""
    return SemanticVersion(major, minor, patch, (0,))


def _caret(p: _Partial) -> list[Comparator]:
    if p.major is None:
        return [Comparator(">=", ZERO)]
    if p.minor is None:
        return [Comparator(">=", p.floor()), Comparator("<", _exclusive_upper(p.major + 1))]
    if p.patch is None:
        upper = (
            _exclusive_upper(0, p.minor + 1)
            if p.major == 0
            else _exclusive_upper(p.major + 1)
        )
        return [Comparator(">=", p.floor()), Comparator("<", upper)]
    if p.major != 0:
        upper = _exclusive_upper(p.major + 1)
    elif p.minor != 0:
        upper = _exclusive_upper(0, p.minor + 1)
    else:
        upper = _exclusive_upper(0, 0, p.patch + 1)
    return [Comparator(">=", p.floor()), Comparator("<", upper)]


def _tilde(p: _Partial) -> list[Comparator]:
    if p.major is None:
        return [Comparator(">=", ZERO)]
    if p.minor is None:
        return [Comparator(">=", p.floor()), Comparator("<", _exclusive_upper(p.major + 1))]
    return [
        Comparator(">=", p.floor()),
        Comparator("<", _exclusive_upper(p.major, p.minor + 1)),
    ]


def _xrange(p: _Partial) -> list[Comparator]:
    if p.major is None:
        return [Comparator(">=", ZERO)]
    if p.minor is None:
        return [Comparator(">=", p.floor()), Comparator("<", _exclusive_upper(p.major + 1))]
    if p.patch is None:
        return [
            Comparator(">=", p.floor()),
            Comparator("<", _exclusive_upper(p.major, p.minor + 1)),
        ]
    return [Comparator("=", p.floor())]


def _partial_ceiling(p: _Partial) -> SemanticVersion:
    """First version above everything a partial like ``1.2`` stands for."""
    if p.minor is None:
        return _exclusive_upper(p.major + 1)
    return _exclusive_upper(p.major, p.minor + 1)


def _primitive(operator: str, p: _Partial) -> list[Comparator] | None:
    if p.major is None:
        if operator in ("<", ">"):
            return None
        return [Comparator(">=", ZERO)]

    if p.patch is not None:
        return [Comparator(operator, p.floor())]

    if operator == ">":
        return [Comparator(">=", SemanticVersion(*_partial_ceiling(p).core))]
    if operator == ">=":
        return [Comparator(">=", p.floor())]
    if operator == "<":
        return [Comparator("<", SemanticVersion(*p.floor().core, (0,)))]
    if operator == "<=":
        return [Comparator("<", _partial_ceiling(p))]
    return _xrange(p)


def _parse_comparator(token: str) -> list[Comparator] | None:
    match = COMPARATOR_PATTERN.match(token)
    operator, rest = match.groups()
    partial = _parse_partial(rest)
    if partial is None:
        return None
    if operator == "^":
        return _caret(partial)
    if operator in ("~", "~>"):
        return _tilde(partial)
    if operator:
        return _primitive(operator, partial)
    return _xrange(partial)


def _parse_hyphen(lower_text: str, upper_text: str) -> list[Comparator] | None:
    lower = _parse_partial(lower_text)
    upper = _parse_partial(upper_text)
    if lower is None or upper is None:
        return None
    comparators = [Comparator(">=", lower.floor() if lower.major is not None else ZERO)]
    if upper.major is None:
        return comparators
    if upper.patch is None:
        comparators.append(Comparator("<", _partial_ceiling(upper)))
    else:
        comparators.append(Comparator("<=", upper.floor()))
    return comparators


def parse_range(expression: str) -> list[list[Comparator]] | None:
    """Parse a range into comparator sets (outer list is the ``||`` union).

    Returns:
        Comparator sets, or None if any part of the range is unparsable.
    """
    if expression is None:
        return None

    comparator_sets: list[list[Comparator]] = []
    for part in expression.split("||"):
        part = OPERATOR_SPACING.sub(r"\1", part.strip())
        if not part:
            comparator_sets.append([Comparator(">=", ZERO)])
            continue

        hyphen = HYPHEN_PATTERN.match(part)
        if hyphen:
            comparators = _parse_hyphen(*hyphen.groups())
            if comparators is None:
                return None
            comparator_sets.append(comparators)
            continue

        comparator_set: list[Comparator] = []
        for token in part.split():
            comparators = _parse_comparator(token)
            if comparators is None:
                return None
            comparator_set.extend(comparators)
        comparator_sets.append(comparator_set)

    return comparator_sets


def _set_allows(comparators: list[Comparator], version: SemanticVersion) -> bool:
    if not all(comparator.test(version) for comparator in comparators):
        return False
    if not version.is_prerelease:
        return True
    # Prereleases only match a set that names a prerelease of the same core.
    return any(
        comparator.version.is_prerelease and comparator.version.core == version.core
        for comparator in comparators
    )


def _coerce_version(version: SemanticVersion | str) -> SemanticVersion | None:
    if isinstance(version, SemanticVersion):
        return version
    return normalize(version)


def satisfies(version: SemanticVersion | str, expression: str) -> bool:
    """Check whether a version satisfies an npm range.

    Args:
        version: A version or strictly valid version string.
        expression: npm range, e.g. ``^18.2.0 || ~17.0.2``.

    Returns:
        True if the version is inside the range.
    """
    parsed_version = _coerce_version(version)
    comparator_sets = parse_range(expression)
    if parsed_version is None or comparator_sets is None:
        return False
    return any(_set_allows(cs, parsed_version) for cs in comparator_sets)


def min_version(expression: str) -> SemanticVersion | None:
    """Return the lowest version that satisfies a range.

    Args:
        expression: npm range.

    Returns:
        The minimum satisfying version, or None if the range is unparsable
        or cannot be satisfied.
    """
    comparator_sets = parse_range(expression)
    if comparator_sets is None:
        return None

    for candidate in (ZERO, SemanticVersion(0, 0, 0, (0,))):
        if any(_set_allows(cs, candidate) for cs in comparator_sets):
            return candidate

    lowest: SemanticVersion | None = None
    for comparator_set in comparator_sets:
        set_min: SemanticVersion | None = None
        for comparator in comparator_set:
            if comparator.operator == ">":
                candidate = comparator.version.successor()
            elif comparator.operator in (">=", "="):
                candidate = comparator.version
            else:
                continue
            if set_min is None or set_min < candidate:
                set_min = candidate
        if set_min is None or not _set_allows(comparator_set, set_min):
            continue
        if lowest is None or set_min < lowest:
            lowest = set_min

    return lowest
