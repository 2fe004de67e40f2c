"""Expo SDK compatibility lookups and project dependency checks.

The compatibility map is maintained by hand. It lists, per Expo SDK release,
the versions of core packages that SDK was built against. Lookups coerce
partial SDK versions (``"50"``) and fall back to the ``major.0.0`` entry.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from upgradescope.analysis.ranges import min_version, satisfies
from upgradescope.analysis.versioning import normalize
from upgradescope.errors import CompatibilityError, ManifestParseError
from upgradescope.utils.logging import get_logger

logger = get_logger(__name__)

EXPO_SDK_COMPATIBILITY: dict[str, dict[str, str]] = {
    "49.0.0": {"react-native": "0.72.6", "react": "18.2.0"},
    "50.0.0": {"react-native": "0.73.4", "react": "18.2.0"},
    "51.0.0": {"react-native": "0.74.1", "react": "18.2.0"},
}


class IssueKind(str, Enum):
    """Kinds of compatibility problems."""

    MISSING = "missing"
    UNPARSABLE = "unparsable"
    MISMATCH = "mismatch"


@dataclass
class SdkCompatibility:
    """Expected package versions for an Expo SDK release."""

    requested: str
    sdk_key: str
    packages: dict[str, str]


@dataclass
class CompatibilityIssue:
    """A dependency that may not match the SDK's expectations."""

    package: str
    kind: IssueKind
    expected: str
    installed: str | None = None
    resolved: str | None = None

    def describe(self, sdk_key: str) -> str:
        """Human readable description of the issue."""
        if self.kind == IssueKind.MISSING:
            return (
                f"{self.package}: Expected {self.expected} for Expo {sdk_key}, "
                "but package not found in dependencies."
            )
        if self.kind == IssueKind.UNPARSABLE:
            return f'{self.package}: Could not parse installed version range "{self.installed}".'
        return (
            f'{self.package}: Installed version range "{self.installed}" '
            f"(min: {self.resolved}) might not satisfy expected version "
            f"{self.expected} for Expo {sdk_key}."
        )


@dataclass
class CompatibilityReport:
    """Result of checking a project against the compatibility map."""

    sdk_version: str
    sdk_key: str | None
    issues: list[CompatibilityIssue] = field(default_factory=list)
    checked: list[str] = field(default_factory=list)

    @property
    def has_data(self) -> bool:
        """Whether the map had an entry for the SDK."""
        return self.sdk_key is not None

    @property
    def is_compatible(self) -> bool:
        """Whether every expected package checked out."""
        return self.has_data and not self.issues


def lookup_sdk_compatibility(sdk_version: str) -> SdkCompatibility | None:
    """Find compatibility data for an Expo SDK version.

    Args:
        sdk_version: SDK version, possibly partial (``"50"``, ``"50.1"``).

    Returns:
        Compatibility data, or None if the map has no matching entry.
    """
    coerced = normalize(sdk_version, coerce=True)
    key = str(coerced) if coerced else sdk_version

    if key in EXPO_SDK_COMPATIBILITY:
        return SdkCompatibility(sdk_version, key, EXPO_SDK_COMPATIBILITY[key])

    if coerced is not None:
        major_key = f"{coerced.major}.0.0"
        if major_key in EXPO_SDK_COMPATIBILITY:
            logger.debug("Found compatibility info for major version %s", major_key)
            return SdkCompatibility(sdk_version, major_key, EXPO_SDK_COMPATIBILITY[major_key])

    return None


def infer_sdk_version(dependencies: dict[str, str]) -> str | None:
    """Infer the Expo SDK version from the ``expo`` dependency range."""
    expo_range = dependencies.get("expo")
    if not expo_range:
        return None
    minimum = min_version(expo_range)
    return str(minimum) if minimum else None


def _load_json(content: str, filename: str) -> dict[str, Any]:
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ManifestParseError(filename, str(e)) from e
    if not isinstance(data, dict):
        raise ManifestParseError(filename, "expected a JSON object")
    return data


def locked_versions(lockfile_content: str) -> dict[str, str]:
    """Read exact installed versions from a ``package-lock.json``.

    Handles lockfile v2/v3 (``packages``) and v1 (``dependencies``).
    Only top-level ``node_modules`` entries are returned.
    """
    data = _load_json(lockfile_content, "package-lock.json")
    versions: dict[str, str] = {}

    packages = data.get("packages")
    if isinstance(packages, dict):
        for path, info in packages.items():
            if not path.startswith("node_modules/") or not isinstance(info, dict):
                continue
            name = path[len("node_modules/"):]
            if "/node_modules/" in name:
                continue
            version = info.get("version")
            if version:
                versions[name] = version
        return versions

    dependencies = data.get("dependencies")
    if isinstance(dependencies, dict):
        for name, info in dependencies.items():
            if isinstance(info, dict) and info.get("version"):
                versions[name] = info["version"]
    return versions


def check_project_compatibility(
    package_json_content: str,
    lockfile_content: str | None = None,
    sdk_version: str | None = None,
) -> CompatibilityReport:
    """Check a project's dependencies against the Expo compatibility map.

    Args:
        package_json_content: Content of the project's package.json.
        lockfile_content: Optional package-lock.json content; locked versions
            are checked instead of range minimums when present.
        sdk_version: SDK version to check against; inferred from the
            ``expo`` dependency when omitted.

    Returns:
        The compatibility report. ``sdk_key`` is None when the map has no
        data for the SDK.

    Raises:
        ManifestParseError: If package.json or the lockfile is not valid JSON.
        CompatibilityError: If no SDK version is given or inferable.
    """
    manifest = _load_json(package_json_content, "package.json")
    dependencies: dict[str, str] = {
        **(manifest.get("dependencies") or {}),
        **(manifest.get("devDependencies") or {}),
    }
    locked = locked_versions(lockfile_content) if lockfile_content else {}

    version_to_check = sdk_version
    if not version_to_check:
        version_to_check = locked.get("expo") or infer_sdk_version(dependencies)
        if version_to_check:
            logger.info("Inferred Expo SDK version from project: %s", version_to_check)

    if not version_to_check:
        raise CompatibilityError(
            "Could not determine Expo SDK version to check compatibility against.",
            hint="Pass --sdk or ensure 'expo' is in dependencies.",
        )

    compat = lookup_sdk_compatibility(version_to_check)
    if compat is None:
        return CompatibilityReport(sdk_version=version_to_check, sdk_key=None)

    report = CompatibilityReport(sdk_version=version_to_check, sdk_key=compat.sdk_key)
    logger.debug("Comparing against compatibility data for Expo SDK %s", compat.sdk_key)

    for package, expected in compat.packages.items():
        report.checked.append(package)
        installed = dependencies.get(package)
        if not installed:
            report.issues.append(CompatibilityIssue(package, IssueKind.MISSING, expected))
            continue

        resolved = locked.get(package)
        if resolved is None:
            minimum = min_version(installed)
            resolved = str(minimum) if minimum else None
        if resolved is None:
            report.issues.append(
                CompatibilityIssue(package, IssueKind.UNPARSABLE, expected, installed)
            )
            continue

        if satisfies(resolved, expected):
            logger.debug(
                "Compatibility check OK for %s: %s satisfies %s", package, resolved, expected
            )
        else:
            report.issues.append(
                CompatibilityIssue(package, IssueKind.MISMATCH, expected, installed, resolved)
            )

    return report


def render_sdk_compatibility(requested: str, compat: SdkCompatibility | None) -> str:
    """Render an SDK compatibility lookup as text."""
    if compat is None:
        return (
            f"Compatibility info not found for Expo SDK {requested}. "
            "Check official Expo documentation."
        )
    return (
        f"Compatibility for Expo SDK {requested} (using data for {compat.sdk_key}):\n"
        f"{json.dumps(compat.packages, indent=2)}"
    )


def render_compatibility_report(report: CompatibilityReport) -> str:
    """Render a project compatibility report as text."""
    if not report.has_data:
        return (
            f"No compatibility data found in internal map for Expo SDK "
            f"{report.sdk_version}. Check official Expo documentation."
        )

    if report.issues:
        lines = "\n".join(f"- {issue.describe(report.sdk_key)}" for issue in report.issues)
        return (
            f"Potential compatibility issues found for Expo SDK {report.sdk_version} "
            f"(using data for {report.sdk_key}):\n{lines}\n"
            "Note: This check is based on package.json ranges and an internal "
            "compatibility map. Verify with official documentation."
        )

    return (
        f"Dependencies seem compatible with Expo SDK {report.sdk_version} "
        f"(using data for {report.sdk_key}) based on available data and package.json ranges."
    )
