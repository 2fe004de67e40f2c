"""Core data models. The upgrade advisor lives in ``upgradescope.core.advisor``."""

from upgradescope.core.models import (
    BreakingChangeReport,
    ChangelogResult,
    Finding,
    PackageInfo,
    Release,
    RepositoryIdentity,
    VersionInterval,
)

__all__ = [
    "BreakingChangeReport",
    "ChangelogResult",
    "Finding",
    "PackageInfo",
    "Release",
    "RepositoryIdentity",
    "VersionInterval",
]
