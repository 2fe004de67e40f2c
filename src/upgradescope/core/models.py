"""Core data models for upgradescope."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, model_validator

from upgradescope.analysis.versioning import SemanticVersion, normalize
from upgradescope.errors import InvalidVersionError

GITHUB_WEB_URL = "https://github.com"


class Release(BaseModel):
    """A single published release from a repository's history."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    tag: str = Field(..., description="Tag name as retrieved from the provider")
    normalized_version: SemanticVersion | None = Field(
        default=None, description="Strictly parsed version, None if the tag is unparsable"
    )
    title: str | None = None
    body: str | None = None
    url: str = Field(..., description="Link to the release page")
    published_at: datetime | None = None

    @model_validator(mode="before")
    @classmethod
    def derive_version(cls, data: Any) -> Any:
        """Normalize the tag when no version was supplied."""
        if isinstance(data, dict) and data.get("normalized_version") is None:
            tag = data.get("tag")
            if isinstance(tag, str):
                data = {**data, "normalized_version": normalize(tag)}
        return data

    @field_serializer("normalized_version")
    def serialize_version(self, version: SemanticVersion | None) -> str | None:
        return str(version) if version is not None else None

    @classmethod
    def from_github(cls, payload: dict[str, Any]) -> "Release":
        """Build a release from a GitHub Releases API entry."""
        published_at = None
        raw_date = payload.get("published_at")
        if raw_date:
            try:
                published_at = datetime.fromisoformat(raw_date.replace("Z", "+00:00"))
            except (ValueError, TypeError, AttributeError):
                published_at = None

        return cls(
            tag=payload["tag_name"],
            url=payload.get("html_url") or "",
            title=payload.get("name") or None,
            body=payload.get("body"),
            published_at=published_at,
        )


@dataclass(frozen=True)
class VersionInterval:
    """Exclusive-lower, inclusive-upper version bounds: ``(lower, upper]``."""

    lower: SemanticVersion
    upper: SemanticVersion

    @classmethod
    def parse(cls, from_version: str, to_version: str) -> "VersionInterval":
        """Build an interval from two user-supplied version strings.

        Raises:
            InvalidVersionError: If either endpoint is not a valid semantic version.
        """
        lower = normalize(from_version)
        upper = normalize(to_version)
        if lower is None or upper is None:
            raise InvalidVersionError(from_version, to_version)
        return cls(lower=lower, upper=upper)

    def contains(self, version: SemanticVersion | None) -> bool:
        """Check whether a version falls inside the interval."""
        if version is None:
            return False
        return self.lower < version <= self.upper

    @property
    def is_empty(self) -> bool:
        """Whether no version can satisfy the bounds."""
        return self.upper <= self.lower

    def __str__(self) -> str:
        return f"({self.lower}, {self.upper}]"


class RepositoryIdentity(BaseModel):
    """A GitHub repository, derived once per request from package metadata."""

    model_config = ConfigDict(frozen=True)

    owner: str
    repo: str

    @property
    def full_name(self) -> str:
        """``owner/repo``."""
        return f"{self.owner}/{self.repo}"

    @property
    def html_url(self) -> str:
        """Web URL of the repository."""
        return f"{GITHUB_WEB_URL}/{self.full_name}"


class Finding(BaseModel):
    """A release-note passage that looks like a breaking change or deprecation."""

    model_config = ConfigDict(frozen=True)

    release_tag: str
    release_url: str
    snippet: str
    line_number: int = Field(..., ge=1, description="1-based line of the keyword match")
    matched_line: str = ""


class PackageInfo(BaseModel):
    """Summary of registry metadata for a package."""

    name: str
    version: str | None = None
    description: str | None = None
    homepage: str | None = None
    repository_url: str | None = None
    npm_url: str


class ChangelogResult(BaseModel):
    """Releases between two versions of a package."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    package: str
    from_version: str
    to_version: str
    repository: RepositoryIdentity
    releases: list[Release] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """Whether no release fell inside the interval."""
        return not self.releases


class BreakingChangeReport(ChangelogResult):
    """Keyword findings for the releases between two versions."""

    findings: list[Finding] = Field(default_factory=list)

    @property
    def has_findings(self) -> bool:
        """Whether any passage matched the keyword pattern."""
        return bool(self.findings)
