"""Tests for core data models."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from upgradescope.analysis.versioning import SemanticVersion
from upgradescope.core.models import (
    BreakingChangeReport,
    ChangelogResult,
    Finding,
    Release,
    RepositoryIdentity,
)


class TestRelease:
    """Tests for Release."""

    def test_version_derived_from_tag(self) -> None:
        """Test that the tag is normalized on construction."""
        release = Release(tag="v1.2.3", url="https://example.com")
        assert release.normalized_version == SemanticVersion(1, 2, 3)

    def test_unparsable_tag(self) -> None:
        """Test that a malformed tag leaves the version empty."""
        release = Release(tag="nightly-build-42", url="https://example.com")
        assert release.normalized_version is None

    def test_explicit_version_kept(self) -> None:
        """Test that a supplied version is not overwritten."""
        release = Release(
            tag="release-one",
            normalized_version=SemanticVersion(1, 0, 0),
            url="https://example.com",
        )
        assert release.normalized_version == SemanticVersion(1, 0, 0)

    def test_frozen(self) -> None:
        """Test that releases are immutable."""
        release = Release(tag="v1.0.0", url="https://example.com")
        with pytest.raises(ValidationError):
            release.tag = "v2.0.0"

    def test_from_github(self) -> None:
        """Test building a release from a GitHub API entry."""
        release = Release.from_github(
            {
                "tag_name": "v2.0.0",
                "name": "",
                "body": "Notes",
                "html_url": "https://github.com/acme/widget/releases/tag/v2.0.0",
                "published_at": "2024-03-01T12:00:00Z",
            }
        )
        assert release.tag == "v2.0.0"
        assert release.title is None
        assert release.body == "Notes"
        assert release.published_at == datetime(2024, 3, 1, 12, tzinfo=timezone.utc)
        assert release.normalized_version == SemanticVersion(2, 0, 0)

    def test_from_github_bad_date(self) -> None:
        """Test that an unparsable date is dropped."""
        release = Release.from_github({"tag_name": "v1.0.0", "published_at": "yesterday"})
        assert release.published_at is None
        assert release.url == ""

    def test_json_dump(self) -> None:
        """Test that the version serializes as a string."""
        release = Release(tag="v1.0.0-rc.1", url="https://example.com")
        data = release.model_dump(mode="json")
        assert data["normalized_version"] == "1.0.0-rc.1"
        assert data["published_at"] is None


class TestRepositoryIdentity:
    """Tests for RepositoryIdentity."""

    def test_names(self) -> None:
        """Test derived names."""
        identity = RepositoryIdentity(owner="acme", repo="widget")
        assert identity.full_name == "acme/widget"
        assert identity.html_url == "https://github.com/acme/widget"


class TestFinding:
    """Tests for Finding."""

    def test_line_number_is_one_based(self) -> None:
        """Test that a zero line number is rejected."""
        with pytest.raises(ValidationError):
            Finding(release_tag="v1", release_url="u", snippet="s", line_number=0)


class TestResults:
    """Tests for result containers."""

    def test_empty_changelog(self) -> None:
        """Test the empty flag."""
        result = ChangelogResult(
            package="widget",
            from_version="1.0.0",
            to_version="2.0.0",
            repository=RepositoryIdentity(owner="acme", repo="widget"),
        )
        assert result.is_empty

    def test_report_json_dump(self) -> None:
        """Test serializing a report with findings."""
        report = BreakingChangeReport(
            package="widget",
            from_version="1.0.0",
            to_version="2.0.0",
            repository=RepositoryIdentity(owner="acme", repo="widget"),
            releases=[Release(tag="v2.0.0", url="https://example.com")],
            findings=[
                Finding(
                    release_tag="v2.0.0",
                    release_url="https://example.com",
                    snippet="- removed x",
                    line_number=1,
                )
            ],
        )
        data = report.model_dump(mode="json")
        assert report.has_findings
        assert data["repository"] == {"owner": "acme", "repo": "widget"}
        assert data["releases"][0]["normalized_version"] == "2.0.0"
        assert data["findings"][0]["line_number"] == 1
