"""Pytest configuration and fixtures for upgradescope tests."""

import json
import tempfile
from collections.abc import Callable, Generator
from datetime import datetime, timezone
from pathlib import Path

import pytest

from upgradescope.core.models import Release

ENV_VARS = ("GITHUB_TOKEN", "GITHUB_API_URL", "UPGRADESCOPE_REGISTRY_URL")


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove environment variables that override configuration."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_release() -> Callable[..., Release]:
    """Factory for releases with a GitHub-style URL."""

    def _make(
        tag: str,
        body: str | None = "Bug fixes.",
        title: str | None = None,
        published_at: datetime | None = None,
    ) -> Release:
        return Release(
            tag=tag,
            title=title,
            body=body,
            url=f"https://github.com/acme/widget/releases/tag/{tag}",
            published_at=published_at,
        )

    return _make


@pytest.fixture
def widget_releases(make_release: Callable[..., Release]) -> list[Release]:
    """Releases of a sample package, newest first as GitHub returns them."""
    return [
        make_release(
            "v2.0.0",
            body="## Breaking Changes\n- Removed legacy API\n- Renamed options",
            title="Major release",
            published_at=datetime(2024, 3, 1, tzinfo=timezone.utc),
        ),
        make_release("nightly-build", body="Nightly."),
        make_release(
            "v1.2.0",
            body="### Features\n- Added streaming support",
            published_at=datetime(2024, 2, 1, tzinfo=timezone.utc),
        ),
        make_release("v1.1.0", body=None),
        make_release("v1.0.0", body="Initial release."),
    ]


@pytest.fixture
def npm_metadata() -> dict:
    """Registry document for a package hosted on GitHub."""
    return {
        "name": "widget",
        "version": "2.0.0",
        "description": "A sample widget library",
        "homepage": "https://widget.dev",
        "repository": {"type": "git", "url": "git+https://github.com/acme/widget.git"},
    }


@pytest.fixture
def github_release_payload() -> list[dict]:
    """GitHub Releases API response for the sample package."""
    return [
        {
            "tag_name": "v2.0.0",
            "name": "Major release",
            "body": "## Breaking Changes\n- Removed legacy API",
            "html_url": "https://github.com/acme/widget/releases/tag/v2.0.0",
            "published_at": "2024-03-01T12:00:00Z",
        },
        {
            "tag_name": "v1.1.0",
            "name": "",
            "body": "Bug fixes.",
            "html_url": "https://github.com/acme/widget/releases/tag/v1.1.0",
            "published_at": "2024-02-01T12:00:00Z",
        },
        {
            "tag_name": "v1.0.0",
            "name": None,
            "body": None,
            "html_url": "https://github.com/acme/widget/releases/tag/v1.0.0",
            "published_at": None,
        },
    ]


@pytest.fixture
def expo_package_json(temp_dir: Path) -> Path:
    """Create a package.json for an Expo SDK 50 project."""
    content = {
        "name": "sample-app",
        "version": "1.0.0",
        "dependencies": {
            "expo": "~50.0.0",
            "react": "18.2.0",
            "react-native": "0.73.4",
        },
    }
    file_path = temp_dir / "package.json"
    file_path.write_text(json.dumps(content, indent=2))
    return file_path


@pytest.fixture
def expo_package_lock(temp_dir: Path) -> Path:
    """Create a package-lock.json (lockfile v3) for the Expo project."""
    content = {
        "name": "sample-app",
        "version": "1.0.0",
        "lockfileVersion": 3,
        "requires": True,
        "packages": {
            "": {"name": "sample-app", "version": "1.0.0"},
            "node_modules/expo": {"version": "50.0.7"},
            "node_modules/react": {"version": "18.2.0"},
            "node_modules/react-native": {"version": "0.73.6"},
            "node_modules/expo/node_modules/semver": {"version": "7.5.4"},
        },
    }
    file_path = temp_dir / "package-lock.json"
    file_path.write_text(json.dumps(content, indent=2))
    return file_path
