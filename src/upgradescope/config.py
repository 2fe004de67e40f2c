"""Configuration management for upgradescope."""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from upgradescope.analysis.breaking_changes import DEFAULT_KEYWORDS
from upgradescope.errors import ConfigurationError

CONFIG_FILENAMES = (".upgradescope.yml", ".upgradescope.yaml")


def _validate_http_url(value: str) -> str:
    if not value.startswith(("http://", "https://")):
        raise ValueError("must be an http(s) URL")
    return value.rstrip("/")


class GitHubConfig(BaseModel):
    """Configuration for the GitHub Releases API."""

    api_url: str = Field(
        default="https://api.github.com",
        description="GitHub API URL",
    )
    token: str | None = Field(
        default=None,
        description="GitHub personal access token (prefer GITHUB_TOKEN env var)",
    )
    releases_per_page: int = Field(
        default=100,
        ge=1,
        le=100,
        description="Releases fetched per page for upgrade ranges",
    )
    recent_limit: int = Field(
        default=15,
        ge=1,
        le=100,
        description="Releases shown by the recent releases digest",
    )

    @field_validator("api_url")
    @classmethod
    def validate_api_url(cls, v: str) -> str:
        """Validate API URL value."""
        return _validate_http_url(v)


class RegistryConfig(BaseModel):
    """Configuration for the npm registry."""

    url: str = Field(
        default="https://registry.npmjs.org",
        description="npm registry URL",
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate registry URL value."""
        return _validate_http_url(v)


class ScannerConfig(BaseModel):
    """Configuration for the breaking-change keyword scan."""

    keywords: list[str] = Field(
        default_factory=lambda: list(DEFAULT_KEYWORDS),
        description="Keywords that flag a release-note line",
    )
    merge_overlapping: bool = Field(
        default=False,
        description="Merge findings whose context windows overlap",
    )

    @field_validator("keywords")
    @classmethod
    def validate_keywords(cls, v: list[str]) -> list[str]:
        """Validate keyword list."""
        keywords = [k.strip() for k in v if k and k.strip()]
        if not keywords:
            raise ValueError("keywords must contain at least one non-empty entry")
        return keywords


class HttpConfig(BaseModel):
    """Configuration for outgoing HTTP requests."""

    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")
    max_retries: int = Field(default=3, ge=0, le=10, description="Retries on transient errors")


class UpgradescopeConfig(BaseModel):
    """Complete upgradescope configuration."""

    version: int = Field(default=1, description="Configuration file version")
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    scanner: ScannerConfig = Field(default_factory=ScannerConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find the nearest .upgradescope.yml configuration file.

    Searches from start_path up to the root directory.

    Args:
        start_path: Starting directory for search (defaults to cwd).

    Returns:
        Path to config file if found, None otherwise.
    """
    if start_path is None:
        start_path = Path.cwd()

    current = start_path.resolve()

    while current != current.parent:
        for filename in CONFIG_FILENAMES:
            config_path = current / filename
            if config_path.exists():
                return config_path
        current = current.parent

    return None


def load_config(config_path: Path | None = None) -> UpgradescopeConfig:
    """Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables (GITHUB_TOKEN, GITHUB_API_URL, UPGRADESCOPE_REGISTRY_URL)
    2. Config file
    3. Defaults

    Args:
        config_path: Path to config file (searches if not provided).

    Returns:
        Loaded configuration.

    Raises:
        ConfigurationError: If the file is not valid YAML or fails validation.
    """
    config_data: dict[str, Any] = {}

    if config_path is None:
        config_path = find_config_file()

    if config_path and config_path.exists():
        try:
            with open(config_path) as f:
                file_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in {config_path}: {e}",
                hint="Run 'upgradescope config validate' to check the file.",
            ) from e
        if isinstance(file_data, dict):
            config_data = file_data

    overrides = [
        ("github", "token", os.environ.get("GITHUB_TOKEN")),
        ("github", "api_url", os.environ.get("GITHUB_API_URL")),
        ("registry", "url", os.environ.get("UPGRADESCOPE_REGISTRY_URL")),
    ]
    for section_name, key, value in overrides:
        if not value:
            continue
        # An empty section in YAML (``github:``) loads as None.
        section = config_data.get(section_name) or {}
        if not isinstance(section, dict):
            raise ConfigurationError(
                f"Invalid configuration: '{section_name}' must be a mapping",
                hint="Run 'upgradescope config validate' to check the file.",
            )
        section[key] = value
        config_data[section_name] = section

    try:
        return UpgradescopeConfig(**config_data)
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid configuration: {e}",
            hint="Run 'upgradescope config validate' to check the file.",
        ) from e


def generate_example_config() -> str:
    """Generate an example configuration file.

    Returns:
        YAML string of example configuration.
    """
    keywords = "\n".join(f"    - {keyword}" for keyword in DEFAULT_KEYWORDS)
    return f"""# upgradescope configuration

version: 1

# GitHub Releases API (token via GITHUB_TOKEN env var)
github:
  api_url: https://api.github.com
  # Releases fetched when resolving an upgrade range (max 100)
  releases_per_page: 100
  # Releases shown by 'upgradescope releases'
  recent_limit: 15

# npm registry used to resolve package repositories
registry:
  url: https://registry.npmjs.org

# Breaking-change keyword scan
scanner:
  keywords:
{keywords}
  # Merge findings whose context windows overlap within a release
  merge_overlapping: false

# Outgoing HTTP requests
http:
  timeout: 30
  max_retries: 3
"""
