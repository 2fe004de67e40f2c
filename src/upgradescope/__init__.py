"""upgradescope - read the release notes before you upgrade."""

__version__ = "0.1.0"
