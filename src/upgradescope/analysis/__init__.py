"""Release-note analysis for dependency upgrades.

Components:
- versioning: Semantic version parsing and precedence
- repository: Resolve a package's GitHub repository from registry metadata
- releases: Select the releases inside an upgrade interval
- changelog: Render releases as a markdown digest
- breaking_changes: Keyword scan of release notes with context windows
- ranges: npm-style version range matching
- compatibility: Expo SDK compatibility map and project checks

Submodules are imported directly; ``upgradescope.core.models`` depends on
``versioning``, so nothing is re-exported here.
"""
