"""Tests for npm-style version ranges."""

import pytest

from upgradescope.analysis.ranges import min_version, parse_range, satisfies
from upgradescope.analysis.versioning import SemanticVersion


class TestSatisfies:
    """Tests for satisfies()."""

    @pytest.mark.parametrize(
        ("version", "expression"),
        [
            ("0.72.6", "^0.72.0"),
            ("18.2.0", "18.2.0"),
            ("18.3.1", "^18.2.0"),
            ("0.0.3", "^0.0.3"),
            ("1.2.9", "~1.2.3"),
            ("1.9.0", "~1"),
            ("1.4.0", "1.x"),
            ("1.2.7", "1.2.*"),
            ("5.0.0", "*"),
            ("5.0.0", ""),
            ("1.5.0", ">=1.2.3 <2"),
            ("2.0.0", ">= 1.0.0 <= 2.0.0"),
            ("1.2.3", "1.2.3 - 2.3.4"),
            ("2.3.9", "1.2 - 2.3"),
            ("17.0.2", "^18.0.0 || ~17.0.1"),
            ("1.2.3-beta.2", ">=1.2.3-beta.1 <2"),
            ("v1.0.0", "=1.0.0"),
        ],
    )
    def test_satisfied(self, version: str, expression: str) -> None:
        """Test versions inside their range."""
        assert satisfies(version, expression)

    @pytest.mark.parametrize(
        ("version", "expression"),
        [
            ("0.73.0", "^0.72.0"),
            ("19.0.0", "^18.2.0"),
            ("0.0.4", "^0.0.3"),
            ("1.3.0", "~1.2.3"),
            ("2.0.0", "1.x"),
            ("2.0.0", "<2"),
            ("2.4.0", "1.2 - 2.3"),
            ("2.0.0-rc.1", "^1.0.0"),
            ("1.3.0-beta.1", ">=1.2.3-beta.1 <2"),
            ("2.0.0-rc.1", "*"),
            ("1.0.0", "latest"),
            ("1.0.0", "workspace:*"),
            ("1.0.0", "git+https://github.com/acme/widget.git"),
            ("not-a-version", "^1.0.0"),
        ],
    )
    def test_not_satisfied(self, version: str, expression: str) -> None:
        """Test versions outside their range or unparsable input."""
        assert not satisfies(version, expression)

    def test_accepts_semantic_version(self) -> None:
        """Test passing a parsed version."""
        assert satisfies(SemanticVersion(0, 73, 4), "0.73.4")


class TestParseRange:
    """Tests for parse_range()."""

    def test_union(self) -> None:
        """Test that || produces separate comparator sets."""
        parsed = parse_range("^1.0.0 || ^2.0.0")
        assert parsed is not None
        assert len(parsed) == 2

    def test_unparsable(self) -> None:
        """Test that a tag is not a range."""
        assert parse_range("next") is None
        assert parse_range("^1.0.0 || next") is None


class TestMinVersion:
    """Tests for min_version()."""

    @pytest.mark.parametrize(
        ("expression", "expected"),
        [
            ("^18.2.0", "18.2.0"),
            (">=1.2.3 <2", "1.2.3"),
            ("~50.0.0", "50.0.0"),
            ("0.73.4", "0.73.4"),
            ("1.x", "1.0.0"),
            (">1.2.3", "1.2.4"),
            (">1.2", "1.3.0"),
            ("^2.0.0 || ^1.5.0", "1.5.0"),
            (">=1.0.0-rc.1", "1.0.0-rc.1"),
            ("*", "0.0.0"),
            ("<3.0.0", "0.0.0"),
        ],
    )
    def test_minimum(self, expression: str, expected: str) -> None:
        """Test the lowest satisfying version."""
        assert str(min_version(expression)) == expected

    def test_unparsable(self) -> None:
        """Test that tags have no minimum."""
        assert min_version("latest") is None

    def test_unsatisfiable(self) -> None:
        """Test that an impossible range has no minimum."""
        assert min_version(">2.0.0 <1.0.0") is None

    def test_unsatisfiable_set_in_union(self) -> None:
        """Test that an impossible alternative does not hide a satisfiable one."""
        assert min_version(">=2.0.0 <1.0.0 || >=3.0.0") == SemanticVersion(3, 0, 0)
        assert min_version("^4.0.0 || >5.0.0 <5.0.0") == SemanticVersion(4, 0, 0)
