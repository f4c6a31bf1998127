"""
Tests for the semantic version model.

Tests cover:
- parse_version: defaults for missing/non-numeric segments, pre-release split
- format_version / compare_versions / is_newer_version
- increment_version: resets, label dropping, invalid bumps
"""

import pytest

from procurement_engines.versioning import (
    compare_versions,
    create_initial_version,
    format_version,
    increment_version,
    is_newer_version,
    parse_version,
)
from procurement_kernel.domain.revision import ChangeSignificance, SemanticVersion


class TestParseVersion:

    def test_full_version(self):
        assert parse_version("2.5.13") == SemanticVersion(2, 5, 13)

    def test_pre_release(self):
        assert parse_version("1.0.0-rc1") == SemanticVersion(1, 0, 0, "rc1")

    def test_only_first_dash_splits(self):
        assert parse_version("2.0.0-rc-1").pre_release == "rc-1"

    def test_missing_segments_default_to_zero(self):
        assert parse_version("3") == SemanticVersion(3, 0, 0)
        assert parse_version("3.1") == SemanticVersion(3, 1, 0)

    def test_garbage_segments_default_to_zero(self):
        assert parse_version("x.2.y") == SemanticVersion(0, 2, 0)

    def test_empty_string(self):
        assert parse_version("") == SemanticVersion(0, 0, 0)

    def test_trailing_dash_is_not_a_label(self):
        assert parse_version("1.2.3-").pre_release is None


class TestFormatVersion:

    def test_release(self):
        assert format_version(SemanticVersion(1, 2, 3)) == "1.2.3"

    def test_pre_release(self):
        assert format_version(SemanticVersion(1, 2, 3, "beta")) == "1.2.3-beta"

    def test_round_trip_through_parse(self):
        assert format_version(parse_version("4.0.1-alpha")) == "4.0.1-alpha"


class TestCompareVersions:

    @pytest.mark.parametrize("a, b", [
        ("2.0.0", "1.9.9"),
        ("1.3.0", "1.2.9"),
        ("1.2.4", "1.2.3"),
        ("1.0.0", "1.0.0-rc1"),
    ])
    def test_ordering(self, a, b):
        assert compare_versions(parse_version(a), parse_version(b)) > 0
        assert compare_versions(parse_version(b), parse_version(a)) < 0
        assert is_newer_version(parse_version(a), parse_version(b))

    def test_equal(self):
        assert compare_versions(parse_version("1.2.3"), parse_version("1.2.3")) == 0

    def test_pre_release_labels_are_unordered(self):
        assert compare_versions(parse_version("1.0.0-alpha"), parse_version("1.0.0-beta")) == 0

    def test_sort_key_agrees(self):
        versions = [parse_version(v) for v in ("1.0.0", "0.9.0", "1.0.0-rc1", "1.0.1")]
        ordered = sorted(versions, key=lambda v: v.sort_key)
        assert [format_version(v) for v in ordered] == ["0.9.0", "1.0.0-rc1", "1.0.0", "1.0.1"]


class TestIncrementVersion:

    def test_major_resets_minor_and_patch(self):
        assert increment_version(SemanticVersion(2, 4, 7), ChangeSignificance.MAJOR) == SemanticVersion(3, 0, 0)

    def test_minor_resets_patch(self):
        assert increment_version(SemanticVersion(2, 4, 7), "minor") == SemanticVersion(2, 5, 0)

    def test_patch(self):
        assert increment_version(SemanticVersion(2, 4, 7), "patch") == SemanticVersion(2, 4, 8)

    def test_pre_release_dropped(self):
        assert increment_version(SemanticVersion(1, 0, 0, "rc1"), "patch").pre_release is None

    def test_unknown_bump_rejected(self):
        with pytest.raises(ValueError):
            increment_version(SemanticVersion(1, 0, 0), "huge")


def test_initial_version():
    assert create_initial_version() == SemanticVersion(1, 0, 0)
    assert create_initial_version("draft").pre_release == "draft"
