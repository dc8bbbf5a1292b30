"""Tests for version parsing, ordering, ranges, and resolution."""

import pytest

from nlm.core.resolver import is_latest, is_valid_token, resolve
from nlm.core.semver import (
    compare_versions,
    is_same_major,
    is_valid_range,
    major_of,
    normalize_version,
    parse_version,
    satisfies,
    sort_versions,
)


# --- Parsing and ordering ---


def test_parse_version():
    v = parse_version("1.2.3-beta.1+build.5")
    assert (v.major, v.minor, v.patch) == (1, 2, 3)
    assert v.prerelease == ("beta", "1")
    assert v.build == ("build", "5")
    assert str(v) == "1.2.3-beta.1+build.5"


def test_parse_rejects_partial_versions():
    assert parse_version("1.2") is None
    assert parse_version("latest") is None


def test_v_prefix_is_accepted_and_dropped():
    assert str(parse_version("v1.0.0")) == "1.0.0"
    assert normalize_version(" v2.1.0-rc.1 ") == "2.1.0-rc.1"
    with pytest.raises(ValueError):
        normalize_version("1.0")


def test_prerelease_sorts_below_release():
    assert compare_versions("1.0.0-alpha", "1.0.0") == -1
    assert compare_versions("1.0.0-alpha", "1.0.0-alpha.1") == -1
    assert compare_versions("1.0.0-alpha.2", "1.0.0-alpha.10") == -1
    assert compare_versions("1.0.0-beta", "1.0.0-alpha.5") == 1


def test_build_metadata_is_ignored():
    assert compare_versions("1.0.0+a", "1.0.0+b") == 0


def test_compare_invalid_raises():
    with pytest.raises(ValueError):
        compare_versions("1.0", "1.0.0")


def test_sort_versions_drops_invalid():
    assert sort_versions(["2.0.0", "junk", "1.10.0", "1.2.0", "1.10.0-rc.1"]) == [
        "1.2.0",
        "1.10.0-rc.1",
        "1.10.0",
        "2.0.0",
    ]


# --- Ranges ---


def test_caret_ranges():
    assert satisfies("1.9.9", "^1.2.3")
    assert not satisfies("2.0.0", "^1.2.3")
    assert satisfies("0.2.5", "^0.2.3")
    assert not satisfies("0.3.0", "^0.2.3")
    assert not satisfies("0.0.4", "^0.0.3")


def test_tilde_ranges():
    assert satisfies("1.2.9", "~1.2.3")
    assert not satisfies("1.3.0", "~1.2.3")
    assert satisfies("1.9.0", "~1")


def test_x_ranges_and_comparators():
    assert satisfies("1.5.0", "1.x")
    assert satisfies("3.0.0", "*")
    assert satisfies("1.2.7", "1.2")
    assert satisfies("1.5.0", ">=1.2.0 <2.0.0")
    assert not satisfies("2.0.0", ">=1.2.0 <2.0.0")
    assert satisfies("2.1.0", "<1.0.0 || >=2.0.0")


def test_hyphen_range():
    assert satisfies("1.5.0", "1.2.3 - 2.3.4")
    assert satisfies("2.3.9", "1.2.3 - 2.3")
    assert not satisfies("2.4.0", "1.2.3 - 2.3")


def test_prerelease_needs_matching_comparator():
    assert not satisfies("1.3.0-beta.1", "^1.2.0")
    assert satisfies("1.2.4-beta.2", ">=1.2.4-beta.1 <1.3.0")
    assert satisfies("1.0.0-beta", ">=1.0.0-0")


def test_loose_range_spellings():
    assert satisfies("1.4.0", ">= 1.2")
    assert satisfies("1.2.5", "~>1.2.3")
    assert satisfies("1.3.0", "^v1.2.3")


def test_invalid_ranges():
    assert not is_valid_range("not a version")
    assert not is_valid_range(">=foo")
    assert is_valid_range("^1.0.0 || ~2.1")


# --- Major versions ---


def test_major_of():
    assert major_of("^4.17.0") == 4
    assert major_of("3.10.0") == 3
    assert major_of(">= 2") == 2
    assert major_of("*") is None
    assert major_of("github:user/repo") is None


def test_same_major():
    assert not is_same_major("^4.17.0", "3.10.0")
    assert is_same_major("^4.17.0", "4.0.0")
    assert is_same_major("*", "3.0.0")


# --- Resolution ---


def test_resolve_latest():
    assert resolve("latest", []) is None
    assert resolve("latest", ["1.0.0", "2.1.0"]) == "2.1.0"
    assert resolve(None, ["1.0.0", "2.1.0", "1.5.0"]) == "2.1.0"


def test_resolve_range_picks_highest_match():
    assert resolve("^1.0.0", ["1.0.0", "1.2.0", "2.0.0"]) == "1.2.0"
    assert resolve("~1.0.0", ["1.0.0", "1.0.5", "1.2.0"]) == "1.0.5"


def test_resolve_exact():
    assert resolve("3.0.0", ["1.0.0"]) is None
    assert resolve("1.0.0", ["1.0.0", "1.1.0"]) == "1.0.0"


def test_resolve_unparsable_token():
    assert resolve("???", ["1.0.0"]) is None


def test_token_validation():
    assert is_latest("")
    assert is_latest("latest")
    assert is_valid_token("1.2.3")
    assert is_valid_token(">=1.0.0")
    assert not is_valid_token("banana!")
