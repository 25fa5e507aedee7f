"""Tests for version vector parsing and ordering."""

import pytest

from pkgcompat.errors import UnrecognizedFormat
from pkgcompat.version import (
    compare_versions,
    is_version_vector,
    parse_version,
    version_key,
    version_less,
    version_to_string,
)


class TestParseVersion:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("1.5", (1, 5)),
            (" 2.0.10 ", (2, 0, 10)),
            ([1, 2, 0], (1, 2, 0)),
            ((3,), (3,)),
            (7, (7,)),
        ],
    )
    def test_accepted_inputs(self, raw, expected):
        assert parse_version(raw) == expected

    @pytest.mark.parametrize("raw", ["", "1..2", "1.2-rc1", "v1", [], [1, -2], [True], None, 1.5, -1])
    def test_rejected_inputs(self, raw):
        with pytest.raises(UnrecognizedFormat):
            parse_version(raw)

    def test_error_keeps_raw_value(self):
        with pytest.raises(UnrecognizedFormat) as exc_info:
            parse_version("1.x")
        assert exc_info.value.raw == "1.x"


class TestOrdering:
    def test_version_less_is_irreflexive(self):
        assert not version_less((1, 2), (1, 2))

    def test_first_difference_decides(self):
        assert version_less((1, 2, 9), (1, 3))
        assert not version_less((1, 3), (1, 2, 9))

    def test_missing_components_are_zero(self):
        assert not version_less((1,), (1, 0, 0))
        assert not version_less((1, 0, 0), (1,))
        assert compare_versions((1,), (1, 0)) == 0
        assert version_less((1,), (1, 0, 1))

    def test_compare_versions_sign(self):
        assert compare_versions((2,), (10,)) == -1
        assert compare_versions((10,), (2,)) == 1

    def test_version_key_matches_comparison(self):
        versions = [(1, 0, 1), (1,), (0, 9), (1, 0), (2,), (1, 0, 0, 0)]
        for a in versions:
            for b in versions:
                assert (version_key(a) < version_key(b)) == version_less(a, b)


def test_version_to_string():
    assert version_to_string((1, 2, 0)) == "1.2.0"


def test_is_version_vector():
    assert is_version_vector([0])
    assert not is_version_vector("1.0")
    assert not is_version_vector([1, "2"])
