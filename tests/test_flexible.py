import pytest

from tvsync.utils.flexible import (
    parse_flexible_int,
    parse_flexible_int_list,
    parse_flexible_str,
    parse_optional_text,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        (5, 5),
        ("5", 5),
        (" 5 ", 5),
        (5.0, 5),
        (True, 1),
        (False, 0),
        ("abc", 0),
        ("5.5", 0),
        (5.5, 0),
        (None, 0),
        ([5], 0),
        ({"n": 5}, 0),
        (2 ** 63 - 1, 2 ** 63 - 1),
        (-(2 ** 63), -(2 ** 63)),
        (2 ** 63, 0),
        (99999999999999999999, 0),
        ("99999999999999999999", 0),
        (1e30, 0),
    ],
)
def test_parse_flexible_int(value, expected):
    assert parse_flexible_int(value) == expected


def test_parse_flexible_int_uses_given_default():
    assert parse_flexible_int("n/a", default=-1) == -1


@pytest.mark.parametrize(
    "value, expected",
    [
        ("12", "12"),
        ("", ""),
        ("news", "news"),
        (12, "12"),
        (12.0, "12"),
        (True, ""),
        (None, ""),
        ([1], ""),
    ],
)
def test_parse_flexible_str(value, expected):
    assert parse_flexible_str(value) == expected


@pytest.mark.parametrize(
    "value, expected",
    [
        ([1, 2], [1, 2]),
        (["1", 2], [1, 2]),
        ([], []),
        ([1, "x"], []),
        ([True], []),
        (7, [7]),
        ("7", [7]),
        ("x", []),
        (True, []),
        (None, []),
        ([1, 2 ** 64], []),
        (2 ** 64, []),
    ],
)
def test_parse_flexible_int_list(value, expected):
    assert parse_flexible_int_list(value) == expected


@pytest.mark.parametrize(
    "value, expected",
    [
        ("http://h/icon.png", "http://h/icon.png"),
        (None, ""),
        (42, "42"),
        (False, ""),
        ({"a": 1}, ""),
    ],
)
def test_parse_optional_text(value, expected):
    assert parse_optional_text(value) == expected
