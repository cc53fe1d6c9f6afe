"""Tests for value parsing helpers."""

from __future__ import annotations

from datetime import date, datetime

import pytest

from rowsift.utils.validators import is_blank, is_true, parse_date, parse_int_prefix, parse_number


class TestParseNumber:
    @pytest.mark.parametrize(
        ("value", "expected"), [(5, 5.0), ("2.5", 2.5), (" 18 ", 18.0), (-1, -1.0)]
    )
    def test_numbers(self, value: object, expected: float) -> None:
        assert parse_number(value) == expected

    @pytest.mark.parametrize("value", [None, True, "", "abc", "nan", "inf", [1], {"a": 1}])
    def test_not_numbers(self, value: object) -> None:
        assert parse_number(value) is None


class TestParseDate:
    def test_iso_strings(self) -> None:
        assert parse_date("2024-03-05") == datetime(2024, 3, 5)
        assert parse_date("2024-03-05T10:30:00") == datetime(2024, 3, 5, 10, 30)

    def test_aware_values_become_naive_utc(self) -> None:
        assert parse_date("2024-03-05T10:30:00+02:00") == datetime(2024, 3, 5, 8, 30)

    def test_epoch_milliseconds(self) -> None:
        assert parse_date(0) == datetime(1970, 1, 1)

    def test_date_objects(self) -> None:
        assert parse_date(date(2024, 1, 2)) == datetime(2024, 1, 2)

    @pytest.mark.parametrize("value", [None, "", True, "not a date", float("nan")])
    def test_unparseable(self, value: object) -> None:
        assert parse_date(value) is None


class TestSmallHelpers:
    def test_is_true(self) -> None:
        assert is_true(True)
        assert is_true("true")
        assert not is_true("TRUE")
        assert not is_true(1)

    def test_parse_int_prefix(self) -> None:
        assert parse_int_prefix("25rows") == 25
        assert parse_int_prefix("-5") == -5
        assert parse_int_prefix("rows25") is None
        assert parse_int_prefix(None) is None

    def test_is_blank(self) -> None:
        assert is_blank(None)
        assert is_blank("  ")
        assert not is_blank(0)
