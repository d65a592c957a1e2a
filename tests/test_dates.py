"""Tests for the date helpers."""

from datetime import date
from unittest.mock import patch

import pytest

from daynotes.dates import (
    INVALID_DATE,
    format_date,
    is_valid_date_string,
    next_day,
    parse_date,
    previous_day,
    today_string,
)


class TestIsValidDateString:
    def test_leap_day_is_valid(self):
        assert is_valid_date_string("2024-02-29") is True

    def test_feb_30_is_invalid(self):
        assert is_valid_date_string("2024-02-30") is False

    def test_non_leap_feb_29_is_invalid(self):
        assert is_valid_date_string("2023-02-29") is False

    @pytest.mark.parametrize(
        "value", ["2024-2-1", "20240201", "2024-02-01T00:00", "", "tomorrow", "2024-13-01"]
    )
    def test_rejects_malformed(self, value):
        assert is_valid_date_string(value) is False


class TestParseDate:
    def test_parses_day_key(self):
        assert parse_date("2024-03-15") == date(2024, 3, 15)

    def test_returns_none_for_invalid(self):
        assert parse_date("2024-04-31") is None


class TestFormatDate:
    def test_long_form(self):
        assert format_date("2024-02-29") == "February 29, 2024"

    def test_with_weekday(self):
        assert format_date("2024-02-29", with_weekday=True) == "Thursday, February 29, 2024"

    def test_accepts_date_objects(self):
        assert format_date(date(2025, 1, 5)) == "January 5, 2025"

    def test_invalid_input_does_not_raise(self):
        assert format_date("not-a-date") == INVALID_DATE


class TestNeighbourDays:
    def test_next_day_crosses_month(self):
        assert next_day("2024-02-29") == "2024-03-01"

    def test_previous_day_crosses_year(self):
        assert previous_day("2024-01-01") == "2023-12-31"

    def test_first_representable_day_has_no_previous(self):
        assert is_valid_date_string("0001-01-01") is True
        assert previous_day("0001-01-01") is None
        assert next_day("0001-01-01") == "0001-01-02"

    def test_last_representable_day_has_no_next(self):
        assert is_valid_date_string("9999-12-31") is True
        assert next_day("9999-12-31") is None
        assert previous_day("9999-12-31") == "9999-12-30"

    def test_next_day_rejects_invalid(self):
        with pytest.raises(ValueError):
            next_day("2024-02-30")


def test_today_string_uses_local_date():
    with patch("daynotes.dates.date") as mock_date:
        mock_date.today.return_value = date(2024, 7, 4)
        assert today_string() == "2024-07-04"
