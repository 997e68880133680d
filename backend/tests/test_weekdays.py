from datetime import date

import pytest

from app.core.weekdays import Weekday, day_name


def test_sunday_is_zero():
    assert Weekday.sunday == 0
    assert Weekday.saturday == 6
    assert day_name(0) == "Sunday"
    assert day_name(1) == "Monday"


def test_from_date_uses_sunday_zero_encoding():
    assert Weekday.from_date(date(2025, 8, 10)) == Weekday.sunday
    assert Weekday.from_date(date(2025, 8, 11)) == Weekday.monday
    assert Weekday.from_date(date(2025, 8, 16)) == Weekday.saturday


@pytest.mark.parametrize(
    "value, expected",
    [
        (3, Weekday.wednesday),
        ("3", Weekday.wednesday),
        ("Wednesday", Weekday.wednesday),
        ("wed", Weekday.wednesday),
        (" SUNDAY ", Weekday.sunday),
    ],
)
def test_parse_accepts_numbers_and_names(value, expected):
    assert Weekday.parse(value) == expected


@pytest.mark.parametrize("value", [7, -1, "7", "Funday", "", True, None, 2.5])
def test_parse_rejects_out_of_range_or_unknown(value):
    with pytest.raises(ValueError):
        Weekday.parse(value)


def test_short_name():
    assert Weekday.thursday.short_name == "Thu"
