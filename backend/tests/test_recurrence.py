from datetime import date, timedelta

import pytest

from app.core.exceptions import DataIntegrityError
from app.core.weekdays import Weekday
from app.services.calendar_events import SlotSnapshot
from app.services.recurrence import course_end_date, expand


def _slot(day: int, start: str = "09:00", end: str = "10:00", *, active: bool = True, slot_id: str = "s1"):
    return SlotSnapshot(id=slot_id, course_id="c1", day_of_week=day, start_time=start, end_time=end, is_active=active)


@pytest.mark.parametrize("weeks", [1, 4, 13])
@pytest.mark.parametrize("day", list(range(7)))
def test_n_full_weeks_give_n_occurrences(weeks, day):
    window_start = date(2025, 9, 3)
    window_end = window_start + timedelta(days=7 * weeks - 1)
    occurrences = expand(_slot(day), window_start, window_end)
    assert len(occurrences) == weeks
    assert all(Weekday.from_date(item) == day for item in occurrences)


def test_occurrences_are_strictly_increasing_weekly():
    occurrences = expand(_slot(Weekday.friday), date(2025, 1, 1), date(2025, 12, 31))
    assert occurrences == sorted(set(occurrences))
    assert all(b - a == timedelta(days=7) for a, b in zip(occurrences, occurrences[1:]))


def test_expansion_is_idempotent():
    slot = _slot(Weekday.tuesday)
    assert expand(slot, date(2025, 8, 1), date(2025, 8, 31)) == expand(slot, date(2025, 8, 1), date(2025, 8, 31))


def test_window_bounds_are_inclusive():
    # 2025-08-11 and 2025-08-25 are Mondays.
    assert expand(_slot(Weekday.monday), date(2025, 8, 11), date(2025, 8, 25)) == [
        date(2025, 8, 11),
        date(2025, 8, 18),
        date(2025, 8, 25),
    ]


def test_course_start_mid_week_skips_earlier_weekday():
    # Course begins on Tuesday 2025-08-05, so Monday 2025-08-04 is not a class day.
    occurrences = expand(
        _slot(Weekday.monday),
        date(2025, 8, 1),
        date(2025, 8, 31),
        course_start=date(2025, 8, 5),
    )
    assert occurrences == [date(2025, 8, 11), date(2025, 8, 18), date(2025, 8, 25)]


def test_course_end_truncates_occurrences():
    occurrences = expand(
        _slot(Weekday.monday),
        date(2025, 8, 1),
        date(2025, 8, 31),
        course_start=date(2025, 8, 5),
        course_end=date(2025, 8, 19),
    )
    assert occurrences == [date(2025, 8, 11), date(2025, 8, 18)]


def test_inverted_window_is_empty():
    assert expand(_slot(Weekday.monday), date(2025, 8, 31), date(2025, 8, 1)) == []


def test_inactive_slot_is_empty():
    assert expand(_slot(Weekday.monday, active=False), date(2025, 8, 1), date(2025, 8, 31)) == []


@pytest.mark.parametrize(
    "slot",
    [
        _slot(7),
        _slot(-1),
        _slot(Weekday.monday, start="10:00", end="09:00"),
        _slot(Weekday.monday, start="10:00", end="10:00"),
        _slot(Weekday.monday, start="9am", end="10:00"),
    ],
)
def test_invalid_slot_raises_data_integrity_error(slot):
    with pytest.raises(DataIntegrityError) as exc_info:
        expand(slot, date(2025, 8, 1), date(2025, 8, 31))
    assert exc_info.value.entity_id == "s1"


def test_course_end_date_units():
    start = date(2025, 1, 31)
    assert course_end_date(start, 10, "days") == date(2025, 2, 10)
    assert course_end_date(start, 2, "weeks") == date(2025, 2, 14)
    assert course_end_date(start, 1, "months") == date(2025, 2, 28)
    assert course_end_date(start, 1, "years") == date(2026, 1, 31)
    assert course_end_date(start, None) is None
    assert course_end_date(None, 4) is None
