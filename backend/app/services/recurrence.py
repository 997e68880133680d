from __future__ import annotations

from datetime import date, timedelta
from typing import Protocol

from dateutil.relativedelta import relativedelta

from app.core.exceptions import DataIntegrityError
from app.core.weekdays import Weekday
from app.services.civil_time import parse_time_to_minutes

WEEK = timedelta(days=7)

DURATION_STEPS = {
    "days": lambda amount: relativedelta(days=amount),
    "weeks": lambda amount: relativedelta(weeks=amount),
    "months": lambda amount: relativedelta(months=amount),
    "years": lambda amount: relativedelta(years=amount),
}


class WeeklySlot(Protocol):
    id: str | None
    day_of_week: int
    start_time: str
    end_time: str
    is_active: bool


def check_slot_integrity(slot: WeeklySlot) -> tuple[Weekday, int, int]:
    """Return ``(weekday, start_minutes, end_minutes)`` or raise DataIntegrityError."""
    slot_id = getattr(slot, "id", None)
    try:
        weekday = Weekday.parse(slot.day_of_week)
    except ValueError as exc:
        raise DataIntegrityError(f"Slot {slot_id} has invalid day_of_week {slot.day_of_week!r}", "schedule_slot", slot_id) from exc
    try:
        start = parse_time_to_minutes(slot.start_time)
        end = parse_time_to_minutes(slot.end_time)
    except ValueError as exc:
        raise DataIntegrityError(
            f"Slot {slot_id} has malformed time range {slot.start_time!r}-{slot.end_time!r}",
            "schedule_slot",
            slot_id,
        ) from exc
    if end <= start:
        raise DataIntegrityError(
            f"Slot {slot_id} ends at {slot.end_time} which is not after {slot.start_time}",
            "schedule_slot",
            slot_id,
        )
    return weekday, start, end


def course_end_date(start_date: date | None, duration: int | None, unit: str | None = "weeks") -> date | None:
    """Last civil date a course meets, or None when it runs open-ended."""
    if start_date is None or not duration or duration <= 0:
        return None
    unit_key = getattr(unit, "value", unit) or "weeks"
    step = DURATION_STEPS.get(str(unit_key).lower(), DURATION_STEPS["weeks"])
    return start_date + step(duration)


def expand(
    slot: WeeklySlot,
    window_start: date,
    window_end: date,
    *,
    course_start: date | None = None,
    course_end: date | None = None,
) -> list[date]:
    """Concrete civil dates on which ``slot`` meets inside ``[window_start, window_end]``.

    Dates before ``course_start`` or after ``course_end`` are never produced.
    An inactive slot or an inverted window yields an empty list.
    """
    if not slot.is_active:
        return []
    weekday, _, _ = check_slot_integrity(slot)

    first = window_start
    if course_start is not None and course_start > first:
        first = course_start
    last = window_end
    if course_end is not None and course_end < last:
        last = course_end
    if last < first:
        return []

    current = first + timedelta(days=(weekday - Weekday.from_date(first)) % 7)
    occurrences: list[date] = []
    while current <= last:
        occurrences.append(current)
        current += WEEK
    return occurrences
