"""Canonical weekday encoding.

Slots store ``day_of_week`` as an integer with Sunday = 0. Every layer that
turns that integer into a name, or a name into that integer, goes through
:class:`Weekday`.
"""

from __future__ import annotations

from datetime import date
from enum import IntEnum


class Weekday(IntEnum):
    sunday = 0
    monday = 1
    tuesday = 2
    wednesday = 3
    thursday = 4
    friday = 5
    saturday = 6

    @property
    def display_name(self) -> str:
        return self.name.capitalize()

    @property
    def short_name(self) -> str:
        return self.display_name[:3]

    @classmethod
    def from_date(cls, value: date) -> "Weekday":
        # date.weekday() is Monday = 0
        return cls((value.weekday() + 1) % 7)

    @classmethod
    def parse(cls, value: "int | str | Weekday") -> "Weekday":
        """Accept 0-6, a digit string, a full name or a three letter name."""
        if isinstance(value, bool):
            raise ValueError(f"Invalid day of week: {value!r}")
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError as exc:
                raise ValueError(f"Day of week must be between 0 and 6, got {value}") from exc
        if not isinstance(value, str):
            raise ValueError(f"Invalid day of week: {value!r}")

        text = value.strip()
        if text.isdigit():
            return cls.parse(int(text))
        weekday = _NAME_LOOKUP.get(text.lower())
        if weekday is None:
            raise ValueError(f"Unknown weekday name: {value!r}")
        return weekday


_NAME_LOOKUP: dict[str, Weekday] = {}
for _day in Weekday:
    _NAME_LOOKUP[_day.display_name.lower()] = _day
    _NAME_LOOKUP[_day.short_name.lower()] = _day


def day_name(day_of_week: int) -> str:
    return Weekday.parse(day_of_week).display_name
