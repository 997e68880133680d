"""Conversions between stored UTC instants and the deployment's civil calendar.

All date arithmetic that decides which calendar day something falls on lives
here. The zone comes from ``Settings.calendar_timezone`` and is the same for
every viewer.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta, timezone
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.core.config import get_settings
from app.core.exceptions import ConfigurationError

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
DATE_ONLY_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_time_to_minutes(value: str) -> int:
    if not isinstance(value, str) or not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(value: int) -> str:
    hours = value // 60
    minutes = value % 60
    return f"{hours:02d}:{minutes:02d}"


@lru_cache
def _load_zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigurationError(f"Unknown calendar timezone: {name!r}") from exc


def get_calendar_zone() -> ZoneInfo:
    return _load_zone(get_settings().calendar_timezone)


def as_utc(instant: datetime) -> datetime:
    # Naive values come back from SQLite and are stored as UTC.
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def to_civil(instant: datetime, zone: ZoneInfo | None = None) -> tuple[date, str]:
    """Return the civil date and ``HH:MM`` time of ``instant`` in the calendar zone."""
    local = as_utc(instant).astimezone(zone or get_calendar_zone())
    return local.date(), f"{local.hour:02d}:{local.minute:02d}"


def civil_date_range(start_instant: datetime, end_instant: datetime, zone: ZoneInfo | None = None) -> list[date]:
    """Every civil date touched by ``[start_instant, end_instant]``, ascending."""
    zone = zone or get_calendar_zone()
    if as_utc(end_instant) < as_utc(start_instant):
        return []
    first, _ = to_civil(start_instant, zone)
    last, _ = to_civil(end_instant, zone)
    return [first + timedelta(days=offset) for offset in range((last - first).days + 1)]


def civil_day_bounds(day: date, zone: ZoneInfo | None = None) -> tuple[datetime, datetime]:
    """First and last instant (UTC) of a civil day."""
    zone = zone or get_calendar_zone()
    start = datetime.combine(day, time.min, tzinfo=zone)
    next_start = datetime.combine(day + timedelta(days=1), time.min, tzinfo=zone)
    return start.astimezone(timezone.utc), (next_start - timedelta(microseconds=1)).astimezone(timezone.utc)


def today(zone: ZoneInfo | None = None, now: datetime | None = None) -> date:
    current = now or datetime.now(timezone.utc)
    return to_civil(current, zone)[0]


def parse_civil_date(value: str | date | datetime, zone: ZoneInfo | None = None) -> date:
    """Accept ``YYYY-MM-DD`` or an ISO instant and return a civil date.

    Instants (``2025-08-10T16:00:00Z``) are anchored to the calendar zone, so a
    client sending midnight of its own locale as UTC still lands on the right
    civil day.
    """
    if isinstance(value, datetime):
        return to_civil(value, zone)[0]
    if isinstance(value, date):
        return value

    text = value.strip()
    if DATE_ONLY_PATTERN.match(text):
        return date.fromisoformat(text)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return to_civil(datetime.fromisoformat(text), zone)[0]
