"""Write path for recurring weekly slots.

Reading the existing slots, running the conflict check and writing the new
row happen inside one serialized transaction, so two administrators booking
overlapping times at once cannot both succeed.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from threading import Lock

from sqlalchemy import select, text
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, ResourceNotFoundError, SlotValidationError
from app.core.weekdays import Weekday
from app.models.course import Course
from app.models.schedule_slot import ScheduleSlot
from app.models.user import User
from app.schemas.conflict import ConflictingSlot
from app.services.audit import log_slot_change, slot_state
from app.services.calendar_events import SlotSnapshot
from app.services.civil_time import parse_time_to_minutes
from app.services.conflict_service import find_conflicting_slot
from app.services.recurrence import WeeklySlot

logger = logging.getLogger(__name__)

# Keys 0x5C4ED000..0x5C4ED006 are one advisory lock per weekday.
ADVISORY_LOCK_BASE = 0x5C4ED000

_booking_lock = Lock()


def _lock_days(db: Session, days: Iterable[int]) -> None:
    # Advisory keys are released when the transaction commits or rolls back.
    if db.get_bind().dialect.name != "postgresql":
        return
    for day in sorted({int(item) for item in days}):
        db.execute(text("SELECT pg_advisory_xact_lock(:key)"), {"key": ADVISORY_LOCK_BASE + day})


@contextmanager
def booking_transaction(db: Session, days: Iterable[int]) -> Iterator[None]:
    """Serialize slot writes touching ``days`` and commit or roll back as one unit."""
    with _booking_lock:
        try:
            _lock_days(db, days)
            yield
            db.commit()
        except Exception:
            db.rollback()
            raise


def slot_summary(slot: WeeklySlot, course_title: str | None = None) -> dict:
    return ConflictingSlot(
        id=slot.id,
        courseId=slot.course_id,
        courseTitle=course_title,
        dayOfWeek=int(slot.day_of_week),
        dayName=Weekday.parse(slot.day_of_week).display_name,
        startTime=slot.start_time,
        endTime=slot.end_time,
    ).model_dump()


def normalize_slot_fields(day_of_week: int | str, start_time: str, end_time: str) -> tuple[int, str, str]:
    try:
        weekday = Weekday.parse(day_of_week)
    except ValueError as exc:
        raise SlotValidationError(str(exc), details={"field": "dayOfWeek"}) from exc
    try:
        start = parse_time_to_minutes(start_time)
        end = parse_time_to_minutes(end_time)
    except ValueError as exc:
        raise SlotValidationError(str(exc), details={"field": "startTime/endTime"}) from exc
    if start >= end:
        raise SlotValidationError("End time must be after start time", details={"field": "endTime"})
    return int(weekday), start_time, end_time


def _get_course(db: Session, course_id: str) -> Course:
    course = db.get(Course, course_id)
    if course is None:
        raise ResourceNotFoundError("Course", course_id)
    return course


def _ensure_no_conflict(db: Session, candidate: WeeklySlot, exclude_slot_id: str | None = None) -> None:
    existing = list(
        db.execute(
            select(ScheduleSlot)
            .where(ScheduleSlot.day_of_week == candidate.day_of_week)
            .order_by(ScheduleSlot.start_time, ScheduleSlot.id)
        ).scalars()
    )
    conflict = find_conflicting_slot(candidate, existing, exclude_slot_id=exclude_slot_id)
    if conflict is None:
        return
    conflict_course = db.get(Course, conflict.course_id)
    summary = slot_summary(conflict, conflict_course.title if conflict_course else None)
    day = Weekday.parse(candidate.day_of_week).display_name
    logger.info(
        "Rejected slot %s %s-%s: overlaps slot %s (%s-%s)",
        day,
        candidate.start_time,
        candidate.end_time,
        conflict.id,
        conflict.start_time,
        conflict.end_time,
    )
    raise ConflictError(
        f"Schedule conflict: {day} {candidate.start_time}-{candidate.end_time} overlaps "
        f"an existing booking {conflict.start_time}-{conflict.end_time}",
        summary,
    )


def create_slots(
    db: Session,
    *,
    course_id: str,
    days: Iterable[int | str],
    start_time: str,
    end_time: str,
    is_active: bool = True,
    actor: User | None = None,
) -> list[ScheduleSlot]:
    """Create one slot per day. Either every slot is written or none is."""
    normalized: list[int] = []
    for day in days:
        day_number, start_time, end_time = normalize_slot_fields(day, start_time, end_time)
        if day_number not in normalized:
            normalized.append(day_number)
    if not normalized:
        raise SlotValidationError("At least one day is required", details={"field": "days"})

    created: list[ScheduleSlot] = []
    with booking_transaction(db, normalized):
        _get_course(db, course_id)
        for day_number in normalized:
            slot = ScheduleSlot(
                course_id=course_id,
                day_of_week=day_number,
                start_time=start_time,
                end_time=end_time,
                is_active=is_active,
            )
            _ensure_no_conflict(db, slot)
            db.add(slot)
            db.flush()
            log_slot_change(db, user=actor, action="created", slot=slot)
            created.append(slot)

    for slot in created:
        db.refresh(slot)
    logger.info("Created %d slot(s) for course %s", len(created), course_id)
    return created


def create_slot(
    db: Session,
    *,
    course_id: str,
    day_of_week: int | str,
    start_time: str,
    end_time: str,
    is_active: bool = True,
    actor: User | None = None,
) -> ScheduleSlot:
    return create_slots(
        db,
        course_id=course_id,
        days=[day_of_week],
        start_time=start_time,
        end_time=end_time,
        is_active=is_active,
        actor=actor,
    )[0]


def update_slot(db: Session, slot_id: str, *, changes: dict, actor: User | None = None) -> ScheduleSlot:
    """Apply ``changes`` (course_id, day_of_week, start_time, end_time, is_active).

    The stored row is re-read under the booking lock, so a partial edit merges
    onto the latest committed values rather than a stale copy.
    """
    current = db.get(ScheduleSlot, slot_id)
    if current is None:
        raise ResourceNotFoundError("Schedule slot", slot_id)
    lock_days = {current.day_of_week}
    if "day_of_week" in changes:
        try:
            lock_days.add(int(Weekday.parse(changes["day_of_week"])))
        except ValueError as exc:
            raise SlotValidationError(str(exc), details={"field": "dayOfWeek"}) from exc

    with booking_transaction(db, lock_days):
        slot = db.get(ScheduleSlot, slot_id, populate_existing=True)
        if slot is None:
            raise ResourceNotFoundError("Schedule slot", slot_id)
        # The row may have moved to another weekday while we waited.
        _lock_days(db, [slot.day_of_week])

        day_number, start_time, end_time = normalize_slot_fields(
            changes.get("day_of_week", slot.day_of_week),
            changes.get("start_time", slot.start_time),
            changes.get("end_time", slot.end_time),
        )
        course_id = changes.get("course_id") or slot.course_id
        is_active = bool(changes.get("is_active", slot.is_active))
        candidate = SlotSnapshot(
            id=slot.id,
            course_id=course_id,
            day_of_week=day_number,
            start_time=start_time,
            end_time=end_time,
            is_active=is_active,
        )
        if course_id != slot.course_id:
            _get_course(db, course_id)
        _ensure_no_conflict(db, candidate, exclude_slot_id=slot.id)
        previous = slot_state(slot)
        slot.course_id = course_id
        slot.day_of_week = day_number
        slot.start_time = start_time
        slot.end_time = end_time
        slot.is_active = is_active
        db.flush()
        log_slot_change(db, user=actor, action="updated", slot=slot, previous=previous)

    db.refresh(slot)
    return slot


def delete_slot(db: Session, slot_id: str, *, actor: User | None = None) -> None:
    slot = db.get(ScheduleSlot, slot_id)
    if slot is None:
        raise ResourceNotFoundError("Schedule slot", slot_id)
    course_id = slot.course_id
    with booking_transaction(db, [slot.day_of_week]):
        log_slot_change(db, user=actor, action="deleted", slot=slot)
        db.delete(slot)
    logger.info("Deleted slot %s of course %s", slot_id, course_id)
