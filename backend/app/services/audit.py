from __future__ import annotations

from sqlalchemy.orm import Session

from app.core.weekdays import Weekday
from app.models.activity_log import ActivityLog
from app.models.schedule_slot import ScheduleSlot
from app.models.user import User


def log_activity(
    db: Session,
    *,
    user: User | None,
    action: str,
    entity_type: str | None = None,
    entity_id: str | None = None,
    details: dict | None = None,
) -> None:
    record = ActivityLog(
        user_id=user.id if user is not None else None,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details=details or {},
    )
    db.add(record)


def slot_state(slot: ScheduleSlot) -> dict:
    return {
        "course_id": slot.course_id,
        "day_of_week": slot.day_of_week,
        "day_name": Weekday.parse(slot.day_of_week).display_name,
        "start_time": slot.start_time,
        "end_time": slot.end_time,
        "is_active": bool(slot.is_active),
    }


def log_slot_change(
    db: Session,
    *,
    user: User | None,
    action: str,
    slot: ScheduleSlot,
    previous: dict | None = None,
) -> None:
    details = {"slot": slot_state(slot)}
    if previous is not None:
        details["previous"] = previous
    log_activity(
        db,
        user=user,
        action=f"schedule_slot.{action}",
        entity_type="schedule_slot",
        entity_id=slot.id,
        details=details,
    )
