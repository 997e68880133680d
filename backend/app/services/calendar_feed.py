from __future__ import annotations

import logging
from datetime import date, timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from app.models.assignment import Assignment
from app.models.course import Course
from app.models.enrollment import Enrollment
from app.models.user import User
from app.services.calendar_events import (
    AssignmentSnapshot,
    CalendarEvent,
    CourseSnapshot,
    EnrollmentSnapshot,
    SlotSnapshot,
    build_events,
    enrolled_course_ids,
    visible_course_ids,
)
from app.services.civil_time import civil_day_bounds, get_calendar_zone

logger = logging.getLogger(__name__)


def _course_snapshot(course: Course) -> CourseSnapshot:
    return CourseSnapshot(
        id=course.id,
        title=course.title,
        instructor_name=course.instructor_name,
        instructor_id=course.instructor_id,
        start_date=course.start_date,
        end_date=course.end_date,
        is_public=bool(course.is_public),
        slots=tuple(
            SlotSnapshot(
                id=slot.id,
                course_id=slot.course_id,
                day_of_week=slot.day_of_week,
                start_time=slot.start_time,
                end_time=slot.end_time,
                is_active=bool(slot.is_active),
            )
            for slot in course.slots
        ),
    )


def load_calendar_snapshot(
    db: Session,
    viewer: User,
    window_start: date,
    window_end: date,
) -> tuple[list[CourseSnapshot], list[AssignmentSnapshot], list[EnrollmentSnapshot]]:
    """Read everything the event builder needs in one pass and detach it from the session."""
    zone = get_calendar_zone()
    enrollments = [
        EnrollmentSnapshot(user_id=row.user_id, course_id=row.course_id, status=row.status)
        for row in db.execute(select(Enrollment).where(Enrollment.user_id == viewer.id)).scalars()
    ]

    courses = [
        _course_snapshot(course)
        for course in db.execute(select(Course).options(selectinload(Course.slots))).scalars()
    ]

    # Pad by a day on each side; the builder applies the exact civil-day test.
    range_start, _ = civil_day_bounds(window_start - timedelta(days=1), zone)
    _, range_end = civil_day_bounds(window_end + timedelta(days=1), zone)
    assignment_rows = db.execute(
        select(Assignment).where(
            Assignment.is_published.is_(True),
            Assignment.due_date.is_not(None),
            Assignment.due_date >= range_start,
            Assignment.due_date <= range_end,
        )
    ).scalars()
    assignments = [
        AssignmentSnapshot(
            id=row.id,
            course_id=row.course_id,
            title=row.title,
            due_date=row.due_date,
            is_published=bool(row.is_published),
        )
        for row in assignment_rows
    ]
    return courses, assignments, enrollments


def calendar_for_viewer(
    db: Session,
    viewer: User,
    window_start: date,
    window_end: date,
    *,
    enrolled_only: bool = False,
) -> list[CalendarEvent]:
    if window_end < window_start:
        return []
    courses, assignments, enrollments = load_calendar_snapshot(db, viewer, window_start, window_end)

    allowed = visible_course_ids(courses, enrollments, viewer_id=viewer.id, viewer_role=viewer.role)
    if enrolled_only:
        allowed &= enrolled_course_ids(enrollments)
    visible_courses = [course for course in courses if course.id in allowed]

    events = build_events(visible_courses, assignments, enrollments, window_start, window_end)
    logger.debug(
        "Built %d calendar events for user %s between %s and %s",
        len(events),
        viewer.id,
        window_start,
        window_end,
    )
    return events
