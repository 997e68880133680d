"""Event view builder.

Merges expanded class occurrences with assignment deadlines into one ordered
list of calendar events. The builder is pure: it takes detached snapshots of
courses, assignments and the viewer's enrollments and never touches the
database.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Iterable
from zoneinfo import ZoneInfo

from app.core.exceptions import DataIntegrityError
from app.models.enrollment import EnrollmentStatus
from app.models.user import UserRole
from app.services.civil_time import get_calendar_zone, to_civil
from app.services.recurrence import expand

logger = logging.getLogger(__name__)

DEFAULT_INSTRUCTOR = "TBD"


class EventType(str, Enum):
    class_ = "CLASS"
    assignment = "ASSIGNMENT"


EVENT_TYPE_ORDER = {EventType.class_: 0, EventType.assignment: 1}


@dataclass(frozen=True)
class SlotSnapshot:
    id: str
    course_id: str
    day_of_week: int
    start_time: str
    end_time: str
    is_active: bool = True


@dataclass(frozen=True)
class CourseSnapshot:
    id: str
    title: str
    instructor_name: str | None = None
    instructor_id: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    is_public: bool = False
    slots: tuple[SlotSnapshot, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class AssignmentSnapshot:
    id: str
    course_id: str
    title: str
    due_date: datetime | None
    is_published: bool


@dataclass(frozen=True)
class EnrollmentSnapshot:
    user_id: str
    course_id: str
    status: EnrollmentStatus


@dataclass(frozen=True)
class CalendarEvent:
    id: str
    title: str
    course_id: str
    course_title: str
    instructor: str
    type: EventType
    date: date
    start_time: str
    end_time: str
    is_enrolled: bool

    def sort_key(self) -> tuple:
        return (self.date, self.start_time, EVENT_TYPE_ORDER[self.type], self.title, self.id)


def enrolled_course_ids(enrollments: Iterable[EnrollmentSnapshot]) -> set[str]:
    return {item.course_id for item in enrollments if item.status == EnrollmentStatus.active}


def visible_course_ids(
    courses: Iterable[CourseSnapshot],
    enrollments: Iterable[EnrollmentSnapshot],
    *,
    viewer_id: str,
    viewer_role: UserRole,
) -> set[str]:
    """Courses whose events this viewer may see."""
    courses = list(courses)
    if viewer_role == UserRole.admin:
        return {course.id for course in courses}
    enrolled = enrolled_course_ids(enrollments)
    visible = {course.id for course in courses if course.id in enrolled or course.is_public}
    if viewer_role == UserRole.instructor:
        visible |= {course.id for course in courses if course.instructor_id == viewer_id}
    return visible


def _class_events(
    course: CourseSnapshot,
    window_start: date,
    window_end: date,
    is_enrolled: bool,
) -> list[CalendarEvent]:
    events: list[CalendarEvent] = []
    # Without a start date there is no anchor for the recurrence.
    if course.start_date is None:
        return events
    instructor = course.instructor_name or DEFAULT_INSTRUCTOR
    for slot in course.slots:
        try:
            occurrences = expand(
                slot,
                window_start,
                window_end,
                course_start=course.start_date,
                course_end=course.end_date,
            )
        except DataIntegrityError as exc:
            logger.warning("Skipping slot %s of course %s: %s", slot.id, course.id, exc.message)
            continue
        for occurrence in occurrences:
            events.append(
                CalendarEvent(
                    id=f"class-{slot.id}-{occurrence.isoformat()}",
                    title=course.title,
                    course_id=course.id,
                    course_title=course.title,
                    instructor=instructor,
                    type=EventType.class_,
                    date=occurrence,
                    start_time=slot.start_time,
                    end_time=slot.end_time,
                    is_enrolled=is_enrolled,
                )
            )
    return events


def build_events(
    courses: Iterable[CourseSnapshot],
    assignments: Iterable[AssignmentSnapshot],
    enrollments: Iterable[EnrollmentSnapshot],
    window_start: date,
    window_end: date,
    *,
    zone: ZoneInfo | None = None,
) -> list[CalendarEvent]:
    """Ordered CLASS and ASSIGNMENT events for ``[window_start, window_end]``.

    Ordering is by date and start time; on ties CLASS comes before
    ASSIGNMENT, then title. An inverted window returns an empty list.
    """
    if window_end < window_start:
        return []
    zone = zone or get_calendar_zone()
    enrolled = enrolled_course_ids(enrollments)
    course_by_id = {course.id: course for course in courses}

    events: list[CalendarEvent] = []
    for course in course_by_id.values():
        events.extend(_class_events(course, window_start, window_end, course.id in enrolled))

    for assignment in assignments:
        if not assignment.is_published or assignment.due_date is None:
            continue
        course = course_by_id.get(assignment.course_id)
        if course is None:
            continue
        due_day, due_time = to_civil(assignment.due_date, zone)
        if due_day < window_start or due_day > window_end:
            continue
        events.append(
            CalendarEvent(
                id=f"assignment-{assignment.id}",
                title=f"Due: {assignment.title}",
                course_id=course.id,
                course_title=course.title,
                instructor=course.instructor_name or DEFAULT_INSTRUCTOR,
                type=EventType.assignment,
                date=due_day,
                start_time=due_time,
                end_time=due_time,
                is_enrolled=course.id in enrolled,
            )
        )

    events.sort(key=CalendarEvent.sort_key)
    return events
