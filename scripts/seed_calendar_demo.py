"""Seed demo accounts, courses, weekly slots and deadlines for calendar checks.

There is no login endpoint, so the script prints a bearer token per account.

Run:
  PYTHONPATH=backend python scripts/seed_calendar_demo.py
"""

from __future__ import annotations

import os
from datetime import date, datetime, timedelta, timezone
from typing import Iterable

from sqlalchemy import select

from app.core.exceptions import ConflictError
from app.core.security import create_access_token
from app.db.bootstrap import ensure_runtime_schema_compatibility
from app.db.session import SessionLocal
from app.models.assignment import Assignment
from app.models.course import Course, DurationUnit
from app.models.enrollment import Enrollment, EnrollmentStatus
from app.models.user import User, UserRole
from app.services import schedule_service
from app.services.civil_time import today


def _env_email(key: str, default: str) -> str:
    value = os.getenv(key, "").strip()
    return value or default


DEMO_ACCOUNTS = {
    "admin": {
        "name": "Demo Admin",
        "email": _env_email("DEMO_ADMIN_EMAIL", "admin.demo@example.com"),
        "role": UserRole.admin,
    },
    "instructor": {
        "name": "Dr. Demo Instructor",
        "email": _env_email("DEMO_INSTRUCTOR_EMAIL", "instructor.demo@example.com"),
        "role": UserRole.instructor,
    },
    "student": {
        "name": "Demo Student",
        "email": _env_email("DEMO_STUDENT_EMAIL", "student.demo@example.com"),
        "role": UserRole.student,
    },
}

DEMO_COURSES = [
    {
        "code": "DEMO-101",
        "title": "Demo Course A",
        "is_public": True,
        "duration": 16,
        "slots": [("Monday", "09:00", "10:30"), ("Wednesday", "09:00", "10:30")],
    },
    {
        "code": "DEMO-201",
        "title": "Demo Course B",
        "is_public": False,
        "duration": 12,
        "slots": [("Tuesday", "14:00", "15:30")],
    },
]


def _upsert_user(*, name: str, email: str, role: UserRole) -> User:
    with SessionLocal() as session:
        existing = session.execute(select(User).where(User.email == email)).scalar_one_or_none()
        if existing is None:
            existing = User(name=name, email=email, role=role, is_active=True)
            session.add(existing)
        else:
            existing.name = name
            existing.role = role
            existing.is_active = True
        session.commit()
        session.refresh(existing)
        return existing


def _upsert_course(item: dict, instructor: User, start_date: date) -> Course:
    with SessionLocal() as session:
        course = session.execute(select(Course).where(Course.code == item["code"])).scalar_one_or_none()
        if course is None:
            course = Course(code=item["code"])
            session.add(course)
        course.title = item["title"]
        course.is_public = item["is_public"]
        course.instructor_id = instructor.id
        course.instructor_name = instructor.name
        course.start_date = start_date
        course.duration = item["duration"]
        course.duration_unit = DurationUnit.weeks
        session.commit()
        session.refresh(course)
        return course


def _book_slots(course: Course, slots: Iterable[tuple[str, str, str]], admin: User) -> None:
    with SessionLocal() as session:
        for day, start, end in slots:
            try:
                schedule_service.create_slot(
                    session,
                    course_id=course.id,
                    day_of_week=day,
                    start_time=start,
                    end_time=end,
                    actor=admin,
                )
            except ConflictError as exc:
                print(f"  skipped {course.code} {day} {start}-{end}: {exc.message}")


def _ensure_deadline(course: Course, title: str, due: datetime) -> None:
    with SessionLocal() as session:
        existing = session.execute(
            select(Assignment).where(Assignment.course_id == course.id, Assignment.title == title)
        ).scalar_one_or_none()
        if existing is None:
            existing = Assignment(course_id=course.id, title=title)
            session.add(existing)
        existing.due_date = due
        existing.is_published = True
        session.commit()


def _ensure_enrollment(user: User, course: Course) -> None:
    with SessionLocal() as session:
        existing = session.execute(
            select(Enrollment).where(Enrollment.user_id == user.id, Enrollment.course_id == course.id)
        ).scalar_one_or_none()
        if existing is None:
            existing = Enrollment(user_id=user.id, course_id=course.id)
            session.add(existing)
        existing.status = EnrollmentStatus.active
        session.commit()


def _print_accounts(items: Iterable[tuple[str, User]]) -> None:
    print("\nDemo accounts ready:")
    for label, user in items:
        print(f"  - {label}: {user.email} | role={user.role.value}")
        print(f"    Authorization: Bearer {create_access_token(user.id, role=user.role.value)}")
    print("\nExpected calendar visibility:")
    print("  - admin sees both demo courses")
    print("  - instructor sees both courses they teach")
    print("  - student sees Demo Course A (enrolled) and its deadline only")


def main() -> None:
    ensure_runtime_schema_compatibility()

    users = {key: _upsert_user(**item) for key, item in DEMO_ACCOUNTS.items()}
    start_date = today() - timedelta(days=14)

    courses = []
    for item in DEMO_COURSES:
        course = _upsert_course(item, users["instructor"], start_date)
        _book_slots(course, item["slots"], users["admin"])
        courses.append(course)

    _ensure_deadline(courses[0], "Problem set 1", datetime.now(timezone.utc) + timedelta(days=3))
    _ensure_enrollment(users["student"], courses[0])
    _print_accounts(users.items())


if __name__ == "__main__":
    main()
