import threading
from datetime import date

import pytest
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import sessionmaker

from app.core.exceptions import ConflictError, ResourceNotFoundError, SlotValidationError
from app.core.weekdays import Weekday
from app.db.base import Base
from app.models.activity_log import ActivityLog
from app.models.course import Course
from app.models.schedule_slot import ScheduleSlot
from app.services import schedule_service


def _course(db, code="MATH101", title="Calculus"):
    course = Course(code=code, title=title, start_date=date(2025, 8, 5), is_public=True)
    db.add(course)
    db.commit()
    db.refresh(course)
    return course


def _slot_count(db) -> int:
    return db.execute(select(func.count(ScheduleSlot.id))).scalar_one()


def test_create_slot_persists_and_logs(db_session):
    course = _course(db_session)
    slot = schedule_service.create_slot(
        db_session, course_id=course.id, day_of_week="Monday", start_time="09:00", end_time="10:00"
    )
    assert slot.day_of_week == Weekday.monday
    assert slot.is_active is True

    log = db_session.execute(select(ActivityLog)).scalar_one()
    assert log.action == "schedule_slot.created"
    assert log.entity_id == slot.id
    assert log.details["slot"]["day_name"] == "Monday"


def test_overlapping_slot_is_rejected_with_conflicting_slot(db_session):
    course = _course(db_session)
    other = _course(db_session, code="PHYS101", title="Physics")
    existing = schedule_service.create_slot(
        db_session, course_id=course.id, day_of_week=1, start_time="09:00", end_time="10:00"
    )

    with pytest.raises(ConflictError) as exc_info:
        schedule_service.create_slot(
            db_session, course_id=other.id, day_of_week=1, start_time="09:30", end_time="10:30"
        )
    conflicting = exc_info.value.conflicting_slot
    assert conflicting["id"] == existing.id
    assert conflicting["courseTitle"] == "Calculus"
    assert conflicting["dayName"] == "Monday"
    assert exc_info.value.status_code == 409
    assert _slot_count(db_session) == 1


def test_back_to_back_and_other_day_are_accepted(db_session):
    course = _course(db_session)
    schedule_service.create_slot(db_session, course_id=course.id, day_of_week=1, start_time="09:00", end_time="10:00")
    schedule_service.create_slot(db_session, course_id=course.id, day_of_week=1, start_time="10:00", end_time="11:00")
    schedule_service.create_slot(db_session, course_id=course.id, day_of_week=2, start_time="09:30", end_time="10:30")
    assert _slot_count(db_session) == 3


def test_inactive_slots_still_hold_their_time(db_session):
    course = _course(db_session)
    schedule_service.create_slot(
        db_session, course_id=course.id, day_of_week=3, start_time="13:00", end_time="14:00", is_active=False
    )
    with pytest.raises(ConflictError):
        schedule_service.create_slot(
            db_session, course_id=course.id, day_of_week=3, start_time="13:30", end_time="14:30"
        )


def test_batch_create_is_all_or_nothing(db_session):
    course = _course(db_session)
    schedule_service.create_slot(db_session, course_id=course.id, day_of_week=5, start_time="09:00", end_time="10:00")

    with pytest.raises(ConflictError):
        schedule_service.create_slots(
            db_session,
            course_id=course.id,
            days=[1, 3, 5],
            start_time="09:00",
            end_time="10:00",
        )
    assert _slot_count(db_session) == 1

    created = schedule_service.create_slots(
        db_session, course_id=course.id, days=["mon", "wed", 3], start_time="09:00", end_time="10:00"
    )
    assert sorted(slot.day_of_week for slot in created) == [1, 3]


@pytest.mark.parametrize(
    "day, start, end",
    [(7, "09:00", "10:00"), (1, "10:00", "09:00"), (1, "10:00", "10:00"), (1, "9:00", "10:00")],
)
def test_invalid_slot_fields_are_rejected(db_session, day, start, end):
    course = _course(db_session)
    with pytest.raises(SlotValidationError):
        schedule_service.create_slot(db_session, course_id=course.id, day_of_week=day, start_time=start, end_time=end)
    assert _slot_count(db_session) == 0


def test_unknown_course_is_not_found(db_session):
    with pytest.raises(ResourceNotFoundError):
        schedule_service.create_slot(db_session, course_id="missing", day_of_week=1, start_time="09:00", end_time="10:00")


def test_update_excludes_the_slot_being_moved(db_session):
    course = _course(db_session)
    slot = schedule_service.create_slot(
        db_session, course_id=course.id, day_of_week=1, start_time="09:00", end_time="10:00"
    )
    updated = schedule_service.update_slot(db_session, slot.id, changes={"start_time": "09:30", "end_time": "10:30"})
    assert (updated.start_time, updated.end_time) == ("09:30", "10:30")

    logs = list(db_session.execute(select(ActivityLog).where(ActivityLog.action == "schedule_slot.updated")).scalars())
    assert logs[0].details["previous"]["start_time"] == "09:00"


def test_update_into_a_booked_time_is_rejected(db_session):
    course = _course(db_session)
    schedule_service.create_slot(db_session, course_id=course.id, day_of_week=2, start_time="09:00", end_time="10:00")
    movable = schedule_service.create_slot(
        db_session, course_id=course.id, day_of_week=1, start_time="09:00", end_time="10:00"
    )
    with pytest.raises(ConflictError):
        schedule_service.update_slot(db_session, movable.id, changes={"day_of_week": 2})
    db_session.refresh(movable)
    assert movable.day_of_week == 1


def test_delete_frees_the_time(db_session):
    course = _course(db_session)
    slot = schedule_service.create_slot(
        db_session, course_id=course.id, day_of_week=4, start_time="09:00", end_time="10:00"
    )
    schedule_service.delete_slot(db_session, slot.id)
    schedule_service.create_slot(db_session, course_id=course.id, day_of_week=4, start_time="09:00", end_time="10:00")
    assert _slot_count(db_session) == 1

    with pytest.raises(ResourceNotFoundError):
        schedule_service.delete_slot(db_session, "missing")


def test_concurrent_overlapping_bookings_only_one_wins(tmp_path):
    engine = create_engine(f"sqlite+pysqlite:///{tmp_path / 'race.db'}", connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    with Session() as setup:
        first_course = _course(setup, code="A1", title="First")
        second_course = _course(setup, code="B1", title="Second")
        course_ids = [first_course.id, second_course.id]

    barrier = threading.Barrier(2)
    results: dict[str, object] = {}

    def book(course_id: str, start: str, end: str) -> None:
        with Session() as db:
            barrier.wait()
            try:
                slot = schedule_service.create_slot(
                    db, course_id=course_id, day_of_week=1, start_time=start, end_time=end
                )
                results[course_id] = slot.id
            except ConflictError as exc:
                results[course_id] = exc

    threads = [
        threading.Thread(target=book, args=(course_ids[0], "09:00", "10:00")),
        threading.Thread(target=book, args=(course_ids[1], "09:30", "10:30")),
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)

    winners = {key: value for key, value in results.items() if isinstance(value, str)}
    losers = {key: value for key, value in results.items() if isinstance(value, ConflictError)}
    assert len(winners) == 1
    assert len(losers) == 1
    (winning_slot_id,) = winners.values()
    (error,) = losers.values()
    assert error.conflicting_slot["id"] == winning_slot_id

    with Session() as db:
        assert _slot_count(db) == 1
    engine.dispose()


def test_partial_update_merges_onto_latest_committed_values(session_factory):
    first = session_factory()
    second = session_factory()
    try:
        course = _course(first)
        slot = schedule_service.create_slot(
            first, course_id=course.id, day_of_week=1, start_time="09:00", end_time="10:00"
        )
        # ``first`` now holds a copy of the row that is about to go stale.
        assert first.get(ScheduleSlot, slot.id).end_time == "10:00"

        schedule_service.update_slot(second, slot.id, changes={"end_time": "11:00"})
        updated = schedule_service.update_slot(first, slot.id, changes={"start_time": "08:30"})

        assert (updated.start_time, updated.end_time) == ("08:30", "11:00")
    finally:
        first.close()
        second.close()
