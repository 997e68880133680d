from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_roles
from app.core.weekdays import day_name
from app.models.course import Course
from app.models.enrollment import Enrollment, EnrollmentStatus
from app.models.schedule_slot import ScheduleSlot
from app.models.user import User, UserRole
from app.schemas.conflict import ConflictReport
from app.schemas.schedule import (
    CourseSummary,
    ScheduleBatchCreate,
    ScheduleSlotCreate,
    ScheduleSlotOut,
    ScheduleSlotUpdate,
)
from app.services import schedule_service
from app.services.conflict_service import detect_conflicts

router = APIRouter()


def _enrollment_counts(db: Session, course_ids: set[str]) -> dict[str, int]:
    if not course_ids:
        return {}
    rows = db.execute(
        select(Enrollment.course_id, func.count(Enrollment.id))
        .where(Enrollment.course_id.in_(course_ids), Enrollment.status == EnrollmentStatus.active)
        .group_by(Enrollment.course_id)
    ).all()
    return {course_id: count for course_id, count in rows}


def _slot_out(slot: ScheduleSlot, course: Course | None, enrollment_count: int = 0) -> ScheduleSlotOut:
    summary = None
    if course is not None:
        summary = CourseSummary(
            id=course.id,
            code=course.code,
            title=course.title,
            startDate=course.start_date.isoformat() if course.start_date else None,
        )
    return ScheduleSlotOut(
        id=slot.id,
        courseId=slot.course_id,
        dayOfWeek=slot.day_of_week,
        dayName=day_name(slot.day_of_week),
        startTime=slot.start_time,
        endTime=slot.end_time,
        isActive=slot.is_active,
        course=summary,
        currentEnrollments=enrollment_count,
    )


def _slots_out(db: Session, slots: list[ScheduleSlot]) -> list[ScheduleSlotOut]:
    course_ids = {slot.course_id for slot in slots}
    courses = {
        course.id: course
        for course in db.execute(select(Course).where(Course.id.in_(course_ids))).scalars()
    } if course_ids else {}
    counts = _enrollment_counts(db, course_ids)
    return [_slot_out(slot, courses.get(slot.course_id), counts.get(slot.course_id, 0)) for slot in slots]


@router.get("/", response_model=list[ScheduleSlotOut])
def list_slots(
    course_id: str | None = Query(default=None, alias="courseId"),
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> list[ScheduleSlotOut]:
    query = select(ScheduleSlot).order_by(ScheduleSlot.day_of_week, ScheduleSlot.start_time, ScheduleSlot.id)
    if course_id is not None:
        query = query.where(ScheduleSlot.course_id == course_id)
    return _slots_out(db, list(db.execute(query).scalars()))


@router.get("/conflicts", response_model=ConflictReport)
def report_conflicts(
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> ConflictReport:
    slots = list(db.execute(select(ScheduleSlot)).scalars())
    titles = {course_id: title for course_id, title in db.execute(select(Course.id, Course.title)).all()}
    return detect_conflicts(slots, titles)


@router.get("/{slot_id}", response_model=ScheduleSlotOut)
def get_slot(
    slot_id: str,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> ScheduleSlotOut:
    slot = db.get(ScheduleSlot, slot_id)
    if slot is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Schedule slot not found")
    return _slots_out(db, [slot])[0]


@router.post("/", response_model=ScheduleSlotOut, status_code=status.HTTP_201_CREATED)
def create_slot(
    payload: ScheduleSlotCreate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> ScheduleSlotOut:
    slot = schedule_service.create_slot(
        db,
        course_id=payload.courseId,
        day_of_week=payload.dayOfWeek,
        start_time=payload.startTime,
        end_time=payload.endTime,
        is_active=payload.isActive,
        actor=current_user,
    )
    return _slots_out(db, [slot])[0]


@router.post("/batch", response_model=list[ScheduleSlotOut], status_code=status.HTTP_201_CREATED)
def create_slots(
    payload: ScheduleBatchCreate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> list[ScheduleSlotOut]:
    slots = schedule_service.create_slots(
        db,
        course_id=payload.courseId,
        days=payload.days,
        start_time=payload.startTime,
        end_time=payload.endTime,
        is_active=payload.isActive,
        actor=current_user,
    )
    return _slots_out(db, slots)


@router.put("/{slot_id}", response_model=ScheduleSlotOut)
def update_slot(
    slot_id: str,
    payload: ScheduleSlotUpdate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> ScheduleSlotOut:
    slot = schedule_service.update_slot(db, slot_id, changes=payload.to_changes(), actor=current_user)
    return _slots_out(db, [slot])[0]


@router.delete("/{slot_id}")
def delete_slot(
    slot_id: str,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> dict:
    schedule_service.delete_slot(db, slot_id, actor=current_user)
    return {"success": True}
