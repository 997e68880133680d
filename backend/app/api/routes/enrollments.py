from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import ensure_can_manage_course, get_current_user, get_db
from app.models.course import Course
from app.models.enrollment import Enrollment, EnrollmentStatus
from app.models.user import User, UserRole
from app.schemas.enrollment import EnrollmentCreate, EnrollmentOut, EnrollmentUpdate
from app.services.audit import log_activity

router = APIRouter()


@router.get("/me", response_model=list[EnrollmentOut])
def my_enrollments(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> list[EnrollmentOut]:
    return list(db.execute(select(Enrollment).where(Enrollment.user_id == current_user.id)).scalars())


@router.post("/", response_model=EnrollmentOut, status_code=status.HTTP_201_CREATED)
def create_enrollment(
    payload: EnrollmentCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> EnrollmentOut:
    course = db.get(Course, payload.course_id)
    if course is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")

    user_id = payload.user_id or current_user.id
    if user_id != current_user.id:
        ensure_can_manage_course(course, current_user)
    elif current_user.role == UserRole.student and not course.is_public and payload.status == EnrollmentStatus.active:
        # Students may request a private course but not activate themselves.
        payload.status = EnrollmentStatus.pending
    if db.get(User, user_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    existing = db.execute(
        select(Enrollment).where(Enrollment.user_id == user_id, Enrollment.course_id == course.id)
    ).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User is already enrolled in this course")

    enrollment = Enrollment(user_id=user_id, course_id=course.id, status=payload.status)
    db.add(enrollment)
    db.flush()
    log_activity(
        db,
        user=current_user,
        action="enrollment.created",
        entity_type="enrollment",
        entity_id=enrollment.id,
        details={"user_id": user_id, "course_id": course.id, "status": enrollment.status.value},
    )
    db.commit()
    db.refresh(enrollment)
    return enrollment


@router.put("/{enrollment_id}", response_model=EnrollmentOut)
def update_enrollment(
    enrollment_id: str,
    payload: EnrollmentUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> EnrollmentOut:
    enrollment = db.get(Enrollment, enrollment_id)
    if enrollment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Enrollment not found")

    is_self_drop = enrollment.user_id == current_user.id and payload.status == EnrollmentStatus.dropped
    if not is_self_drop:
        ensure_can_manage_course(enrollment.course, current_user)

    previous = enrollment.status
    enrollment.status = payload.status
    log_activity(
        db,
        user=current_user,
        action="enrollment.updated",
        entity_type="enrollment",
        entity_id=enrollment.id,
        details={"from": previous.value, "to": payload.status.value},
    )
    db.commit()
    db.refresh(enrollment)
    return enrollment
