from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db, require_roles
from app.models.course import Course
from app.models.enrollment import Enrollment, EnrollmentStatus
from app.models.user import User, UserRole
from app.schemas.course import CourseCreate, CourseOut, CourseUpdate
from app.services.audit import log_activity

router = APIRouter()


@router.get("/", response_model=list[CourseOut])
def list_courses(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> list[CourseOut]:
    query = select(Course).order_by(Course.code)
    if current_user.role != UserRole.admin:
        enrolled = select(Enrollment.course_id).where(
            Enrollment.user_id == current_user.id,
            Enrollment.status == EnrollmentStatus.active,
        )
        query = query.where(
            or_(Course.is_public.is_(True), Course.id.in_(enrolled), Course.instructor_id == current_user.id)
        )
    return list(db.execute(query).scalars())


@router.get("/{course_id}", response_model=CourseOut)
def get_course(
    course_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> CourseOut:
    course = db.get(Course, course_id)
    if course is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")
    return course


@router.post("/", response_model=CourseOut, status_code=status.HTTP_201_CREATED)
def create_course(
    payload: CourseCreate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> CourseOut:
    existing = db.execute(select(Course).where(Course.code == payload.code)).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Course code already exists")
    course = Course(**payload.model_dump())
    db.add(course)
    db.flush()
    log_activity(
        db,
        user=current_user,
        action="course.created",
        entity_type="course",
        entity_id=course.id,
        details={"code": course.code, "title": course.title},
    )
    db.commit()
    db.refresh(course)
    return course


@router.put("/{course_id}", response_model=CourseOut)
def update_course(
    course_id: str,
    payload: CourseUpdate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> CourseOut:
    course = db.get(Course, course_id)
    if course is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")

    data = payload.model_dump(exclude_unset=True)
    if "code" in data:
        existing = db.execute(select(Course).where(Course.code == data["code"], Course.id != course_id)).scalar_one_or_none()
        if existing:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Course code already exists")

    for key, value in data.items():
        setattr(course, key, value)
    if data:
        log_activity(
            db,
            user=current_user,
            action="course.updated",
            entity_type="course",
            entity_id=course.id,
            details={"changed_fields": sorted(data.keys())},
        )
    db.commit()
    db.refresh(course)
    return course


@router.delete("/{course_id}")
def delete_course(
    course_id: str,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> dict:
    course = db.get(Course, course_id)
    if course is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")
    # Slots, assignments and enrollments go with the course.
    log_activity(
        db,
        user=current_user,
        action="course.deleted",
        entity_type="course",
        entity_id=course.id,
        details={"code": course.code, "slot_count": len(course.slots)},
    )
    db.delete(course)
    db.commit()
    return {"success": True}
