from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import ensure_can_manage_course, get_current_user, get_db, require_roles
from app.models.assignment import Assignment
from app.models.course import Course
from app.models.user import User, UserRole
from app.schemas.assignment import AssignmentCreate, AssignmentOut, AssignmentUpdate
from app.services.audit import log_activity

router = APIRouter()


@router.get("/", response_model=list[AssignmentOut])
def list_assignments(
    course_id: str = Query(min_length=1, max_length=36),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[AssignmentOut]:
    query = select(Assignment).where(Assignment.course_id == course_id).order_by(Assignment.due_date, Assignment.title)
    if current_user.role == UserRole.student:
        query = query.where(Assignment.is_published.is_(True))
    return list(db.execute(query).scalars())


@router.post("/", response_model=AssignmentOut, status_code=status.HTTP_201_CREATED)
def create_assignment(
    payload: AssignmentCreate,
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.instructor)),
    db: Session = Depends(get_db),
) -> AssignmentOut:
    course = db.get(Course, payload.course_id)
    if course is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")
    ensure_can_manage_course(course, current_user)

    assignment = Assignment(**payload.model_dump())
    db.add(assignment)
    db.flush()
    log_activity(
        db,
        user=current_user,
        action="assignment.created",
        entity_type="assignment",
        entity_id=assignment.id,
        details={"course_id": course.id, "is_published": assignment.is_published},
    )
    db.commit()
    db.refresh(assignment)
    return assignment


@router.put("/{assignment_id}", response_model=AssignmentOut)
def update_assignment(
    assignment_id: str,
    payload: AssignmentUpdate,
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.instructor)),
    db: Session = Depends(get_db),
) -> AssignmentOut:
    assignment = db.get(Assignment, assignment_id)
    if assignment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assignment not found")
    ensure_can_manage_course(assignment.course, current_user)

    data = payload.model_dump(exclude_unset=True)
    for key, value in data.items():
        setattr(assignment, key, value)
    if data:
        log_activity(
            db,
            user=current_user,
            action="assignment.updated",
            entity_type="assignment",
            entity_id=assignment.id,
            details={"changed_fields": sorted(data.keys())},
        )
    db.commit()
    db.refresh(assignment)
    return assignment
