from collections.abc import Callable, Generator, Iterable
from datetime import date, timedelta

from fastapi import Depends, HTTPException, Query, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.security import decode_token
from app.db.session import SessionLocal
from app.models.course import Course
from app.models.user import User, UserRole
from app.services.civil_time import parse_civil_date, today

security = HTTPBearer()


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    token = credentials.credentials
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_token(token)
        user_id = payload.get("sub")
        if user_id is None:
            raise credentials_exception
    except JWTError as exc:
        raise credentials_exception from exc

    user = db.get(User, user_id)
    if user is None:
        raise credentials_exception
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account is inactive")
    return user


def require_roles(*roles: UserRole) -> Callable[[User], User]:
    allowed_roles: Iterable[UserRole] = set(roles)

    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed_roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return current_user

    return role_checker


def ensure_can_manage_course(course: Course, user: User) -> None:
    if user.role == UserRole.admin:
        return
    if user.role == UserRole.instructor and course.instructor_id == user.id:
        return
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed to manage this course")


def get_calendar_window(
    start: str | None = Query(default=None, description="Civil date (YYYY-MM-DD) or ISO instant"),
    end: str | None = Query(default=None, description="Civil date (YYYY-MM-DD) or ISO instant"),
) -> tuple[date, date]:
    settings = get_settings()
    span = timedelta(days=settings.calendar_default_past_days + settings.calendar_default_future_days)
    try:
        window_start = (
            parse_civil_date(start)
            if start
            else today() - timedelta(days=settings.calendar_default_past_days)
        )
        if end:
            window_end = parse_civil_date(end)
        elif start:
            window_end = window_start + span
        else:
            window_end = today() + timedelta(days=settings.calendar_default_future_days)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid calendar window: {exc}") from exc

    if (window_end - window_start).days > settings.calendar_max_window_days:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Calendar window may span at most {settings.calendar_max_window_days} days",
        )
    return window_start, window_end
