from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_calendar_window, get_current_user, get_db
from app.models.user import User
from app.schemas.calendar import CalendarEventOut
from app.services.calendar_feed import calendar_for_viewer

router = APIRouter()


@router.get("/", response_model=list[CalendarEventOut])
def get_calendar(
    window: tuple[date, date] = Depends(get_calendar_window),
    enrolled_only: bool = Query(default=False, alias="enrolledOnly"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[CalendarEventOut]:
    window_start, window_end = window
    events = calendar_for_viewer(db, current_user, window_start, window_end, enrolled_only=enrolled_only)
    return [CalendarEventOut.from_event(event) for event in events]
