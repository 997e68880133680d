from typing import Literal

from pydantic import BaseModel

from app.services.calendar_events import CalendarEvent


class CalendarEventOut(BaseModel):
    id: str
    title: str
    courseId: str
    courseTitle: str
    instructor: str
    type: Literal["CLASS", "ASSIGNMENT"]
    date: str
    startTime: str
    endTime: str
    isEnrolled: bool

    @classmethod
    def from_event(cls, event: CalendarEvent) -> "CalendarEventOut":
        return cls(
            id=event.id,
            title=event.title,
            courseId=event.course_id,
            courseTitle=event.course_title,
            instructor=event.instructor,
            type=event.type.value,
            date=event.date.isoformat(),
            startTime=event.start_time,
            endTime=event.end_time,
            isEnrolled=event.is_enrolled,
        )
