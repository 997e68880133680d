from pydantic import BaseModel, Field, field_validator, model_validator

from app.core.weekdays import Weekday
from app.services.civil_time import TIME_PATTERN, parse_time_to_minutes


def _validate_day(value: int | str) -> int:
    return int(Weekday.parse(value))


def _validate_time(value: str) -> str:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    return value


class ScheduleSlotCreate(BaseModel):
    courseId: str = Field(min_length=1, max_length=36)
    dayOfWeek: int | str
    startTime: str
    endTime: str
    isActive: bool = True

    @field_validator("dayOfWeek")
    @classmethod
    def validate_day(cls, value: int | str) -> int:
        return _validate_day(value)

    @field_validator("startTime", "endTime")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        return _validate_time(value)

    @model_validator(mode="after")
    def validate_order(self) -> "ScheduleSlotCreate":
        if parse_time_to_minutes(self.endTime) <= parse_time_to_minutes(self.startTime):
            raise ValueError("endTime must be after startTime")
        return self


class ScheduleBatchCreate(BaseModel):
    courseId: str = Field(min_length=1, max_length=36)
    days: list[int | str] = Field(min_length=1, max_length=7)
    startTime: str
    endTime: str
    isActive: bool = True

    @field_validator("days")
    @classmethod
    def validate_days(cls, value: list[int | str]) -> list[int]:
        days: list[int] = []
        for item in value:
            day = _validate_day(item)
            if day not in days:
                days.append(day)
        return days

    @field_validator("startTime", "endTime")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        return _validate_time(value)

    @model_validator(mode="after")
    def validate_order(self) -> "ScheduleBatchCreate":
        if parse_time_to_minutes(self.endTime) <= parse_time_to_minutes(self.startTime):
            raise ValueError("endTime must be after startTime")
        return self


class ScheduleSlotUpdate(BaseModel):
    courseId: str | None = Field(default=None, min_length=1, max_length=36)
    dayOfWeek: int | str | None = None
    startTime: str | None = None
    endTime: str | None = None
    isActive: bool | None = None

    @field_validator("dayOfWeek")
    @classmethod
    def validate_day(cls, value: int | str | None) -> int | None:
        return None if value is None else _validate_day(value)

    @field_validator("startTime", "endTime")
    @classmethod
    def validate_time_format(cls, value: str | None) -> str | None:
        return None if value is None else _validate_time(value)

    def to_changes(self) -> dict:
        fields = {
            "courseId": "course_id",
            "dayOfWeek": "day_of_week",
            "startTime": "start_time",
            "endTime": "end_time",
            "isActive": "is_active",
        }
        data = self.model_dump(exclude_unset=True, exclude_none=True)
        return {fields[key]: value for key, value in data.items()}


class CourseSummary(BaseModel):
    id: str
    code: str
    title: str
    startDate: str | None = None


class ScheduleSlotOut(BaseModel):
    id: str
    courseId: str
    dayOfWeek: int
    dayName: str
    startTime: str
    endTime: str
    isActive: bool
    course: CourseSummary | None = None
    currentEnrollments: int = 0
