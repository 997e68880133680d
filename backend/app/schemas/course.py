from datetime import date

from pydantic import BaseModel, Field, field_validator

from app.models.course import DurationUnit


class CourseBase(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    title: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=5000)
    instructor_id: str | None = Field(default=None, max_length=36)
    instructor_name: str | None = Field(default=None, max_length=200)
    capacity: int = Field(default=30, ge=1, le=1000)
    is_public: bool = False
    start_date: date | None = None
    duration: int | None = Field(default=None, ge=1, le=520)
    duration_unit: DurationUnit = DurationUnit.weeks


class CourseCreate(CourseBase):
    pass


class CourseUpdate(BaseModel):
    code: str | None = Field(default=None, min_length=1, max_length=50)
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=5000)
    instructor_id: str | None = Field(default=None, max_length=36)
    instructor_name: str | None = Field(default=None, max_length=200)
    capacity: int | None = Field(default=None, ge=1, le=1000)
    is_public: bool | None = None
    start_date: date | None = None
    duration: int | None = Field(default=None, ge=1, le=520)
    duration_unit: DurationUnit | None = None

    @field_validator("code", "title", "capacity", "is_public", "duration_unit")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("Field may be omitted but not set to null")
        return value


class CourseOut(CourseBase):
    id: str
    end_date: date | None = None

    model_config = {"from_attributes": True}
