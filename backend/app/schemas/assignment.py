from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class AssignmentBase(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=10000)
    due_date: datetime | None = None
    max_points: int = Field(default=100, ge=0, le=10000)
    is_published: bool = False


class AssignmentCreate(AssignmentBase):
    course_id: str = Field(min_length=1, max_length=36)


class AssignmentUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=10000)
    due_date: datetime | None = None
    max_points: int | None = Field(default=None, ge=0, le=10000)
    is_published: bool | None = None

    @field_validator("title", "max_points", "is_published")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("Field may be omitted but not set to null")
        return value


class AssignmentOut(AssignmentBase):
    id: str
    course_id: str

    model_config = {"from_attributes": True}
