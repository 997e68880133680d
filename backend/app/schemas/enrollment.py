from pydantic import BaseModel, Field

from app.models.enrollment import EnrollmentStatus


class EnrollmentCreate(BaseModel):
    course_id: str = Field(min_length=1, max_length=36)
    user_id: str | None = Field(default=None, max_length=36)
    status: EnrollmentStatus = EnrollmentStatus.active


class EnrollmentUpdate(BaseModel):
    status: EnrollmentStatus


class EnrollmentOut(BaseModel):
    id: str
    user_id: str
    course_id: str
    status: EnrollmentStatus

    model_config = {"from_attributes": True}
