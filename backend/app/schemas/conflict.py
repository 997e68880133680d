from pydantic import BaseModel
from typing import Literal, List


class ConflictingSlot(BaseModel):
    id: str
    courseId: str
    courseTitle: str | None = None
    dayOfWeek: int
    dayName: str
    startTime: str
    endTime: str


class ConflictDetail(BaseModel):
    id: str
    conflict_type: Literal["slot_overlap", "invalid_slot"]
    description: str
    severity: Literal["hard", "soft"]
    affected_slots: List[str]  # schedule slot IDs involved


class ConflictReport(BaseModel):
    conflicts: List[ConflictDetail]
    checked_slots: int
