from datetime import datetime
from typing import Any

from pydantic import BaseModel


class ActivityLogOut(BaseModel):
    id: str
    user_id: str | None
    action: str
    entity_type: str | None = None
    entity_id: str | None = None
    details: dict[str, Any]
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
