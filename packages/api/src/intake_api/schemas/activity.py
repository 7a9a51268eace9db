# This project was developed with assistance from AI tools.
"""Activity feed schemas."""

from datetime import datetime

from intake_db.enums import ActivityType, UserRole
from pydantic import BaseModel, ConfigDict


class ActivityEvent(BaseModel):
    """A single timeline entry derived from status history or a document."""

    model_config = ConfigDict(frozen=True)

    id: str
    type: ActivityType
    lead_id: int
    case_id: str
    student_name: str
    actor: str
    actor_role: UserRole
    timestamp: datetime
    old_value: str | None = None
    new_value: str | None = None
    document_name: str | None = None
    change_reason: str | None = None
    notes: str | None = None


class ActivityFeedResponse(BaseModel):
    data: list[ActivityEvent]
    count: int
