# This project was developed with assistance from AI tools.
"""Audit trail response schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class AuditEventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    timestamp: datetime
    event_type: str
    user_id: str | None = None
    user_role: str | None = None
    lead_id: int | None = None
    document_id: int | None = None
    event_data: dict | None = None


class AuditEventListResponse(BaseModel):
    data: list[AuditEventResponse]
    count: int


class AuditChainResponse(BaseModel):
    status: str
    events_checked: int
    first_break_id: int | None = None
