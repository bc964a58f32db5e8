"""Pydantic schemas for audit events."""

import uuid
from datetime import datetime

from pydantic import BaseModel


class AuditEventResponse(BaseModel):
    id: uuid.UUID
    event_type: str
    entity_type: str | None = None
    entity_id: str | None = None
    actor: str | None = None
    actor_type: str | None = None
    event_data: dict | None = None
    rationale: str | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class AuditEventListResponse(BaseModel):
    events: list[AuditEventResponse]
    total: int
    page: int
    per_page: int
