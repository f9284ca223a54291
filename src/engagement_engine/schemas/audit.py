"""Audit trail schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


class AuditEventResponse(BaseModel):
    id: int
    event_type: str
    content_id: str | None
    user_id: str | None
    actor_id: str | None
    payload: dict[str, Any]
    occurred_at: datetime

    model_config = ConfigDict(from_attributes=True)
