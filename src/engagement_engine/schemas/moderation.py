"""Moderation-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from engagement_engine.models import ContentStatus
from engagement_engine.services.moderation import ClassifierDecision


class TransitionRequest(BaseModel):
    """Moderator request to move content to a new status."""

    to_status: str = Field(..., description="Target visibility status")
    actor_id: str = Field(..., min_length=1, max_length=64)
    reason: str = Field("", max_length=500)


class TransitionResponse(BaseModel):
    content_id: str
    status: ContentStatus


class ClassifierRequest(BaseModel):
    """Verdict of the external content classifier."""

    confidence: float = Field(..., ge=0.0, le=1.0)
    reason: str = Field("", max_length=500)


class ClassifierResponse(BaseModel):
    content_id: str
    decision: ClassifierDecision
    status: ContentStatus


class ReportCreate(BaseModel):
    reporter_id: str = Field(..., min_length=1, max_length=64)
    reason: str = Field("", max_length=500)


class ReportResponse(BaseModel):
    content_id: str
    report_count: int


class ModerationActionResponse(BaseModel):
    """One row of a content item's moderation history."""

    id: int
    content_id: str
    actor_id: str | None
    from_status: ContentStatus
    to_status: ContentStatus
    reason: str
    occurred_at: datetime

    model_config = ConfigDict(from_attributes=True)
