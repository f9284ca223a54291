"""Engagement event schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from .earnings import EarningsEntryResponse


class EventCreate(BaseModel):
    """An engagement event; ``event_id`` is the idempotency key.

    ``kind`` is validated by the ledger so an unsupported value surfaces as
    an invalid-kind error rather than a generic validation failure.
    """

    event_id: str = Field(..., min_length=1, max_length=128)
    content_id: str = Field(..., min_length=1, max_length=64)
    actor_id: str = Field(..., min_length=1, max_length=64)
    kind: str = Field(..., description="LIKE, UNLIKE, REPLY or VIEW")
    occurred_at: datetime | None = None


class CountersResponse(BaseModel):
    likes: int
    replies: int
    views: int


class IngestResponse(BaseModel):
    """Result of an ingest call."""

    accepted: bool
    content_id: str
    counts: CountersResponse
    new_entries: list[EarningsEntryResponse] = Field(default_factory=list)
