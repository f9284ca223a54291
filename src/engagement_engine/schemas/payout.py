"""Payout batch schemas."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict

from engagement_engine.models import BatchStatus


class PayoutBatchResponse(BaseModel):
    """A payout batch as seen by operations."""

    id: int
    period_id: str
    period_start: date
    period_end: date
    status: BatchStatus
    total_cents: int
    entry_count: int
    user_count: int
    csv_sha256: str | None
    closed_at: datetime | None
    exported_at: datetime | None

    model_config = ConfigDict(from_attributes=True)


class ExportVerifyRequest(BaseModel):
    """A CSV file as received downstream."""

    csv: str


class ExportVerifyResponse(BaseModel):
    batch_id: int
    csv_sha256: str | None
    matches: bool
