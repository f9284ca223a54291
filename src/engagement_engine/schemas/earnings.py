"""Earnings ledger schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class EarningsEntryResponse(BaseModel):
    """One realized threshold crossing."""

    id: int
    user_id: str
    content_id: str
    period_id: str
    amount_cents: int
    rule: str
    threshold_index: int
    computed_at: datetime
    payout_batch_id: int | None

    model_config = ConfigDict(from_attributes=True)


class EarningsSummaryResponse(BaseModel):
    user_id: str
    total_cents: int
    paid_cents: int
    unpaid_cents: int
    payout_eligible: bool

    model_config = ConfigDict(from_attributes=True)
