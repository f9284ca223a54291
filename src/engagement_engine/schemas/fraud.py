"""Fraud signal and score schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from engagement_engine.services.fraud import RiskLevel


class FraudSignalCreate(BaseModel):
    """Behavioral signal reported against a user."""

    user_id: str = Field(..., min_length=1, max_length=64)
    signal_type: str = Field(..., min_length=1, max_length=64)
    weight: int | None = Field(None, description="Overrides the configured weight for the type")
    observed_at: datetime | None = None
    detail: str | None = Field(None, max_length=500)


class FraudSignalResponse(BaseModel):
    id: int
    user_id: str
    signal_type: str
    weight: int
    observed_at: datetime
    detail: str | None

    model_config = ConfigDict(from_attributes=True)


class FraudScoreResponse(BaseModel):
    """Current score of a user and what it means downstream."""

    user_id: str
    score: int
    risk_level: RiskLevel
    high_risk: bool
    payout_block_threshold: int
