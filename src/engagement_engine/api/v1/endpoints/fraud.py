"""Fraud signal and scoring endpoints."""

from fastapi import APIRouter, status

from engagement_engine.api.v1.dependencies import EngineDep, SessionDep
from engagement_engine.models import FraudSignal
from engagement_engine.schemas.fraud import (
    FraudScoreResponse,
    FraudSignalCreate,
    FraudSignalResponse,
)
from engagement_engine.services.fraud import risk_level

router = APIRouter(prefix="/fraud", tags=["fraud"])


@router.post(
    "/signals", response_model=FraudSignalResponse, status_code=status.HTTP_201_CREATED
)
def record_signal(payload: FraudSignalCreate, db: SessionDep, engine: EngineDep) -> FraudSignal:
    return engine.fraud.record_signal(
        db,
        payload.user_id,
        payload.signal_type,
        weight=payload.weight,
        observed_at=payload.observed_at,
        detail=payload.detail,
    )


@router.get("/users/{user_id}", response_model=FraudScoreResponse)
def get_user_score(user_id: str, db: SessionDep, engine: EngineDep) -> FraudScoreResponse:
    """Score a user; users without signals score 0."""
    score = engine.fraud.score(db, user_id)
    return FraudScoreResponse(
        user_id=user_id,
        score=score,
        risk_level=risk_level(score),
        high_risk=engine.fraud.is_high_risk(score),
        payout_block_threshold=engine.fraud.payout_block_threshold,
    )


@router.get("/high-risk", response_model=list[FraudScoreResponse])
def list_high_risk_users(db: SessionDep, engine: EngineDep) -> list[FraudScoreResponse]:
    return [
        FraudScoreResponse(
            user_id=user_id,
            score=score,
            risk_level=risk_level(score),
            high_risk=True,
            payout_block_threshold=engine.fraud.payout_block_threshold,
        )
        for user_id, score in engine.fraud.high_risk_users(db)
    ]
