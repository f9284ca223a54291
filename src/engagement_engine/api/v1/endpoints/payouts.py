"""Payout batch endpoints, used by the scheduler and operations."""

from fastapi import APIRouter, HTTPException, status

from engagement_engine.api.v1.dependencies import EngineDep, SessionDep
from engagement_engine.models import PayoutBatch
from engagement_engine.schemas.payout import (
    ExportVerifyRequest,
    ExportVerifyResponse,
    PayoutBatchResponse,
)
from engagement_engine.services.periods import parse_period

router = APIRouter(prefix="/payouts", tags=["payouts"])


@router.post("/{period_id}/run", response_model=PayoutBatchResponse)
def run_payout_batch(period_id: str, db: SessionDep, engine: EngineDep) -> PayoutBatch:
    """Close (and try to export) the batch for a period; repeated calls return it unchanged."""
    return engine.payouts.run_batch(db, period_id)


@router.post("/batches/{batch_id}/export", response_model=PayoutBatchResponse)
def export_payout_batch(batch_id: int, db: SessionDep, engine: EngineDep) -> PayoutBatch:
    """Retry delivery of a CLOSED batch."""
    return engine.payouts.export_batch(db, batch_id)


@router.post("/batches/{batch_id}/verify", response_model=ExportVerifyResponse)
def verify_payout_export(
    batch_id: int, payload: ExportVerifyRequest, db: SessionDep, engine: EngineDep
) -> ExportVerifyResponse:
    """Check a received CSV against the digest recorded at export."""
    matches = engine.payouts.verify_export(db, batch_id, payload.csv.encode("utf-8"))
    batch = db.get(PayoutBatch, batch_id)
    return ExportVerifyResponse(batch_id=batch_id, csv_sha256=batch.csv_sha256, matches=matches)


@router.get("/{period_id}", response_model=PayoutBatchResponse)
def get_payout_batch(period_id: str, db: SessionDep, engine: EngineDep) -> PayoutBatch:
    period = parse_period(period_id)
    batch = engine.payouts.get_batch(db, period.period_id)
    if batch is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No payout batch for {period.period_id}",
        )
    return batch
