"""Earnings endpoints."""

from fastapi import APIRouter

from engagement_engine.api.v1.dependencies import EngineDep, SessionDep
from engagement_engine.models import EarningsEntry
from engagement_engine.schemas.earnings import EarningsEntryResponse, EarningsSummaryResponse
from engagement_engine.services.earnings import EarningsSummary

router = APIRouter(prefix="/earnings", tags=["earnings"])


@router.post("/{content_id}/recompute", response_model=list[EarningsEntryResponse])
def recompute_earnings(content_id: str, db: SessionDep, engine: EngineDep) -> list[EarningsEntry]:
    """Realize any threshold crossings not yet paid; safe to call repeatedly."""
    return engine.earnings.recompute(db, content_id)


@router.get("/content/{content_id}", response_model=list[EarningsEntryResponse])
def list_content_earnings(
    content_id: str, db: SessionDep, engine: EngineDep
) -> list[EarningsEntry]:
    return engine.earnings.entries_for_content(db, content_id)


@router.get("/users/{user_id}", response_model=EarningsSummaryResponse)
def get_user_earnings(user_id: str, db: SessionDep, engine: EngineDep) -> EarningsSummary:
    """Total, paid and unpaid earnings of a user and whether they can be paid."""
    return engine.earnings.summary(db, user_id)
