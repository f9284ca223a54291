"""Engagement event ingestion endpoint."""

from fastapi import APIRouter

from engagement_engine.api.v1.dependencies import EngineDep, SessionDep
from engagement_engine.schemas.earnings import EarningsEntryResponse
from engagement_engine.schemas.events import CountersResponse, EventCreate, IngestResponse

router = APIRouter(prefix="/events", tags=["events"])


@router.post("", response_model=IngestResponse)
def ingest_event(payload: EventCreate, db: SessionDep, engine: EngineDep) -> IngestResponse:
    """Ingest an engagement event; retries with the same ``event_id`` are no-ops."""
    outcome = engine.ingest(
        db,
        event_id=payload.event_id,
        content_id=payload.content_id,
        actor_id=payload.actor_id,
        kind=payload.kind,
        occurred_at=payload.occurred_at,
    )
    counts = outcome.result.counts
    return IngestResponse(
        accepted=outcome.result.accepted,
        content_id=outcome.result.content_id,
        counts=CountersResponse(likes=counts.likes, replies=counts.replies, views=counts.views),
        new_entries=[EarningsEntryResponse.model_validate(entry) for entry in outcome.new_entries],
    )
