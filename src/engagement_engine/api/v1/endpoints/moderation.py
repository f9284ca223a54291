"""Moderation-related endpoints."""

from fastapi import APIRouter

from engagement_engine.api.v1.dependencies import EngineDep, SessionDep
from engagement_engine.models import ContentItem, ModerationAction
from engagement_engine.schemas.content import ContentResponse
from engagement_engine.schemas.moderation import (
    ClassifierRequest,
    ClassifierResponse,
    ModerationActionResponse,
    ReportCreate,
    ReportResponse,
    TransitionRequest,
    TransitionResponse,
)

router = APIRouter(prefix="/moderation", tags=["moderation"])


@router.get("/queue", response_model=list[ContentResponse])
def get_moderation_queue(db: SessionDep, engine: EngineDep) -> list[ContentItem]:
    """Content awaiting a moderator: AI-hidden items and report escalations."""
    return engine.moderation.review_queue(db)


@router.post("/{content_id}/transition", response_model=TransitionResponse)
def transition_content(
    content_id: str, payload: TransitionRequest, db: SessionDep, engine: EngineDep
) -> TransitionResponse:
    """Apply a moderator transition.

    Rejections name their reason: 409 for a transition outside the table,
    403 when the actor's role is not allowed to perform it.
    """
    new_status = engine.moderation.transition(
        db, content_id, payload.to_status, payload.actor_id, payload.reason
    )
    return TransitionResponse(content_id=content_id, status=new_status)


@router.post("/{content_id}/classifier", response_model=ClassifierResponse)
def apply_classifier(
    content_id: str, payload: ClassifierRequest, db: SessionDep, engine: EngineDep
) -> ClassifierResponse:
    outcome = engine.moderation.apply_classifier_result(
        db, content_id, payload.confidence, payload.reason
    )
    return ClassifierResponse(
        content_id=content_id, decision=outcome.decision, status=outcome.status
    )


@router.post("/{content_id}/reports", response_model=ReportResponse)
def report_content(
    content_id: str, payload: ReportCreate, db: SessionDep, engine: EngineDep
) -> ReportResponse:
    count = engine.moderation.report(db, content_id, payload.reporter_id, payload.reason)
    return ReportResponse(content_id=content_id, report_count=count)


@router.get("/{content_id}/history", response_model=list[ModerationActionResponse])
def get_moderation_history(
    content_id: str, db: SessionDep, engine: EngineDep
) -> list[ModerationAction]:
    return engine.moderation.history(db, content_id)
