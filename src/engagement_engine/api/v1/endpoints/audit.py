"""Audit trail retrieval for compliance exports."""

from fastapi import APIRouter

from engagement_engine.api.v1.dependencies import SessionDep
from engagement_engine.models import AuditEvent
from engagement_engine.schemas.audit import AuditEventResponse
from engagement_engine.services.audit import AuditLog

router = APIRouter(prefix="/audit", tags=["audit"])


@router.get("/content/{content_id}", response_model=list[AuditEventResponse])
def get_content_audit(content_id: str, db: SessionDep) -> list[AuditEvent]:
    return AuditLog.for_content(db, content_id)


@router.get("/users/{user_id}", response_model=list[AuditEventResponse])
def get_user_audit(user_id: str, db: SessionDep) -> list[AuditEvent]:
    return AuditLog.for_user(db, user_id)
