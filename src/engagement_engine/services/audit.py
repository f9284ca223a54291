"""Append-only audit log for moderation and payout actions."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from engagement_engine.db.time import utcnow
from engagement_engine.models import AuditEvent

EVENT_MODERATION_TRANSITION = "MODERATION_TRANSITION"
EVENT_PAYOUT_ASSIGNED = "PAYOUT_ASSIGNED"
EVENT_PAYOUT_EXPORTED = "PAYOUT_EXPORTED"


class AuditLog:
    """Writes audit rows inside the caller's transaction.

    The log is a record, not a cache: no engine decision reads from it.
    Rows are only ever added; there is no update or delete path.
    """

    @staticmethod
    def record(
        db: Session,
        event_type: str,
        *,
        content_id: str | None = None,
        user_id: str | None = None,
        actor_id: str | None = None,
        payload: Mapping[str, Any] | None = None,
        occurred_at: datetime | None = None,
    ) -> AuditEvent:
        """Stage an audit row on ``db``; the caller owns the commit."""
        event = AuditEvent(
            event_type=event_type,
            content_id=content_id,
            user_id=user_id,
            actor_id=actor_id,
            payload=dict(payload or {}),
            occurred_at=occurred_at or utcnow(),
        )
        db.add(event)
        return event

    @staticmethod
    def for_content(db: Session, content_id: str) -> list[AuditEvent]:
        """Return the audit trail of a content item, oldest first."""
        stmt = (
            select(AuditEvent)
            .where(AuditEvent.content_id == content_id)
            .order_by(AuditEvent.occurred_at, AuditEvent.id)
        )
        return list(db.scalars(stmt))

    @staticmethod
    def for_user(db: Session, user_id: str) -> list[AuditEvent]:
        """Return every audit row about or by a user, oldest first."""
        stmt = (
            select(AuditEvent)
            .where((AuditEvent.user_id == user_id) | (AuditEvent.actor_id == user_id))
            .order_by(AuditEvent.occurred_at, AuditEvent.id)
        )
        return list(db.scalars(stmt))
