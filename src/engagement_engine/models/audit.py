# src/engagement_engine/models/audit.py
"""Immutable audit trail of moderation and payout actions."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, BigInteger, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from engagement_engine.db.session import Base
from engagement_engine.db.time import utcnow


class AuditEvent(Base):
    """Append-only record; nothing reads it for control flow."""

    __tablename__ = "audit_event"
    __table_args__ = (
        Index("ix_audit_event_content", "content_id", "occurred_at"),
        Index("ix_audit_event_user", "user_id", "occurred_at"),
    )

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    # e.g. MODERATION_TRANSITION, PAYOUT_ASSIGNED, PAYOUT_EXPORTED
    event_type: Mapped[str] = mapped_column(String(64), nullable=False)
    content_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    actor_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
