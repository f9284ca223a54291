# src/engagement_engine/models/content.py
"""Models for monetizable content and the engagement events counted on it."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, String
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from engagement_engine.db.session import Base
from engagement_engine.db.time import utcnow


class ContentKind(str, Enum):
    """Kinds of forum content that can earn."""

    TOPIC = "TOPIC"
    COMMENT = "COMMENT"


class ContentStatus(str, Enum):
    """Visibility states owned by the moderation state machine."""

    VISIBLE = "VISIBLE"
    HIDDEN_BY_AI = "HIDDEN_BY_AI"
    HIDDEN_BY_MOD = "HIDDEN_BY_MOD"
    QUARANTINED = "QUARANTINED"


class EngagementKind(str, Enum):
    """Engagement event kinds; an UNLIKE is a new event, not a retraction."""

    LIKE = "LIKE"
    UNLIKE = "UNLIKE"
    REPLY = "REPLY"
    VIEW = "VIEW"


class ContentItem(Base):
    """A topic or comment as seen by the engine.

    Text and authorship live in the content store; the engine owns the
    counters (through the ledger) and the ``status`` column (through the
    moderation state machine).
    """

    __tablename__ = "content_item"

    content_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    kind: Mapped[ContentKind] = mapped_column(
        SAEnum(ContentKind, native_enum=False, length=16), nullable=False
    )
    # Authorship is immutable once content exists.
    author_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    status: Mapped[ContentStatus] = mapped_column(
        SAEnum(ContentStatus, native_enum=False, length=16),
        nullable=False,
        default=ContentStatus.VISIBLE,
    )
    like_count: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    reply_count: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    view_count: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class EngagementEvent(Base):
    """Accepted engagement event; immutable once stored.

    ``event_id`` is the caller-supplied idempotency key.
    """

    __tablename__ = "engagement_event"
    __table_args__ = (
        Index("ix_engagement_event_actor_kind", "actor_id", "kind", "occurred_at"),
    )

    event_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    content_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("content_item.content_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    actor_id: Mapped[str] = mapped_column(String(64), nullable=False)
    kind: Mapped[EngagementKind] = mapped_column(
        SAEnum(EngagementKind, native_enum=False, length=16), nullable=False
    )
    occurred_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    accepted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
