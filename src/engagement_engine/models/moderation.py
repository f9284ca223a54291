# src/engagement_engine/models/moderation.py
"""Models tracking moderation transitions and user reports."""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from engagement_engine.db.session import Base
from engagement_engine.db.time import utcnow

from .content import ContentStatus


class ModerationAction(Base):
    """One accepted status transition.

    Replaying these rows in order from VISIBLE reproduces the current status
    of the content item.
    """

    __tablename__ = "moderation_action"
    __table_args__ = (Index("ix_moderation_action_content", "content_id", "id"),)

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    content_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("content_item.content_id", ondelete="CASCADE"),
        nullable=False,
    )
    # NULL for the automated classifier.
    actor_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    from_status: Mapped[ContentStatus] = mapped_column(
        SAEnum(ContentStatus, native_enum=False, length=16), nullable=False
    )
    to_status: Mapped[ContentStatus] = mapped_column(
        SAEnum(ContentStatus, native_enum=False, length=16), nullable=False
    )
    reason: Mapped[str] = mapped_column(Text, nullable=False, default="")
    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class ContentReport(Base):
    """A user's report against a content item; one per reporter."""

    __tablename__ = "content_report"

    content_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("content_item.content_id", ondelete="CASCADE"),
        primary_key=True,
    )
    reporter_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    reason: Mapped[str] = mapped_column(Text, nullable=False, default="")
    reported_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
