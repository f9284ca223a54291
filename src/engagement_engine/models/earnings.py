# src/engagement_engine/models/earnings.py
"""Monetary ledger entries produced by threshold crossings."""

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from engagement_engine.db.session import Base
from engagement_engine.db.time import utcnow


class EarningsEntry(Base):
    """One realized threshold crossing for one content item.

    Immutable after creation except for ``payout_batch_id``, which is set
    exactly once when the entry is paid.
    """

    __tablename__ = "earnings_entry"
    __table_args__ = (
        # No two entries may pay the same threshold crossing.
        UniqueConstraint(
            "content_id", "rule", "threshold_index", name="uq_earnings_entry_crossing"
        ),
        CheckConstraint("amount_cents >= 0", name="ck_earnings_entry_amount"),
        CheckConstraint("threshold_index >= 1", name="ck_earnings_entry_threshold"),
        Index("ix_earnings_entry_unpaid", "user_id", "payout_batch_id"),
    )

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    content_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("content_item.content_id"),
        nullable=False,
    )
    # Payout period in which the crossing was realized, e.g. 2025-02B.
    period_id: Mapped[str] = mapped_column(String(16), nullable=False)
    # Integer cents; never a float.
    amount_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
    rule: Mapped[str] = mapped_column(String(32), nullable=False)
    threshold_index: Mapped[int] = mapped_column(BigInteger, nullable=False)
    computed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    payout_batch_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("payout_batch.id"),
        nullable=True,
    )
