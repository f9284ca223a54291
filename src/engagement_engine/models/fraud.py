# src/engagement_engine/models/fraud.py
"""Behavioral fraud signals."""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from engagement_engine.db.session import Base


class FraudSignal(Base):
    """Append-only observation contributing to a user's fraud score.

    Scores are always recomputed from these rows; no stored score is
    authoritative.
    """

    __tablename__ = "fraud_signal"
    __table_args__ = (Index("ix_fraud_signal_user_observed", "user_id", "observed_at"),)

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    # e.g. velocity_spike, new_account, duplicate_device, ip_overlap
    signal_type: Mapped[str] = mapped_column(String(64), nullable=False)
    weight: Mapped[int] = mapped_column(Integer, nullable=False)
    observed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    detail: Mapped[str | None] = mapped_column(Text, nullable=True)
