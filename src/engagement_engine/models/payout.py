# src/engagement_engine/models/payout.py
"""Models for payout batches and the scheduled runs that produce them."""

from datetime import date, datetime
from enum import Enum

from sqlalchemy import CHAR, BigInteger, Date, DateTime, Integer, String, Text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from engagement_engine.db.session import Base
from engagement_engine.db.time import utcnow


class BatchStatus(str, Enum):
    """Lifecycle of a payout batch."""

    OPEN = "OPEN"
    CLOSED = "CLOSED"
    EXPORTED = "EXPORTED"


class JobStatus(str, Enum):
    """Outcome of one scheduled payout run."""

    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"
    NOOP = "NOOP"


class PayoutBatch(Base):
    """A closed group of earnings entries assigned for one payment run."""

    __tablename__ = "payout_batch"

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    # At most one batch per period.
    period_id: Mapped[str] = mapped_column(String(16), unique=True, nullable=False)
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[BatchStatus] = mapped_column(
        SAEnum(BatchStatus, native_enum=False, length=16),
        nullable=False,
        default=BatchStatus.OPEN,
    )
    total_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    entry_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    user_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # SHA-256 hex digest of the exported CSV.
    csv_sha256: Mapped[str | None] = mapped_column(CHAR(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    exported_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class PayoutJobRun(Base):
    """Bookkeeping row written for every payout batch invocation."""

    __tablename__ = "payout_job_run"

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    job_name: Mapped[str] = mapped_column(String(64), nullable=False)
    period_id: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    finished_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[JobStatus] = mapped_column(
        SAEnum(JobStatus, native_enum=False, length=16), nullable=False
    )
    log: Mapped[str] = mapped_column(Text, nullable=False, default="")
