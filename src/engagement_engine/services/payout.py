"""Payout batch processor.

A run selects unpaid earnings of KYC-verified, low-risk users, keeps the
users whose unpaid total reaches the payout minimum, assigns their entries
to one batch per period in a single transaction and then exports a CSV
whose SHA-256 is stored on the batch.
"""

from __future__ import annotations

import csv
import hashlib
import io
import logging
import threading
from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from engagement_engine.core.errors import (
    BatchCancelledError,
    BatchNotClosedError,
    EngineError,
    ExportDeliveryError,
    InvariantViolationError,
    PayoutConflictError,
    UnknownBatchError,
)
from engagement_engine.core.locks import KeyedLocks, period_locks, user_locks
from engagement_engine.core.settings import Settings, settings
from engagement_engine.db.time import utcnow
from engagement_engine.db.transaction import atomic
from engagement_engine.models import (
    BatchStatus,
    EarningsEntry,
    JobStatus,
    PayoutBatch,
    PayoutJobRun,
    User,
)

from .audit import EVENT_PAYOUT_ASSIGNED, EVENT_PAYOUT_EXPORTED, AuditLog
from .fraud import FraudScoringService
from .periods import Period, parse_period
from .sinks import ExportSink, get_export_sink

logger = logging.getLogger(__name__)

JOB_NAME = "payout-batch"
CSV_HEADER = ("batch_id", "period_id", "user_id", "total_cents", "entry_count", "entry_ids")


@dataclass(frozen=True)
class UserPayout:
    """One user's share of a batch."""

    user_id: str
    total_cents: int
    entry_ids: tuple[int, ...]


def render_csv(batch_id: int, period_id: str, payouts: Sequence[UserPayout]) -> bytes:
    """Serialize a batch deterministically: one row per user, sorted by user id."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for payout in sorted(payouts, key=lambda p: p.user_id):
        writer.writerow(
            (
                batch_id,
                period_id,
                payout.user_id,
                payout.total_cents,
                len(payout.entry_ids),
                ";".join(str(entry_id) for entry_id in sorted(payout.entry_ids)),
            )
        )
    return buffer.getvalue().encode("utf-8")


def csv_digest(data: bytes) -> str:
    """Return the SHA-256 hex digest of an exported CSV."""
    return hashlib.sha256(data).hexdigest()


class PayoutService:
    """Runs and exports payout batches; safe to invoke repeatedly per period."""

    def __init__(
        self,
        config: Settings = settings,
        fraud: FraudScoringService | None = None,
        export_sink: ExportSink | None = None,
        user_lock_registry: KeyedLocks = user_locks,
        period_lock_registry: KeyedLocks = period_locks,
    ) -> None:
        self.config = config
        self.fraud = fraud or FraudScoringService(config)
        self.export_sink = export_sink or get_export_sink(config)
        self._user_locks = user_lock_registry
        self._period_locks = period_lock_registry

    # --- Batch run ------------------------------------------------------------------
    def run_batch(
        self,
        db: Session,
        period_id: str,
        *,
        cancel: threading.Event | None = None,
    ) -> PayoutBatch:
        """Close the batch for ``period_id`` and try to export it.

        A period whose batch is already CLOSED or EXPORTED is returned
        unchanged. A run cancelled or failing before its commit leaves no
        assignment behind; an export failure leaves the batch CLOSED.

        Raises:
            InvalidPeriodError: ``period_id`` is malformed.
            BatchCancelledError: ``cancel`` was set before the commit.
            PayoutConflictError: another run assigned one of the entries first.
            InvariantViolationError: an existing batch or batch reference is
                inconsistent; nothing is assigned.
        """
        period = parse_period(period_id)
        started_at = utcnow()

        with self._period_locks.hold(period.period_id):
            existing = self.get_batch(db, period.period_id)
            if existing is not None and existing.status is not BatchStatus.OPEN:
                logger.info(
                    "Payout batch for %s already %s", period.period_id, existing.status.value
                )
                self._record_run(
                    db, period.period_id, started_at, JobStatus.NOOP,
                    f"batch {existing.id} already {existing.status.value}",
                )
                return existing

            try:
                batch = self._close_batch(db, period, existing, cancel)
            except BatchCancelledError:
                logger.info("Payout run for %s cancelled before commit", period.period_id)
                self._record_run(db, period.period_id, started_at, JobStatus.CANCELLED, "cancelled")
                raise
            except EngineError as exc:
                logger.warning("Payout run for %s failed: %s", period.period_id, exc)
                self._record_run(db, period.period_id, started_at, JobStatus.FAILED, str(exc))
                raise
            except IntegrityError as exc:
                # Another process inserted the batch for this period first.
                concurrent = self.get_batch(db, period.period_id)
                if concurrent is None:
                    self._record_run(
                        db, period.period_id, started_at, JobStatus.FAILED, str(exc.orig or exc)
                    )
                    raise
                logger.info(
                    "Payout batch for %s was closed by another process", period.period_id
                )
                self._record_run(
                    db, period.period_id, started_at, JobStatus.NOOP,
                    f"batch {concurrent.id} closed concurrently",
                )
                return concurrent

            self._record_run(
                db,
                period.period_id,
                started_at,
                JobStatus.SUCCESS,
                f"batch {batch.id}: {batch.user_count} users, {batch.total_cents} cents",
            )

        try:
            self._export(db, batch)
        except ExportDeliveryError as exc:
            logger.warning("Batch %s closed but not exported: %s", batch.id, exc)
        return batch

    def _eligible_rows(self, db: Session) -> dict[str, list[tuple[int, int]]]:
        """Unassigned entries of KYC-verified users, grouped by user."""
        rows = db.execute(
            select(EarningsEntry.user_id, EarningsEntry.id, EarningsEntry.amount_cents)
            .join(User, User.user_id == EarningsEntry.user_id)
            .where(
                EarningsEntry.payout_batch_id.is_(None),
                User.kyc_verified.is_(True),
            )
            .order_by(EarningsEntry.user_id, EarningsEntry.id)
        ).all()
        grouped: dict[str, list[tuple[int, int]]] = defaultdict(list)
        for user_id, entry_id, amount_cents in rows:
            grouped[user_id].append((entry_id, int(amount_cents)))
        return grouped

    def _select_payouts(
        self,
        db: Session,
        grouped: dict[str, list[tuple[int, int]]],
        cancel: threading.Event | None,
    ) -> list[UserPayout]:
        payouts: list[UserPayout] = []
        for user_id in sorted(grouped):
            _raise_if_cancelled(cancel)
            # Cached scores may predate a signal recorded by another worker.
            score = self.fraud.score(db, user_id, now=utcnow())
            if self.fraud.blocks_payout(score):
                logger.info("Holding payout for %s: fraud score %d", user_id, score)
                continue
            entries = grouped[user_id]
            total = sum(amount for _, amount in entries)
            if total < self.config.minimum_payout_cents:
                logger.debug("Carrying %d cents forward for %s", total, user_id)
                continue
            payouts.append(
                UserPayout(
                    user_id=user_id,
                    total_cents=total,
                    entry_ids=tuple(entry_id for entry_id, _ in entries),
                )
            )
        return payouts

    def _close_batch(
        self,
        db: Session,
        period: Period,
        existing: PayoutBatch | None,
        cancel: threading.Event | None,
    ) -> PayoutBatch:
        _raise_if_cancelled(cancel)
        self.check_integrity(db)
        grouped = self._eligible_rows(db)

        with self._user_locks.hold_many(grouped):
            with atomic(db):
                payouts = self._select_payouts(db, grouped, cancel)
                batch = existing
                if batch is None:
                    batch = PayoutBatch(
                        period_id=period.period_id,
                        period_start=period.start,
                        period_end=period.end,
                        status=BatchStatus.OPEN,
                        total_cents=0,
                    )
                    db.add(batch)
                    db.flush()

                for payout in payouts:
                    _raise_if_cancelled(cancel)
                    self._assign(db, batch, payout)

                _raise_if_cancelled(cancel)
                batch.total_cents = sum(p.total_cents for p in payouts)
                batch.entry_count = sum(len(p.entry_ids) for p in payouts)
                batch.user_count = len(payouts)
                batch.status = BatchStatus.CLOSED
                batch.closed_at = utcnow()
                db.flush()
                self._check_conservation(db, batch)

        # Bulk assignment bypassed the identity map.
        db.expire_all()

        logger.info(
            "Closed payout batch %s for %s: %d users, %d cents",
            batch.id,
            period.period_id,
            batch.user_count,
            batch.total_cents,
        )
        return batch

    def _assign(self, db: Session, batch: PayoutBatch, payout: UserPayout) -> None:
        # A short rowcount means another run assigned some of these entries first.
        result = db.execute(
            update(EarningsEntry)
            .where(
                EarningsEntry.id.in_(payout.entry_ids),
                EarningsEntry.payout_batch_id.is_(None),
            )
            .values(payout_batch_id=batch.id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != len(payout.entry_ids):
            raise PayoutConflictError(
                f"Only {result.rowcount} of {len(payout.entry_ids)} entries for "
                f"{payout.user_id} were still unassigned"
            )
        AuditLog.record(
            db,
            EVENT_PAYOUT_ASSIGNED,
            user_id=payout.user_id,
            payload={
                "batchId": batch.id,
                "periodId": batch.period_id,
                "amountCents": payout.total_cents,
                "entryIds": list(payout.entry_ids),
            },
        )

    # --- Export ---------------------------------------------------------------------
    def export_batch(self, db: Session, batch_id: int) -> PayoutBatch:
        """Retry the export of a CLOSED batch; EXPORTED batches are returned as-is.

        Raises:
            UnknownBatchError: no such batch.
            BatchNotClosedError: the batch was never committed.
            ExportDeliveryError: the sink rejected the file again.
        """
        batch = db.get(PayoutBatch, batch_id)
        if batch is None:
            raise UnknownBatchError(batch_id)
        if batch.status is BatchStatus.OPEN:
            raise BatchNotClosedError(batch_id)
        if batch.status is BatchStatus.EXPORTED:
            return batch
        return self._export(db, batch)

    def _export(self, db: Session, batch: PayoutBatch) -> PayoutBatch:
        data = self.render(db, batch)
        digest = csv_digest(data)
        if batch.csv_sha256 is None:
            with atomic(db):
                batch.csv_sha256 = digest
        elif batch.csv_sha256 != digest:
            logger.critical(
                "Batch %s re-serializes to %s but %s was recorded",
                batch.id,
                digest,
                batch.csv_sha256,
            )
            raise InvariantViolationError(f"Batch {batch.id} export digest changed")

        self.export_sink.deliver(
            batch_id=batch.id,
            period_id=batch.period_id,
            csv_bytes=data,
            sha256=digest,
        )

        with atomic(db):
            batch.status = BatchStatus.EXPORTED
            batch.exported_at = utcnow()
            AuditLog.record(
                db,
                EVENT_PAYOUT_EXPORTED,
                payload={
                    "batchId": batch.id,
                    "periodId": batch.period_id,
                    "totalCents": batch.total_cents,
                    "csvSha256": digest,
                },
            )
        logger.info("Exported payout batch %s (%s)", batch.id, digest)
        return batch

    def render(self, db: Session, batch: PayoutBatch) -> bytes:
        """Return the CSV export of a batch."""
        return render_csv(batch.id, batch.period_id, self.batch_payouts(db, batch.id))

    def verify_export(self, db: Session, batch_id: int, csv_bytes: bytes) -> bool:
        """Return True when ``csv_bytes`` is exactly the file recorded for the batch."""
        batch = db.get(PayoutBatch, batch_id)
        if batch is None:
            raise UnknownBatchError(batch_id)
        return batch.csv_sha256 is not None and csv_digest(csv_bytes) == batch.csv_sha256

    # --- Queries & integrity --------------------------------------------------------
    @staticmethod
    def get_batch(db: Session, period_id: str) -> PayoutBatch | None:
        return db.scalars(
            select(PayoutBatch)
            .where(PayoutBatch.period_id == period_id)
            .execution_options(populate_existing=True)
        ).first()

    @staticmethod
    def batch_payouts(db: Session, batch_id: int) -> list[UserPayout]:
        rows = db.execute(
            select(EarningsEntry.user_id, EarningsEntry.id, EarningsEntry.amount_cents)
            .where(EarningsEntry.payout_batch_id == batch_id)
            .order_by(EarningsEntry.user_id, EarningsEntry.id)
        ).all()
        grouped: dict[str, list[tuple[int, int]]] = defaultdict(list)
        for user_id, entry_id, amount_cents in rows:
            grouped[user_id].append((entry_id, int(amount_cents)))
        return [
            UserPayout(
                user_id=user_id,
                total_cents=sum(amount for _, amount in entries),
                entry_ids=tuple(entry_id for entry_id, _ in entries),
            )
            for user_id, entries in grouped.items()
        ]

    def check_integrity(self, db: Session) -> None:
        """Verify every batch reference and batch total.

        Raises:
            InvariantViolationError: an entry points at a missing batch, or a
                batch total differs from the sum of its entries.
        """
        orphans = db.scalars(
            select(EarningsEntry.id)
            .outerjoin(PayoutBatch, PayoutBatch.id == EarningsEntry.payout_batch_id)
            .where(EarningsEntry.payout_batch_id.is_not(None), PayoutBatch.id.is_(None))
        ).all()
        if orphans:
            logger.critical("Earnings entries reference missing payout batches: %s", orphans)
            raise InvariantViolationError(
                f"Entries {list(orphans)} reference non-existent payout batches"
            )
        for batch in db.scalars(select(PayoutBatch).where(PayoutBatch.status != BatchStatus.OPEN)):
            self._check_conservation(db, batch)

    @staticmethod
    def _check_conservation(db: Session, batch: PayoutBatch) -> None:
        assigned = db.scalar(
            select(func.coalesce(func.sum(EarningsEntry.amount_cents), 0)).where(
                EarningsEntry.payout_batch_id == batch.id
            )
        )
        if int(assigned or 0) != batch.total_cents:
            logger.critical(
                "Payout batch %s total %d differs from assigned entries %d",
                batch.id,
                batch.total_cents,
                assigned,
            )
            raise InvariantViolationError(f"Payout batch {batch.id} total does not match entries")

    def _record_run(
        self,
        db: Session,
        period_id: str,
        started_at: datetime,
        status: JobStatus,
        log: str,
    ) -> None:
        with atomic(db):
            db.add(
                PayoutJobRun(
                    job_name=JOB_NAME,
                    period_id=period_id,
                    started_at=started_at,
                    finished_at=utcnow(),
                    status=status,
                    log=log,
                )
            )

    @staticmethod
    def job_runs(db: Session, period_id: str) -> list[PayoutJobRun]:
        return list(
            db.scalars(
                select(PayoutJobRun)
                .where(PayoutJobRun.period_id == period_id)
                .order_by(PayoutJobRun.id)
            )
        )


def _raise_if_cancelled(cancel: threading.Event | None) -> None:
    if cancel is not None and cancel.is_set():
        raise BatchCancelledError("payout run cancelled")
