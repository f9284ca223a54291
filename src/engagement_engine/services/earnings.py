"""Earnings calculator: converts counter threshold crossings into money."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from engagement_engine.core.locks import KeyedLocks, content_locks
from engagement_engine.core.settings import Settings, settings
from engagement_engine.db.time import utcnow
from engagement_engine.db.transaction import atomic
from engagement_engine.models import ContentKind, EarningsEntry

from .fraud import FraudScoringService
from .periods import period_id_for
from .registry import ContentRegistry, UserDirectory

logger = logging.getLogger(__name__)

_MAX_ATTEMPTS = 3


@dataclass(frozen=True)
class RateRule:
    """Pays ``cents`` each time ``counter`` first reaches a multiple of ``divisor``."""

    name: str
    counter: str
    divisor: int
    cents: int


@dataclass(frozen=True)
class EarningsSummary:
    """Money owed to a user, split by payout state."""

    user_id: str
    total_cents: int
    paid_cents: int
    unpaid_cents: int
    payout_eligible: bool


def rate_table(config: Settings) -> dict[ContentKind, tuple[RateRule, ...]]:
    """Build the per-kind rate rules from configuration."""
    table: dict[ContentKind, tuple[RateRule, ...]] = {}
    for kind in ContentKind:
        table[kind] = (
            RateRule(
                name=f"{kind.value}_LIKES",
                counter="like_count",
                divisor=config.like_rate_divisor,
                cents=config.like_rate_cents,
            ),
            RateRule(
                name=f"{kind.value}_REPLIES",
                counter="reply_count",
                divisor=config.reply_rate_divisor,
                cents=config.reply_rate_cents,
            ),
        )
    return table


def new_threshold_indices(counter: int, divisor: int, paid: Iterable[int]) -> list[int]:
    """Return the threshold indices crossed since the highest one already paid.

    For a counter at ``counter`` this is every ``i`` in
    ``(max(paid), counter // divisor]`` that has no entry yet. Counters that
    fall back below a paid threshold never produce that threshold again.
    """
    paid = set(paid)
    previous = max(paid, default=0)
    current = counter // divisor
    return [index for index in range(previous + 1, current + 1) if index not in paid]


class EarningsService:
    """Creates earnings ledger entries for content authors.

    ``recompute`` is idempotent: calling it after every event, in a batch, or
    repeatedly after a failure yields the same set of entries.
    """

    def __init__(
        self,
        config: Settings = settings,
        fraud: FraudScoringService | None = None,
        locks: KeyedLocks = content_locks,
    ) -> None:
        self.config = config
        self.rules = rate_table(config)
        self.fraud = fraud or FraudScoringService(config)
        self._locks = locks

    def recompute(
        self, db: Session, content_id: str, *, now: datetime | None = None
    ) -> list[EarningsEntry]:
        """Realize every newly crossed threshold for a content item.

        Returns:
            The entries created by this call; empty when nothing new was crossed.

        Raises:
            UnknownContentError: ``content_id`` is not registered.
        """
        with self._locks.hold(content_id):
            for attempt in range(1, _MAX_ATTEMPTS + 1):
                try:
                    return self._recompute_once(db, content_id, now or utcnow())
                except IntegrityError:
                    # A writer outside this process realized the same crossing.
                    if attempt == _MAX_ATTEMPTS:
                        raise
                    logger.warning(
                        "Concurrent earnings write for %s, retrying (%d/%d)",
                        content_id,
                        attempt,
                        _MAX_ATTEMPTS,
                    )
        return []  # pragma: no cover - loop always returns or raises

    def _recompute_once(self, db: Session, content_id: str, now: datetime) -> list[EarningsEntry]:
        created: list[EarningsEntry] = []
        with atomic(db):
            item = ContentRegistry.load_for_update(db, content_id)
            for rule in self.rules[item.kind]:
                if rule.cents <= 0:
                    continue
                paid = db.scalars(
                    select(EarningsEntry.threshold_index).where(
                        EarningsEntry.content_id == content_id,
                        EarningsEntry.rule == rule.name,
                    )
                ).all()
                counter = getattr(item, rule.counter)
                for index in new_threshold_indices(counter, rule.divisor, paid):
                    entry = EarningsEntry(
                        user_id=item.author_id,
                        content_id=content_id,
                        period_id=period_id_for(now),
                        amount_cents=rule.cents,
                        rule=rule.name,
                        threshold_index=index,
                        computed_at=now,
                    )
                    db.add(entry)
                    created.append(entry)
            db.flush()

        if created:
            logger.info(
                "Realized %d earnings entries for content %s", len(created), content_id
            )
        else:
            logger.debug("No new threshold crossings for content %s", content_id)
        return created

    def entries_for_content(self, db: Session, content_id: str) -> list[EarningsEntry]:
        stmt = (
            select(EarningsEntry)
            .where(EarningsEntry.content_id == content_id)
            .order_by(EarningsEntry.rule, EarningsEntry.threshold_index)
        )
        return list(db.scalars(stmt))

    def summary(self, db: Session, user_id: str) -> EarningsSummary:
        """Return the user's total, paid and unpaid earnings and payout eligibility."""
        user = UserDirectory.get(db, user_id)
        total_stmt = select(func.coalesce(func.sum(EarningsEntry.amount_cents), 0)).where(
            EarningsEntry.user_id == user_id
        )
        unpaid = int(db.scalar(total_stmt.where(EarningsEntry.payout_batch_id.is_(None))) or 0)
        paid = int(db.scalar(total_stmt.where(EarningsEntry.payout_batch_id.is_not(None))) or 0)
        return EarningsSummary(
            user_id=user_id,
            total_cents=paid + unpaid,
            paid_cents=paid,
            unpaid_cents=unpaid,
            payout_eligible=self.fraud.payout_allowed(db, user),
        )
