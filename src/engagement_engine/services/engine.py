"""Facade wiring the engine components together."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from functools import lru_cache

from sqlalchemy.orm import Session

from engagement_engine.core.errors import TransientError
from engagement_engine.core.settings import Settings, settings
from engagement_engine.models import EarningsEntry, EngagementKind, FraudSignal

from .earnings import EarningsService
from .fraud import FraudScoringService, ScoreCache
from .ledger import EngagementLedger, IngestResult, parse_kind
from .moderation import ModerationService
from .payout import PayoutService
from .sinks import ExportSink, NotificationSink, Notifier, get_export_sink, get_notification_sink

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IngestOutcome:
    """Ledger result plus the earnings it realized."""

    result: IngestResult
    new_entries: list[EarningsEntry] = field(default_factory=list)
    velocity_signal: FraudSignal | None = None


class EngagementEngine:
    """Entry point used by the API layer and the scheduler."""

    def __init__(
        self,
        config: Settings = settings,
        *,
        notification_sink: NotificationSink | None = None,
        export_sink: ExportSink | None = None,
        cache: ScoreCache | None = None,
    ) -> None:
        self.config = config
        self.fraud = FraudScoringService(config, cache=cache)
        self.ledger = EngagementLedger()
        self.earnings = EarningsService(config, fraud=self.fraud)
        self.moderation = ModerationService(
            config, notifier=Notifier(notification_sink or get_notification_sink(config))
        )
        self.payouts = PayoutService(
            config,
            fraud=self.fraud,
            export_sink=export_sink or get_export_sink(config),
        )

    def ingest(
        self,
        db: Session,
        *,
        event_id: str,
        content_id: str,
        actor_id: str,
        kind: EngagementKind | str,
        occurred_at: datetime | None = None,
    ) -> IngestOutcome:
        """Record an event, then realize any earnings it unlocked.

        The counter update is committed before earnings are computed; a
        transient recompute failure is logged and left for the next
        recompute, which is idempotent. An accepted LIKE also rescans the
        actor's like velocity.
        """
        kind = parse_kind(kind)
        result = self.ledger.ingest(
            db,
            event_id=event_id,
            content_id=content_id,
            actor_id=actor_id,
            kind=kind,
            occurred_at=occurred_at,
        )
        try:
            entries = self.earnings.recompute(db, result.content_id)
        except TransientError as exc:
            logger.warning("Earnings recompute for %s deferred: %s", result.content_id, exc)
            entries = []

        signal = None
        if result.accepted and kind is EngagementKind.LIKE:
            try:
                signal = self.fraud.scan_engagement_velocity(db, actor_id)
            except TransientError as exc:
                logger.warning("Velocity scan for %s deferred: %s", actor_id, exc)
        return IngestOutcome(result=result, new_entries=entries, velocity_signal=signal)


@lru_cache(maxsize=1)
def get_engine() -> EngagementEngine:
    """Return the process-wide engine."""
    return EngagementEngine()
