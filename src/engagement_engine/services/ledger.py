"""Engagement event ledger: idempotent ingestion and counter maintenance."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from engagement_engine.core.errors import InvalidKindError, UnknownContentError
from engagement_engine.core.locks import KeyedLocks, content_locks
from engagement_engine.db.time import utcnow
from engagement_engine.db.transaction import atomic
from engagement_engine.models import ContentItem, EngagementEvent, EngagementKind

from .registry import ContentRegistry

logger = logging.getLogger(__name__)

# kind -> (counter attribute, signed delta)
COUNTER_DELTAS: dict[EngagementKind, tuple[str, int]] = {
    EngagementKind.LIKE: ("like_count", 1),
    EngagementKind.UNLIKE: ("like_count", -1),
    EngagementKind.REPLY: ("reply_count", 1),
    EngagementKind.VIEW: ("view_count", 1),
}


@dataclass(frozen=True)
class Counters:
    """Snapshot of a content item's engagement counters."""

    likes: int
    replies: int
    views: int

    @classmethod
    def of(cls, item: ContentItem) -> Counters:
        return cls(likes=item.like_count, replies=item.reply_count, views=item.view_count)


@dataclass(frozen=True)
class IngestResult:
    """Outcome of one ``ingest`` call."""

    accepted: bool
    content_id: str
    counts: Counters


def parse_kind(kind: EngagementKind | str) -> EngagementKind:
    """Return the engagement kind or raise ``InvalidKindError``."""
    if isinstance(kind, EngagementKind):
        return kind
    try:
        return EngagementKind(str(kind).upper())
    except ValueError as err:
        raise InvalidKindError(kind) from err


def apply_delta(current: int, delta: int) -> int:
    """Apply a signed delta to a counter, flooring at zero."""
    return max(0, current + delta)


class EngagementLedger:
    """Append-only store of engagement events and the counters they drive.

    Writes for one content item are serialized through ``locks``; items are
    independent of each other.
    """

    def __init__(self, locks: KeyedLocks = content_locks) -> None:
        self._locks = locks

    def ingest(
        self,
        db: Session,
        *,
        event_id: str,
        content_id: str,
        actor_id: str,
        kind: EngagementKind | str,
        occurred_at: datetime | None = None,
    ) -> IngestResult:
        """Accept an engagement event exactly once.

        Re-ingesting a known ``event_id`` is a no-op returning
        ``accepted=False`` and the current counters of the event's content.

        Raises:
            InvalidKindError: ``kind`` is not LIKE, UNLIKE, REPLY or VIEW.
            UnknownContentError: ``content_id`` is not registered.
        """
        kind = parse_kind(kind)
        if not event_id:
            raise ValueError("event_id is required")

        try:
            with self._locks.hold(content_id):
                return self._ingest_locked(
                    db,
                    event_id=event_id,
                    content_id=content_id,
                    actor_id=actor_id,
                    kind=kind,
                    occurred_at=occurred_at or utcnow(),
                )
        except IntegrityError:
            # Another writer stored the same event id between our check and insert.
            original = db.get(EngagementEvent, event_id)
            if original is None:
                raise
            logger.debug("Event %s accepted concurrently elsewhere", event_id)
            return self._duplicate(db, original)

    def counts(self, db: Session, content_id: str) -> Counters:
        """Return the current counters of a content item."""
        return Counters.of(ContentRegistry.get(db, content_id))

    def _ingest_locked(
        self,
        db: Session,
        *,
        event_id: str,
        content_id: str,
        actor_id: str,
        kind: EngagementKind,
        occurred_at: datetime,
    ) -> IngestResult:
        existing = db.get(EngagementEvent, event_id)
        if existing is not None:
            logger.debug("Duplicate engagement event %s ignored", event_id)
            return self._duplicate(db, existing)

        with atomic(db):
            item = ContentRegistry.load_for_update(db, content_id)
            attribute, delta = COUNTER_DELTAS[kind]
            setattr(item, attribute, apply_delta(getattr(item, attribute), delta))
            db.add(
                EngagementEvent(
                    event_id=event_id,
                    content_id=content_id,
                    actor_id=actor_id,
                    kind=kind,
                    occurred_at=occurred_at,
                )
            )
            db.flush()
            counts = Counters.of(item)
        return IngestResult(accepted=True, content_id=content_id, counts=counts)

    @staticmethod
    def _duplicate(db: Session, event: EngagementEvent) -> IngestResult:
        item = db.get(ContentItem, event.content_id)
        if item is None:
            raise UnknownContentError(event.content_id)
        db.refresh(item)
        return IngestResult(accepted=False, content_id=item.content_id, counts=Counters.of(item))
