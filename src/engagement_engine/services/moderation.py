"""Content moderation state machine."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Final

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from engagement_engine.core.errors import (
    IllegalTransitionError,
    InsufficientPrivilegeError,
    InvariantViolationError,
)
from engagement_engine.core.locks import KeyedLocks, content_locks
from engagement_engine.core.settings import Settings, settings
from engagement_engine.db.time import utcnow
from engagement_engine.db.transaction import atomic
from engagement_engine.models import ContentItem, ContentReport, ContentStatus, ModerationAction, Role

from .audit import EVENT_MODERATION_TRANSITION, AuditLog
from .registry import ContentRegistry, UserDirectory
from .sinks import Notifier, get_notification_sink

logger = logging.getLogger(__name__)

# Pseudo-role of the automated classifier (actor id None).
SYSTEM_ROLE: Final[str] = "SYSTEM"

_MODERATORS = frozenset({Role.ADMIN_L1.value, Role.ADMIN_L2.value, Role.OWNER.value})
_OWNER_ONLY = frozenset({Role.OWNER.value})
_SYSTEM_ONLY = frozenset({SYSTEM_ROLE})

S = ContentStatus

# (from, to) -> roles allowed to perform it. Anything absent is illegal.
TRANSITIONS: Final[Mapping[tuple[ContentStatus, ContentStatus], frozenset[str]]] = {
    (S.VISIBLE, S.HIDDEN_BY_AI): _SYSTEM_ONLY,
    (S.VISIBLE, S.QUARANTINED): _MODERATORS,
    (S.HIDDEN_BY_AI, S.HIDDEN_BY_MOD): _MODERATORS,
    (S.HIDDEN_BY_AI, S.VISIBLE): _MODERATORS,
    (S.HIDDEN_BY_MOD, S.VISIBLE): _MODERATORS,
    (S.QUARANTINED, S.VISIBLE): _OWNER_ONLY,
    (S.QUARANTINED, S.HIDDEN_BY_MOD): _OWNER_ONLY,
}


class ClassifierDecision(str, Enum):
    """What an automated classifier verdict means for a content item."""

    APPROVE = "APPROVE"
    FLAG = "FLAG"
    HIDE = "HIDE"


@dataclass(frozen=True)
class ClassifierOutcome:
    decision: ClassifierDecision
    status: ContentStatus


def check_transition(
    from_status: ContentStatus,
    to_status: ContentStatus,
    role: str,
    table: Mapping[tuple[ContentStatus, ContentStatus], frozenset[str]] = TRANSITIONS,
) -> None:
    """Raise unless ``role`` may move content from ``from_status`` to ``to_status``."""
    allowed = table.get((from_status, to_status))
    if allowed is None:
        raise IllegalTransitionError(from_status.value, to_status.value)
    if role not in allowed:
        raise InsufficientPrivilegeError(from_status.value, to_status.value, role)


def replay(actions: list[ModerationAction]) -> ContentStatus:
    """Fold a transition history starting from VISIBLE.

    Raises:
        InvariantViolationError: a row does not start where the previous ended.
    """
    status = ContentStatus.VISIBLE
    for action in actions:
        if action.from_status != status:
            raise InvariantViolationError(
                f"Moderation action {action.id} starts at {action.from_status.value}, "
                f"expected {status.value}"
            )
        status = action.to_status
    return status


def classify(confidence: float, *, hide_threshold: float, flag_threshold: float) -> ClassifierDecision:
    """Map a classifier confidence score onto a decision."""
    if confidence >= hide_threshold:
        return ClassifierDecision.HIDE
    if confidence >= flag_threshold:
        return ClassifierDecision.FLAG
    return ClassifierDecision.APPROVE


class ModerationService:
    """Owns content visibility and records every transition."""

    def __init__(
        self,
        config: Settings = settings,
        notifier: Notifier | None = None,
        locks: KeyedLocks = content_locks,
    ) -> None:
        self.config = config
        self.notifier = notifier or Notifier(get_notification_sink(config))
        self._locks = locks

    def transition(
        self,
        db: Session,
        content_id: str,
        to_status: ContentStatus | str,
        actor_id: str | None,
        reason: str = "",
    ) -> ContentStatus:
        """Move a content item to ``to_status`` on behalf of ``actor_id``.

        ``actor_id=None`` is the automated classifier. The status write, the
        ModerationAction row and the audit row commit together; a rejected
        request writes nothing.

        Raises:
            UnknownContentError: content is not registered.
            UnknownUserError: ``actor_id`` is not in the identity mirror.
            IllegalTransitionError: ``(current, to_status)`` is not in the table.
            InsufficientPrivilegeError: the actor's role may not perform it.
        """
        role = SYSTEM_ROLE if actor_id is None else UserDirectory.get(db, actor_id).role.value
        try:
            target = ContentStatus(to_status)
        except ValueError as err:
            current = ContentRegistry.get(db, content_id).status
            raise IllegalTransitionError(current.value, str(to_status)) from err

        with self._locks.hold(content_id):
            with atomic(db):
                item = ContentRegistry.load_for_update(db, content_id)
                from_status = item.status
                check_transition(from_status, target, role)
                occurred_at = utcnow()
                item.status = target
                action = ModerationAction(
                    content_id=content_id,
                    actor_id=actor_id,
                    from_status=from_status,
                    to_status=target,
                    reason=reason,
                    occurred_at=occurred_at,
                )
                db.add(action)
                AuditLog.record(
                    db,
                    EVENT_MODERATION_TRANSITION,
                    content_id=content_id,
                    user_id=item.author_id,
                    actor_id=actor_id,
                    payload={
                        "fromStatus": from_status.value,
                        "toStatus": target.value,
                        "reason": reason,
                        "role": role,
                    },
                    occurred_at=occurred_at,
                )

        logger.info(
            "Content %s moved %s -> %s by %s", content_id, from_status.value, target.value, role
        )
        self.notifier.notify(
            {
                "event": "moderation.transition",
                "contentId": content_id,
                "fromStatus": from_status.value,
                "toStatus": target.value,
                "reason": reason,
            }
        )
        return target

    def apply_classifier_result(
        self, db: Session, content_id: str, confidence: float, reason: str = ""
    ) -> ClassifierOutcome:
        """Act on an automated classifier verdict.

        Confidence at or above the auto-hide threshold hides VISIBLE content;
        at or above the flag threshold it is surfaced to moderators only.
        """
        decision = classify(
            confidence,
            hide_threshold=self.config.auto_hide_confidence_threshold,
            flag_threshold=self.config.auto_flag_confidence_threshold,
        )
        item = ContentRegistry.get(db, content_id)
        if decision is ClassifierDecision.HIDE:
            if item.status is ContentStatus.VISIBLE:
                status = self.transition(
                    db,
                    content_id,
                    ContentStatus.HIDDEN_BY_AI,
                    None,
                    reason or f"classifier confidence {confidence:.2f}",
                )
                return ClassifierOutcome(decision, status)
            logger.debug("Content %s already %s; not re-hidden", content_id, item.status.value)
        elif decision is ClassifierDecision.FLAG:
            self.notifier.notify(
                {
                    "event": "moderation.flagged",
                    "contentId": content_id,
                    "confidence": confidence,
                    "reason": reason,
                }
            )
        return ClassifierOutcome(decision, item.status)

    def report(self, db: Session, content_id: str, reporter_id: str, reason: str = "") -> int:
        """Record a user report and return the number of distinct reporters.

        Reaching the escalation threshold notifies moderators; quarantine
        itself always needs a moderator action.
        """
        with atomic(db):
            ContentRegistry.get(db, content_id)
            existing = db.get(ContentReport, (content_id, reporter_id))
            if existing is None:
                db.add(
                    ContentReport(content_id=content_id, reporter_id=reporter_id, reason=reason)
                )
                db.flush()
            count = self._report_count(db, content_id)

        if existing is None and count == self.config.report_escalation_threshold:
            logger.info("Content %s reached %d reports", content_id, count)
            self.notifier.notify(
                {
                    "event": "moderation.escalation",
                    "contentId": content_id,
                    "reportCount": count,
                    "suggestedStatus": ContentStatus.QUARANTINED.value,
                }
            )
        return count

    def review_queue(self, db: Session) -> list[ContentItem]:
        """Content awaiting a human: AI-hidden items and report escalations."""
        hidden = db.scalars(
            select(ContentItem)
            .where(ContentItem.status == ContentStatus.HIDDEN_BY_AI)
            .order_by(ContentItem.created_at, ContentItem.content_id)
        ).all()
        escalated = db.scalars(
            select(ContentItem)
            .join(ContentReport, ContentReport.content_id == ContentItem.content_id)
            .where(ContentItem.status == ContentStatus.VISIBLE)
            .group_by(ContentItem.content_id)
            .having(func.count(ContentReport.reporter_id) >= self.config.report_escalation_threshold)
            .order_by(ContentItem.created_at, ContentItem.content_id)
        ).all()
        return [*hidden, *escalated]

    def history(self, db: Session, content_id: str) -> list[ModerationAction]:
        """Return the transitions of a content item in the order they happened."""
        ContentRegistry.get(db, content_id)
        stmt = (
            select(ModerationAction)
            .where(ModerationAction.content_id == content_id)
            .order_by(ModerationAction.id)
        )
        return list(db.scalars(stmt))

    def replay_status(self, db: Session, content_id: str) -> ContentStatus:
        """Rebuild the status from history and check it against the stored one."""
        item = ContentRegistry.get(db, content_id)
        replayed = replay(self.history(db, content_id))
        if replayed != item.status:
            logger.critical(
                "Content %s status %s disagrees with history %s",
                content_id,
                item.status.value,
                replayed.value,
            )
            raise InvariantViolationError(
                f"Content {content_id} is {item.status.value} but history says {replayed.value}"
            )
        return replayed

    @staticmethod
    def _report_count(db: Session, content_id: str) -> int:
        return db.scalar(
            select(func.count()).select_from(ContentReport).where(
                ContentReport.content_id == content_id
            )
        ) or 0
