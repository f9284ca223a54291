"""Fraud scoring from behavioral signals."""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from datetime import datetime, timedelta
from enum import Enum
from threading import Lock
from typing import Any, Final

import redis
from sqlalchemy import distinct, func, select
from sqlalchemy.orm import Session

from engagement_engine.core.errors import UnknownSignalTypeError
from engagement_engine.core.settings import Settings, settings
from engagement_engine.db.time import as_utc, utcnow
from engagement_engine.db.transaction import atomic
from engagement_engine.models import EngagementEvent, EngagementKind, FraudSignal, User

logger = logging.getLogger(__name__)

SCORE_MIN: Final[int] = 0
SCORE_MAX: Final[int] = 100
VELOCITY_SIGNAL: Final[str] = "velocity_spike"
VELOCITY_WINDOW = timedelta(hours=24)
_CACHE_TTL_SECONDS: Final[int] = 300


class RiskLevel(str, Enum):
    """Coarse risk bands shown to moderators."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


def aggregate_score(
    signals: Iterable[tuple[int, datetime]],
    *,
    now: datetime,
    window_days: int,
) -> int:
    """Sum signal weights observed in the trailing window, clamped to [0, 100].

    Args:
        signals: ``(weight, observed_at)`` pairs.
        now: End of the window (inclusive).
        window_days: Length of the trailing window.
    """
    now = as_utc(now)
    cutoff = now - timedelta(days=window_days)
    total = 0
    for weight, observed_at in signals:
        observed_at = as_utc(observed_at)
        if cutoff <= observed_at <= now:
            total += weight
    return max(SCORE_MIN, min(SCORE_MAX, total))


def risk_level(score: int) -> RiskLevel:
    """Map a score onto its risk band."""
    if score >= 75:
        return RiskLevel.CRITICAL
    if score >= 50:
        return RiskLevel.HIGH
    if score >= 25:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


class ScoreCache:
    """Read-mostly cache of current fraud scores.

    Backed by redis when a URL is configured and reachable; otherwise an
    in-process dictionary. Staleness only costs a recomputation since scores
    are always derivable from signals.
    """

    def __init__(self, redis_url: str | None = None, ttl_seconds: int = _CACHE_TTL_SECONDS) -> None:
        self._ttl = ttl_seconds
        self._redis: Any = None
        self._local: dict[str, tuple[int, float]] = {}
        self._lock = Lock()
        if redis_url:
            try:
                self._redis = redis.from_url(redis_url)
            except (redis.RedisError, ValueError) as exc:
                logger.warning("Score cache falling back to memory: %s", exc)
                self._redis = None

    @staticmethod
    def _key(user_id: str) -> str:
        return f"fraudscore:{user_id}"

    def get(self, user_id: str) -> int | None:
        if self._redis is not None:
            try:
                value = self._redis.get(self._key(user_id))
                return int(value) if value is not None else None
            except redis.RedisError as exc:
                logger.warning("Score cache redis read failed, using memory: %s", exc)
                self._redis = None

        with self._lock:
            entry = self._local.get(user_id)
            if entry is None:
                return None
            score, expiry = entry
            if expiry < time.monotonic():
                self._local.pop(user_id, None)
                return None
            return score

    def set(self, user_id: str, score: int) -> None:
        if self._redis is not None:
            try:
                self._redis.set(self._key(user_id), int(score), ex=self._ttl)
                return
            except redis.RedisError as exc:
                logger.warning("Score cache redis write failed, using memory: %s", exc)
                self._redis = None

        with self._lock:
            self._local[user_id] = (int(score), time.monotonic() + self._ttl)

    def invalidate(self, user_id: str) -> None:
        if self._redis is not None:
            try:
                self._redis.delete(self._key(user_id))
            except redis.RedisError as exc:
                logger.warning("Score cache redis delete failed, using memory: %s", exc)
                self._redis = None

        with self._lock:
            self._local.pop(user_id, None)


class FraudScoringService:
    """Records fraud signals and derives per-user risk scores from them."""

    def __init__(self, config: Settings = settings, cache: ScoreCache | None = None) -> None:
        self.config = config
        self.cache = cache or ScoreCache(config.redis_url)

    @property
    def payout_block_threshold(self) -> int:
        """Scores above this value are high risk and block new payouts."""
        return self.config.fraud_payout_block_threshold

    def is_high_risk(self, score: int) -> bool:
        return score > self.payout_block_threshold

    def blocks_payout(self, score: int) -> bool:
        return self.is_high_risk(score)

    def record_signal(
        self,
        db: Session,
        user_id: str,
        signal_type: str,
        *,
        weight: int | None = None,
        observed_at: datetime | None = None,
        detail: str | None = None,
    ) -> FraudSignal:
        """Append a signal and invalidate the user's cached score.

        ``weight`` defaults to the configured weight for ``signal_type``.
        """
        if weight is None:
            if signal_type not in self.config.fraud_signal_weights:
                raise UnknownSignalTypeError(signal_type)
            weight = self.config.fraud_signal_weights[signal_type]

        with atomic(db):
            signal = FraudSignal(
                user_id=user_id,
                signal_type=signal_type,
                weight=int(weight),
                observed_at=observed_at or utcnow(),
                detail=detail,
            )
            db.add(signal)
        self.cache.invalidate(user_id)
        return signal

    def score(self, db: Session, user_id: str, *, now: datetime | None = None) -> int:
        """Return the user's fraud score; users without signals score 0.

        Scores "as of" an explicit ``now`` bypass the cache.
        """
        if now is None:
            cached = self.cache.get(user_id)
            if cached is not None:
                return cached

        as_of = now or utcnow()
        cutoff = as_of - timedelta(days=self.config.fraud_window_days)
        rows = db.execute(
            select(FraudSignal.weight, FraudSignal.observed_at).where(
                FraudSignal.user_id == user_id,
                FraudSignal.observed_at >= cutoff,
            )
        ).all()
        value = aggregate_score(
            ((weight, observed_at) for weight, observed_at in rows),
            now=as_of,
            window_days=self.config.fraud_window_days,
        )
        if now is None:
            self.cache.set(user_id, value)
        return value

    def payout_allowed(self, db: Session, user: User) -> bool:
        """Return True when the user passes both the KYC and fraud gates."""
        if not user.kyc_verified:
            return False
        return not self.blocks_payout(self.score(db, user.user_id))

    def scan_engagement_velocity(
        self, db: Session, user_id: str, *, now: datetime | None = None
    ) -> FraudSignal | None:
        """Record a velocity signal if the user's like rate over 24h is too high.

        At most one velocity signal is recorded per user per 24h.
        """
        as_of = now or utcnow()
        since = as_of - VELOCITY_WINDOW
        likes = db.scalar(
            select(func.count())
            .select_from(EngagementEvent)
            .where(
                EngagementEvent.actor_id == user_id,
                EngagementEvent.kind == EngagementKind.LIKE,
                EngagementEvent.occurred_at >= since,
                EngagementEvent.occurred_at <= as_of,
            )
        ) or 0
        hours = VELOCITY_WINDOW.total_seconds() / 3600
        if likes / hours <= self.config.like_velocity_per_hour:
            return None

        recent = db.scalar(
            select(func.count())
            .select_from(FraudSignal)
            .where(
                FraudSignal.user_id == user_id,
                FraudSignal.signal_type == VELOCITY_SIGNAL,
                FraudSignal.observed_at >= since,
            )
        ) or 0
        if recent:
            return None

        logger.info("Like velocity spike for user %s: %d likes in 24h", user_id, likes)
        return self.record_signal(
            db,
            user_id,
            VELOCITY_SIGNAL,
            observed_at=as_of,
            detail=f"{likes} likes in 24h",
        )

    def high_risk_users(self, db: Session, *, now: datetime | None = None) -> list[tuple[str, int]]:
        """Return ``(user_id, score)`` for every user above the threshold, riskiest first."""
        as_of = now or utcnow()
        cutoff = as_of - timedelta(days=self.config.fraud_window_days)
        user_ids = db.scalars(
            select(distinct(FraudSignal.user_id)).where(FraudSignal.observed_at >= cutoff)
        ).all()
        flagged = []
        for user_id in user_ids:
            value = self.score(db, user_id, now=now)
            if self.is_high_risk(value):
                flagged.append((user_id, value))
        flagged.sort(key=lambda pair: (-pair[1], pair[0]))
        return flagged
