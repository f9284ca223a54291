"""Engine components: ledger, fraud scoring, earnings, moderation, payouts, audit."""

from .audit import AuditLog
from .earnings import EarningsService, EarningsSummary
from .engine import EngagementEngine, IngestOutcome, get_engine
from .fraud import FraudScoringService, RiskLevel, ScoreCache, aggregate_score, risk_level
from .ledger import Counters, EngagementLedger, IngestResult
from .moderation import ClassifierDecision, ClassifierOutcome, ModerationService
from .payout import PayoutService, UserPayout
from .registry import ContentRegistry, UserDirectory

__all__ = [
    "AuditLog",
    "ClassifierDecision",
    "ClassifierOutcome",
    "ContentRegistry",
    "Counters",
    "EarningsService",
    "EarningsSummary",
    "EngagementEngine",
    "EngagementLedger",
    "FraudScoringService",
    "IngestOutcome",
    "IngestResult",
    "ModerationService",
    "PayoutService",
    "RiskLevel",
    "ScoreCache",
    "UserDirectory",
    "UserPayout",
    "aggregate_score",
    "get_engine",
    "risk_level",
]
