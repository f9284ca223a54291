# src/engagement_engine/models/__init__.py
"""SQLAlchemy models for the engagement engine."""

from .audit import AuditEvent
from .content import ContentItem, ContentKind, ContentStatus, EngagementEvent, EngagementKind
from .earnings import EarningsEntry
from .fraud import FraudSignal
from .moderation import ContentReport, ModerationAction
from .payout import BatchStatus, JobStatus, PayoutBatch, PayoutJobRun
from .user import Role, User

__all__ = [
    "AuditEvent",
    "ContentItem", "ContentKind", "ContentStatus", "EngagementEvent", "EngagementKind",
    "EarningsEntry",
    "FraudSignal",
    "ContentReport", "ModerationAction",
    "BatchStatus", "JobStatus", "PayoutBatch", "PayoutJobRun",
    "Role", "User",
]
