"""API endpoint modules for version 1."""

from .audit import router as audit_router
from .content import router as content_router
from .earnings import router as earnings_router
from .events import router as events_router
from .fraud import router as fraud_router
from .moderation import router as moderation_router
from .payouts import router as payouts_router

__all__ = [
    "audit_router",
    "content_router",
    "earnings_router",
    "events_router",
    "fraud_router",
    "moderation_router",
    "payouts_router",
]
