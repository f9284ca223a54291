"""Version 1 API endpoints."""

from .endpoints import (
    audit_router,
    content_router,
    earnings_router,
    events_router,
    fraud_router,
    moderation_router,
    payouts_router,
)

__all__ = [
    "content_router",
    "events_router",
    "earnings_router",
    "fraud_router",
    "moderation_router",
    "payouts_router",
    "audit_router",
]
