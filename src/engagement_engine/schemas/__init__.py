"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .audit import AuditEventResponse
from .content import ContentCreate, ContentResponse, UserResponse, UserSync
from .earnings import EarningsEntryResponse, EarningsSummaryResponse
from .events import CountersResponse, EventCreate, IngestResponse
from .fraud import FraudScoreResponse, FraudSignalCreate, FraudSignalResponse
from .moderation import (
    ClassifierRequest,
    ClassifierResponse,
    ModerationActionResponse,
    ReportCreate,
    ReportResponse,
    TransitionRequest,
    TransitionResponse,
)
from .payout import ExportVerifyRequest, ExportVerifyResponse, PayoutBatchResponse

__all__ = [
    "AuditEventResponse",
    "ContentCreate", "ContentResponse", "UserResponse", "UserSync",
    "EarningsEntryResponse", "EarningsSummaryResponse",
    "CountersResponse", "EventCreate", "IngestResponse",
    "FraudScoreResponse", "FraudSignalCreate", "FraudSignalResponse",
    "ClassifierRequest", "ClassifierResponse", "ModerationActionResponse",
    "ReportCreate", "ReportResponse", "TransitionRequest", "TransitionResponse",
    "ExportVerifyRequest", "ExportVerifyResponse", "PayoutBatchResponse",
]
