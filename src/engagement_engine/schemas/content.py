"""Schemas for content registration and the identity mirror."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from engagement_engine.models import ContentKind, ContentStatus, Role


class ContentCreate(BaseModel):
    """Content store callback announcing a new topic or comment."""

    content_id: str = Field(..., min_length=1, max_length=64)
    kind: ContentKind
    author_id: str = Field(..., min_length=1, max_length=64)
    created_at: datetime | None = Field(None, description="Creation time in the content store")


class ContentResponse(BaseModel):
    """Content item with its counters and visibility status."""

    content_id: str
    kind: ContentKind
    author_id: str
    status: ContentStatus
    like_count: int
    reply_count: int
    view_count: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserSync(BaseModel):
    """Identity provider snapshot of a user."""

    role: Role = Role.USER
    kyc_verified: bool = False


class UserResponse(BaseModel):
    user_id: str
    role: Role
    kyc_verified: bool
    synced_at: datetime

    model_config = ConfigDict(from_attributes=True)
