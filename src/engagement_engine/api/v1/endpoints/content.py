"""Content registration and identity mirror endpoints."""

from fastapi import APIRouter, status

from engagement_engine.api.v1.dependencies import SessionDep
from engagement_engine.models import ContentItem, User
from engagement_engine.schemas.content import (
    ContentCreate,
    ContentResponse,
    UserResponse,
    UserSync,
)
from engagement_engine.services.registry import ContentRegistry, UserDirectory

router = APIRouter(tags=["content"])


@router.post("/content", response_model=ContentResponse, status_code=status.HTTP_201_CREATED)
def register_content(payload: ContentCreate, db: SessionDep) -> ContentItem:
    """Register a topic or comment created in the content store."""
    return ContentRegistry.register(
        db,
        payload.content_id,
        payload.kind,
        payload.author_id,
        created_at=payload.created_at,
    )


@router.get("/content/{content_id}", response_model=ContentResponse)
def get_content(content_id: str, db: SessionDep) -> ContentItem:
    return ContentRegistry.get(db, content_id)


@router.put("/users/{user_id}", response_model=UserResponse)
def sync_user(user_id: str, payload: UserSync, db: SessionDep) -> User:
    """Mirror the identity provider's record of a user."""
    return UserDirectory.sync(db, user_id, payload.role, payload.kyc_verified)
