"""Mirrors of collaborator-owned records: identities and content."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from engagement_engine.core.errors import UnknownContentError, UnknownUserError
from engagement_engine.db.time import utcnow
from engagement_engine.db.transaction import atomic
from engagement_engine.models import ContentItem, ContentKind, ContentStatus, Role, User

logger = logging.getLogger(__name__)


class UserDirectory:
    """Read access to the identity provider's users.

    ``sync`` is the identity provider's write path into the mirror; engine
    decisions only ever call ``get``.
    """

    @staticmethod
    def sync(db: Session, user_id: str, role: Role | str, kyc_verified: bool) -> User:
        """Insert or refresh a user snapshot."""
        role = Role(role)
        with atomic(db):
            user = db.get(User, user_id)
            if user is None:
                user = User(user_id=user_id)
                db.add(user)
            user.role = role
            user.kyc_verified = bool(kyc_verified)
            user.synced_at = utcnow()
        return user

    @staticmethod
    def get(db: Session, user_id: str) -> User:
        """Return a user or raise ``UnknownUserError``."""
        user = db.get(User, user_id)
        if user is None:
            raise UnknownUserError(user_id)
        return user


class ContentRegistry:
    """Registers content created in the external content store."""

    @staticmethod
    def register(
        db: Session,
        content_id: str,
        kind: ContentKind | str,
        author_id: str,
        created_at: datetime | None = None,
    ) -> ContentItem:
        """Create the content item once; repeated calls return the original."""
        kind = ContentKind(kind)
        with atomic(db):
            item = db.get(ContentItem, content_id)
            if item is not None:
                if item.author_id != author_id:
                    logger.warning(
                        "Ignoring author change for content %s (%s -> %s)",
                        content_id,
                        item.author_id,
                        author_id,
                    )
                return item
            item = ContentItem(
                content_id=content_id,
                kind=kind,
                author_id=author_id,
                status=ContentStatus.VISIBLE,
                like_count=0,
                reply_count=0,
                view_count=0,
                created_at=created_at or utcnow(),
            )
            db.add(item)
        return item

    @staticmethod
    def get(db: Session, content_id: str) -> ContentItem:
        """Return a content item or raise ``UnknownContentError``."""
        item = db.get(ContentItem, content_id)
        if item is None:
            raise UnknownContentError(content_id)
        return item

    @staticmethod
    def load_for_update(db: Session, content_id: str) -> ContentItem:
        """Return the freshest copy of a content row, locked where the store supports it."""
        stmt = (
            select(ContentItem)
            .where(ContentItem.content_id == content_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        item = db.scalars(stmt).first()
        if item is None:
            raise UnknownContentError(content_id)
        return item
