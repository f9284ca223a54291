# src/engagement_engine/models/user.py
"""Local mirror of identities supplied by the identity provider."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, String
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from engagement_engine.db.session import Base
from engagement_engine.db.time import utcnow


class Role(str, Enum):
    """Roles issued by the identity provider, lowest privilege first."""

    USER = "USER"
    ADMIN_L1 = "ADMIN_L1"
    ADMIN_L2 = "ADMIN_L2"
    OWNER = "OWNER"


class User(Base):
    """Read-only identity snapshot; decision paths never write it."""

    __tablename__ = "engine_user"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    role: Mapped[Role] = mapped_column(
        SAEnum(Role, native_enum=False, length=16),
        nullable=False,
        default=Role.USER,
    )
    kyc_verified: Mapped[bool] = mapped_column(default=False, nullable=False)
    synced_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
