"""Shared API dependencies."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from engagement_engine.db.session import get_db
from engagement_engine.services.engine import EngagementEngine, get_engine

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_engine_dep() -> EngagementEngine:
    """Return the shared engine."""
    return get_engine()


EngineDep = Annotated[EngagementEngine, Depends(get_engine_dep)]
