# tests/conftest.py
from __future__ import annotations

from collections.abc import Callable, Generator, Iterator
from itertools import count
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from engagement_engine.api.v1.dependencies import get_engine_dep
from engagement_engine.core.settings import Settings
from engagement_engine.db.session import Base
from engagement_engine.db.session import get_db as app_get_session
from engagement_engine.main import app as fastapi_app
from engagement_engine.models import ContentItem, ContentKind, EarningsEntry, Role, User
from engagement_engine.services.engine import EngagementEngine
from engagement_engine.services.fraud import ScoreCache
from engagement_engine.services.registry import ContentRegistry, UserDirectory

TEST_DB_URL = "sqlite://"

_THRESHOLD_COUNTER = count(1)


@pytest.fixture(scope="session")
def db_engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(db_engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(
        bind=db_engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()

        # Services commit their own transactions; wipe every table between tests.
        with db_engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def test_settings() -> Settings:
    """Settings with every outbound integration disabled."""
    return Settings(redis_url=None, notification_sink_url=None, export_sink_url=None)


@pytest.fixture()
def notification_sink() -> MagicMock:
    return MagicMock()


@pytest.fixture()
def export_sink() -> MagicMock:
    return MagicMock()


@pytest.fixture()
def engine(
    test_settings: Settings, notification_sink: MagicMock, export_sink: MagicMock
) -> EngagementEngine:
    """Engine wired to mock sinks and a private score cache."""
    return EngagementEngine(
        test_settings,
        notification_sink=notification_sink,
        export_sink=export_sink,
        cache=ScoreCache(None),
    )


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    def _make(user_id: str, role: Role = Role.USER, kyc_verified: bool = True) -> User:
        return UserDirectory.sync(db_session, user_id, role, kyc_verified)

    return _make


@pytest.fixture()
def make_content(db_session: Session) -> Callable[..., ContentItem]:
    def _make(
        content_id: str, author_id: str = "author-1", kind: ContentKind = ContentKind.TOPIC
    ) -> ContentItem:
        return ContentRegistry.register(db_session, content_id, kind, author_id)

    return _make


@pytest.fixture()
def make_entries(db_session: Session, make_content) -> Callable[..., list[EarningsEntry]]:
    """Insert unpaid earnings entries with arbitrary amounts for ``user_id``."""

    def _make(user_id: str, amounts: list[int], content_id: str | None = None) -> list[EarningsEntry]:
        content_id = content_id or f"content-of-{user_id}"
        if db_session.get(ContentItem, content_id) is None:
            make_content(content_id, author_id=user_id)
        entries = [
            EarningsEntry(
                user_id=user_id,
                content_id=content_id,
                period_id="2025-02B",
                amount_cents=amount,
                rule="TOPIC_LIKES",
                threshold_index=next(_THRESHOLD_COUNTER),
            )
            for amount in amounts
        ]
        db_session.add_all(entries)
        db_session.commit()
        return entries

    return _make


@pytest.fixture()
def app(db_session: Session, engine: EngagementEngine) -> Iterator[FastAPI]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    fastapi_app.dependency_overrides[app_get_session] = _get_session_override
    fastapi_app.dependency_overrides[get_engine_dep] = lambda: engine
    try:
        yield fastapi_app
    finally:
        fastapi_app.dependency_overrides.clear()


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client
