"""Tests for the engagement event ledger."""

import pytest
from sqlalchemy import func, select

from engagement_engine.core.errors import InvalidKindError, UnknownContentError
from engagement_engine.models import EngagementEvent, EngagementKind
from engagement_engine.services.ledger import Counters, EngagementLedger, apply_delta, parse_kind


@pytest.fixture
def ledger() -> EngagementLedger:
    return EngagementLedger()


def test_ingest_increments_matching_counter(db_session, make_content, ledger) -> None:
    make_content("topic-1")

    like = ledger.ingest(db_session, event_id="e1", content_id="topic-1", actor_id="u1", kind="LIKE")
    reply = ledger.ingest(
        db_session, event_id="e2", content_id="topic-1", actor_id="u1", kind=EngagementKind.REPLY
    )
    view = ledger.ingest(db_session, event_id="e3", content_id="topic-1", actor_id="u2", kind="view")

    assert like.accepted and reply.accepted and view.accepted
    assert view.counts == Counters(likes=1, replies=1, views=1)


def test_duplicate_event_id_is_a_noop(db_session, make_content, ledger) -> None:
    make_content("topic-1")

    first = ledger.ingest(db_session, event_id="e1", content_id="topic-1", actor_id="u1", kind="LIKE")
    second = ledger.ingest(db_session, event_id="e1", content_id="topic-1", actor_id="u1", kind="LIKE")

    assert first.accepted is True
    assert second.accepted is False
    assert second.counts == first.counts == Counters(likes=1, replies=0, views=0)
    stored = db_session.scalar(select(func.count()).select_from(EngagementEvent))
    assert stored == 1


def test_duplicate_reports_current_counts_of_original_content(db_session, make_content, ledger) -> None:
    make_content("topic-1")
    make_content("topic-2")
    ledger.ingest(db_session, event_id="e1", content_id="topic-1", actor_id="u1", kind="LIKE")
    ledger.ingest(db_session, event_id="e2", content_id="topic-1", actor_id="u2", kind="LIKE")

    # Retried with a different content id; the original event wins.
    retry = ledger.ingest(db_session, event_id="e1", content_id="topic-2", actor_id="u1", kind="LIKE")

    assert retry.accepted is False
    assert retry.content_id == "topic-1"
    assert retry.counts.likes == 2
    assert ledger.counts(db_session, "topic-2").likes == 0


def test_unlike_decrements_and_floors_at_zero(db_session, make_content, ledger) -> None:
    make_content("topic-1")
    ledger.ingest(db_session, event_id="e1", content_id="topic-1", actor_id="u1", kind="LIKE")
    ledger.ingest(db_session, event_id="e2", content_id="topic-1", actor_id="u1", kind="UNLIKE")
    result = ledger.ingest(db_session, event_id="e3", content_id="topic-1", actor_id="u1", kind="UNLIKE")

    assert result.accepted is True
    assert result.counts.likes == 0


def test_unknown_content_is_rejected_without_side_effects(db_session, ledger) -> None:
    with pytest.raises(UnknownContentError):
        ledger.ingest(db_session, event_id="e1", content_id="missing", actor_id="u1", kind="LIKE")

    assert db_session.get(EngagementEvent, "e1") is None


def test_invalid_kind_is_rejected(db_session, make_content, ledger) -> None:
    make_content("topic-1")

    with pytest.raises(InvalidKindError):
        ledger.ingest(db_session, event_id="e1", content_id="topic-1", actor_id="u1", kind="SHARE")

    assert ledger.counts(db_session, "topic-1") == Counters(likes=0, replies=0, views=0)


def test_parse_kind_and_apply_delta() -> None:
    assert parse_kind("reply") is EngagementKind.REPLY
    assert parse_kind(EngagementKind.VIEW) is EngagementKind.VIEW
    with pytest.raises(InvalidKindError):
        parse_kind("")
    assert apply_delta(0, -1) == 0
    assert apply_delta(4, 1) == 5
