"""Tests for the earnings calculator."""

import pytest
from sqlalchemy import func, select

from engagement_engine.core.errors import StoreUnavailableError, UnknownContentError, UnknownUserError
from engagement_engine.core.settings import Settings
from engagement_engine.models import ContentItem, ContentKind, EarningsEntry
from engagement_engine.services.earnings import EarningsService, new_threshold_indices, rate_table


def _set_counters(db_session, content_id: str, **counters: int) -> None:
    item = db_session.get(ContentItem, content_id)
    for name, value in counters.items():
        setattr(item, name, value)
    db_session.commit()


def _entry_count(db_session, content_id: str) -> int:
    return db_session.scalar(
        select(func.count()).select_from(EarningsEntry).where(EarningsEntry.content_id == content_id)
    )


def test_new_threshold_indices() -> None:
    assert new_threshold_indices(999, 1000, []) == []
    assert new_threshold_indices(1000, 1000, []) == [1]
    assert new_threshold_indices(2500, 1000, []) == [1, 2]
    assert new_threshold_indices(2500, 1000, [1]) == [2]
    assert new_threshold_indices(2500, 1000, [1, 2]) == []
    # Falling back below a paid threshold never re-pays it.
    assert new_threshold_indices(1500, 1000, [1, 2]) == []
    assert new_threshold_indices(3000, 1000, [1, 2]) == [3]


def test_likes_accumulated_one_at_a_time_pay_once(db_session, make_content, engine) -> None:
    make_content("topic-1", author_id="alice")

    created = []
    for i in range(1000):
        outcome = engine.ingest(
            db_session, event_id=f"like-{i}", content_id="topic-1", actor_id=f"fan-{i}", kind="LIKE"
        )
        created.extend(outcome.new_entries)

    assert len(created) == 1
    entries = engine.earnings.entries_for_content(db_session, "topic-1")
    assert [(e.rule, e.threshold_index, e.amount_cents, e.user_id) for e in entries] == [
        ("TOPIC_LIKES", 1, 50, "alice")
    ]


def test_single_recompute_after_all_likes_pays_once(db_session, make_content, engine) -> None:
    make_content("topic-1", author_id="alice")
    for i in range(1000):
        engine.ledger.ingest(
            db_session, event_id=f"like-{i}", content_id="topic-1", actor_id=f"fan-{i}", kind="LIKE"
        )

    created = engine.earnings.recompute(db_session, "topic-1")

    assert [(e.threshold_index, e.amount_cents) for e in created] == [(1, 50)]


def test_batched_jump_creates_one_entry_per_crossed_threshold(db_session, make_content, engine) -> None:
    make_content("topic-1", author_id="alice")
    _set_counters(db_session, "topic-1", like_count=999)
    assert engine.earnings.recompute(db_session, "topic-1") == []

    _set_counters(db_session, "topic-1", like_count=2500)
    created = engine.earnings.recompute(db_session, "topic-1")

    assert sorted(e.threshold_index for e in created) == [1, 2]
    assert _entry_count(db_session, "topic-1") == 2


def test_recompute_is_idempotent(db_session, make_content, engine) -> None:
    make_content("topic-1")
    _set_counters(db_session, "topic-1", like_count=3000, reply_count=450)

    first = engine.earnings.recompute(db_session, "topic-1")
    second = engine.earnings.recompute(db_session, "topic-1")

    assert len(first) == 5  # three like thresholds, two reply thresholds
    assert second == []
    assert _entry_count(db_session, "topic-1") == 5


def test_comment_replies_pay_per_two_hundred(db_session, make_content, engine) -> None:
    make_content("comment-1", author_id="bob", kind=ContentKind.COMMENT)
    _set_counters(db_session, "comment-1", reply_count=200)

    created = engine.earnings.recompute(db_session, "comment-1")

    assert [(e.rule, e.threshold_index, e.amount_cents) for e in created] == [
        ("COMMENT_REPLIES", 1, 50)
    ]


def test_views_never_earn(db_session, make_content, engine) -> None:
    make_content("topic-1")
    _set_counters(db_session, "topic-1", view_count=1_000_000)

    assert engine.earnings.recompute(db_session, "topic-1") == []


def test_unlike_then_relike_does_not_repay(db_session, make_content, engine) -> None:
    make_content("topic-1")
    _set_counters(db_session, "topic-1", like_count=1000)
    engine.earnings.recompute(db_session, "topic-1")

    _set_counters(db_session, "topic-1", like_count=999)
    engine.earnings.recompute(db_session, "topic-1")
    _set_counters(db_session, "topic-1", like_count=1000)
    engine.earnings.recompute(db_session, "topic-1")

    assert _entry_count(db_session, "topic-1") == 1


def test_alternative_rate_table(db_session, make_content) -> None:
    config = Settings(like_rate_divisor=10, like_rate_cents=7, reply_rate_cents=0)
    service = EarningsService(config)
    make_content("topic-1")
    _set_counters(db_session, "topic-1", like_count=25, reply_count=400)

    created = service.recompute(db_session, "topic-1")

    assert [(e.rule, e.amount_cents) for e in created] == [("TOPIC_LIKES", 7), ("TOPIC_LIKES", 7)]
    assert {rule.name for rule in rate_table(config)[ContentKind.COMMENT]} == {
        "COMMENT_LIKES",
        "COMMENT_REPLIES",
    }


def test_recompute_unknown_content(db_session, engine) -> None:
    with pytest.raises(UnknownContentError):
        engine.earnings.recompute(db_session, "missing")


def test_recompute_failure_does_not_undo_ingest(db_session, make_content, engine, mocker) -> None:
    make_content("topic-1")
    mocker.patch.object(
        engine.earnings, "recompute", side_effect=StoreUnavailableError("database is locked")
    )

    outcome = engine.ingest(
        db_session, event_id="e1", content_id="topic-1", actor_id="u1", kind="LIKE"
    )

    assert outcome.result.accepted is True
    assert outcome.new_entries == []
    assert engine.ledger.counts(db_session, "topic-1").likes == 1


def test_summary_splits_paid_and_unpaid(db_session, make_user, make_entries, engine) -> None:
    make_user("alice", kyc_verified=True)
    make_entries("alice", [600, 600])

    summary = engine.earnings.summary(db_session, "alice")

    assert summary.total_cents == 1200
    assert summary.unpaid_cents == 1200
    assert summary.paid_cents == 0
    assert summary.payout_eligible is True


def test_summary_unknown_user(db_session, engine) -> None:
    with pytest.raises(UnknownUserError):
        engine.earnings.summary(db_session, "ghost")
