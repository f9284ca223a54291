"""initial schema

Revision ID: 5b1f0c3a9e27
Revises:
Create Date: 2025-11-03 09:14:52.418305

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5b1f0c3a9e27"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_ID = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def upgrade() -> None:
    """Create the engine tables."""
    op.create_table(
        "engine_user",
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("role", sa.String(length=16), nullable=False),
        sa.Column("kyc_verified", sa.Boolean(), nullable=False),
        sa.Column("synced_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("user_id"),
    )
    op.create_table(
        "content_item",
        sa.Column("content_id", sa.String(length=64), nullable=False),
        sa.Column("kind", sa.String(length=16), nullable=False),
        sa.Column("author_id", sa.String(length=64), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("like_count", sa.BigInteger(), nullable=False),
        sa.Column("reply_count", sa.BigInteger(), nullable=False),
        sa.Column("view_count", sa.BigInteger(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("content_id"),
    )
    op.create_index("ix_content_item_author_id", "content_item", ["author_id"])

    op.create_table(
        "engagement_event",
        sa.Column("event_id", sa.String(length=128), nullable=False),
        sa.Column("content_id", sa.String(length=64), nullable=False),
        sa.Column("actor_id", sa.String(length=64), nullable=False),
        sa.Column("kind", sa.String(length=16), nullable=False),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["content_id"], ["content_item.content_id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("event_id"),
    )
    op.create_index("ix_engagement_event_content_id", "engagement_event", ["content_id"])
    op.create_index(
        "ix_engagement_event_actor_kind",
        "engagement_event",
        ["actor_id", "kind", "occurred_at"],
    )

    op.create_table(
        "fraud_signal",
        sa.Column("id", _ID, autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("signal_type", sa.String(length=64), nullable=False),
        sa.Column("weight", sa.Integer(), nullable=False),
        sa.Column("observed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("detail", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_fraud_signal_user_observed", "fraud_signal", ["user_id", "observed_at"]
    )

    op.create_table(
        "payout_batch",
        sa.Column("id", _ID, autoincrement=True, nullable=False),
        sa.Column("period_id", sa.String(length=16), nullable=False),
        sa.Column("period_start", sa.Date(), nullable=False),
        sa.Column("period_end", sa.Date(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("total_cents", sa.BigInteger(), nullable=False),
        sa.Column("entry_count", sa.Integer(), nullable=False),
        sa.Column("user_count", sa.Integer(), nullable=False),
        sa.Column("csv_sha256", sa.CHAR(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("closed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("exported_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("period_id"),
    )

    op.create_table(
        "earnings_entry",
        sa.Column("id", _ID, autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("content_id", sa.String(length=64), nullable=False),
        sa.Column("period_id", sa.String(length=16), nullable=False),
        sa.Column("amount_cents", sa.BigInteger(), nullable=False),
        sa.Column("rule", sa.String(length=32), nullable=False),
        sa.Column("threshold_index", sa.BigInteger(), nullable=False),
        sa.Column("computed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("payout_batch_id", sa.BigInteger(), nullable=True),
        sa.CheckConstraint("amount_cents >= 0", name="ck_earnings_entry_amount"),
        sa.CheckConstraint("threshold_index >= 1", name="ck_earnings_entry_threshold"),
        sa.ForeignKeyConstraint(["content_id"], ["content_item.content_id"]),
        sa.ForeignKeyConstraint(["payout_batch_id"], ["payout_batch.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "content_id", "rule", "threshold_index", name="uq_earnings_entry_crossing"
        ),
    )
    op.create_index(
        "ix_earnings_entry_unpaid", "earnings_entry", ["user_id", "payout_batch_id"]
    )

    op.create_table(
        "moderation_action",
        sa.Column("id", _ID, autoincrement=True, nullable=False),
        sa.Column("content_id", sa.String(length=64), nullable=False),
        sa.Column("actor_id", sa.String(length=64), nullable=True),
        sa.Column("from_status", sa.String(length=16), nullable=False),
        sa.Column("to_status", sa.String(length=16), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["content_id"], ["content_item.content_id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_moderation_action_content", "moderation_action", ["content_id", "id"]
    )

    op.create_table(
        "content_report",
        sa.Column("content_id", sa.String(length=64), nullable=False),
        sa.Column("reporter_id", sa.String(length=64), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("reported_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["content_id"], ["content_item.content_id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("content_id", "reporter_id"),
    )

    op.create_table(
        "payout_job_run",
        sa.Column("id", _ID, autoincrement=True, nullable=False),
        sa.Column("job_name", sa.String(length=64), nullable=False),
        sa.Column("period_id", sa.String(length=16), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("finished_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("log", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_payout_job_run_period_id", "payout_job_run", ["period_id"])

    op.create_table(
        "audit_event",
        sa.Column("id", _ID, autoincrement=True, nullable=False),
        sa.Column("event_type", sa.String(length=64), nullable=False),
        sa.Column("content_id", sa.String(length=64), nullable=True),
        sa.Column("user_id", sa.String(length=64), nullable=True),
        sa.Column("actor_id", sa.String(length=64), nullable=True),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_event_content", "audit_event", ["content_id", "occurred_at"])
    op.create_index("ix_audit_event_user", "audit_event", ["user_id", "occurred_at"])


def downgrade() -> None:
    """Drop the engine tables."""
    op.drop_index("ix_audit_event_user", table_name="audit_event")
    op.drop_index("ix_audit_event_content", table_name="audit_event")
    op.drop_table("audit_event")
    op.drop_index("ix_payout_job_run_period_id", table_name="payout_job_run")
    op.drop_table("payout_job_run")
    op.drop_table("content_report")
    op.drop_index("ix_moderation_action_content", table_name="moderation_action")
    op.drop_table("moderation_action")
    op.drop_index("ix_earnings_entry_unpaid", table_name="earnings_entry")
    op.drop_table("earnings_entry")
    op.drop_table("payout_batch")
    op.drop_index("ix_fraud_signal_user_observed", table_name="fraud_signal")
    op.drop_table("fraud_signal")
    op.drop_index("ix_engagement_event_actor_kind", table_name="engagement_event")
    op.drop_index("ix_engagement_event_content_id", table_name="engagement_event")
    op.drop_table("engagement_event")
    op.drop_index("ix_content_item_author_id", table_name="content_item")
    op.drop_table("content_item")
    op.drop_table("engine_user")
