"""Tests for the payout scheduler entry point."""

from engagement_engine.models import BatchStatus
from engagement_engine.scripts.run_payouts import main


def test_cli_runs_batch_for_period(db_session, make_user, make_entries, engine, mocker) -> None:
    make_user("alice")
    make_entries("alice", [1500])
    mocker.patch("engagement_engine.scripts.run_payouts.SessionLocal", return_value=db_session)

    assert main(["--period", "2025-02B"], engine=engine) == 0

    batch = engine.payouts.get_batch(db_session, "2025-02B")
    assert batch.total_cents == 1500
    assert batch.status is BatchStatus.EXPORTED


def test_cli_reports_failure(db_session, engine, mocker) -> None:
    mocker.patch("engagement_engine.scripts.run_payouts.SessionLocal", return_value=db_session)

    assert main(["--period", "not-a-period"], engine=engine) == 1
