"""Scheduler entry point: run the payout batch for one period.

Exit code:
  0 = batch closed (or already closed) for the period
  1 = the run failed or was rejected

Typical usage:
  engagement-engine-payouts --period 2025-02B
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence

from engagement_engine.core.errors import EngineError
from engagement_engine.db.session import SessionLocal
from engagement_engine.db.time import utcnow
from engagement_engine.services.engine import EngagementEngine
from engagement_engine.services.periods import period_id_for

logger = logging.getLogger("engagement_engine.payouts")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Close and export the payout batch for a period")
    parser.add_argument(
        "--period",
        default=None,
        help="Period id (YYYY-MM, YYYY-MMA or YYYY-MMB); defaults to the current half-month",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log at DEBUG level.",
    )
    return parser


def main(argv: Sequence[str] | None = None, engine: EngagementEngine | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    period_id = args.period or period_id_for(utcnow())
    engine = engine or EngagementEngine()

    db = SessionLocal()
    try:
        batch = engine.payouts.run_batch(db, period_id)
    except EngineError as exc:
        logger.error("Payout run for %s failed: %s", period_id, exc)
        return 1
    finally:
        db.close()

    logger.info(
        "Batch %s for %s is %s: %d users, %d cents",
        batch.id,
        batch.period_id,
        batch.status.value,
        batch.user_count,
        batch.total_cents,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
