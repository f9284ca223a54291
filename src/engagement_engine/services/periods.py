"""Payout period identifiers.

A period id is ``YYYY-MM`` for a whole month, ``YYYY-MMA`` for days 1-15 or
``YYYY-MMB`` for day 16 through the end of the month.
"""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from datetime import date, datetime

from engagement_engine.core.errors import InvalidPeriodError

_PERIOD_RE = re.compile(r"^(?P<year>\d{4})-(?P<month>\d{2})(?P<half>[AB]?)$")
MID_MONTH_DAY = 15


@dataclass(frozen=True)
class Period:
    """Inclusive calendar range covered by a payout period."""

    period_id: str
    start: date
    end: date


def parse_period(period_id: str) -> Period:
    """Parse ``period_id`` or raise ``InvalidPeriodError``."""
    match = _PERIOD_RE.match(period_id or "")
    if match is None:
        raise InvalidPeriodError(period_id)
    year, month, half = int(match["year"]), int(match["month"]), match["half"]
    if not 1 <= month <= 12:
        raise InvalidPeriodError(period_id)

    last_day = calendar.monthrange(year, month)[1]
    if half == "A":
        return Period(period_id, date(year, month, 1), date(year, month, MID_MONTH_DAY))
    if half == "B":
        return Period(period_id, date(year, month, MID_MONTH_DAY + 1), date(year, month, last_day))
    return Period(period_id, date(year, month, 1), date(year, month, last_day))


def period_id_for(moment: datetime | date) -> str:
    """Return the half-month period id containing ``moment``."""
    half = "A" if moment.day <= MID_MONTH_DAY else "B"
    return f"{moment.year:04d}-{moment.month:02d}{half}"
