"""Time sources and the week identifier used for the weekly challenge cap."""
from __future__ import annotations

import math
from datetime import datetime
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Local wall-clock time; challenge windows are expressed in local hours."""

    def now(self) -> datetime:
        return datetime.now()


def week_of_year(now: datetime) -> int:
    """
    Week number of ``now`` within its year (1-54).

    Counts whole days since January 1st and shifts them by the weekday of
    January 1st (Sunday = 0), so the value is stable for the whole week and
    increments when the week rolls over.
    """
    start_of_year = datetime(now.year, 1, 1, tzinfo=now.tzinfo)
    days = (now - start_of_year).days
    start_weekday = (start_of_year.weekday() + 1) % 7
    return math.ceil((days + start_weekday + 1) / 7)


def current_week(now: datetime) -> int:
    """
    Year-qualified week identifier, ``year * 100 + week_of_year``.

    2025-03-10 is 202511. The identifier only grows, so delivery logs from the
    same week number of an earlier year never count against this week.
    """
    return now.year * 100 + week_of_year(now)


def format_week(week_id: int) -> str:
    return f"{week_id // 100}-W{week_id % 100:02d}"
