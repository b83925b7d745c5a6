"""Start timestamps for "last week / month / year" queries.

Month and year windows use calendar arithmetic via ``relativedelta``: the
month (or year) field is rolled back and an overflowing day-of-month is
clamped to the last day of the target month, so 2024-03-31 minus one month
is 2024-02-29 and 2023-03-31 minus one month is 2023-02-28.

All functions take ``now`` explicitly. Millisecond timestamps are converted
through naive local time, the same zone the measurements are displayed in.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from dateutil.relativedelta import relativedelta


class TimeWindow(Enum):
    """Look-back windows used by the statistics and home screens."""

    WEEK = relativedelta(days=7)
    MONTH = relativedelta(months=1)
    YEAR = relativedelta(years=1)

    @property
    def delta(self) -> relativedelta:
        return self.value


def to_millis(moment: datetime) -> int:
    """Convert a datetime (naive = local time) to ms since epoch."""
    return round(moment.timestamp() * 1000)


def from_millis(millis: int) -> datetime:
    """Convert ms since epoch to a naive local datetime."""
    return datetime.fromtimestamp(millis / 1000)


def window_start(now: datetime, window: TimeWindow) -> datetime:
    """Return ``now - window`` using calendar arithmetic."""
    return now - window.delta


def window_start_millis(now_millis: int, window: TimeWindow) -> int:
    """Millisecond variant of :func:`window_start`."""
    start = window_start(from_millis(now_millis), window)
    return to_millis(start)
