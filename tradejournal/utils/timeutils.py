"""
Timezone, window and session utilities.

This module centralises all timezone handling used by the statistics.
Every trade timestamp is brought into the trader's local timezone
before it is bucketed by day, weekday or session, and the recency
windows (`today`, `week`, `month`) are all derived from one place.
"""

from __future__ import annotations

from typing import Optional, Tuple
import pandas as pd


SESSIONS: Tuple[str, ...] = ('Pre-Market', 'Open', 'Mid-Day', 'Power Hour', 'After-Hours')

DAYS_OF_WEEK: Tuple[str, ...] = (
    'Sunday', 'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday',
)


def to_local(ts: pd.Timestamp, tz_name: str) -> pd.Timestamp:
    """Convert a `pandas.Timestamp` to the given local timezone.

    Naive timestamps are journal wall-clock entries and are localised
    as-is; timezone-aware ones are converted.  A wall-clock time that
    repeats when clocks go back is read as the first (summer time)
    occurrence, and one skipped when clocks go forward moves to the
    first valid instant after the gap.
    """
    if not isinstance(ts, pd.Timestamp):
        ts = pd.Timestamp(ts)
    if ts.tzinfo is None:
        return ts.tz_localize(tz_name, ambiguous=True, nonexistent='shift_forward')
    return ts.tz_convert(tz_name)


def now_local(tz_name: str) -> pd.Timestamp:
    return pd.Timestamp.now(tz=tz_name)


def start_of_day(ts: pd.Timestamp) -> pd.Timestamp:
    """Return local midnight of the day containing `ts`."""
    return ts.normalize()


def window_start(timeframe: str, now: pd.Timestamp) -> Optional[pd.Timestamp]:
    """Return the earliest timestamp included in `timeframe`.

    ``today`` starts at local midnight, ``week`` seven days before
    `now` and ``month`` one calendar month before `now`.  ``all`` has
    no lower bound and returns `None`.

    Raises
    ------
    ValueError
        If `timeframe` is not recognised.
    """
    if timeframe == 'all':
        return None
    if timeframe == 'today':
        return start_of_day(now)
    if timeframe == 'week':
        return now - pd.Timedelta(days=7)
    if timeframe == 'month':
        if now.tzinfo is None:
            return now - pd.DateOffset(months=1)
        # Calendar arithmetic on the wall clock, then back to the zone
        wall = now.tz_localize(None) - pd.DateOffset(months=1)
        return wall.tz_localize(now.tz, ambiguous=True, nonexistent='shift_forward')
    raise ValueError(f"Unknown timeframe: {timeframe}")


def in_window(ts: pd.Timestamp, start: Optional[pd.Timestamp]) -> bool:
    """Check whether `ts` falls on or after `start` (inclusive)."""
    return start is None or ts >= start


def session_for_hour(hour: int) -> str:
    """Map a local hour of day to its trading session bucket."""
    if hour < 9:
        return 'Pre-Market'
    if hour < 11:
        return 'Open'
    if hour < 14:
        return 'Mid-Day'
    if hour < 16:
        return 'Power Hour'
    return 'After-Hours'


def day_of_week(ts: pd.Timestamp) -> str:
    # pandas counts Monday as 0
    return DAYS_OF_WEEK[(ts.dayofweek + 1) % 7]
