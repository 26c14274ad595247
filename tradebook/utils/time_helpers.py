# tradebook/utils/time_helpers.py
"""
Time-related utility functions.
"""

import re
from datetime import date, datetime
from typing import Optional, Tuple, Union
import pandas as pd

from ..errors import ValidationError


TREND_PERIODS = ("1W", "1M", "3M", "6M", "1Y", "ALL")
DEFAULT_TREND_PERIOD = "1M"

_PERIOD_OFFSETS = {
    "1W": pd.DateOffset(days=7),
    "1M": pd.DateOffset(months=1),
    "3M": pd.DateOffset(months=3),
    "6M": pd.DateOffset(months=6),
    "1Y": pd.DateOffset(years=1),
}


def parse_timeframe(timeframe: str) -> Tuple[int, str]:
    """
    Parse timeframe string into number and unit.

    Args:
        timeframe: Timeframe string (e.g., '1h', '5m', '1d')

    Returns:
        Tuple of (number, unit)

    Raises:
        ValueError: If timeframe format is invalid
    """
    pattern = r'^(\d+)([mhd])$'
    match = re.match(pattern, timeframe.lower())

    if not match:
        raise ValueError(f"Invalid timeframe format: {timeframe}")

    number = int(match.group(1))
    unit = match.group(2)

    return number, unit


def parse_date(value: Union[str, date, datetime]) -> datetime:
    """
    Parse a date given as a string, date or datetime.

    Args:
        value: ISO date/datetime string, or a date/datetime object

    Returns:
        Parsed datetime

    Raises:
        ValidationError: If the value is not a recognizable date
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str):
        raise ValidationError(f"Unable to parse date: {value!r}", field="date")

    text = value.strip()
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass

    formats = [
        "%Y-%m-%d %H:%M:%S",
        "%d/%m/%Y",
        "%d-%m-%Y",
        "%Y%m%d"
    ]
    for fmt in formats:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue

    raise ValidationError(f"Unable to parse date string: {value}", field="date")


def period_start(period: str, now: datetime) -> Optional[datetime]:
    """
    Start of a P&L trend lookback window.

    Args:
        period: One of 1W, 1M, 3M, 6M, 1Y, ALL (anything else means 1M)
        now: End of the window

    Returns:
        Window start, or None for ALL
    """
    key = (period or DEFAULT_TREND_PERIOD).upper()
    if key == "ALL":
        return None
    offset = _PERIOD_OFFSETS.get(key, _PERIOD_OFFSETS[DEFAULT_TREND_PERIOD])
    return (pd.Timestamp(now) - offset).to_pydatetime()


def business_days(start: Union[date, datetime], end: Union[date, datetime]) -> pd.DatetimeIndex:
    """Weekdays between start and end, inclusive."""
    return pd.bdate_range(start=start, end=end)


def format_duration(seconds: float) -> str:
    """
    Format duration in seconds to human readable string.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted duration string
    """
    if seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        minutes = seconds / 60
        return f"{minutes:.1f}m"
    elif seconds < 86400:
        hours = seconds / 3600
        return f"{hours:.1f}h"
    else:
        days = seconds / 86400
        return f"{days:.1f}d"
