"""
Standardized Date/Time Handling Utilities

Progression rules compare calendar days, so every pair of timestamps has to
be brought into the same timezone before taking .date().

RULES:
- A completion timestamp defines the timezone its calendar day is read in
- Aware timestamps are converted into that timezone
- Naive timestamps are assumed to already be in that timezone
- Naive + naive stays naive (wall-clock comparison)
"""

import logging
from datetime import datetime, date, time, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from quest_engine.config import DEFAULT_TIMEZONE

logger = logging.getLogger(__name__)

END_OF_DAY = time(23, 59, 59)


def now_utc() -> datetime:
    """
    Get current datetime in UTC (timezone-aware)

    Returns:
        Current datetime in UTC with timezone info
    """
    return datetime.now(ZoneInfo("UTC"))


def default_timezone() -> ZoneInfo:
    """ZoneInfo for DEFAULT_TIMEZONE"""
    return ZoneInfo(DEFAULT_TIMEZONE)


def align_to(dt: datetime, reference: datetime) -> datetime:
    """
    Express dt in the timezone of reference so the two are comparable

    Args:
        dt: Datetime to align (naive or aware)
        reference: Datetime whose timezone wins

    Returns:
        dt, converted or tagged to reference's tzinfo
    """
    if reference.tzinfo is None:
        if dt.tzinfo is None:
            return dt
        # Reference is wall-clock: drop dt's zone after converting to the default
        return dt.astimezone(default_timezone()).replace(tzinfo=None)

    if dt.tzinfo is None:
        return dt.replace(tzinfo=reference.tzinfo)
    return dt.astimezone(reference.tzinfo)


def local_date(dt: datetime, reference: Optional[datetime] = None) -> date:
    """Calendar day of dt, read in reference's timezone when given"""
    if reference is not None:
        dt = align_to(dt, reference)
    return dt.date()


def days_between(earlier: datetime, later: datetime) -> int:
    """
    Whole calendar days from earlier to later, in later's timezone

    Returns:
        0 for the same day, 1 for the next day, negative if earlier is after later
    """
    return (later.date() - local_date(earlier, later)).days


def end_of_next_day(dt: datetime) -> datetime:
    """23:59:59 on the calendar day after dt, keeping dt's tzinfo"""
    next_day = dt.date() + timedelta(days=1)
    return datetime.combine(next_day, END_OF_DAY, tzinfo=dt.tzinfo)


def start_of_day(dt: datetime) -> datetime:
    """Midnight of dt's calendar day, keeping dt's tzinfo"""
    return datetime.combine(dt.date(), time.min, tzinfo=dt.tzinfo)


def start_of_week(dt: datetime) -> datetime:
    """Midnight of the Monday of dt's week"""
    return start_of_day(dt) - timedelta(days=dt.weekday())
