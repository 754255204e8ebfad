"""
Datetime utilities for the EMR Service API.

Design Principles:
- Internal processing: timezone-aware UTC datetimes
- Database storage: "YYYY-MM-DD HH:MM:SS" text in UTC, declared as DATETIME
  so connections hand the values back as datetime objects
- Day windows: [first second of day, last moment of day], matching the way
  visits are grouped per clinic day

Usage:
    from emr_svc.core.datetime_utils import utc_now, to_db_string, day_bounds

    start, end = day_bounds(date(2024, 1, 15))
"""
import logging
from datetime import date, datetime, time, timezone
from typing import Optional, Tuple, Union

logger = logging.getLogger(__name__)

DB_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"


# =============================================================================
# CORE UTILITIES
# =============================================================================

def utc_now() -> datetime:
    """Get current datetime in UTC with timezone info."""
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """
    Convert a datetime to UTC.

    - If datetime is naive (no timezone), assumes it's already UTC
    - If datetime has timezone, converts to UTC
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


# =============================================================================
# DAY WINDOWS
# =============================================================================

def first_second_of_day(day: Union[date, datetime]) -> datetime:
    """Return 00:00:00 of the given day (naive, database time)."""
    if isinstance(day, datetime):
        day = day.date()
    return datetime.combine(day, time.min)


def last_moment_of_day(day: Union[date, datetime]) -> datetime:
    """Return 23:59:59 of the given day (naive, database time)."""
    if isinstance(day, datetime):
        day = day.date()
    return datetime.combine(day, time(23, 59, 59))


def day_bounds(day: Union[date, datetime]) -> Tuple[datetime, datetime]:
    """Return (first second, last moment) of the given day."""
    return first_second_of_day(day), last_moment_of_day(day)


# =============================================================================
# DATABASE HELPERS
# =============================================================================

def to_db_string(dt: Optional[datetime]) -> Optional[str]:
    """
    Convert datetime to string format for SQLite storage.

    Aware datetimes are converted to UTC first; naive ones are stored as-is.
    """
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = to_utc(dt).replace(tzinfo=None)
    return dt.strftime(DB_DATETIME_FORMAT)


def parse_date(value: Union[str, date, datetime]) -> date:
    """
    Parse a date from an ISO string, date or datetime.

    Raises:
        ValueError: If the value cannot be parsed.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Expected date or string, got {type(value).__name__}")
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        logger.warning(f"Failed to parse date '{value}'")
        raise
