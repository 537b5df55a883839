"""
Datetime utilities for time conversion and consistent timezone handling.

This module is the single place where HH:MM and YYYY-MM-DD wire strings are
converted to and from the engine's representation (integer minutes since
midnight and date objects). All business logic uses the clinic timezone
(Argentina, UTC-3, no daylight saving time).
"""

import logging
import re
from datetime import datetime, timezone, timedelta, date, time
from typing import Optional

from core.config import CLINIC_UTC_OFFSET_HOURS
from core.constants import TIME_PATTERN, DATE_PATTERN, DATE_FORMAT, LAST_MINUTE_OF_DAY
from core.exceptions import InvalidFormatError

logger = logging.getLogger(__name__)

CLINIC_TZ = timezone(timedelta(hours=CLINIC_UTC_OFFSET_HOURS))

_TIME_RE = re.compile(TIME_PATTERN)
_DATE_RE = re.compile(DATE_PATTERN)


def clinic_now() -> datetime:
    """
    Get current clinic datetime.

    Returns:
        Current datetime with the clinic timezone
    """
    return datetime.now(CLINIC_TZ)


def clinic_today() -> date:
    """Get today's date in the clinic timezone."""
    return clinic_now().date()


def ensure_clinic_tz(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Ensure a datetime is timezone-aware with the clinic timezone.

    Naive datetimes are assumed to already be in clinic time.

    Args:
        dt: Datetime to localize or convert

    Returns:
        Timezone-aware datetime in the clinic timezone, or None if input is None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=CLINIC_TZ)
    else:
        return dt.astimezone(CLINIC_TZ)


def time_to_minutes(value: str) -> int:
    """
    Convert an HH:MM string to minutes since midnight.

    Single-digit hours are accepted ("9:30"), minutes must be two digits.

    Args:
        value: Time string in 24-hour HH:MM format

    Returns:
        hours * 60 + minutes

    Raises:
        InvalidFormatError: If the string does not match HH:MM
    """
    if not isinstance(value, str) or not _TIME_RE.fullmatch(value):
        raise InvalidFormatError(f"Invalid time format (expected HH:MM): {value!r}")

    hours, minutes = value.split(':')
    return int(hours) * 60 + int(minutes)


def minutes_to_time(minutes: int) -> str:
    """
    Convert minutes since midnight to a zero-padded HH:MM string.

    There is no day rollover: 1440 and above are a caller error.

    Raises:
        InvalidFormatError: If minutes is outside [0, 1439]
    """
    if isinstance(minutes, bool) or not isinstance(minutes, int):
        raise InvalidFormatError(f"Minutes must be an integer, got {type(minutes).__name__}")
    if minutes < 0 or minutes > LAST_MINUTE_OF_DAY:
        raise InvalidFormatError(f"Minutes out of range [0, {LAST_MINUTE_OF_DAY}]: {minutes}")

    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def time_of_day_to_minutes(value: time) -> int:
    """Convert a datetime.time (e.g. a TIME column) to minutes since midnight."""
    return value.hour * 60 + value.minute


def minutes_to_time_of_day(minutes: int) -> time:
    """Convert minutes since midnight to a datetime.time."""
    if minutes < 0 or minutes > LAST_MINUTE_OF_DAY:
        raise InvalidFormatError(f"Minutes out of range [0, {LAST_MINUTE_OF_DAY}]: {minutes}")
    return time(minutes // 60, minutes % 60)


def parse_date_string(date_str: str) -> date:
    """
    Parse a date string in strict YYYY-MM-DD format.

    Unlike user-facing inputs elsewhere, dates here are never coerced:
    "2024/01/15" or "2024-1-15" are rejected.

    Args:
        date_str: Date string in YYYY-MM-DD format

    Returns:
        Date object

    Raises:
        InvalidFormatError: If the string is not a valid YYYY-MM-DD calendar date
    """
    if not isinstance(date_str, str) or not _DATE_RE.fullmatch(date_str):
        raise InvalidFormatError(f"Invalid date format (expected YYYY-MM-DD): {date_str!r}")

    try:
        return datetime.strptime(date_str, DATE_FORMAT).date()
    except ValueError as e:
        raise InvalidFormatError(f"Invalid date (expected YYYY-MM-DD): {date_str!r}") from e


def format_date(value: date) -> str:
    """Format a date as YYYY-MM-DD."""
    return value.strftime(DATE_FORMAT)


def day_of_week(value: date) -> int:
    """
    Get the day of week with 0=Sunday ... 6=Saturday.

    Python's weekday() returns 0=Monday ... 6=Sunday, so shift by one.
    """
    return (value.weekday() + 1) % 7
