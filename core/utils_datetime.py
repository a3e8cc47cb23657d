"""
DateTime utilities for venue-local times, UTC instants and 12-hour time labels.

Venue hours are configured as local wall-clock times; every comparison against
stored reservations happens in UTC. Conversions go through pytz so that
daylight-saving transitions are resolved by the time zone database rather than
by hand-rolled offset arithmetic.
"""
from datetime import date, datetime, time, timedelta
from typing import Optional, Union
import re

import pytz


UTC = pytz.utc

LABEL_PATTERN = re.compile(r'^\s*(\d{1,2})(?::(\d{2}))?\s*([ap]m)\s*$', re.IGNORECASE)
HHMM_PATTERN = re.compile(r'^\s*(\d{1,2}):(\d{2})(?::(\d{2}))?\s*$')


def utc_now() -> datetime:
    """Get the current instant as an aware UTC datetime."""
    return datetime.now(UTC)


def ensure_utc(dt: datetime) -> datetime:
    """
    Normalize a datetime to aware UTC.

    Naive datetimes are taken to already be UTC (the storage convention).
    """
    if dt.tzinfo is None:
        return UTC.localize(dt)
    return dt.astimezone(UTC)


def local_to_utc(day: date, local_time: time, tz: pytz.BaseTzInfo) -> datetime:
    """
    Convert a venue-local wall-clock time on a date to an aware UTC instant.

    Args:
        day: Local calendar date
        local_time: Local wall-clock time
        tz: Venue time zone

    Returns:
        Aware UTC datetime
    """
    naive = datetime.combine(day, local_time)
    # is_dst=False picks standard time for ambiguous and non-existent wall times
    localized = tz.localize(naive, is_dst=False)
    return tz.normalize(localized).astimezone(UTC)


def utc_to_local(dt: datetime, tz: pytz.BaseTzInfo) -> datetime:
    """Convert an instant to the venue's local time zone."""
    return ensure_utc(dt).astimezone(tz)


def local_day_bounds_utc(day: date, tz: pytz.BaseTzInfo) -> tuple:
    """
    Get the UTC instants bounding a local calendar day.

    Returns:
        Tuple of (start_utc, end_utc), end exclusive
    """
    start = tz.localize(datetime.combine(day, time(0, 0)), is_dst=False)
    end = tz.localize(datetime.combine(day + timedelta(days=1), time(0, 0)), is_dst=False)
    return start.astimezone(UTC), end.astimezone(UTC)


def format_time_label(value: Union[time, datetime]) -> str:
    """
    Format a time as a 12-hour label.

    Examples:
        time(18, 30) -> "6:30pm"
        time(0, 15)  -> "12:15am"
    """
    hour = value.hour
    display_hour = 12 if hour % 12 == 0 else hour % 12
    suffix = 'am' if hour < 12 else 'pm'
    return f"{display_hour}:{value.minute:02d}{suffix}"


def parse_time_label(text: str) -> Optional[time]:
    """
    Parse a 12-hour label ("6:30pm", "7pm") or a 24-hour "HH:MM" string.

    Returns:
        time object or None if parsing fails
    """
    if not text:
        return None

    match = LABEL_PATTERN.match(text)
    if match:
        hour = int(match.group(1))
        minute = int(match.group(2) or 0)
        suffix = match.group(3).lower()
        if hour < 1 or hour > 12 or minute > 59:
            return None
        if suffix == 'pm' and hour != 12:
            hour += 12
        if suffix == 'am' and hour == 12:
            hour = 0
        return time(hour, minute)

    return parse_hhmm(text)


def parse_hhmm(text: str) -> Optional[time]:
    """Parse a 24-hour "HH:MM" (or "HH:MM:SS") string into a time."""
    if not text:
        return None
    match = HHMM_PATTERN.match(text)
    if not match:
        return None
    try:
        return time(int(match.group(1)), int(match.group(2)))
    except ValueError:
        return None


def minutes_of_day(value: time) -> int:
    """Minutes elapsed since midnight."""
    return value.hour * 60 + value.minute


def parse_clock_minutes(text: str) -> Optional[int]:
    """
    Parse "HH:MM" into minutes since midnight.

    "24:00" is accepted as the end of the day (1440).
    """
    if not text:
        return None
    match = HHMM_PATTERN.match(text)
    if not match:
        return None
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour == 24 and minute == 0:
        return 24 * 60
    if hour > 23 or minute > 59:
        return None
    return hour * 60 + minute


def time_from_minutes(minutes: int) -> time:
    """Convert minutes since midnight (0-1439) to a time."""
    return time(minutes // 60, minutes % 60)
