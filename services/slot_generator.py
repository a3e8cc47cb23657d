"""Expansion of allowed local ranges into fixed-duration candidate slots."""

from datetime import date, timedelta
from typing import Iterable, List, Set

import pytz

from core.utils_datetime import format_time_label, local_to_utc, time_from_minutes
from domain.interval import Interval
from domain.snapshot import Slot


def generate_slots(
    day: date,
    ranges: Iterable[Interval[int]],
    duration_minutes: int,
    step_minutes: int,
    tz: pytz.BaseTzInfo,
) -> List[Slot]:
    """
    Generate candidate slots for a date.

    Starts step from each range's start while start + duration fits inside the
    range. Each start is converted to a UTC [start, end) pair; the end is the
    UTC start plus the duration, so a seating that crosses a DST change still
    lasts exactly the duration.

    Args:
        day: Venue-local date
        ranges: Allowed ranges in minutes since local midnight
        duration_minutes: Seating duration
        step_minutes: Grid step
        tz: Venue time zone

    Returns:
        Ordered, duplicate-free list of slots
    """
    if duration_minutes <= 0 or step_minutes <= 0:
        raise ValueError("duration_minutes and step_minutes must be positive")

    duration = timedelta(minutes=duration_minutes)
    seen: Set[int] = set()
    slots: List[Slot] = []

    for allowed in sorted(ranges):
        minute = allowed.start
        while minute + duration_minutes <= allowed.end:
            if minute not in seen:
                seen.add(minute)
                local_start = time_from_minutes(minute)
                start = local_to_utc(day, local_start, tz)
                slots.append(Slot(
                    label=format_time_label(local_start),
                    local_start=local_start,
                    start=start,
                    end=start + duration,
                ))
            minute += step_minutes

    slots.sort(key=lambda s: s.local_start)
    return slots
