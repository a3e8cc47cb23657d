"""
Point-in-time value objects the availability engine computes over.

The resolver, slot generator, allocator and searches are pure functions of
these snapshots; the repository builds them from database rows.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Dict, List, Optional, Tuple

import pytz

from core.utils_datetime import local_day_bounds_utc, utc_to_local
from domain.enums import VenueHoursType
from domain.interval import Interval


@dataclass(frozen=True)
class TableInfo:
    """Physical table reference data."""

    id: int
    number: int
    seats: int


@dataclass(frozen=True)
class BookedInterval:
    """An active reservation's hold on a table."""

    reservation_id: int
    table_id: Optional[int]
    start: datetime
    end: datetime
    private_event_id: Optional[int] = None

    @property
    def interval(self) -> Interval[datetime]:
        return Interval(self.start, self.end)


@dataclass(frozen=True)
class EventBlock:
    """An active private event."""

    event_id: int
    start: datetime
    end: datetime
    full_day: bool = False

    def covered_dates(self, tz: pytz.BaseTzInfo) -> Tuple[date, date]:
        """First and last venue-local dates touched by the event."""
        first = utc_to_local(self.start, tz).date()
        last = utc_to_local(self.end - timedelta(microseconds=1), tz).date()
        return first, last

    def covers_date(self, day: date, tz: pytz.BaseTzInfo) -> bool:
        first, last = self.covered_dates(tz)
        return first <= day <= last

    def blocking_interval(self, tz: pytz.BaseTzInfo) -> Interval[datetime]:
        """
        The span of time the event takes away from regular bookings.

        A full-day event blocks every local day it touches, midnight to midnight.
        """
        if not self.full_day:
            return Interval(self.start, self.end)
        first, last = self.covered_dates(tz)
        start, _ = local_day_bounds_utc(first, tz)
        _, end = local_day_bounds_utc(last, tz)
        return Interval(start, end)


@dataclass(frozen=True)
class HoursRule:
    """One venue-hours rule with its ranges in minutes since local midnight."""

    type: VenueHoursType
    ranges: Tuple[Interval[int], ...] = ()
    day_of_week: Optional[int] = None
    rule_date: Optional[date] = None
    full_day: bool = False


@dataclass(frozen=True)
class DateWindow:
    """Inclusive date range within which bookings may be requested."""

    start_date: date
    end_date: date

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


@dataclass(frozen=True)
class Slot:
    """A candidate reservation start on a specific date."""

    label: str
    local_start: time
    start: datetime
    end: datetime

    @property
    def interval(self) -> Interval[datetime]:
        return Interval(self.start, self.end)


@dataclass(frozen=True)
class SlotAvailability:
    """A slot plus the allocator's verdict for it."""

    slot: Slot
    available: bool
    table_id: Optional[int] = None

    @property
    def label(self) -> str:
        return self.slot.label


@dataclass
class CalendarConfig:
    """Venue-hours rules, booking window and private events needed to resolve dates."""

    rules: List[HoursRule] = field(default_factory=list)
    booking_window: Optional[DateWindow] = None
    events: List[EventBlock] = field(default_factory=list)


@dataclass
class OccupancySnapshot:
    """Tables, active reservations and active private events over some time span."""

    tables: List[TableInfo] = field(default_factory=list)
    reservations: List[BookedInterval] = field(default_factory=list)
    events: List[EventBlock] = field(default_factory=list)

    def reservations_by_table(self) -> Dict[int, List[BookedInterval]]:
        grouped: Dict[int, List[BookedInterval]] = {}
        for booking in self.reservations:
            if booking.table_id is None:
                continue
            grouped.setdefault(booking.table_id, []).append(booking)
        return grouped
