"""
Availability Service: slot listings, alternative times and next-open-slot search.

Loads a point-in-time snapshot through the repository and runs the calendar
resolver, slot generator and table allocator over it.
"""
import logging
from datetime import date, datetime, timedelta
from typing import List, Optional

from core.utils_datetime import ensure_utc, format_time_label, local_day_bounds_utc, parse_time_label
from core.venue_config import BookingRules
from db.session import Database
from domain.errors import ConfigurationMissing, InvalidInput, OutsideBookingWindow, VenueClosed
from domain.snapshot import SlotAvailability
from services.alternative_times import AlternativeTimes, find_alternative_times
from services.calendar_resolver import VenueCalendarResolver
from services.next_open_slot import find_next_open_slot
from services.repository import VenueRepository
from services.slot_generator import generate_slots
from services.table_allocator import AllocationRequest, TableAllocator


logger = logging.getLogger(__name__)

# Errors that make a date non-offerable rather than the request malformed
CALENDAR_ERRORS = (ConfigurationMissing, OutsideBookingWindow, VenueClosed)


class AvailabilityService:
    """Read-side availability operations."""

    def __init__(self, database: Database, rules: Optional[BookingRules] = None):
        """
        Initialize AvailabilityService.

        Args:
            database: Store handle
            rules: Booking rules (defaults to rules built from settings)
        """
        self.database = database
        self.rules = rules or BookingRules.from_settings()
        self.resolver = VenueCalendarResolver(self.rules.tz)
        self.allocator = TableAllocator(self.rules.tz)

    def validate_party_size(self, party_size: Optional[int]) -> int:
        if not self.rules.is_valid_party_size(party_size):
            raise InvalidInput(
                f"Party size must be between {self.rules.min_party_size} and {self.rules.max_party_size}",
                details={"party_size": party_size},
            )
        return party_size

    def normalize_time_label(self, requested_time: Optional[str]) -> str:
        """Parse "7pm"-style or "19:00" input into the canonical "7:00pm" label."""
        parsed = parse_time_label(requested_time or "")
        if parsed is None:
            raise InvalidInput(
                f"Unparsable time: {requested_time!r}",
                details={"time": requested_time},
            )
        return format_time_label(parsed)

    def day_availability(
        self,
        repo: VenueRepository,
        day: date,
        party_size: int,
        reservation_id: Optional[int] = None,
        private_event_id: Optional[int] = None,
    ) -> List[SlotAvailability]:
        """
        Compute the availability vector for a date inside an open session.

        Args:
            repo: Repository bound to the caller's session
            day: Venue-local date
            party_size: Number of guests
            reservation_id: Reservation being edited, excluded from its own conflict check
            private_event_id: Event the booking belongs to, which never blocks it

        Returns:
            Ordered list of slots with their availability and the table the
            allocator would assign

        Raises:
            OutsideBookingWindow, VenueClosed, ConfigurationMissing
        """
        day_start, day_end = local_day_bounds_utc(day, self.rules.tz)
        config = repo.load_calendar_config(day, day, day_start, day_end)
        ranges = self.resolver.resolve(day, config)

        slots = generate_slots(
            day,
            ranges,
            duration_minutes=self.rules.duration_minutes_for_party(party_size),
            step_minutes=self.rules.slot_step_minutes,
            tz=self.rules.tz,
        )
        if not slots:
            return []

        snapshot = repo.load_occupancy(
            min(s.start for s in slots),
            max(s.end for s in slots),
            party_size=party_size,
        )

        vector = []
        for slot in slots:
            table = self.allocator.allocate(
                AllocationRequest(
                    interval=slot.interval,
                    party_size=party_size,
                    reservation_id=reservation_id,
                    private_event_id=private_event_id,
                ),
                snapshot,
            )
            vector.append(SlotAvailability(
                slot=slot,
                available=table is not None,
                table_id=table.id if table is not None else None,
            ))
        return vector

    def get_slot_availability(self, day: date, party_size: int) -> List[SlotAvailability]:
        """Full availability vector for a date; calendar errors propagate."""
        self.validate_party_size(party_size)
        with self.database.session() as session:
            return self.day_availability(VenueRepository(session), day, party_size)

    def get_available_slots(self, day: date, party_size: int) -> List[str]:
        """
        Get the offerable start labels for a date and party size.

        Args:
            day: Venue-local date
            party_size: Number of guests

        Returns:
            Ordered 12-hour labels ("6:30pm"); empty when the date is not offerable

        Raises:
            InvalidInput: Party size out of range
        """
        self.validate_party_size(party_size)
        try:
            vector = self.get_slot_availability(day, party_size)
        except CALENDAR_ERRORS as e:
            logger.info(f"No slots on {day.isoformat()} for party of {party_size}: {e.code} ({e.message})")
            return []

        labels = [entry.label for entry in vector if entry.available]
        logger.debug(f"{len(labels)} of {len(vector)} slots available on {day.isoformat()}")
        return labels

    def find_alternative_times(self, day: date, party_size: int, requested_time: str) -> AlternativeTimes:
        """
        Find the nearest available slots before and after a requested time.

        Args:
            day: Venue-local date
            party_size: Number of guests
            requested_time: Requested time label

        Returns:
            AlternativeTimes; both sides None when the date is not offerable

        Raises:
            InvalidInput: Bad party size, unparsable time, or a time off the day's grid
        """
        self.validate_party_size(party_size)
        label = self.normalize_time_label(requested_time)

        try:
            vector = self.get_slot_availability(day, party_size)
        except CALENDAR_ERRORS as e:
            logger.info(f"No alternatives on {day.isoformat()}: {e.code}")
            return AlternativeTimes(requested_time=label)

        return find_alternative_times(vector, label)

    def find_next_open_slot(self, desired_start: datetime, party_size: int) -> Optional[datetime]:
        """
        Find the earliest instant at or after desired_start where some table
        can seat the party for the full duration.

        Args:
            desired_start: Requested start instant (naive values are UTC)
            party_size: Number of guests

        Returns:
            Aware UTC datetime, or None when nothing opens within the horizon
        """
        self.validate_party_size(party_size)
        desired_start = ensure_utc(desired_start)
        duration = self.rules.duration_for_party(party_size)
        horizon = timedelta(days=self.rules.next_slot_horizon_days)

        with self.database.session() as session:
            snapshot = VenueRepository(session).load_occupancy(
                desired_start,
                desired_start + horizon + duration,
                party_size=party_size,
            )

        result = find_next_open_slot(
            desired_start,
            duration,
            party_size,
            snapshot,
            self.rules.tz,
            horizon=horizon,
            step=self.rules.step,
            max_blocks_per_table=self.rules.next_slot_max_blocks_per_table,
        )

        if result is None:
            logger.info(f"No open slot for party of {party_size} within {horizon.days} days of {desired_start.isoformat()}")
        return result
