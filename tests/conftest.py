"""Pytest configuration and fixtures for venue booking engine tests."""
import pytest
from datetime import date, datetime, timedelta
from typing import Optional
from unittest.mock import MagicMock

import pytz

from core.utils_datetime import local_to_utc, parse_hhmm
from core.venue_config import BookingRules
from db.models_sqlalchemy import (
    BookingWindow,
    DiningTable,
    PrivateEvent,
    Reservation,
    VenueHoursRule,
)
from db.session import Database
from domain.enums import PrivateEventStatus, ReservationStatus, VenueHoursType
from services.availability_service import AvailabilityService
from services.reservation_service import ReservationService


VENUE_TIMEZONE = "America/Chicago"

# Friday, Central Daylight Time (UTC-5)
FRIDAY = date(2025, 6, 13)
SATURDAY = FRIDAY + timedelta(days=1)


class VenueBuilder:
    """Inserts venue rows, each in its own committed session."""

    def __init__(self, database: Database, tz: pytz.BaseTzInfo):
        self.database = database
        self.tz = tz

    def _add(self, row):
        with self.database.session() as session:
            session.add(row)
        return row

    def at(self, day: date, hhmm: str) -> datetime:
        """Venue-local wall time on a date, as an aware UTC instant."""
        return local_to_utc(day, parse_hhmm(hhmm), self.tz)

    def table(self, number: int, seats: int) -> DiningTable:
        return self._add(DiningTable(table_number=number, seats=seats))

    def base_hours(self, weekday: int, *ranges) -> VenueHoursRule:
        return self._add(VenueHoursRule(
            type=VenueHoursType.BASE.value,
            day_of_week=weekday,
            time_ranges=[{"start": start, "end": end} for start, end in ranges],
        ))

    def exceptional_open(self, day: date, *ranges) -> VenueHoursRule:
        return self._add(VenueHoursRule(
            type=VenueHoursType.EXCEPTIONAL_OPEN.value,
            rule_date=day,
            time_ranges=[{"start": start, "end": end} for start, end in ranges],
        ))

    def closure(self, day: date, *ranges, full_day: bool = False) -> VenueHoursRule:
        return self._add(VenueHoursRule(
            type=VenueHoursType.EXCEPTIONAL_CLOSURE.value,
            rule_date=day,
            time_ranges=[{"start": start, "end": end} for start, end in ranges],
            full_day=full_day,
        ))

    def booking_window(self, start_date: date, end_date: date, is_active: bool = True) -> BookingWindow:
        return self._add(BookingWindow(start_date=start_date, end_date=end_date, is_active=is_active))

    def event(
        self,
        start: datetime,
        end: datetime,
        full_day: bool = False,
        status: str = PrivateEventStatus.ACTIVE.value,
    ) -> PrivateEvent:
        return self._add(PrivateEvent(
            title="Private party",
            start_time=start,
            end_time=end,
            full_day=full_day,
            status=status,
        ))

    def reservation(
        self,
        table: Optional[DiningTable],
        start: datetime,
        minutes: int = 90,
        party_size: int = 2,
        private_event: Optional[PrivateEvent] = None,
        status: str = ReservationStatus.ACTIVE.value,
    ) -> Reservation:
        return self._add(Reservation(
            table_id=table.id if table is not None else None,
            start_time=start,
            end_time=start + timedelta(minutes=minutes),
            party_size=party_size,
            private_event_id=private_event.id if private_event is not None else None,
            status=status,
            first_name="Existing",
            last_name="Guest",
        ))


@pytest.fixture(scope="function")
def tz():
    return pytz.timezone(VENUE_TIMEZONE)


@pytest.fixture(scope="function")
def rules():
    """Booking rules with the default grid and durations."""
    return BookingRules(timezone=VENUE_TIMEZONE)


@pytest.fixture(scope="function")
def database():
    """In-memory SQLite database shared by every session of a test."""
    db = Database("sqlite://")
    db.create_all()
    yield db
    db.drop_all()
    db.dispose()


@pytest.fixture(scope="function")
def venue(database, tz):
    return VenueBuilder(database, tz)


@pytest.fixture(scope="function")
def friday_venue(venue):
    """Friday hours 18:00-23:00 and a single two-seat table."""
    venue.base_hours(FRIDAY.weekday(), ("18:00", "23:00"))
    venue.table_a = venue.table(1, 2)
    return venue


@pytest.fixture(scope="function")
def notifications():
    return MagicMock()


@pytest.fixture(scope="function")
def holds():
    return MagicMock()


@pytest.fixture(scope="function")
def availability_service(database, rules):
    return AvailabilityService(database, rules)


@pytest.fixture(scope="function")
def reservation_service(database, rules, availability_service, notifications, holds):
    return ReservationService(
        database,
        rules,
        availability=availability_service,
        notifications=notifications,
        holds=holds,
    )
