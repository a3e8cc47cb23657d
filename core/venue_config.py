"""
Venue booking rules: slot grid, seating durations, search horizon and commit retries.
Timezone-aware configuration for the venue's local time zone.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

import pytz

from core.config import Settings, get_settings


@dataclass(frozen=True)
class BookingRules:
    """Booking rules and constraints."""

    timezone: str = "America/Chicago"

    # Time slot settings
    slot_step_minutes: int = 15

    # Seating duration: small parties get the shorter turn
    small_party_max_size: int = 2
    small_party_duration_minutes: int = 90
    large_party_duration_minutes: int = 120

    # Party size settings
    min_party_size: int = 1
    max_party_size: int = 20

    # Next-open-slot search
    next_slot_horizon_days: int = 7
    next_slot_max_blocks_per_table: int = 500

    # Reservation commit retries
    commit_max_attempts: int = 3

    @property
    def tz(self) -> pytz.BaseTzInfo:
        """Get the timezone object."""
        return pytz.timezone(self.timezone)

    @property
    def step(self) -> timedelta:
        return timedelta(minutes=self.slot_step_minutes)

    def duration_minutes_for_party(self, party_size: int) -> int:
        """Seating duration for a party: 90 minutes up to two guests, 120 beyond."""
        if party_size <= self.small_party_max_size:
            return self.small_party_duration_minutes
        return self.large_party_duration_minutes

    def duration_for_party(self, party_size: int) -> timedelta:
        return timedelta(minutes=self.duration_minutes_for_party(party_size))

    def is_valid_party_size(self, party_size: Optional[int]) -> bool:
        return party_size is not None and self.min_party_size <= party_size <= self.max_party_size

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "BookingRules":
        """Build booking rules from application settings."""
        settings = settings or get_settings()
        return cls(
            timezone=settings.VENUE_TIMEZONE,
            slot_step_minutes=settings.SLOT_STEP_MINUTES,
            small_party_max_size=settings.SMALL_PARTY_MAX_SIZE,
            small_party_duration_minutes=settings.SMALL_PARTY_DURATION_MINUTES,
            large_party_duration_minutes=settings.LARGE_PARTY_DURATION_MINUTES,
            max_party_size=settings.MAX_PARTY_SIZE,
            next_slot_horizon_days=settings.NEXT_SLOT_HORIZON_DAYS,
            next_slot_max_blocks_per_table=settings.NEXT_SLOT_MAX_BLOCKS_PER_TABLE,
            commit_max_attempts=settings.COMMIT_MAX_ATTEMPTS,
        )
