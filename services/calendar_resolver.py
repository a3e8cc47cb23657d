"""
Venue calendar resolution.

Merges base weekly hours, exceptional openings, exceptional closures, the
booking window and full-day private events into the allowed local time
ranges for one date.
"""

import logging
from datetime import date
from typing import List

import pytz

from domain.enums import VenueHoursType
from domain.errors import ConfigurationMissing, OutsideBookingWindow, VenueClosed
from domain.interval import Interval, merge, subtract_all
from domain.snapshot import CalendarConfig, HoursRule


logger = logging.getLogger(__name__)


class VenueCalendarResolver:
    """Resolves which local time ranges of a date are bookable."""

    def __init__(self, tz: pytz.BaseTzInfo):
        self.tz = tz

    def resolve(self, day: date, config: CalendarConfig) -> List[Interval[int]]:
        """
        Get the allowed local ranges for a date.

        Args:
            day: Venue-local calendar date
            config: Venue-hours rules, booking window and active private events

        Returns:
            Sorted, non-empty list of ranges in minutes since local midnight

        Raises:
            OutsideBookingWindow: Date is outside the active booking window
            VenueClosed: Full-day closure or full-day private event on the date
            ConfigurationMissing: No base or exceptional-open hours for the date
        """
        window = config.booking_window
        if window is not None and not window.contains(day):
            raise OutsideBookingWindow(
                f"{day.isoformat()} is outside the booking window "
                f"{window.start_date.isoformat()}..{window.end_date.isoformat()}",
                details={"date": day.isoformat()},
            )

        closures = self._rules_for_date(config.rules, VenueHoursType.EXCEPTIONAL_CLOSURE, day)
        for closure in closures:
            # A closure without ranges closes the whole day
            if closure.full_day or not closure.ranges:
                raise VenueClosed(f"Venue is closed on {day.isoformat()}", details={"date": day.isoformat()})

        for event in config.events:
            if event.full_day and event.covers_date(day, self.tz):
                raise VenueClosed(
                    f"Private event {event.event_id} occupies {day.isoformat()}",
                    details={"date": day.isoformat(), "private_event_id": event.event_id},
                )

        base_ranges = self._base_ranges(config.rules, day)
        if not base_ranges:
            raise ConfigurationMissing(
                f"No venue hours configured for {day.isoformat()}",
                details={"date": day.isoformat(), "day_of_week": day.weekday()},
            )

        closed_ranges = [r for closure in closures for r in closure.ranges]
        allowed = subtract_all(base_ranges, closed_ranges)
        if not allowed:
            raise VenueClosed(
                f"Closures leave no open hours on {day.isoformat()}",
                details={"date": day.isoformat()},
            )

        logger.debug(f"Resolved {day.isoformat()} to {len(allowed)} allowed range(s)")
        return allowed

    def _base_ranges(self, rules: List[HoursRule], day: date) -> List[Interval[int]]:
        """Exceptional opening for the exact date wins over the weekday's base hours."""
        openings = self._rules_for_date(rules, VenueHoursType.EXCEPTIONAL_OPEN, day)
        if openings:
            return merge(r for rule in openings for r in rule.ranges)

        weekday = day.weekday()
        base = [
            rule for rule in rules
            if rule.type == VenueHoursType.BASE and rule.day_of_week == weekday
        ]
        return merge(r for rule in base for r in rule.ranges)

    @staticmethod
    def _rules_for_date(rules: List[HoursRule], rule_type: VenueHoursType, day: date) -> List[HoursRule]:
        return [rule for rule in rules if rule.type == rule_type and rule.rule_date == day]
