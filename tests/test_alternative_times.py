"""Unit tests for the alternative-time search."""
import pytest
from datetime import date

import pytz

from core.utils_datetime import parse_clock_minutes
from domain.errors import InvalidInput
from domain.interval import Interval
from domain.snapshot import SlotAvailability
from services.alternative_times import find_alternative_times
from services.slot_generator import generate_slots


TZ = pytz.timezone("America/Chicago")
FRIDAY = date(2025, 6, 13)


def day_vector(unavailable):
    """Friday 18:00-23:00, 90-minute slots, with the given labels unavailable."""
    slots = generate_slots(
        FRIDAY,
        [Interval(parse_clock_minutes("18:00"), parse_clock_minutes("23:00"))],
        90,
        15,
        TZ,
    )
    return [SlotAvailability(slot=s, available=s.label not in unavailable) for s in slots]


@pytest.mark.unit
class TestAlternativeTimes:
    """Test the outward scan for the nearest available slots."""

    def test_nearest_on_both_sides(self):
        vector = day_vector({"6:45pm", "7:00pm", "7:15pm", "7:30pm"})

        result = find_alternative_times(vector, "7:00pm")

        assert result.requested_time == "7:00pm"
        assert result.before == "6:30pm"
        assert result.after == "7:45pm"
        assert result.has_alternatives

    def test_monotonic_before_requested_after(self):
        unavailable = {"7:00pm", "7:15pm", "8:00pm"}
        vector = day_vector(unavailable)
        order = {entry.label: i for i, entry in enumerate(vector)}

        for entry in vector:
            result = find_alternative_times(vector, entry.label)
            if result.before is not None:
                assert order[result.before] < order[entry.label]
            if result.after is not None:
                assert order[entry.label] < order[result.after]

    def test_requested_slot_itself_is_never_returned(self):
        vector = day_vector(set())

        result = find_alternative_times(vector, "7:00pm")

        assert result.before == "6:45pm"
        assert result.after == "7:15pm"

    def test_nothing_before_first_slot(self):
        result = find_alternative_times(day_vector(set()), "6:00pm")

        assert result.before is None
        assert result.after == "6:15pm"

    def test_nothing_after_last_slot(self):
        """The scan stops at the end of the day rather than wrapping."""
        result = find_alternative_times(day_vector(set()), "9:30pm")

        assert result.before == "9:15pm"
        assert result.after is None

    def test_fully_booked_day(self):
        vector = day_vector({entry.label for entry in day_vector(set())})

        result = find_alternative_times(vector, "7:00pm")

        assert result.before is None
        assert result.after is None
        assert not result.has_alternatives

    def test_requested_time_not_on_grid(self):
        with pytest.raises(InvalidInput):
            find_alternative_times(day_vector(set()), "7:05pm")

    def test_requested_time_outside_hours(self):
        with pytest.raises(InvalidInput):
            find_alternative_times(day_vector(set()), "10:00pm")
