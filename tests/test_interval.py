"""Unit tests for the half-open interval model."""
import pytest
from datetime import datetime, timedelta

import pytz

from domain.interval import Interval, merge, overlaps, subtract_all


def minutes(hhmm: str) -> int:
    hour, minute = hhmm.split(":")
    return int(hour) * 60 + int(minute)


def span(start: str, end: str) -> Interval:
    return Interval(minutes(start), minutes(end))


@pytest.mark.unit
class TestOverlap:
    """Test the half-open overlap predicate."""

    @pytest.mark.parametrize("a,b", [
        (span("18:00", "19:30"), span("19:00", "20:30")),
        (span("18:00", "23:00"), span("20:00", "21:00")),
        (span("18:00", "19:00"), span("19:00", "20:00")),
        (span("18:00", "19:00"), span("21:00", "22:00")),
        (span("18:00", "19:00"), span("18:00", "19:00")),
    ])
    def test_overlap_is_symmetric(self, a, b):
        """overlaps(a, b) always equals overlaps(b, a)."""
        assert overlaps(a, b) == overlaps(b, a)
        assert a.overlaps(b) == b.overlaps(a)

    def test_back_to_back_intervals_do_not_overlap(self):
        """An interval ending exactly where another starts does not overlap it."""
        first = span("18:00", "19:30")
        second = span("19:30", "21:00")

        assert not overlaps(first, second)
        assert not overlaps(second, first)

    def test_partial_overlap(self):
        assert overlaps(span("18:00", "19:30"), span("19:00", "20:30"))

    def test_containment_is_overlap(self):
        assert overlaps(span("18:00", "23:00"), span("20:00", "21:00"))

    def test_identical_intervals_overlap(self):
        assert overlaps(span("18:00", "19:00"), span("18:00", "19:00"))

    def test_disjoint_intervals(self):
        assert not overlaps(span("18:00", "19:00"), span("20:00", "21:00"))

    def test_datetime_endpoints(self):
        """Aware datetimes in different zones compare by instant."""
        utc_start = datetime(2025, 6, 14, 0, 0, tzinfo=pytz.utc)
        chicago = pytz.timezone("America/Chicago")
        local_start = chicago.localize(datetime(2025, 6, 13, 19, 30))

        reservation = Interval(utc_start, utc_start + timedelta(minutes=90))
        # 19:30 CDT is 00:30 UTC, inside the reservation
        candidate = Interval(local_start, local_start + timedelta(minutes=90))

        assert overlaps(reservation, candidate)


@pytest.mark.unit
class TestIntervalOperations:
    """Test construction, containment and subtraction."""

    def test_empty_interval_rejected(self):
        with pytest.raises(ValueError):
            Interval(10, 10)

    def test_reversed_interval_rejected(self):
        with pytest.raises(ValueError):
            Interval(20, 10)

    def test_contains(self):
        outer = span("18:00", "23:00")

        assert outer.contains(span("18:00", "19:30"))
        assert outer.contains(span("21:30", "23:00"))
        assert not outer.contains(span("22:00", "23:30"))

    def test_contains_point_is_half_open(self):
        interval = span("18:00", "19:00")

        assert interval.contains_point(minutes("18:00"))
        assert not interval.contains_point(minutes("19:00"))

    def test_subtract_middle_leaves_two_pieces(self):
        """18:00-23:00 minus 20:00-21:00 is 18:00-20:00 and 21:00-23:00."""
        pieces = span("18:00", "23:00").subtract(span("20:00", "21:00"))

        assert pieces == [span("18:00", "20:00"), span("21:00", "23:00")]

    def test_subtract_prefix(self):
        assert span("18:00", "23:00").subtract(span("17:00", "19:00")) == [span("19:00", "23:00")]

    def test_subtract_suffix(self):
        assert span("18:00", "23:00").subtract(span("22:00", "23:00")) == [span("18:00", "22:00")]

    def test_subtract_everything(self):
        assert span("18:00", "23:00").subtract(span("17:00", "23:30")) == []

    def test_subtract_disjoint_leaves_interval_untouched(self):
        base = span("18:00", "23:00")

        assert base.subtract(span("12:00", "14:00")) == [base]
        assert base.subtract(span("23:00", "23:30")) == [base]

    def test_subtract_all_applies_every_removal(self):
        remaining = subtract_all(
            [span("12:00", "15:00"), span("18:00", "23:00")],
            [span("14:00", "19:00"), span("20:00", "21:00")],
        )

        assert remaining == [
            span("12:00", "14:00"),
            span("19:00", "20:00"),
            span("21:00", "23:00"),
        ]

    def test_merge_coalesces_overlapping_and_touching(self):
        merged = merge([
            span("20:00", "23:00"),
            span("17:00", "18:00"),
            span("18:00", "19:00"),
            span("18:30", "20:30"),
        ])

        assert merged == [span("17:00", "23:00")]

    def test_merge_keeps_gaps(self):
        merged = merge([span("18:00", "19:00"), span("12:00", "14:00")])

        assert merged == [span("12:00", "14:00"), span("18:00", "19:00")]
