"""Tests for the repository layer and its row converters."""
import pytest
from datetime import timedelta

from domain.enums import AuditAction, VenueHoursType
from domain.interval import Interval
from services.repository import VenueRepository, parse_time_ranges

from conftest import FRIDAY, SATURDAY


@pytest.mark.unit
class TestParseTimeRanges:
    """Test stored time-range parsing."""

    def test_list_of_ranges(self):
        assert parse_time_ranges([{"start": "11:30", "end": "14:00"}, {"start": "18:00", "end": "23:00"}]) == [
            Interval(690, 840),
            Interval(1080, 1380),
        ]

    def test_json_string(self):
        assert parse_time_ranges('[{"start": "18:00", "end": "22:00"}]') == [Interval(1080, 1320)]

    def test_end_at_midnight_runs_to_end_of_day(self):
        assert parse_time_ranges([{"start": "18:00", "end": "00:00"}]) == [Interval(1080, 1440)]
        assert parse_time_ranges([{"start": "18:00", "end": "24:00"}]) == [Interval(1080, 1440)]

    def test_malformed_entries_are_skipped(self):
        raw = [{"start": "18:00"}, "nonsense", {"start": "late", "end": "later"}, {"start": "19:00", "end": "20:00"}]

        assert parse_time_ranges(raw) == [Interval(1140, 1200)]

    @pytest.mark.parametrize("raw", [None, "", "not json", []])
    def test_empty_or_unparsable(self, raw):
        assert parse_time_ranges(raw) == []


@pytest.mark.unit
class TestVenueRepository:
    """Test repository queries against an in-memory database."""

    def test_latest_active_booking_window(self, database, venue):
        venue.booking_window(FRIDAY, FRIDAY + timedelta(days=10))
        latest = venue.booking_window(FRIDAY + timedelta(days=1), FRIDAY + timedelta(days=20))
        venue.booking_window(FRIDAY, FRIDAY + timedelta(days=90), is_active=False)

        with database.session() as session:
            window = VenueRepository(session).get_active_booking_window()

        assert window.start_date == latest.start_date
        assert window.end_date == latest.end_date

    def test_no_booking_window(self, database):
        with database.session() as session:
            assert VenueRepository(session).get_active_booking_window() is None

    def test_hours_rules_filter_exceptions_by_date(self, database, venue):
        venue.base_hours(FRIDAY.weekday(), ("18:00", "23:00"))
        venue.closure(FRIDAY, ("20:00", "21:00"))
        venue.exceptional_open(SATURDAY + timedelta(days=7), ("12:00", "15:00"))

        with database.session() as session:
            rules = VenueRepository(session).get_hours_rules(FRIDAY, SATURDAY)

        assert sorted(rule.type.value for rule in rules) == [
            VenueHoursType.BASE.value,
            VenueHoursType.EXCEPTIONAL_CLOSURE.value,
        ]

    def test_tables_ordered_by_capacity_then_id(self, database, venue):
        six = venue.table(1, 6)
        two = venue.table(2, 2)
        four = venue.table(3, 4)

        with database.session() as session:
            repo = VenueRepository(session)
            all_tables = [t.id for t in repo.get_tables()]
            big_enough = [t.id for t in repo.get_tables(min_seats=3)]

        assert all_tables == [two.id, four.id, six.id]
        assert big_enough == [four.id, six.id]

    def test_active_reservations_use_half_open_overlap(self, database, venue):
        table = venue.table(1, 2)
        overlapping = venue.reservation(table, venue.at(FRIDAY, "18:30"))
        venue.reservation(table, venue.at(FRIDAY, "17:00"), minutes=60)
        venue.reservation(table, venue.at(FRIDAY, "20:00"))

        with database.session() as session:
            found = VenueRepository(session).get_active_reservations(venue.at(FRIDAY, "18:00"), venue.at(FRIDAY, "20:00"))

        assert [b.reservation_id for b in found] == [overlapping.id]

    def test_find_conflicts_excludes_self(self, database, venue):
        table = venue.table(1, 2)
        mine = venue.reservation(table, venue.at(FRIDAY, "19:00"))
        other = venue.reservation(table, venue.at(FRIDAY, "20:00"))

        with database.session() as session:
            conflicts = VenueRepository(session).find_conflicts(
                table.id,
                mine.start_time,
                mine.end_time,
                exclude_reservation_id=mine.id,
            )

        assert [c.id for c in conflicts] == [other.id]

    def test_full_day_events_found_with_margin(self, database, venue):
        """A full-day event stored at noon still blocks the evening queried."""
        event = venue.event(venue.at(FRIDAY, "09:00"), venue.at(FRIDAY, "10:00"), full_day=True)

        with database.session() as session:
            events = VenueRepository(session).get_active_events(venue.at(FRIDAY, "18:00"), venue.at(FRIDAY, "23:00"))

        assert [e.event_id for e in events] == [event.id]
        assert events[0].full_day

    def test_audit_log_is_oldest_first(self, database):
        with database.session() as session:
            repo = VenueRepository(session)
            repo.add_audit(AuditAction.RESERVATION_CREATED, 1, {"table_id": 1})
            repo.add_audit(AuditAction.RESERVATION_MODIFIED, 1)
            repo.add_audit(AuditAction.RESERVATION_CREATED, 2)

        with database.session() as session:
            entries = VenueRepository(session).get_audit_log(entity_id=1)

        assert [e.action for e in entries] == [
            AuditAction.RESERVATION_CREATED.value,
            AuditAction.RESERVATION_MODIFIED.value,
        ]
