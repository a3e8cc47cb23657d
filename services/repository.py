"""
Persistent-store access for the booking engine.

Queries tables, reservations, private events, venue-hours rules and the
booking window by date range and table id, and converts rows into the
snapshot value objects the availability engine computes over.
"""

import json
import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from core.utils_datetime import parse_clock_minutes
from db.models_sqlalchemy import (
    AuditLog,
    BookingWindow,
    DiningTable,
    PrivateEvent,
    Reservation,
    VenueHoursRule,
)
from domain.enums import AuditAction, PrivateEventStatus, ReservationStatus, VenueHoursType
from domain.interval import Interval
from domain.snapshot import (
    BookedInterval,
    CalendarConfig,
    DateWindow,
    EventBlock,
    HoursRule,
    OccupancySnapshot,
    TableInfo,
)


logger = logging.getLogger(__name__)

# Full-day events are stored with arbitrary instants but block whole local days
FULL_DAY_QUERY_MARGIN = timedelta(days=1)


def parse_time_ranges(raw: Any) -> List[Interval[int]]:
    """
    Parse stored time ranges into minutes-of-day intervals.

    Accepts a list of {"start": "HH:MM", "end": "HH:MM"} objects or its JSON
    string form. An end at or before the start ("18:00"-"00:00") runs to midnight.
    """
    if raw is None:
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            logger.error(f"Unparsable time_ranges value: {raw!r}")
            return []

    ranges: List[Interval[int]] = []
    for entry in raw or []:
        start = parse_clock_minutes(str(entry.get("start", ""))) if isinstance(entry, dict) else None
        end = parse_clock_minutes(str(entry.get("end", ""))) if isinstance(entry, dict) else None
        if start is None or end is None:
            logger.warning(f"Skipping malformed time range: {entry!r}")
            continue
        if end <= start:
            end = 24 * 60
        if start >= end:
            logger.warning(f"Skipping empty time range: {entry!r}")
            continue
        ranges.append(Interval(start, end))
    return ranges


def to_table_info(row: DiningTable) -> TableInfo:
    return TableInfo(id=row.id, number=row.table_number, seats=row.seats)


def to_booked_interval(row: Reservation) -> BookedInterval:
    return BookedInterval(
        reservation_id=row.id,
        table_id=row.table_id,
        start=row.start_time,
        end=row.end_time,
        private_event_id=row.private_event_id,
    )


def to_event_block(row: PrivateEvent) -> EventBlock:
    return EventBlock(event_id=row.id, start=row.start_time, end=row.end_time, full_day=row.full_day)


def to_hours_rule(row: VenueHoursRule) -> Optional[HoursRule]:
    try:
        rule_type = VenueHoursType(row.type)
    except ValueError:
        logger.warning(f"Ignoring venue_hours row {row.id} with unknown type '{row.type}'")
        return None
    return HoursRule(
        type=rule_type,
        ranges=tuple(parse_time_ranges(row.time_ranges)),
        day_of_week=row.day_of_week,
        rule_date=row.rule_date,
        full_day=bool(row.full_day),
    )


class VenueRepository:
    """Store access bound to one SQLAlchemy session."""

    def __init__(self, session: Session):
        self.session = session

    # ------------------------------------------------------------------
    # Calendar configuration
    # ------------------------------------------------------------------

    def get_active_booking_window(self) -> Optional[DateWindow]:
        row = self.session.execute(
            select(BookingWindow)
            .where(BookingWindow.is_active.is_(True))
            .order_by(BookingWindow.created_at.desc(), BookingWindow.id.desc())
            .limit(1)
        ).scalar_one_or_none()
        if row is None:
            return None
        return DateWindow(start_date=row.start_date, end_date=row.end_date)

    def get_hours_rules(self, first_day: date, last_day: date) -> List[HoursRule]:
        """Base rules plus exceptional rules dated within [first_day, last_day]."""
        rows = self.session.execute(
            select(VenueHoursRule).where(
                or_(
                    VenueHoursRule.type == VenueHoursType.BASE.value,
                    and_(
                        VenueHoursRule.rule_date >= first_day,
                        VenueHoursRule.rule_date <= last_day,
                    ),
                )
            )
        ).scalars().all()
        rules = [to_hours_rule(row) for row in rows]
        return [rule for rule in rules if rule is not None]

    def get_active_events(self, start: datetime, end: datetime) -> List[EventBlock]:
        """Active private events that may touch [start, end), full-day ones with a day of margin."""
        rows = self.session.execute(
            select(PrivateEvent)
            .where(
                PrivateEvent.status == PrivateEventStatus.ACTIVE.value,
                PrivateEvent.start_time < end + FULL_DAY_QUERY_MARGIN,
                PrivateEvent.end_time > start - FULL_DAY_QUERY_MARGIN,
            )
            .order_by(PrivateEvent.start_time)
        ).scalars().all()
        return [to_event_block(row) for row in rows]

    def load_calendar_config(
        self,
        first_day: date,
        last_day: date,
        window_start: datetime,
        window_end: datetime,
    ) -> CalendarConfig:
        return CalendarConfig(
            rules=self.get_hours_rules(first_day, last_day),
            booking_window=self.get_active_booking_window(),
            events=self.get_active_events(window_start, window_end),
        )

    # ------------------------------------------------------------------
    # Occupancy
    # ------------------------------------------------------------------

    def get_tables(self, min_seats: Optional[int] = None) -> List[TableInfo]:
        query = select(DiningTable).order_by(DiningTable.seats, DiningTable.id)
        if min_seats is not None:
            query = query.where(DiningTable.seats >= min_seats)
        return [to_table_info(row) for row in self.session.execute(query).scalars().all()]

    def get_active_reservations(
        self,
        start: datetime,
        end: datetime,
        table_ids: Optional[Iterable[int]] = None,
    ) -> List[BookedInterval]:
        """Active reservations whose [start_time, end_time) overlaps [start, end)."""
        query = (
            select(Reservation)
            .where(
                Reservation.status == ReservationStatus.ACTIVE.value,
                Reservation.start_time < end,
                Reservation.end_time > start,
            )
            .order_by(Reservation.start_time, Reservation.id)
        )
        if table_ids is not None:
            query = query.where(Reservation.table_id.in_(list(table_ids)))
        return [to_booked_interval(row) for row in self.session.execute(query).scalars().all()]

    def load_occupancy(
        self,
        start: datetime,
        end: datetime,
        party_size: Optional[int] = None,
    ) -> OccupancySnapshot:
        """
        Snapshot of tables seating the party and everything occupying them in [start, end).

        Args:
            start: Window start (UTC)
            end: Window end (UTC)
            party_size: Restrict to tables with at least this many seats
        """
        tables = self.get_tables(min_seats=party_size)
        reservations = self.get_active_reservations(
            start,
            end,
            table_ids=[t.id for t in tables] if party_size is not None else None,
        )
        return OccupancySnapshot(
            tables=tables,
            reservations=reservations,
            events=self.get_active_events(start, end),
        )

    # ------------------------------------------------------------------
    # Rows
    # ------------------------------------------------------------------

    def get_reservation(self, reservation_id: int) -> Optional[Reservation]:
        return self.session.get(Reservation, reservation_id)

    def get_private_event(self, event_id: int) -> Optional[PrivateEvent]:
        return self.session.get(PrivateEvent, event_id)

    def get_table(self, table_id: int) -> Optional[DiningTable]:
        return self.session.get(DiningTable, table_id)

    def list_reservations(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        include_cancelled: bool = False,
    ) -> List[Reservation]:
        query = select(Reservation)
        if not include_cancelled:
            query = query.where(Reservation.status == ReservationStatus.ACTIVE.value)
        if start is not None:
            query = query.where(Reservation.start_time >= start)
        if end is not None:
            query = query.where(Reservation.start_time < end)
        return list(self.session.execute(query.order_by(Reservation.start_time)).scalars().all())

    def add_reservation(self, **fields: Any) -> Reservation:
        """Insert a reservation and flush so it has an id and holds its row."""
        reservation = Reservation(**fields)
        self.session.add(reservation)
        self.session.flush()
        return reservation

    def find_conflicts(
        self,
        table_id: int,
        start: datetime,
        end: datetime,
        exclude_reservation_id: Optional[int] = None,
    ) -> List[Reservation]:
        """Other active reservations on the table overlapping [start, end)."""
        query = select(Reservation).where(
            Reservation.table_id == table_id,
            Reservation.status == ReservationStatus.ACTIVE.value,
            Reservation.start_time < end,
            Reservation.end_time > start,
        )
        if exclude_reservation_id is not None:
            query = query.where(Reservation.id != exclude_reservation_id)
        return list(self.session.execute(query).scalars().all())

    def add_audit(
        self,
        action: AuditAction,
        entity_id: Any,
        details: Optional[Dict[str, Any]] = None,
        entity_type: str = "reservation",
    ) -> AuditLog:
        entry = AuditLog(
            action=action.value,
            entity_type=entity_type,
            entity_id=str(entity_id),
            details=details or {},
        )
        self.session.add(entry)
        logger.info(f"Audit log: {action.value} for {entity_type} {entity_id}")
        return entry

    def get_audit_log(
        self,
        entity_id: Optional[Any] = None,
        entity_type: str = "reservation",
        limit: int = 100,
    ) -> List[AuditLog]:
        """Most recent audit entries, oldest first, optionally for one entity."""
        query = select(AuditLog).where(AuditLog.entity_type == entity_type)
        if entity_id is not None:
            query = query.where(AuditLog.entity_id == str(entity_id))
        rows = self.session.execute(
            query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit)
        ).scalars().all()
        return list(reversed(rows))
