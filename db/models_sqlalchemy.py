"""SQLAlchemy models for the venue booking engine database tables."""

from datetime import date, datetime
from typing import Any, List, Optional

from sqlalchemy import (
    DDL,
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    event,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from .base import Base, TimestampMixin
from domain.enums import PrivateEventStatus, ReservationStatus


class DiningTable(Base, TimestampMixin):
    """Physical table that can be assigned to reservations."""

    __tablename__ = "tables"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    table_number: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        unique=True,
    )

    seats: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    reservations: Mapped[List["Reservation"]] = relationship(back_populates="table")

    __table_args__ = (
        CheckConstraint("seats >= 1", name="seats_positive"),
    )

    def __repr__(self) -> str:
        return f"<DiningTable(id={self.id}, number={self.table_number}, seats={self.seats})>"


class PrivateEvent(Base, TimestampMixin):
    """Private event blocking part of a day, or a whole day, for regular bookings."""

    __tablename__ = "private_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    title: Mapped[str] = mapped_column(String(200), nullable=False, default="Private event")

    start_time: Mapped[datetime] = mapped_column(nullable=False, index=True)

    end_time: Mapped[datetime] = mapped_column(nullable=False, index=True)

    full_day: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=PrivateEventStatus.ACTIVE.value,
        index=True,
    )

    reservations: Mapped[List["Reservation"]] = relationship(back_populates="private_event")

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="time_order"),
        Index("ix_private_events_status_start", "status", "start_time"),
    )

    def __repr__(self) -> str:
        return (
            f"<PrivateEvent(id={self.id}, start={self.start_time}, end={self.end_time}, "
            f"full_day={self.full_day}, status='{self.status}')>"
        )


class Reservation(Base, TimestampMixin):
    """Reservation table model."""

    __tablename__ = "reservations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Null only for private-event attendees without a physical table
    table_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("tables.id"),
        nullable=True,
        index=True,
    )

    start_time: Mapped[datetime] = mapped_column(nullable=False, index=True)

    end_time: Mapped[datetime] = mapped_column(nullable=False)

    party_size: Mapped[int] = mapped_column(Integer, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ReservationStatus.ACTIVE.value,
        index=True,
    )

    private_event_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("private_events.id"),
        nullable=True,
        index=True,
    )

    first_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True, index=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    checked_in_at: Mapped[Optional[datetime]] = mapped_column(nullable=True)
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(nullable=True)

    table: Mapped[Optional[DiningTable]] = relationship(back_populates="reservations")
    private_event: Mapped[Optional[PrivateEvent]] = relationship(back_populates="reservations")

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="time_order"),
        CheckConstraint("party_size >= 1", name="party_size_positive"),
        Index("ix_reservations_table_start", "table_id", "start_time"),
        Index("ix_reservations_status_start", "status", "start_time"),
    )

    def __repr__(self) -> str:
        return (
            f"<Reservation(id={self.id}, table_id={self.table_id}, "
            f"start={self.start_time}, end={self.end_time}, party_size={self.party_size}, "
            f"status='{self.status}')>"
        )


class VenueHoursRule(Base, TimestampMixin):
    """Base weekly hours, exceptional openings and exceptional closures."""

    __tablename__ = "venue_hours"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    type: Mapped[str] = mapped_column(String(30), nullable=False, index=True)

    # 0 = Monday ... 6 = Sunday, for base rules
    day_of_week: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Specific date, for exceptional rules
    rule_date: Mapped[Optional[date]] = mapped_column("date", Date, nullable=True, index=True)

    # [{"start": "18:00", "end": "23:00"}, ...] in venue-local time
    time_ranges: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)

    full_day: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    label: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "day_of_week IS NULL OR (day_of_week >= 0 AND day_of_week <= 6)",
            name="day_of_week_range",
        ),
        Index("ix_venue_hours_type_date", "type", "date"),
        Index("ix_venue_hours_type_day", "type", "day_of_week"),
    )

    def __repr__(self) -> str:
        return (
            f"<VenueHoursRule(id={self.id}, type='{self.type}', "
            f"day_of_week={self.day_of_week}, date={self.rule_date}, full_day={self.full_day})>"
        )


class BookingWindow(Base, TimestampMixin):
    """Admin-configured date range within which reservations may be requested."""

    __tablename__ = "booking_windows"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    start_date: Mapped[date] = mapped_column(Date, nullable=False)

    end_date: Mapped[date] = mapped_column(Date, nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)

    __table_args__ = (
        CheckConstraint("end_date >= start_date", name="date_order"),
    )

    def __repr__(self) -> str:
        return f"<BookingWindow(id={self.id}, start={self.start_date}, end={self.end_date})>"


class AuditLog(Base):
    """Audit log table for tracking reservation changes."""

    __tablename__ = "audit_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    action: Mapped[str] = mapped_column(String(50), nullable=False, index=True)

    entity_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)

    entity_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)

    details: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        server_default=func.now(),
        index=True,
    )

    __table_args__ = (
        Index("ix_audit_log_entity", "entity_type", "entity_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<AuditLog(id={self.id}, action='{self.action}', "
            f"entity_type='{self.entity_type}', entity_id='{self.entity_id}')>"
        )


# Table-level no-overlap guarantee on PostgreSQL: two active reservations on the
# same table may never share any instant of their [start, end) ranges.
RESERVATION_EXCLUSION_CONSTRAINT = "ex_reservations_table_no_overlap"

event.listen(
    Base.metadata,
    "before_create",
    DDL("CREATE EXTENSION IF NOT EXISTS btree_gist").execute_if(dialect="postgresql"),
)

event.listen(
    Reservation.__table__,
    "after_create",
    DDL(
        f"ALTER TABLE reservations ADD CONSTRAINT {RESERVATION_EXCLUSION_CONSTRAINT} "
        "EXCLUDE USING gist (table_id WITH =, tstzrange(start_time, end_time, '[)') WITH &&) "
        "WHERE (status = 'active' AND table_id IS NOT NULL)"
    ).execute_if(dialect="postgresql"),
)
