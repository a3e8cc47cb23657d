"""
Reservation Service for managing venue reservations.
Handles reservation creation with a race-free table commit, edits,
cancellation, check-in, private-event RSVPs and audit logging.
"""
import logging
import random
import time
from datetime import date
from typing import Any, Callable, Dict, List, Optional, TypeVar

from sqlalchemy.exc import DBAPIError

from core.logging import LogContext
from core.utils_datetime import (
    format_time_label,
    local_day_bounds_utc,
    minutes_of_day,
    parse_time_label,
    utc_now,
    utc_to_local,
)
from core.venue_config import BookingRules
from db.models_sqlalchemy import AuditLog, Reservation
from db.session import Database
from domain.enums import AuditAction, NotificationAction, PrivateEventStatus, ReservationStatus
from domain.errors import (
    ConcurrencyConflict,
    ConfigurationMissing,
    InvalidInput,
    NoTableAvailable,
    PrivateEventNotFound,
    ReservationNotFound,
    VenueClosed,
)
from domain.interval import Interval
from domain.models import GuestInfo, ReservationUpdate
from domain.snapshot import OccupancySnapshot, SlotAvailability, TableInfo
from services.availability_service import AvailabilityService
from services.notifications import (
    HoldProcessor,
    LoggingNotificationGateway,
    NotificationGateway,
    NullHoldProcessor,
)
from services.repository import VenueRepository, to_table_info
from services.table_allocator import AllocationRequest


logger = logging.getLogger(__name__)

T = TypeVar("T")

# A lost race surfaces as one of these PostgreSQL SQLSTATEs: serialization
# failure, deadlock, or the tables' exclusion constraint
LOST_RACE_PGCODES = frozenset({"40001", "40P01", "23P01"})

# SQLite reports writer contention only through the error message
LOST_RACE_SQLITE_MESSAGES = ("database is locked", "database table is locked", "database is busy")

# Upper bound of the jittered pause before the next attempt, indexed by attempts made so far
RETRY_BACKOFF_SECONDS = [0.02, 0.05, 0.1, 0.2]


def is_lost_race(error: Exception) -> bool:
    """True when a failed commit attempt lost a race and is worth retrying."""
    if isinstance(error, ConcurrencyConflict):
        return True
    if not isinstance(error, DBAPIError):
        return False

    orig = error.orig
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code is not None:
        return code in LOST_RACE_PGCODES

    message = str(orig).lower()
    return any(text in message for text in LOST_RACE_SQLITE_MESSAGES)


def retry_pause(attempt: int) -> float:
    step = RETRY_BACKOFF_SECONDS[min(attempt - 1, len(RETRY_BACKOFF_SECONDS) - 1)]
    return random.uniform(step / 2, step)


def reservation_summary(reservation: Reservation) -> Dict[str, Any]:
    """JSON-safe view of the seating fields, for audit details."""
    return {
        "table_id": reservation.table_id,
        "start_time": reservation.start_time.isoformat(),
        "end_time": reservation.end_time.isoformat(),
        "party_size": reservation.party_size,
        "status": reservation.status,
        "private_event_id": reservation.private_event_id,
    }


class ReservationService:
    """Service for creating and managing reservations."""

    def __init__(
        self,
        database: Database,
        rules: Optional[BookingRules] = None,
        availability: Optional[AvailabilityService] = None,
        notifications: Optional[NotificationGateway] = None,
        holds: Optional[HoldProcessor] = None,
    ):
        """
        Initialize ReservationService.

        Args:
            database: Store handle
            rules: Booking rules (defaults to rules built from settings)
            availability: Availability service sharing the same store and rules
            notifications: Notification gateway called after each commit
            holds: Payment-hold processor called after each new booking
        """
        self.database = database
        self.rules = rules or BookingRules.from_settings()
        self.availability = availability or AvailabilityService(database, self.rules)
        self.allocator = self.availability.allocator
        self.notifications = notifications or LoggingNotificationGateway()
        self.holds = holds or NullHoldProcessor()

    # ------------------------------------------------------------------
    # Commit machinery
    # ------------------------------------------------------------------

    def _attempt_budget(self, party_size: Optional[int]) -> int:
        """One attempt per table that could seat the party, plus a few spare."""
        with self.database.session() as session:
            candidates = len(VenueRepository(session).get_tables(min_seats=party_size))
        return candidates + self.rules.commit_max_attempts

    def _run_with_retries(
        self,
        operation: str,
        attempt_fn: Callable[[VenueRepository], T],
        party_size: Optional[int] = None,
    ) -> T:
        """
        Run attempt_fn in its own serializable transaction, retrying lost races.

        Each attempt re-reads the snapshot, so a retry moves on to the next
        candidate table. Retrying stops early once a fresh snapshot offers no
        table, because attempt_fn then raises NoTableAvailable itself. Every
        lost race means another booking took a candidate table, so the number
        of attempts is bounded by the candidate tables plus
        commit_max_attempts.

        Raises:
            NoTableAvailable: No table left, or every attempt lost its race
            DBAPIError: A database failure that is not a lost race
        """
        max_attempts = self._attempt_budget(party_size)
        for attempt in range(1, max_attempts + 1):
            try:
                with self.database.session(serializable=True) as session:
                    return attempt_fn(VenueRepository(session))
            except (ConcurrencyConflict, DBAPIError) as e:
                if not is_lost_race(e):
                    logger.error(f"{operation}: attempt {attempt} failed: {type(e).__name__}: {e}")
                    raise
                logger.warning(
                    f"{operation}: attempt {attempt}/{max_attempts} lost a race "
                    f"({type(e).__name__}: {e})"
                )
                if attempt < max_attempts:
                    time.sleep(retry_pause(attempt))

        raise NoTableAvailable(
            f"{operation}: could not commit a table after {max_attempts} attempts",
            details={"attempts": max_attempts},
        )

    def _verify_no_overlap(self, repo: VenueRepository, reservation: Reservation) -> None:
        """Post-write check that no other active reservation holds the table."""
        if reservation.table_id is None:
            return
        conflicts = repo.find_conflicts(
            reservation.table_id,
            reservation.start_time,
            reservation.end_time,
            exclude_reservation_id=reservation.id,
        )
        if conflicts:
            raise ConcurrencyConflict(
                f"Table {reservation.table_id} was taken concurrently",
                details={
                    "table_id": reservation.table_id,
                    "conflicting_reservation_ids": [c.id for c in conflicts],
                },
            )

    def _after_commit(self, reservation: Reservation, action: NotificationAction, place_hold: bool = False) -> None:
        """Fire-and-forget side effects; a failure never undoes the committed booking."""
        try:
            self.notifications.notify_reservation(reservation, action)
        except Exception as e:
            logger.error(f"Notification for reservation {reservation.id} failed: {e}", exc_info=True)

        if place_hold:
            try:
                self.holds.place_hold(reservation)
            except Exception as e:
                logger.error(f"Payment hold for reservation {reservation.id} failed: {e}", exc_info=True)

    # ------------------------------------------------------------------
    # Placement
    # ------------------------------------------------------------------

    def _resolve_slot(
        self,
        repo: VenueRepository,
        day: date,
        label: str,
        party_size: int,
        reservation_id: Optional[int] = None,
    ) -> SlotAvailability:
        """
        Find the requested slot in the day's availability vector.

        Raises:
            OutsideBookingWindow: Date outside the booking window
            VenueClosed: Date closed, or the time is outside venue hours
            InvalidInput: Time is not on the slot grid
        """
        try:
            vector = self.availability.day_availability(repo, day, party_size, reservation_id=reservation_id)
        except ConfigurationMissing as e:
            raise VenueClosed(e.message, details=e.details) from e

        entry = next((item for item in vector if item.label == label), None)
        if entry is not None:
            return entry

        parsed = parse_time_label(label)
        if parsed is None or minutes_of_day(parsed) % self.rules.slot_step_minutes != 0:
            raise InvalidInput(
                f"{label} is not on the {self.rules.slot_step_minutes}-minute booking grid",
                details={"time": label},
            )
        raise VenueClosed(
            f"{label} on {day.isoformat()} is outside venue hours",
            details={"date": day.isoformat(), "time": label},
        )

    def _check_table(
        self,
        repo: VenueRepository,
        table_id: int,
        interval: Interval,
        party_size: int,
        reservation_id: Optional[int] = None,
        private_event_id: Optional[int] = None,
    ) -> TableInfo:
        """
        Verify an explicitly chosen table can host the party for the interval.

        Raises:
            InvalidInput: Table does not exist
            NoTableAvailable: Table too small, taken, or blocked by another event
        """
        row = repo.get_table(table_id)
        if row is None:
            raise InvalidInput(f"Table {table_id} does not exist", details={"table_id": table_id})

        table = to_table_info(row)
        snapshot = OccupancySnapshot(
            tables=[table],
            reservations=repo.get_active_reservations(interval.start, interval.end, table_ids=[table.id]),
            events=repo.get_active_events(interval.start, interval.end),
        )
        request = AllocationRequest(
            interval=interval,
            party_size=party_size,
            reservation_id=reservation_id,
            private_event_id=private_event_id,
        )
        if self.allocator.allocate(request, snapshot) is None:
            raise NoTableAvailable(
                f"Table {table.number} cannot seat {party_size} for that time",
                details={"table_id": table.id, "seats": table.seats, "party_size": party_size},
            )
        return table

    @staticmethod
    def _get_reservation(repo: VenueRepository, reservation_id: int) -> Reservation:
        reservation = repo.get_reservation(reservation_id)
        if reservation is None:
            raise ReservationNotFound(
                f"Reservation {reservation_id} not found",
                details={"reservation_id": reservation_id},
            )
        return reservation

    @classmethod
    def _get_active_reservation(cls, repo: VenueRepository, reservation_id: int) -> Reservation:
        reservation = cls._get_reservation(repo, reservation_id)
        if reservation.status != ReservationStatus.ACTIVE.value:
            raise InvalidInput(
                f"Reservation {reservation_id} is {reservation.status}",
                details={"reservation_id": reservation_id, "status": reservation.status},
            )
        return reservation

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def create_reservation(
        self,
        day: date,
        time_label: str,
        party_size: int,
        guest: Optional[GuestInfo] = None,
    ) -> Reservation:
        """
        Create a reservation and assign a table atomically.

        Args:
            day: Venue-local date
            time_label: Slot label ("6:30pm") or "HH:MM"
            party_size: Number of guests
            guest: Guest contact details

        Returns:
            The committed reservation

        Raises:
            InvalidInput: Bad party size, unparsable time, or time off the slot grid
            OutsideBookingWindow: Date outside the booking window
            VenueClosed: Date closed, or time outside venue hours
            NoTableAvailable: No table can host the party at that time
        """
        self.availability.validate_party_size(party_size)
        label = self.availability.normalize_time_label(time_label)
        guest = guest or GuestInfo()
        log_ctx = LogContext(
            logger,
            operation="create_reservation",
            date=day.isoformat(),
            slot=label,
            party_size=party_size,
        )

        def attempt(repo: VenueRepository) -> Reservation:
            entry = self._resolve_slot(repo, day, label, party_size)
            if not entry.available:
                raise NoTableAvailable(
                    f"No table for {party_size} at {label} on {day.isoformat()}",
                    details={"date": day.isoformat(), "time": label, "party_size": party_size},
                )

            reservation = repo.add_reservation(
                table_id=entry.table_id,
                start_time=entry.slot.start,
                end_time=entry.slot.end,
                party_size=party_size,
                status=ReservationStatus.ACTIVE.value,
                **guest.model_dump(),
            )
            self._verify_no_overlap(repo, reservation)
            repo.add_audit(AuditAction.RESERVATION_CREATED, reservation.id, reservation_summary(reservation))
            return reservation

        reservation = self._run_with_retries("create_reservation", attempt, party_size)
        log_ctx.log(
            "info",
            f"Created reservation {reservation.id} on table {reservation.table_id}",
            reservation_id=reservation.id,
            table_id=reservation.table_id,
        )

        self._after_commit(reservation, NotificationAction.CREATED, place_hold=True)
        return reservation

    def create_event_reservation(
        self,
        event_id: int,
        party_size: int,
        guest: Optional[GuestInfo] = None,
        table_id: Optional[int] = None,
    ) -> Reservation:
        """
        Book an attendee for a private event.

        The reservation spans the event. Without a table it holds no physical
        table; with one, the table must seat the party and be free for the
        event's span. The event itself never blocks its own attendees.

        Raises:
            PrivateEventNotFound: Event missing or no longer active
            InvalidInput: Bad party size or unknown table
            NoTableAvailable: Chosen table cannot host the party
        """
        self.availability.validate_party_size(party_size)
        guest = guest or GuestInfo()

        def attempt(repo: VenueRepository) -> Reservation:
            event = repo.get_private_event(event_id)
            if event is None or event.status != PrivateEventStatus.ACTIVE.value:
                raise PrivateEventNotFound(
                    f"Private event {event_id} not found",
                    details={"private_event_id": event_id},
                )

            interval = Interval(event.start_time, event.end_time)
            if table_id is not None:
                self._check_table(repo, table_id, interval, party_size, private_event_id=event.id)

            reservation = repo.add_reservation(
                table_id=table_id,
                start_time=interval.start,
                end_time=interval.end,
                party_size=party_size,
                status=ReservationStatus.ACTIVE.value,
                private_event_id=event.id,
                **guest.model_dump(),
            )
            self._verify_no_overlap(repo, reservation)
            repo.add_audit(AuditAction.EVENT_RSVP_CREATED, reservation.id, reservation_summary(reservation))
            return reservation

        reservation = self._run_with_retries("create_event_reservation", attempt, party_size)
        logger.info(f"Created RSVP {reservation.id} for private event {event_id}")

        self._after_commit(reservation, NotificationAction.CREATED, place_hold=True)
        return reservation

    def update_reservation(self, reservation_id: int, changes: ReservationUpdate) -> Reservation:
        """
        Update reservation details.

        Time, date, party size and table changes are re-validated through the
        allocator with the reservation excluded from its own conflict check.

        Args:
            reservation_id: ID of reservation to update
            changes: Fields to update

        Returns:
            The updated reservation
        """
        if changes.party_size is not None:
            self.availability.validate_party_size(changes.party_size)
        label = self.availability.normalize_time_label(changes.time) if changes.time is not None else None

        def attempt(repo: VenueRepository) -> Reservation:
            reservation = self._get_active_reservation(repo, reservation_id)
            before = reservation_summary(reservation)

            if changes.moves_seating:
                self._apply_seating_change(repo, reservation, changes, label)

            guest_changes = changes.guest_changes()
            for field_name, value in guest_changes.items():
                setattr(reservation, field_name, value)

            repo.session.flush()
            self._verify_no_overlap(repo, reservation)
            repo.add_audit(
                AuditAction.RESERVATION_MODIFIED,
                reservation.id,
                {"before": before, "after": reservation_summary(reservation), "guest_fields": sorted(guest_changes)},
            )
            return reservation

        reservation = self._run_with_retries("update_reservation", attempt, changes.party_size)
        logger.info(f"Updated reservation {reservation_id}")

        self._after_commit(reservation, NotificationAction.MODIFIED)
        return reservation

    def _apply_seating_change(
        self,
        repo: VenueRepository,
        reservation: Reservation,
        changes: ReservationUpdate,
        label: Optional[str],
    ) -> None:
        party_size = changes.party_size or reservation.party_size

        if reservation.private_event_id is not None:
            # Event attendees keep the event's span
            if changes.date is not None or label is not None:
                raise InvalidInput(
                    "Private event reservations follow the event's time",
                    details={"reservation_id": reservation.id, "private_event_id": reservation.private_event_id},
                )
            interval = Interval(reservation.start_time, reservation.end_time)
            table_id = changes.table_id or reservation.table_id
            if table_id is not None:
                self._check_table(
                    repo,
                    table_id,
                    interval,
                    party_size,
                    reservation_id=reservation.id,
                    private_event_id=reservation.private_event_id,
                )
        else:
            local_start = utc_to_local(reservation.start_time, self.rules.tz)
            day = changes.date or local_start.date()
            entry = self._resolve_slot(
                repo,
                day,
                label or format_time_label(local_start),
                party_size,
                reservation_id=reservation.id,
            )
            interval = entry.slot.interval
            if changes.table_id is not None:
                table_id = self._check_table(
                    repo, changes.table_id, interval, party_size, reservation_id=reservation.id
                ).id
            elif entry.available:
                table_id = entry.table_id
            else:
                raise NoTableAvailable(
                    f"No table for {party_size} at {entry.label} on {day.isoformat()}",
                    details={"date": day.isoformat(), "time": entry.label, "party_size": party_size},
                )

        reservation.start_time = interval.start
        reservation.end_time = interval.end
        reservation.party_size = party_size
        reservation.table_id = table_id

    def cancel_reservation(self, reservation_id: int, reason: Optional[str] = None) -> Reservation:
        """
        Cancel a reservation.

        Args:
            reservation_id: ID of reservation to cancel
            reason: Optional cancellation reason

        Raises:
            ReservationNotFound: No such reservation
            InvalidInput: Reservation already cancelled
        """
        with self.database.session() as session:
            repo = VenueRepository(session)
            reservation = self._get_active_reservation(repo, reservation_id)

            reservation.status = ReservationStatus.CANCELLED.value
            reservation.cancelled_at = utc_now()
            session.flush()

            repo.add_audit(
                AuditAction.RESERVATION_CANCELLED,
                reservation.id,
                {"reason": reason or "No reason provided"},
            )

        logger.info(f"Cancelled reservation {reservation_id}")
        self._after_commit(reservation, NotificationAction.CANCELLED)
        return reservation

    def check_in_reservation(self, reservation_id: int) -> Reservation:
        """Mark the guest as arrived."""
        with self.database.session() as session:
            repo = VenueRepository(session)
            reservation = self._get_active_reservation(repo, reservation_id)
            if reservation.checked_in_at is not None:
                raise InvalidInput(
                    f"Reservation {reservation_id} is already checked in",
                    details={"reservation_id": reservation_id},
                )

            reservation.checked_in_at = utc_now()
            session.flush()
            repo.add_audit(
                AuditAction.RESERVATION_CHECKED_IN,
                reservation.id,
                {"checked_in_at": reservation.checked_in_at.isoformat()},
            )

        logger.info(f"Checked in reservation {reservation_id}")
        return reservation

    def get_reservation(self, reservation_id: int) -> Reservation:
        """
        Get reservation by ID.

        Raises:
            ReservationNotFound: No such reservation
        """
        with self.database.session() as session:
            return self._get_reservation(VenueRepository(session), reservation_id)

    def list_reservations(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        include_cancelled: bool = False,
    ) -> List[Reservation]:
        """
        List reservations starting within a range of venue-local dates.

        Args:
            start_date: First local date (inclusive)
            end_date: Last local date (inclusive)
            include_cancelled: Include cancelled reservations

        Returns:
            Reservations ordered by start time
        """
        if start_date and end_date and end_date < start_date:
            raise InvalidInput(
                "end_date must not be before start_date",
                details={"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
            )

        start = local_day_bounds_utc(start_date, self.rules.tz)[0] if start_date else None
        end = local_day_bounds_utc(end_date, self.rules.tz)[1] if end_date else None

        with self.database.session() as session:
            return VenueRepository(session).list_reservations(start, end, include_cancelled=include_cancelled)

    def get_audit_log(self, reservation_id: int, limit: int = 100) -> List[AuditLog]:
        """
        Retrieve audit log entries for a reservation.

        Raises:
            ReservationNotFound: No such reservation
        """
        with self.database.session() as session:
            repo = VenueRepository(session)
            self._get_reservation(repo, reservation_id)
            return repo.get_audit_log(entity_id=reservation_id, limit=limit)
