"""
Table allocation.

Decides whether a candidate interval can be hosted for a party and, if so,
which table to commit, using a smallest-fit-first policy.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

import pytz

from domain.interval import Interval
from domain.snapshot import OccupancySnapshot, TableInfo


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AllocationRequest:
    """
    A candidate interval to seat a party in.

    Attributes:
        interval: UTC [start, end) of the seating
        party_size: Number of guests
        reservation_id: Reservation being edited; excluded from its own conflict check
        private_event_id: Event the reservation belongs to; that event never blocks it
    """

    interval: Interval[datetime]
    party_size: int
    reservation_id: Optional[int] = None
    private_event_id: Optional[int] = None


class TableAllocator:
    """Smallest-fit table allocator over an occupancy snapshot."""

    def __init__(self, tz: pytz.BaseTzInfo):
        self.tz = tz

    def blocked_by_event(self, request: AllocationRequest, snapshot: OccupancySnapshot) -> bool:
        """True if an active private event, other than the request's own, overlaps the candidate."""
        for event in snapshot.events:
            if request.private_event_id is not None and event.event_id == request.private_event_id:
                continue
            if event.blocking_interval(self.tz).overlaps(request.interval):
                return True
        return False

    def candidate_tables(self, party_size: int, tables: List[TableInfo]) -> List[TableInfo]:
        """Tables seating the party, smallest first, ties broken by id."""
        fitting = [table for table in tables if table.seats >= party_size]
        return sorted(fitting, key=lambda table: (table.seats, table.id))

    def is_table_free(
        self,
        table_id: int,
        request: AllocationRequest,
        snapshot: OccupancySnapshot,
    ) -> bool:
        """True if no active reservation on the table overlaps the candidate."""
        for booking in snapshot.reservations:
            if booking.table_id != table_id:
                continue
            if request.reservation_id is not None and booking.reservation_id == request.reservation_id:
                continue
            if booking.interval.overlaps(request.interval):
                return False
        return True

    def allocate(self, request: AllocationRequest, snapshot: OccupancySnapshot) -> Optional[TableInfo]:
        """
        Pick a table for the candidate.

        Args:
            request: Candidate interval and party
            snapshot: Tables, active reservations and active private events

        Returns:
            The first free table in smallest-fit order, or None if the
            candidate cannot be hosted
        """
        if self.blocked_by_event(request, snapshot):
            return None

        for table in self.candidate_tables(request.party_size, snapshot.tables):
            if self.is_table_free(table.id, request, snapshot):
                return table

        return None

    def is_available(self, request: AllocationRequest, snapshot: OccupancySnapshot) -> bool:
        return self.allocate(request, snapshot) is not None
