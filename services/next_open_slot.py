"""
Next-open-slot search.

Walks forward from a desired start, per qualifying table, to the earliest
instant at which a block of the required duration is free.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

import pytz

from core.utils_datetime import ensure_utc
from domain.interval import Interval
from domain.snapshot import OccupancySnapshot, TableInfo


logger = logging.getLogger(__name__)


def _table_blocks(
    table: TableInfo,
    snapshot: OccupancySnapshot,
    tz: pytz.BaseTzInfo,
) -> List[Interval[datetime]]:
    blocks = [b.interval for b in snapshot.reservations if b.table_id == table.id]
    blocks.extend(event.blocking_interval(tz) for event in snapshot.events)
    return sorted(blocks)


def _earliest_for_table(
    blocks: List[Interval[datetime]],
    desired_start: datetime,
    search_end: datetime,
    duration: timedelta,
    step: timedelta,
    searchable_until: Optional[datetime],
    stop_at: Optional[datetime],
) -> Optional[datetime]:
    cursor = desired_start
    lo = 0

    while cursor < search_end:
        if stop_at is not None and cursor >= stop_at:
            return None

        candidate = Interval(cursor, cursor + duration)

        # Blocks ending at or before the cursor can never conflict again
        while lo < len(blocks) and blocks[lo].end <= cursor:
            lo += 1

        conflict = None
        for block in blocks[lo:]:
            if block.start >= candidate.end:
                break
            if block.overlaps(candidate):
                conflict = block
                break

        if conflict is None:
            if searchable_until is not None and candidate.end > searchable_until:
                return None
            return cursor

        cursor = max(cursor + step, conflict.end)

    return None


def find_next_open_slot(
    desired_start: datetime,
    duration: timedelta,
    party_size: int,
    snapshot: OccupancySnapshot,
    tz: pytz.BaseTzInfo,
    horizon: timedelta = timedelta(days=7),
    step: timedelta = timedelta(minutes=15),
    max_blocks_per_table: Optional[int] = None,
) -> Optional[datetime]:
    """
    Find the earliest free start at or after the desired start.

    Args:
        desired_start: Requested start instant
        duration: Required seating duration
        party_size: Number of guests; only tables seating them are searched
        snapshot: Tables, active reservations and active private events in the horizon
        tz: Venue time zone (for full-day event spans)
        horizon: How far ahead of desired_start to search
        step: Cursor step when a conflict ends before the next grid position
        max_blocks_per_table: Cap on the occupied blocks considered per table;
            the search for a table stops where its block list was cut off

    Returns:
        Earliest UTC start across all qualifying tables, or None within the horizon
    """
    desired_start = ensure_utc(desired_start)
    search_end = desired_start + horizon
    earliest: Optional[datetime] = None

    tables = sorted(
        (t for t in snapshot.tables if t.seats >= party_size),
        key=lambda t: (t.seats, t.id),
    )

    for table in tables:
        blocks = _table_blocks(table, snapshot, tz)

        searchable_until = None
        if max_blocks_per_table is not None and len(blocks) > max_blocks_per_table:
            searchable_until = blocks[max_blocks_per_table].start
            blocks = blocks[:max_blocks_per_table]
            logger.warning(
                f"Table {table.id} has more than {max_blocks_per_table} blocks in the horizon; "
                f"searching only until {searchable_until.isoformat()}"
            )

        found = _earliest_for_table(
            blocks,
            desired_start,
            search_end,
            duration,
            step,
            searchable_until,
            stop_at=earliest,
        )
        if found is not None and (earliest is None or found < earliest):
            earliest = found
            if earliest == desired_start:
                break

    return earliest
