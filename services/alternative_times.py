"""Nearest available alternatives around a requested slot on the same day."""

from dataclasses import dataclass
from typing import Optional, Sequence

from domain.errors import InvalidInput
from domain.snapshot import SlotAvailability


@dataclass(frozen=True)
class AlternativeTimes:
    """Nearest available slot labels before and after the requested one."""

    requested_time: str
    before: Optional[str] = None
    after: Optional[str] = None

    @property
    def has_alternatives(self) -> bool:
        return self.before is not None or self.after is not None


def find_alternative_times(day_slots: Sequence[SlotAvailability], requested_label: str) -> AlternativeTimes:
    """
    Scan outward from the requested slot for the nearest available ones.

    Args:
        day_slots: The whole day's ordered slot vector with availability
        requested_label: Requested 12-hour label, e.g. "7:00pm"

    Returns:
        AlternativeTimes with before/after labels (None where nothing is available)

    Raises:
        InvalidInput: Requested label is not one of the day's slots
    """
    index = next(
        (i for i, entry in enumerate(day_slots) if entry.label == requested_label),
        None,
    )
    if index is None:
        raise InvalidInput(
            f"Requested time {requested_label} is not a bookable slot on this date",
            details={"requested_time": requested_label},
        )

    before = None
    for i in range(index - 1, -1, -1):
        if day_slots[i].available:
            before = day_slots[i].label
            break

    after = None
    for i in range(index + 1, len(day_slots)):
        if day_slots[i].available:
            after = day_slots[i].label
            break

    return AlternativeTimes(requested_time=requested_label, before=before, after=after)
