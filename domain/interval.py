"""Half-open time interval model shared by every availability computation."""

from dataclasses import dataclass
from typing import Any, Generic, Iterable, List, TypeVar


T = TypeVar("T")


@dataclass(frozen=True, order=True)
class Interval(Generic[T]):
    """
    Half-open interval [start, end).

    Endpoints may be any mutually comparable values: aware UTC datetimes for
    reservations and events, minutes-of-day integers for venue-local hours.
    """

    start: T
    end: T

    def __post_init__(self) -> None:
        if not self.start < self.end:
            raise ValueError(f"Interval start must be before end (got {self.start!r} .. {self.end!r})")

    def overlaps(self, other: "Interval[Any]") -> bool:
        """Strict half-open overlap; back-to-back intervals do not overlap."""
        return overlaps(self, other)

    def contains(self, other: "Interval[Any]") -> bool:
        """True if other lies entirely within this interval."""
        return self.start <= other.start and other.end <= self.end

    def contains_point(self, point: Any) -> bool:
        return self.start <= point < self.end

    def subtract(self, other: "Interval[Any]") -> List["Interval[T]"]:
        """
        Remove other from this interval.

        Returns:
            The remaining pieces (zero, one or two), ordered, with empty pieces dropped
        """
        if not self.overlaps(other):
            return [self]

        pieces: List[Interval[T]] = []
        if self.start < other.start:
            pieces.append(Interval(self.start, other.start))
        if other.end < self.end:
            pieces.append(Interval(other.end, self.end))
        return pieces


def overlaps(a: Interval[Any], b: Interval[Any]) -> bool:
    """Half-open overlap test: a.start < b.end and b.start < a.end."""
    return a.start < b.end and b.start < a.end


def subtract_all(ranges: Iterable[Interval[T]], removals: Iterable[Interval[T]]) -> List[Interval[T]]:
    """
    Subtract every removal from every range.

    Args:
        ranges: Base intervals
        removals: Intervals to cut out of the base intervals

    Returns:
        Sorted list of remaining intervals
    """
    remaining = list(ranges)
    for removal in removals:
        next_remaining: List[Interval[T]] = []
        for piece in remaining:
            next_remaining.extend(piece.subtract(removal))
        remaining = next_remaining
    return sorted(remaining)


def merge(ranges: Iterable[Interval[T]]) -> List[Interval[T]]:
    """Union of intervals: sort and coalesce overlapping or touching ranges."""
    merged: List[Interval[T]] = []
    for current in sorted(ranges):
        if merged and current.start <= merged[-1].end:
            last = merged[-1]
            if current.end > last.end:
                merged[-1] = Interval(last.start, current.end)
        else:
            merged.append(current)
    return merged
