"""
Interval overlap checks shared by slot generation, booking and schedule audits.

All intervals are half-open [start, end) in minutes since midnight, so
back-to-back intervals (one ends exactly when the next starts) do not overlap.
"""

from typing import Iterable, List

from shared_types.availability import Interval


def overlaps(proposed: Interval, occupied: Interval) -> bool:
    """
    Check whether two half-open intervals share any point in time.

    They overlap iff any of:
    - proposed starts inside occupied
    - proposed ends inside occupied
    - proposed fully contains occupied

    The containment clause covers the case the first two miss, which makes the
    predicate give the same answer for either argument order.
    """
    starts_inside = occupied.start <= proposed.start < occupied.end
    ends_inside = occupied.start < proposed.end <= occupied.end
    contains = proposed.start <= occupied.start and proposed.end >= occupied.end
    return starts_inside or ends_inside or contains


def is_slot_available(proposed: Interval, occupied_list: Iterable[Interval]) -> bool:
    """Check that proposed overlaps none of the occupied intervals (empty list ⇒ available)."""
    for occupied in occupied_list:
        if overlaps(proposed, occupied):
            return False
    return True


def find_overlapping(proposed: Interval, occupied_list: Iterable[Interval]) -> List[Interval]:
    """Return the occupied intervals that overlap proposed, in input order."""
    return [occupied for occupied in occupied_list if overlaps(proposed, occupied)]
