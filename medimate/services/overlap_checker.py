from typing import List, Optional

from ..models.booking import Booking
from ..repositories.booking_store import BookingStore, OwnerAxis
from .interval import TimeInterval


class OverlapChecker:
    """Compares a candidate interval with every booking of one owner."""

    def __init__(self, store: BookingStore):
        self.store = store

    def find_conflicts(
        self,
        owner_key: int,
        axis: OwnerAxis,
        candidate: TimeInterval,
        exclude_booking_id: Optional[int] = None,
    ) -> List[Booking]:
        """Return the owner's bookings whose interval overlaps ``candidate``."""
        return [
            booking
            for booking in self.store.find_by_owner(axis, owner_key)
            if booking.id != exclude_booking_id
            and TimeInterval.of(booking).overlaps(candidate)
        ]

    def has_conflict(
        self,
        owner_key: int,
        axis: OwnerAxis,
        candidate: TimeInterval,
        exclude_booking_id: Optional[int] = None,
    ) -> bool:
        return bool(self.find_conflicts(owner_key, axis, candidate, exclude_booking_id))
