from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import Any, Dict, List, Optional
import enum
import logging

from ..core.exceptions import ConflictOnPersist
from ..models.booking import Booking

logger = logging.getLogger(__name__)


class OwnerAxis(str, enum.Enum):
    """Which party of a booking an owner key refers to."""

    DOCTOR = "doctor"
    PATIENT = "patient"

    @property
    def column(self):
        if self is OwnerAxis.DOCTOR:
            return Booking.doctor_id
        if self is OwnerAxis.PATIENT:
            return Booking.patient_id
        raise ValueError(f"Unknown owner axis: {self}")


class BookingStore:
    """Persistence for bookings.

    Writes are single-row and committed immediately. The unique constraint on
    ``(doctor_id, start)`` turns a racing duplicate into ``ConflictOnPersist``.
    """

    def __init__(self, db: Session):
        self.db = db

    def find_by_owner(self, axis: OwnerAxis, owner_key: int) -> List[Booking]:
        return (
            self.db.query(Booking)
            .filter(axis.column == owner_key)
            .order_by(Booking.start)
            .all()
        )

    def find_by_id(self, booking_id: int) -> Optional[Booking]:
        return self.db.query(Booking).filter(Booking.id == booking_id).first()

    def list_all(self) -> List[Booking]:
        return self.db.query(Booking).order_by(Booking.start).all()

    def create(self, booking_data: Dict[str, Any]) -> Booking:
        booking = Booking(**booking_data)
        self.db.add(booking)
        self._commit()
        self.db.refresh(booking)
        return booking

    def update_by_id(self, booking_id: int, patch: Dict[str, Any]) -> Optional[Booking]:
        booking = self.find_by_id(booking_id)
        if not booking:
            return None

        for field, value in patch.items():
            setattr(booking, field, value)

        self._commit()
        self.db.refresh(booking)
        return booking

    def delete_by_id(self, booking_id: int) -> bool:
        booking = self.find_by_id(booking_id)
        if not booking:
            return False

        self.db.delete(booking)
        self.db.commit()
        return True

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning(f"Booking write rejected by the database: {exc.orig}")
            raise ConflictOnPersist() from exc
