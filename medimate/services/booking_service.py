from sqlalchemy.orm import Session
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence
import logging

from ..core.config import settings
from ..core.exceptions import (
    BookingValidationError, MissingFieldsError, InvalidDuration, PastDateTime,
    DoctorSlotTaken, PatientSlotTaken, NotFoundError
)
from ..core.permissions import can_view_doctor_notes
from ..core.security import UserRole
from ..models.booking import Booking, BookingStatus
from ..models.user import User
from ..repositories.booking_store import BookingStore, OwnerAxis
from ..schemas.booking import BookingCreate, BookingResponse
from .interval import TimeInterval, to_utc_naive
from .overlap_checker import OverlapChecker

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("patient_id", "doctor_id", "start", "duration_minutes")
RESCHEDULE_FIELDS = ("start", "duration_minutes")


class BookingService:
    """Validates, persists and updates bookings.

    Callers are expected to have authorized the request already; nothing in
    here looks at who is asking.
    """

    def __init__(
        self,
        db: Session,
        now: Callable[[], datetime] = datetime.utcnow,
        allowed_durations: Optional[Sequence[int]] = None,
    ):
        self.db = db
        self.store = BookingStore(db)
        self.overlap_checker = OverlapChecker(self.store)
        self.now = now
        self.allowed_durations = tuple(allowed_durations or settings.ALLOWED_BOOKING_DURATIONS)

    def validate_and_build_booking(self, request: BookingCreate) -> Booking:
        """Validate a booking request and persist it.

        Checks run in a fixed order and the first failure is raised:
        required fields, duration, future start, doctor overlap, patient
        overlap, then that both parties exist with the expected roles.
        """
        missing = [field for field in REQUIRED_FIELDS if getattr(request, field) is None]
        if missing:
            raise MissingFieldsError(missing)

        candidate = self._validate_slot(request.start, request.duration_minutes)
        self._ensure_slot_free(request.doctor_id, request.patient_id, candidate)

        self._ensure_party(request.doctor_id, UserRole.DOCTOR, "Doctor not found")
        self._ensure_party(request.patient_id, UserRole.PATIENT, "Patient not found")

        booking = self.store.create({
            "patient_id": request.patient_id,
            "doctor_id": request.doctor_id,
            "status": request.status or BookingStatus.PENDING,
            "start": candidate.start,
            "duration_minutes": candidate.duration_minutes,
            "patient_notes": request.patient_notes,
            # Only the doctor can set this, and only after creation
            "doctor_notes": None,
        })

        logger.info(
            f"Booking {booking.id} created: doctor={booking.doctor_id} "
            f"patient={booking.patient_id} slot={candidate}"
        )
        return booking

    def update_booking(self, booking: Booking, patch: Dict[str, Any]) -> Booking:
        """Apply a partial update; moving the slot re-runs the slot checks."""
        patch = {field: value for field, value in patch.items() if field != "doctor_notes"}

        if "status" in patch and patch["status"] is None:
            raise BookingValidationError("status cannot be null")

        if any(field in patch for field in RESCHEDULE_FIELDS):
            start = patch.get("start", booking.start)
            duration = patch.get("duration_minutes", booking.duration_minutes)
            if start is None or duration is None:
                raise BookingValidationError("start and duration_minutes cannot be null")

            candidate = self._validate_slot(start, duration)
            self._ensure_slot_free(
                booking.doctor_id, booking.patient_id, candidate,
                exclude_booking_id=booking.id
            )
            patch["start"] = candidate.start
            patch["duration_minutes"] = candidate.duration_minutes
            logger.info(f"Booking {booking.id} rescheduled to {candidate}")

        if not patch:
            return booking

        updated = self.store.update_by_id(booking.id, patch)
        if updated is None:
            raise NotFoundError("Booking not found")
        return updated

    def update_doctor_notes(self, booking: Booking, doctor_notes: Optional[str]) -> Booking:
        updated = self.store.update_by_id(booking.id, {"doctor_notes": doctor_notes})
        if updated is None:
            raise NotFoundError("Booking not found")
        return updated

    def get_booking(self, booking_id: int) -> Booking:
        booking = self.store.find_by_id(booking_id)
        if not booking:
            raise NotFoundError("Booking not found")
        return booking

    def list_bookings(self) -> List[Booking]:
        return self.store.list_all()

    def list_for_owner(self, axis: OwnerAxis, owner_key: int) -> List[Booking]:
        return self.store.find_by_owner(axis, owner_key)

    def delete_booking(self, booking_id: int) -> None:
        if not self.store.delete_by_id(booking_id):
            raise NotFoundError("Booking not found")
        logger.info(f"Booking {booking_id} deleted")

    def _validate_slot(self, start: datetime, duration_minutes: int) -> TimeInterval:
        if duration_minutes not in self.allowed_durations:
            raise InvalidDuration(self.allowed_durations)

        start = to_utc_naive(start)
        if start <= self.now():
            raise PastDateTime()

        return TimeInterval(start=start, duration_minutes=duration_minutes)

    def _ensure_slot_free(
        self,
        doctor_id: int,
        patient_id: int,
        candidate: TimeInterval,
        exclude_booking_id: Optional[int] = None,
    ) -> None:
        if self.overlap_checker.has_conflict(doctor_id, OwnerAxis.DOCTOR, candidate, exclude_booking_id):
            logger.warning(f"Doctor {doctor_id} already booked during {candidate}")
            raise DoctorSlotTaken()

        if self.overlap_checker.has_conflict(patient_id, OwnerAxis.PATIENT, candidate, exclude_booking_id):
            logger.warning(f"Patient {patient_id} already booked during {candidate}")
            raise PatientSlotTaken()

    def _ensure_party(self, user_id: int, role: UserRole, detail: str) -> None:
        user = self.db.get(User, user_id)
        if user is None or user.role is not role:
            raise NotFoundError(detail)


def redact_booking(booking: Booking, role: UserRole) -> Dict[str, Any]:
    """Serialise a booking for ``role``; only doctors see ``doctor_notes``."""
    data = BookingResponse.model_validate(booking).model_dump(mode="json")
    if not can_view_doctor_notes(role):
        data.pop("doctor_notes", None)
    return data
