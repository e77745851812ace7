"""
Booking endpoints.

- GET    /bookings                         staff
- GET    /bookings/patients/{user_id}      staff, patient self, doctor self
- GET    /bookings/doctors/{user_id}       staff, doctor self
- GET    /bookings/{booking_id}            staff, booking's doctor, booking's patient
- POST   /bookings                         staff, patient (for themselves)
- PATCH  /bookings/{booking_id}            staff, booking's doctor, booking's patient
- PATCH  /bookings/{booking_id}/doctorNotes  booking's doctor
- GET    /bookings/{booking_id}/doctorNotes  booking's doctor
- DELETE /bookings/{booking_id}            staff, booking's patient
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.permissions import (
    ensure_can_create_booking, ensure_can_read_booking, ensure_can_update_booking,
    ensure_can_delete_booking, ensure_doctor_owner, ensure_can_list_owner_bookings
)
from ...core.security import UserRole
from ...api.deps import require_role
from ...models.user import User
from ...repositories.booking_store import OwnerAxis
from ...schemas.booking import BookingCreate, BookingUpdate, DoctorNotesUpdate, DoctorNotesResponse
from ...services.booking_service import BookingService, redact_booking

router = APIRouter(prefix="/bookings", tags=["Bookings"])

ALL_ROLES = [UserRole.STAFF, UserRole.DOCTOR, UserRole.PATIENT]


def _list_response(bookings, role: UserRole) -> dict:
    data = [redact_booking(booking, role) for booking in bookings]
    return {"success": True, "count": len(data), "data": data}


@router.get("")
async def list_bookings(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role([UserRole.STAFF]))
):
    """List all bookings."""
    bookings = BookingService(db).list_bookings()
    return _list_response(bookings, current_user.role)


@router.get("/patients/{user_id}")
async def list_patient_bookings(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(ALL_ROLES))
):
    """List every booking of one patient."""
    ensure_can_list_owner_bookings(current_user, OwnerAxis.PATIENT, user_id)
    bookings = BookingService(db).list_for_owner(OwnerAxis.PATIENT, user_id)
    return _list_response(bookings, current_user.role)


@router.get("/doctors/{user_id}")
async def list_doctor_bookings(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role([UserRole.STAFF, UserRole.DOCTOR]))
):
    """List every booking of one doctor."""
    ensure_can_list_owner_bookings(current_user, OwnerAxis.DOCTOR, user_id)
    bookings = BookingService(db).list_for_owner(OwnerAxis.DOCTOR, user_id)
    return _list_response(bookings, current_user.role)


@router.get("/{booking_id}")
async def get_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(ALL_ROLES))
):
    booking = BookingService(db).get_booking(booking_id)
    ensure_can_read_booking(current_user, booking)
    return {"success": True, "data": redact_booking(booking, current_user.role)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role([UserRole.STAFF, UserRole.PATIENT]))
):
    """Create a booking after the duration, future-start and overlap checks."""
    ensure_can_create_booking(current_user, booking_data.patient_id)
    booking = BookingService(db).validate_and_build_booking(booking_data)
    return {"success": True, "data": redact_booking(booking, current_user.role)}


@router.patch("/{booking_id}")
async def update_booking(
    booking_id: int,
    booking_data: BookingUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(ALL_ROLES))
):
    """Update status, patient notes, or reschedule a booking."""
    service = BookingService(db)
    booking = service.get_booking(booking_id)

    patch = booking_data.model_dump(exclude_unset=True)
    ensure_can_update_booking(current_user, booking, patch.keys())

    updated = service.update_booking(booking, patch)
    return {"success": True, "data": redact_booking(updated, current_user.role)}


@router.patch("/{booking_id}/doctorNotes")
async def update_doctor_notes(
    booking_id: int,
    notes_data: DoctorNotesUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role([UserRole.DOCTOR]))
):
    service = BookingService(db)
    booking = service.get_booking(booking_id)
    ensure_doctor_owner(current_user, booking)

    updated = service.update_doctor_notes(booking, notes_data.doctor_notes)
    return {
        "success": True,
        "data": DoctorNotesResponse(doctor_notes=updated.doctor_notes).model_dump(),
    }


@router.get("/{booking_id}/doctorNotes")
async def get_doctor_notes(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role([UserRole.DOCTOR]))
):
    booking = BookingService(db).get_booking(booking_id)
    ensure_doctor_owner(current_user, booking)
    return {
        "success": True,
        "data": DoctorNotesResponse(doctor_notes=booking.doctor_notes).model_dump(),
    }


@router.delete("/{booking_id}")
async def delete_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role([UserRole.STAFF, UserRole.PATIENT]))
):
    service = BookingService(db)
    booking = service.get_booking(booking_id)
    ensure_can_delete_booking(current_user, booking)

    service.delete_booking(booking_id)
    return {"success": True, "message": "Booking deleted successfully"}
