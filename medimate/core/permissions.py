"""
Ownership rules for bookings and profiles.

Route dependencies (``require_role``) decide which roles may call an endpoint
at all; the helpers here decide whether a caller of an allowed role may act on
a particular record. Every helper handles each ``UserRole`` member explicitly
and treats anything else as a programming error.
"""
from typing import Iterable, NoReturn

from .security import AuthorizationError, UserRole
from ..models.booking import Booking
from ..models.user import User
from ..repositories.booking_store import BookingStore, OwnerAxis


def _unknown_role(role) -> NoReturn:
    raise ValueError(f"Unhandled user role: {role!r}")


def can_view_doctor_notes(role: UserRole) -> bool:
    if role is UserRole.DOCTOR:
        return True
    if role in (UserRole.STAFF, UserRole.PATIENT):
        return False
    _unknown_role(role)


def _is_booking_owner(user: User, booking: Booking) -> bool:
    if user.role is UserRole.STAFF:
        return True
    if user.role is UserRole.DOCTOR:
        return booking.doctor_id == user.id
    if user.role is UserRole.PATIENT:
        return booking.patient_id == user.id
    _unknown_role(user.role)


def ensure_can_create_booking(user: User, patient_id) -> None:
    if user.role is UserRole.STAFF:
        return
    if user.role is UserRole.PATIENT:
        if patient_id is not None and patient_id != user.id:
            raise AuthorizationError("Patients can only create bookings for themselves")
        return
    if user.role is UserRole.DOCTOR:
        raise AuthorizationError("Doctors cannot create bookings")
    _unknown_role(user.role)


def ensure_can_read_booking(user: User, booking: Booking) -> None:
    if not _is_booking_owner(user, booking):
        raise AuthorizationError("You do not have permission to access this booking")


def ensure_can_update_booking(user: User, booking: Booking, fields: Iterable[str]) -> None:
    if not _is_booking_owner(user, booking):
        raise AuthorizationError("You do not have permission to update this booking")
    if user.role is UserRole.DOCTOR and "patient_notes" in fields:
        raise AuthorizationError("Doctors cannot change patient notes")


def ensure_can_delete_booking(user: User, booking: Booking) -> None:
    if user.role is UserRole.STAFF:
        return
    if user.role is UserRole.PATIENT:
        if booking.patient_id != user.id:
            raise AuthorizationError("You do not have permission to delete this booking")
        return
    if user.role is UserRole.DOCTOR:
        raise AuthorizationError("Doctors cannot delete bookings")
    _unknown_role(user.role)


def ensure_doctor_owner(user: User, booking: Booking) -> None:
    """Doctor notes belong to the booking's doctor and nobody else."""
    if user.role is UserRole.DOCTOR:
        if booking.doctor_id != user.id:
            raise AuthorizationError(
                "You do not have permission to access doctor notes for this booking"
            )
        return
    if user.role in (UserRole.STAFF, UserRole.PATIENT):
        raise AuthorizationError("Only the booking's doctor can access doctor notes")
    _unknown_role(user.role)


def ensure_can_list_owner_bookings(user: User, axis: OwnerAxis, owner_key: int) -> None:
    if user.role is UserRole.STAFF:
        return
    if user.role in (UserRole.DOCTOR, UserRole.PATIENT):
        if owner_key != user.id:
            raise AuthorizationError(f"You do not have permission to list this {axis.value}'s bookings")
        return
    _unknown_role(user.role)


def ensure_can_read_patient_profile(user: User, patient_id: int, store: BookingStore) -> None:
    if user.role is UserRole.STAFF:
        return
    if user.role is UserRole.PATIENT:
        if patient_id != user.id:
            raise AuthorizationError("You do not have permission to access this profile")
        return
    if user.role is UserRole.DOCTOR:
        # Doctors may only see patients they have a booking with
        bookings = store.find_by_owner(OwnerAxis.DOCTOR, user.id)
        if not any(booking.patient_id == patient_id for booking in bookings):
            raise AuthorizationError("You do not have permission to access this profile")
        return
    _unknown_role(user.role)


def ensure_self_or_staff(user: User, user_id: int, action: str = "access") -> None:
    if user.role is UserRole.STAFF:
        return
    if user.role in (UserRole.DOCTOR, UserRole.PATIENT):
        if user_id != user.id:
            raise AuthorizationError(f"You do not have permission to {action} this profile")
        return
    _unknown_role(user.role)
