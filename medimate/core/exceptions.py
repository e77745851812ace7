from fastapi import HTTPException, status
from typing import Iterable


class BookingValidationError(HTTPException):
    """Missing or malformed booking fields."""

    def __init__(self, detail: str = "Booking validation failed"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class MissingFieldsError(BookingValidationError):
    def __init__(self, fields: Iterable[str]):
        self.fields = list(fields)
        super().__init__(f"Missing required fields: {', '.join(self.fields)}")


class InvalidDuration(BookingValidationError):
    def __init__(self, allowed: Iterable[int]):
        allowed = " or ".join(str(minutes) for minutes in allowed)
        super().__init__(f"Booking duration must be either {allowed} minutes")


class PastDateTime(BookingValidationError):
    def __init__(self, detail: str = "Bookings can only be made for a future date/time"):
        super().__init__(detail)


class SlotTaken(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class DoctorSlotTaken(SlotTaken):
    def __init__(self):
        super().__init__(
            "There are no available appointments at this time with your chosen doctor"
        )


class PatientSlotTaken(SlotTaken):
    def __init__(self):
        super().__init__("The patient already has a booking that overlaps this time")


class ConflictOnPersist(HTTPException):
    """The store rejected a write that raced past the overlap check."""

    def __init__(self, detail: str = "This time slot was taken by a concurrent booking"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class NotFoundError(HTTPException):
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ProfileExistsError(HTTPException):
    def __init__(self, detail: str = "Profile already exists"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class ProfileValidationError(HTTPException):
    def __init__(self, detail: str = "Profile validation failed"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)
