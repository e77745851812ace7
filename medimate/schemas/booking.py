from datetime import datetime, timedelta
from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator
from typing import Optional

from ..models.booking import BookingStatus


def _strip(value: Optional[str]) -> Optional[str]:
    return value.strip() if isinstance(value, str) else value


class BookingCreate(BaseModel):
    """Body of ``POST /bookings``.

    Every field is optional at the schema level so the booking service can
    report missing fields, bad durations and past start times in its own
    order. ``doctor_notes`` is accepted but always discarded.
    """
    model_config = ConfigDict(extra="forbid")

    patient_id: Optional[int] = None
    doctor_id: Optional[int] = None
    status: Optional[BookingStatus] = None
    start: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    patient_notes: Optional[str] = None
    doctor_notes: Optional[str] = None

    @field_validator("patient_notes")
    @classmethod
    def strip_notes(cls, value):
        return _strip(value)


class BookingUpdate(BaseModel):
    """Body of ``PATCH /bookings/{id}``; parties are immutable."""
    model_config = ConfigDict(extra="forbid")

    status: Optional[BookingStatus] = None
    start: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    patient_notes: Optional[str] = None
    # Dropped silently, doctor notes have their own endpoint
    doctor_notes: Optional[str] = None

    @field_validator("patient_notes")
    @classmethod
    def strip_notes(cls, value):
        return _strip(value)


class DoctorNotesUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    doctor_notes: Optional[str] = Field(...)

    @field_validator("doctor_notes")
    @classmethod
    def strip_notes(cls, value):
        return _strip(value)


class DoctorNotesResponse(BaseModel):
    doctor_notes: Optional[str] = None


class BookingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: int
    doctor_id: int
    status: BookingStatus
    start: datetime
    duration_minutes: int
    patient_notes: Optional[str] = None
    doctor_notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @computed_field
    @property
    def end(self) -> datetime:
        return self.start + timedelta(minutes=self.duration_minutes)

