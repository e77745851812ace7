from datetime import date, datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Optional

PHONE_PATTERN = r"^\+?[0-9][0-9 \-]{6,18}[0-9]$"


def _ensure_past(value: Optional[date]) -> Optional[date]:
    if value is not None and value >= date.today():
        raise ValueError("Date of birth cannot be in the future")
    return value


def ensure_shift_order(start: Optional[datetime], end: Optional[datetime]) -> None:
    if start is not None and end is not None and end <= start:
        raise ValueError("Shift end time must be after shift start time")


def _reject_null(value):
    # Optional on updates means "may be omitted", not "may be cleared"
    if value is None:
        raise ValueError("Field cannot be null")
    return value


# Patients
class PatientProfileCreate(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    first_name: str = Field(..., min_length=1, max_length=100)
    middle_name: Optional[str] = Field(None, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    date_of_birth: date
    phone: str = Field(..., pattern=PHONE_PATTERN)

    @field_validator("date_of_birth")
    @classmethod
    def validate_date_of_birth(cls, value):
        return _ensure_past(value)


class PatientProfileUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    middle_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    date_of_birth: Optional[date] = None
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)

    @field_validator("first_name", "last_name", "date_of_birth", "phone", mode="before")
    @classmethod
    def reject_null(cls, value):
        return _reject_null(value)

    @field_validator("date_of_birth")
    @classmethod
    def validate_date_of_birth(cls, value):
        return _ensure_past(value)


class PatientProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    first_name: str
    middle_name: Optional[str] = None
    last_name: str
    date_of_birth: date
    phone: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PatientSearchResult(PatientProfileResponse):
    email: Optional[str] = None


# Doctors
class DoctorProfileCreate(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    user_id: int
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    shift_start_time: datetime
    shift_end_time: datetime

    @model_validator(mode="after")
    def validate_shift(self):
        ensure_shift_order(self.shift_start_time, self.shift_end_time)
        return self


class DoctorProfileUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    shift_start_time: Optional[datetime] = None
    shift_end_time: Optional[datetime] = None

    @field_validator("first_name", "last_name", "shift_start_time", "shift_end_time", mode="before")
    @classmethod
    def reject_null(cls, value):
        return _reject_null(value)

    @model_validator(mode="after")
    def validate_shift(self):
        ensure_shift_order(self.shift_start_time, self.shift_end_time)
        return self


class DoctorProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    first_name: str
    last_name: str
    shift_start_time: datetime
    shift_end_time: datetime
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Staff
class StaffProfileCreate(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)


class StaffProfileUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def reject_null(cls, value):
        return _reject_null(value)


class StaffProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    first_name: str
    last_name: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
