from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import Any, Dict, Generic, List, Type, TypeVar

from ..core.exceptions import NotFoundError, ProfileExistsError, ProfileValidationError
from ..models.doctor import DoctorProfile
from ..models.patient import PatientProfile
from ..models.staff import StaffProfile

ProfileT = TypeVar("ProfileT", PatientProfile, DoctorProfile, StaffProfile)


def _is_unique_violation(exc: IntegrityError) -> bool:
    # sqlite: "UNIQUE constraint failed"; postgres: "duplicate key value violates unique constraint"
    message = str(exc.orig).lower()
    return "unique" in message or "duplicate" in message


class ProfileStore(Generic[ProfileT]):
    """CRUD for one profile table, keyed by the owning user's id."""

    def __init__(self, db: Session, model: Type[ProfileT]):
        self.db = db
        self.model = model

    def create(self, user_id: int, profile_data: Dict[str, Any]) -> ProfileT:
        if self.db.get(self.model, user_id) is not None:
            raise ProfileExistsError()

        profile = self.model(user_id=user_id, **profile_data)
        self.db.add(profile)
        self._commit()
        self.db.refresh(profile)
        return profile

    def get(self, user_id: int) -> ProfileT:
        profile = self.db.get(self.model, user_id)
        if profile is None:
            raise NotFoundError("Profile not found")
        return profile

    def list_all(self) -> List[ProfileT]:
        return self.db.query(self.model).order_by(self.model.user_id).all()

    def update(self, user_id: int, update_data: Dict[str, Any]) -> ProfileT:
        profile = self.get(user_id)
        for field, value in update_data.items():
            setattr(profile, field, value)

        self._commit()
        self.db.refresh(profile)
        return profile

    def delete(self, user_id: int) -> None:
        profile = self.get(user_id)
        self.db.delete(profile)
        self.db.commit()

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            if _is_unique_violation(exc):
                raise ProfileExistsError("Profile conflicts with an existing record") from exc
            raise ProfileValidationError("Profile data violates a database constraint") from exc


def patient_profiles(db: Session) -> ProfileStore[PatientProfile]:
    return ProfileStore(db, PatientProfile)


def doctor_profiles(db: Session) -> ProfileStore[DoctorProfile]:
    return ProfileStore(db, DoctorProfile)


def staff_profiles(db: Session) -> ProfileStore[StaffProfile]:
    return ProfileStore(db, StaffProfile)
