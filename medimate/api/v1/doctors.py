from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.exceptions import NotFoundError, ProfileValidationError
from ...core.permissions import ensure_self_or_staff
from ...core.security import UserRole
from ...api.deps import require_role
from ...models.user import User
from ...repositories.profile_store import doctor_profiles
from ...schemas.profile import (
    DoctorProfileCreate, DoctorProfileUpdate, DoctorProfileResponse, ensure_shift_order
)
from ...services.interval import to_utc_naive

router = APIRouter(prefix="/doctors", tags=["Doctors"])


def _serialize(profile) -> dict:
    return DoctorProfileResponse.model_validate(profile).model_dump(mode="json")


def _normalize_shift(data: dict) -> dict:
    for field in ("shift_start_time", "shift_end_time"):
        if data.get(field) is not None:
            data[field] = to_utc_naive(data[field])
    return data


@router.get("")
async def list_doctors(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role([UserRole.STAFF, UserRole.PATIENT]))
):
    doctors = doctor_profiles(db).list_all()
    return {"success": True, "count": len(doctors), "data": [_serialize(d) for d in doctors]}

@router.get("/{user_id}")
async def get_doctor_profile(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role([UserRole.STAFF, UserRole.DOCTOR, UserRole.PATIENT]))
):
    if current_user.role is UserRole.DOCTOR:
        ensure_self_or_staff(current_user, user_id)
    profile = doctor_profiles(db).get(user_id)
    return {"success": True, "data": _serialize(profile)}

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_doctor_profile(
    profile_data: DoctorProfileCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role([UserRole.STAFF]))
):
    """Create a doctor profile for an existing doctor user."""
    target = db.get(User, profile_data.user_id)
    if target is None or target.role is not UserRole.DOCTOR:
        raise NotFoundError("Doctor user not found")

    data = _normalize_shift(profile_data.model_dump(exclude={"user_id"}))
    profile = doctor_profiles(db).create(profile_data.user_id, data)
    return {
        "success": True,
        "message": "Doctor profile created successfully",
        "user_id": profile.user_id,
    }

@router.patch("/{user_id}")
async def update_doctor_profile(
    user_id: int,
    profile_data: DoctorProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role([UserRole.STAFF, UserRole.DOCTOR]))
):
    ensure_self_or_staff(current_user, user_id, action="update")
    store = doctor_profiles(db)
    data = _normalize_shift(profile_data.model_dump(exclude_unset=True))

    # A single shift bound is checked against the stored other bound
    current = store.get(user_id)
    try:
        ensure_shift_order(
            data.get("shift_start_time", current.shift_start_time),
            data.get("shift_end_time", current.shift_end_time),
        )
    except ValueError as exc:
        raise ProfileValidationError(str(exc)) from exc

    profile = store.update(user_id, data)
    return {"success": True, "data": _serialize(profile)}

@router.delete("/{user_id}")
async def delete_doctor_profile(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role([UserRole.STAFF]))
):
    doctor_profiles(db).delete(user_id)
    return {"success": True, "message": "Doctor profile deleted successfully"}
