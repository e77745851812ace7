from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.permissions import ensure_can_read_patient_profile, ensure_self_or_staff
from ...core.security import UserRole
from ...api.deps import require_role
from ...models.user import User
from ...repositories.booking_store import BookingStore
from ...repositories.profile_store import patient_profiles
from ...schemas.profile import PatientProfileCreate, PatientProfileUpdate, PatientProfileResponse

router = APIRouter(prefix="/patients", tags=["Patients"])

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_patient_profile(
    profile_data: PatientProfileCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role([UserRole.PATIENT]))
):
    """Create the calling patient's own profile."""
    profile = patient_profiles(db).create(current_user.id, profile_data.model_dump())
    return {
        "success": True,
        "message": "Patient profile created successfully",
        "user_id": profile.user_id,
    }

@router.get("/{user_id}")
async def get_patient_profile(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role([UserRole.STAFF, UserRole.DOCTOR, UserRole.PATIENT]))
):
    ensure_can_read_patient_profile(current_user, user_id, BookingStore(db))
    profile = patient_profiles(db).get(user_id)
    return {"success": True, "data": PatientProfileResponse.model_validate(profile).model_dump(mode="json")}

@router.patch("/{user_id}")
async def update_patient_profile(
    user_id: int,
    profile_data: PatientProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role([UserRole.STAFF, UserRole.PATIENT]))
):
    ensure_self_or_staff(current_user, user_id, action="update")
    profile = patient_profiles(db).update(user_id, profile_data.model_dump(exclude_unset=True))
    return {"success": True, "data": PatientProfileResponse.model_validate(profile).model_dump(mode="json")}

@router.delete("/{user_id}")
async def delete_patient_profile(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role([UserRole.STAFF]))
):
    patient_profiles(db).delete(user_id)
    return {"success": True, "message": "Patient profile deleted"}
