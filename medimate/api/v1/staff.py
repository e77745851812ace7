from datetime import date
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import Optional

from ...core.database import get_db
from ...core.security import UserRole
from ...api.deps import require_role
from ...models.patient import PatientProfile
from ...models.user import User
from ...repositories.profile_store import doctor_profiles, patient_profiles, staff_profiles
from ...schemas.auth import RoleUpdate, UserResponse
from ...schemas.profile import (
    StaffProfileCreate, StaffProfileUpdate, StaffProfileResponse,
    PatientProfileResponse, DoctorProfileResponse, PatientSearchResult
)
from ...services.auth_service import AuthService

router = APIRouter(prefix="/staff", tags=["Staff"])

require_staff = require_role([UserRole.STAFF])


def _serialize(profile) -> dict:
    return StaffProfileResponse.model_validate(profile).model_dump(mode="json")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_staff_profile(
    profile_data: StaffProfileCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff)
):
    """Create the calling staff member's own profile."""
    profile = staff_profiles(db).create(current_user.id, profile_data.model_dump())
    return {
        "success": True,
        "message": "Staff profile created successfully",
        "user_id": profile.user_id,
    }

@router.get("")
async def list_staff(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff)
):
    staff = staff_profiles(db).list_all()
    return {"success": True, "count": len(staff), "data": [_serialize(s) for s in staff]}

@router.get("/users")
async def list_all_profiles(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff)
):
    """Profiles of every user type."""
    data = (
        [PatientProfileResponse.model_validate(p).model_dump(mode="json") for p in patient_profiles(db).list_all()]
        + [DoctorProfileResponse.model_validate(d).model_dump(mode="json") for d in doctor_profiles(db).list_all()]
        + [_serialize(s) for s in staff_profiles(db).list_all()]
    )
    return {"success": True, "count": len(data), "data": data}

@router.get("/patients")
async def search_patients(
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    date_of_birth: Optional[date] = None,
    phone: Optional[str] = None,
    email: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff)
):
    """Search patients; text filters are case-insensitive substrings."""
    query = db.query(PatientProfile, User.email).join(User, User.id == PatientProfile.user_id)

    if first_name:
        query = query.filter(PatientProfile.first_name.ilike(f"%{first_name}%"))
    if last_name:
        query = query.filter(PatientProfile.last_name.ilike(f"%{last_name}%"))
    if date_of_birth:
        query = query.filter(PatientProfile.date_of_birth == date_of_birth)
    if phone:
        query = query.filter(PatientProfile.phone.ilike(f"%{phone}%"))
    if email:
        query = query.filter(User.email.ilike(f"%{email}%"))

    data = []
    for profile, user_email in query.order_by(PatientProfile.user_id).all():
        result = PatientSearchResult.model_validate(profile)
        result.email = user_email
        data.append(result.model_dump(mode="json"))

    return {"success": True, "count": len(data), "data": data}

@router.patch("/users/{user_id}/role")
async def change_user_role(
    user_id: int,
    role_data: RoleUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff)
):
    user = AuthService(db).change_role(user_id, role_data.role)
    return {
        "success": True,
        "message": "User role updated successfully",
        "data": UserResponse.model_validate(user).model_dump(mode="json"),
    }

@router.get("/{user_id}")
async def get_staff_profile(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff)
):
    return {"success": True, "data": _serialize(staff_profiles(db).get(user_id))}

@router.patch("/{user_id}")
async def update_staff_profile(
    user_id: int,
    profile_data: StaffProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff)
):
    profile = staff_profiles(db).update(user_id, profile_data.model_dump(exclude_unset=True))
    return {"success": True, "data": _serialize(profile)}

@router.delete("/{user_id}")
async def delete_staff_profile(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff)
):
    """Delete a staff profile together with its user account."""
    staff_profiles(db).get(user_id)
    AuthService(db).delete_user(user_id)
    return {"success": True, "message": "Staff profile deleted"}
