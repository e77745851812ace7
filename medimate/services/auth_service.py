from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from fastapi import HTTPException, status
import logging

from ..models.booking import Booking
from ..models.user import User
from ..core.exceptions import NotFoundError
from ..core.security import hash_password, verify_password, issue_access_token, UserRole
from ..schemas.auth import UserLogin, UserSignup, TokenResponse, UserResponse

logger = logging.getLogger(__name__)


class AuthService:
    """Accounts: sign-up, password login and staff role management."""

    def __init__(self, db: Session):
        self.db = db

    def _find_by_email(self, email: str):
        return self.db.query(User).filter(User.email == email).first()

    def register_user(self, user_data: UserSignup, role: UserRole = UserRole.PATIENT) -> User:
        """Create an account. Self sign-ups are always patients."""
        if self._find_by_email(user_data.email):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Email already in use"
            )

        user = User(
            email=user_data.email,
            password_hash=hash_password(user_data.password),
            role=role,
            is_active=True
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)

        logger.info(f"Registered user {user.id} as {role.value}")
        return user

    def authenticate_user(self, login_data: UserLogin) -> TokenResponse:
        user = self._find_by_email(login_data.email)

        # Same answer for unknown email and wrong password
        if user is None or not verify_password(login_data.password, user.password_hash):
            logger.info(f"Failed login for {login_data.email}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password"
            )

        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Account is deactivated"
            )

        token = issue_access_token(user.id, user.email, user.role)
        return TokenResponse(
            **token.model_dump(),
            user=UserResponse.model_validate(user)
        )

    def change_role(self, user_id: int, role: UserRole) -> User:
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")

        previous = user.role
        user.role = role
        self.db.commit()
        self.db.refresh(user)

        logger.info(f"User {user_id} role changed from {previous.value} to {role.value}")
        return user

    def delete_user(self, user_id: int) -> None:
        """Delete an account and its profile in one commit.

        Accounts still named on a booking are refused with a 409.
        """
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")

        has_bookings = self.db.query(Booking).filter(
            or_(Booking.patient_id == user_id, Booking.doctor_id == user_id)
        ).first() is not None
        if has_bookings:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="User still has bookings and cannot be deleted"
            )

        for profile in (user.patient_profile, user.doctor_profile, user.staff_profile):
            if profile is not None:
                self.db.delete(profile)
        self.db.delete(user)

        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="User is still referenced and cannot be deleted"
            ) from exc
        logger.info(f"User {user_id} deleted")
