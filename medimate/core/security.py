"""
Credentials and roles.

Passwords are stored as bcrypt hashes. Sessions are stateless HS256 access
tokens whose ``sub`` claim carries the user id as a string; the role claim is
informational only, the database row is authoritative.
"""
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from fastapi import HTTPException, status
from fastapi.security import HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel

from .config import settings

ACCESS_TOKEN_TYPE = "access"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Missing headers are reported by get_current_user_token, not by FastAPI
security = HTTPBearer(auto_error=False)


class UserRole(str, Enum):
    """The closed set of account types."""

    STAFF = "staff"
    DOCTOR = "doctor"
    PATIENT = "patient"


class AccessToken(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class TokenClaims(BaseModel):
    sub: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    exp: Optional[int] = None
    token_type: Optional[str] = None

    @property
    def user_id(self) -> Optional[int]:
        if self.sub is None or not self.sub.isdigit():
            return None
        return int(self.sub)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    return pwd_context.verify(plain_password, password_hash)


def issue_access_token(
    user_id: int,
    email: str,
    role: UserRole,
    expires_in: Optional[timedelta] = None
) -> AccessToken:
    """Sign an access token for one user."""
    lifetime = expires_in or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    claims = {
        "sub": str(user_id),
        "email": email,
        "role": role.value,
        "exp": datetime.utcnow() + lifetime,
        "token_type": ACCESS_TOKEN_TYPE,
    }

    return AccessToken(
        access_token=jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM),
        expires_in=int(lifetime.total_seconds()),
    )


def decode_access_token(token: str) -> Optional[TokenClaims]:
    """Return the claims of a valid, unexpired access token, else ``None``."""
    try:
        claims = TokenClaims(**jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM]))
    except JWTError:
        return None

    if claims.token_type != ACCESS_TOKEN_TYPE or claims.user_id is None:
        return None
    return claims


class AuthenticationError(HTTPException):
    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthorizationError(HTTPException):
    def __init__(self, detail: str = "You do not have permission to access this resource"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
