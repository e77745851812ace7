from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional, List

from ..core.config import settings
from ..core.database import get_db, get_redis
from ..core.security import (
    security, decode_access_token, AuthenticationError,
    AuthorizationError, UserRole, TokenClaims
)
from ..models.user import User

async def get_current_user_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> TokenClaims:
    """Claims of the bearer token on the request."""
    if credentials is None:
        raise AuthenticationError("Missing token")

    claims = decode_access_token(credentials.credentials)
    if claims is None:
        raise AuthenticationError("Invalid or expired token")
    return claims

async def get_current_user(
    claims: TokenClaims = Depends(get_current_user_token),
    db: Session = Depends(get_db)
) -> User:
    """Load the token's user; deleted or deactivated accounts are rejected."""
    user = db.get(User, claims.user_id)
    if user is None:
        raise AuthenticationError("User not found")

    if not user.is_active:
        raise AuthenticationError("User account is deactivated")

    return user

def require_role(allowed_roles: List[UserRole]):
    """Create a dependency that admits only the given roles."""
    async def role_checker(
        current_user: User = Depends(get_current_user)
    ) -> User:
        if current_user.role not in allowed_roles:
            raise AuthorizationError(
                f"Access denied. Required roles: {[role.value for role in allowed_roles]}"
            )
        return current_user

    return role_checker

async def rate_limit_check(
    request: Request,
    redis_client = Depends(get_redis)
) -> None:
    """Fixed window per client IP and path, counted in redis."""
    client_ip = request.client.host if request.client else "unknown"
    key = f"rate_limit:{request.url.path}:{client_ip}"

    hits = redis_client.get(key)
    if hits is None:
        redis_client.setex(key, settings.RATE_LIMIT_WINDOW_SECONDS, 1)
        return

    if int(hits) >= settings.RATE_LIMIT_REQUESTS:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests from this IP"
        )
    redis_client.incr(key)
