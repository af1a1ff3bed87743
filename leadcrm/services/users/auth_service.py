"""Token and password handling, plus the FastAPI dependencies guarding routes."""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from leadcrm.configs import settings
from leadcrm.models.auth_models import Principal
from leadcrm.services.exceptions import AuthenticationError, PermissionDeniedError
from leadcrm.services.leads.statuses import Role

security = HTTPBearer(auto_error=False)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return pwd_context.verify(password, hashed)


def create_access_token(principal: Principal, expires_minutes: Optional[int] = None) -> str:
    """Sign a token carrying the caller's user name and role."""
    minutes = expires_minutes or settings.JWT_EXPIRES_MINUTES
    payload = {
        "sub": principal.user_name,
        "user_name": principal.user_name,
        "role": principal.role.value,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=minutes),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Principal:
    try:
        payload = jwt.decode(
            token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError as exc:
        raise AuthenticationError("Invalid or expired token", cause=exc)

    user_name = str(payload.get("user_name") or payload.get("sub") or "").strip().lower()
    role = payload.get("role")
    if not user_name or role not in {r.value for r in Role}:
        raise AuthenticationError("Invalid or expired token")
    return Principal(user_name=user_name, role=Role(role))


def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Principal:
    """Resolve the caller from the bearer token."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("No token provided")
    return decode_access_token(credentials.credentials)


def require_roles(*roles: Role) -> Callable[..., Principal]:
    """Build a dependency that only lets the given roles through."""

    def _guard(principal: Principal = Depends(get_current_principal)) -> Principal:
        if roles and principal.role not in roles:
            raise PermissionDeniedError("Forbidden")
        return principal

    return _guard


any_user = require_roles(Role.ADMIN, Role.USER)
admin_only = require_roles(Role.ADMIN)
