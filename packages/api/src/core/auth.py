# This project was developed with assistance from AI tools.
"""Pure auth utility functions with no FastAPI or HTTP dependencies.

Password hashing, JWT issue/decode and data scope construction. Kept apart
from ``middleware/auth.py`` so services and the seed script can use them
without pulling in FastAPI/Starlette.
"""

from datetime import UTC, datetime, timedelta

import bcrypt
import jwt
from db.enums import UserRole

from ..schemas.auth import DataScope, TokenPayload
from .config import settings

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode(), hashed.encode())
    except ValueError:
        return False


def _encode(
    user_id: int,
    organization_id: int,
    role: UserRole,
    username: str,
    token_type: str,
    lifetime: timedelta,
) -> str:
    now = datetime.now(UTC)
    payload = {
        "sub": str(user_id),
        "type": token_type,
        "org": organization_id,
        "role": role.value,
        "username": username,
        "iat": now,
        "exp": now + lifetime,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def create_access_token(user_id: int, organization_id: int, role: UserRole, username: str) -> str:
    return _encode(
        user_id,
        organization_id,
        role,
        username,
        ACCESS_TOKEN,
        timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )


def create_refresh_token(
    user_id: int,
    organization_id: int,
    role: UserRole,
    username: str,
    remember_me: bool = False,
) -> str:
    days = settings.REMEMBER_ME_REFRESH_DAYS if remember_me else settings.REFRESH_TOKEN_EXPIRE_DAYS
    return _encode(user_id, organization_id, role, username, REFRESH_TOKEN, timedelta(days=days))


def decode_token(token: str, expected_type: str = ACCESS_TOKEN) -> TokenPayload:
    """Verify signature, expiry and token type.

    Raises:
        jwt.InvalidTokenError: On any verification failure (including a
            refresh token presented as an access token or vice versa).
    """
    payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    if payload.get("type") != expected_type:
        raise jwt.InvalidTokenError(f"Expected {expected_type} token")
    return TokenPayload(**payload)


def build_data_scope(role: UserRole, user_id: int, organization_id: int) -> DataScope:
    """Build data scope rules based on the user's role.

    Admins see every case in their organization; consultants see only the
    cases assigned to them.
    """
    if role == UserRole.ADMIN:
        return DataScope(organization_id=organization_id)
    return DataScope(organization_id=organization_id, consultant_id=user_id)
