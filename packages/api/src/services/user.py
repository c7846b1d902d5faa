# This project was developed with assistance from AI tools.
"""Consultant accounts and token issuance."""

import logging

from db import User
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import (
    REFRESH_TOKEN,
    create_access_token,
    create_refresh_token,
    decode_token,
    verify_password,
)
from ..core.config import settings

logger = logging.getLogger(__name__)


async def get_user(session: AsyncSession, user_id: int) -> User | None:
    stmt = select(User).where(User.id == user_id, User.is_active.is_(True))
    return (await session.execute(stmt)).scalar_one_or_none()


async def authenticate(session: AsyncSession, username: str, password: str) -> User | None:
    """Return the active user whose password matches, else None."""
    stmt = select(User).where(User.username == username)
    user = (await session.execute(stmt)).scalar_one_or_none()
    if user is None or not user.is_active or not verify_password(password, user.hashed_password):
        logger.warning("Failed login for username=%s", username)
        return None
    return user


def issue_tokens(user: User, remember_me: bool = False) -> dict:
    """Access + refresh pair for a signed-in user."""
    return {
        "access_token": create_access_token(
            user.id, user.organization_id, user.role, user.username
        ),
        "refresh_token": create_refresh_token(
            user.id, user.organization_id, user.role, user.username, remember_me=remember_me
        ),
        "token_type": "bearer",
        "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        "user": user,
    }


async def refresh_access_token(session: AsyncSession, refresh_token: str) -> dict | None:
    """New access token for a valid refresh token; None when the user is gone.

    Raises:
        jwt.InvalidTokenError: the refresh token is invalid or expired.
    """
    payload = decode_token(refresh_token, expected_type=REFRESH_TOKEN)
    user = await get_user(session, int(payload.sub))
    if user is None:
        return None
    return {
        "access_token": create_access_token(
            user.id, user.organization_id, user.role, user.username
        ),
        "token_type": "bearer",
        "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    }
