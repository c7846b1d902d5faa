# This project was developed with assistance from AI tools.
"""Consultant sign-in and token refresh."""

import jwt
from db import get_db
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import CurrentUser
from ..schemas.auth import (
    AccessTokenResponse,
    LoginRequest,
    RefreshRequest,
    TokenResponse,
    UserResponse,
)
from ..services import user as user_service

router = APIRouter()


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, session: AsyncSession = Depends(get_db)) -> TokenResponse:
    user = await user_service.authenticate(session, body.username, body.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
        )
    tokens = user_service.issue_tokens(user, remember_me=body.remember_me)
    return TokenResponse(**{**tokens, "user": UserResponse.model_validate(user)})


@router.post("/refresh", response_model=AccessTokenResponse)
async def refresh(
    body: RefreshRequest, session: AsyncSession = Depends(get_db)
) -> AccessTokenResponse:
    """Exchange a refresh token for a new access token."""
    try:
        result = await user_service.refresh_access_token(session, body.refresh_token)
    except jwt.InvalidTokenError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token",
        ) from exc
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User no longer active",
        )
    return AccessTokenResponse(**result)


@router.get("/me", response_model=UserResponse)
async def me(user: CurrentUser, session: AsyncSession = Depends(get_db)) -> UserResponse:
    account = await user_service.get_user(session, user.user_id)
    if account is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserResponse.model_validate(account)
