# This project was developed with assistance from AI tools.
"""Tests for JWT authentication middleware and the auth routes."""

import jwt
import pytest
from db.enums import UserRole
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from src.core.auth import (
    REFRESH_TOKEN,
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
)
from src.core.config import settings
from src.middleware.auth import CurrentUser, require_roles

from tests.personas import TEST_PASSWORD

# ---------------------------------------------------------------------------
# AUTH_DISABLED bypass
# ---------------------------------------------------------------------------


def test_auth_disabled_returns_dev_admin(monkeypatch):
    """When AUTH_DISABLED=true, any request gets a dev admin user."""
    monkeypatch.setattr(settings, "AUTH_DISABLED", True)

    app = FastAPI()

    @app.get("/me")
    async def me(user: CurrentUser):
        return {"user_id": user.user_id, "role": user.role.value}

    test_client = TestClient(app)
    resp = test_client.get("/me")
    assert resp.status_code == 200
    assert resp.json() == {"user_id": 1, "role": "admin"}


# ---------------------------------------------------------------------------
# Missing / malformed token
# ---------------------------------------------------------------------------


def _me_app() -> FastAPI:
    app = FastAPI()

    @app.get("/me")
    async def me(user: CurrentUser):
        return {"user_id": user.user_id, "scope": user.data_scope.model_dump()}

    return app


def test_missing_token_returns_401():
    resp = TestClient(_me_app()).get("/me")
    assert resp.status_code == 401
    assert "Missing authentication token" in resp.json()["detail"]


def test_garbage_token_returns_401():
    resp = TestClient(_me_app()).get("/me", headers={"Authorization": "Bearer nope"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid token"


def test_refresh_token_rejected_as_access_token():
    token = create_refresh_token(2, 1, UserRole.CONSULTANT, "consultant1")
    resp = TestClient(_me_app()).get("/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


def test_valid_token_builds_consultant_scope():
    token = create_access_token(2, 1, UserRole.CONSULTANT, "consultant1")
    resp = TestClient(_me_app()).get("/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200
    assert resp.json() == {
        "user_id": 2,
        "scope": {"organization_id": 1, "consultant_id": 2},
    }


# ---------------------------------------------------------------------------
# Token helpers
# ---------------------------------------------------------------------------


def test_password_hash_roundtrip():
    hashed = hash_password("s3cret")
    assert hashed != "s3cret"
    assert verify_password("s3cret", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("s3cret", "not-a-bcrypt-hash")


def test_decode_checks_type():
    token = create_refresh_token(1, 1, UserRole.ADMIN, "admin", remember_me=True)
    assert decode_token(token, expected_type=REFRESH_TOKEN).sub == "1"
    with pytest.raises(jwt.InvalidTokenError, match="Expected access token"):
        decode_token(token)


# ---------------------------------------------------------------------------
# require_roles dependency
# ---------------------------------------------------------------------------


def test_require_roles_rejects_wrong_role():
    """require_roles returns 403 when user's role is not in allowed set."""
    app = FastAPI()

    @app.get("/admin-only", dependencies=[Depends(require_roles(UserRole.ADMIN))])
    async def admin_only(user: CurrentUser):
        return {"ok": True}

    test_client = TestClient(app)
    token = create_access_token(2, 1, UserRole.CONSULTANT, "consultant1")
    resp = test_client.get("/admin-only", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 403
    assert "Insufficient permissions" in resp.json()["detail"]


# ---------------------------------------------------------------------------
# /auth routes
# ---------------------------------------------------------------------------


async def test_login_refresh_me(client_factory):
    client = client_factory()
    resp = await client.post(
        "/api/v1/auth/login", json={"username": "consultant1", "password": TEST_PASSWORD}
    )
    assert resp.status_code == 200
    tokens = resp.json()
    assert tokens["token_type"] == "bearer"
    assert tokens["expires_in"] == settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
    assert tokens["user"]["role"] == "consultant"

    me = await client.get(
        "/api/v1/auth/me", headers={"Authorization": f"Bearer {tokens['access_token']}"}
    )
    assert me.json()["username"] == "consultant1"

    refreshed = await client.post(
        "/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]}
    )
    assert refreshed.status_code == 200
    assert decode_token(refreshed.json()["access_token"]).sub == "2"


async def test_login_wrong_password(client_factory):
    resp = await client_factory().post(
        "/api/v1/auth/login", json={"username": "consultant1", "password": "wrong"}
    )
    assert resp.status_code == 401


async def test_refresh_rejects_access_token(client_factory):
    token = create_access_token(2, 1, UserRole.CONSULTANT, "consultant1")
    resp = await client_factory().post("/api/v1/auth/refresh", json={"refresh_token": token})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid refresh token"


async def test_refresh_for_deactivated_user(client_factory, seeded):
    from db import User

    user = await seeded.get(User, 3)
    user.is_active = False
    await seeded.commit()

    token = create_refresh_token(3, 1, UserRole.CONSULTANT, "consultant2")
    resp = await client_factory().post("/api/v1/auth/refresh", json={"refresh_token": token})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "User no longer active"
