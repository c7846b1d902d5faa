# This project was developed with assistance from AI tools.
"""Shared fixtures -- in-memory SQLite database and an ASGI test client.

Every test gets a fresh schema on a single shared aiosqlite connection.
``client_factory`` mounts the real app with ``get_db`` bound to the test
session and ``get_current_user`` bound to the given persona. Engine
dispatch stays off (no ENGINE_BASE_URL), so nothing runs in the
background.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from unittest.mock import patch  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from db import Base, Organization, User  # noqa: E402
from db.enums import UserRole  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from src.core.auth import hash_password  # noqa: E402
from src.core.config import settings  # noqa: E402

from tests.factories import make_mock_storage  # noqa: E402
from tests.personas import (  # noqa: E402
    ADMIN_ID,
    CONSULTANT_ID,
    ORG_ID,
    OTHER_CONSULTANT_ID,
    OTHER_ORG_ID,
    OUTSIDER_ID,
    TEST_PASSWORD,
)

_PASSWORD_HASH = hash_password(TEST_PASSWORD)


@pytest.fixture(autouse=True)
def _test_settings(monkeypatch):
    """Real auth, no engine dispatch, predictable callback secret."""
    monkeypatch.setattr(settings, "AUTH_DISABLED", False)
    monkeypatch.setattr(settings, "ENGINE_BASE_URL", None)
    monkeypatch.setattr(settings, "ENGINE_CALLBACK_SECRET", "test-engine-secret")
    monkeypatch.setattr(settings, "PUBLIC_APP_URL", "http://app.test")


@pytest_asyncio.fixture
async def async_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(async_engine):
    factory = sessionmaker(
        bind=async_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )
    async with factory() as session:
        yield session


@pytest_asyncio.fixture
async def seeded(db_session):
    """Two agencies: admin + two consultants in one, an admin in the other."""
    db_session.add_all(
        [
            Organization(id=ORG_ID, name="Test Agency"),
            Organization(id=OTHER_ORG_ID, name="Other Agency"),
        ]
    )
    await db_session.flush()
    for user_id, org, username, role in (
        (ADMIN_ID, ORG_ID, "admin", UserRole.ADMIN),
        (CONSULTANT_ID, ORG_ID, "consultant1", UserRole.CONSULTANT),
        (OTHER_CONSULTANT_ID, ORG_ID, "consultant2", UserRole.CONSULTANT),
        (OUTSIDER_ID, OTHER_ORG_ID, "outsider", UserRole.ADMIN),
    ):
        db_session.add(
            User(
                id=user_id,
                organization_id=org,
                username=username,
                email=f"{username}@example.com",
                full_name=username.title(),
                role=role,
                hashed_password=_PASSWORD_HASH,
                is_active=True,
            )
        )
    await db_session.commit()
    return db_session


@pytest.fixture
def mock_storage():
    """Patch the storage singleton used by attachment uploads."""
    storage = make_mock_storage()
    with patch("src.services.attachment.get_storage_service", return_value=storage):
        yield storage


@pytest.fixture
def client_factory(db_session, seeded):
    """Factory returning an async httpx client with dependency overrides.

    Pass ``None`` for token-scoped (applicant) or engine calls.
    """
    from db.database import get_db

    from src.main import app
    from src.middleware.auth import get_current_user

    def _make(user=None) -> httpx.AsyncClient:
        async def _get_db():
            yield db_session

        app.dependency_overrides[get_db] = _get_db
        if user is not None:

            async def _get_current_user():
                return user

            app.dependency_overrides[get_current_user] = _get_current_user
        else:
            app.dependency_overrides.pop(get_current_user, None)
        transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
        return httpx.AsyncClient(transport=transport, base_url="http://test")

    yield _make

    app.dependency_overrides.clear()
