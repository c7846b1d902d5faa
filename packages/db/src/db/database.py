# This project was developed with assistance from AI tools.
"""Async engine, session factory and FastAPI session dependencies."""

import logging
from collections.abc import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import db_settings

logger = logging.getLogger(__name__)

Base = declarative_base()

engine = create_async_engine(
    db_settings.DATABASE_URL,
    echo=db_settings.SQL_ECHO,
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class DatabaseService:
    """Thin wrapper around the engine used by the health endpoint."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    async def health_check(self) -> dict:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            dialect = self.engine.dialect.name
            name = "PostgreSQL" if dialect == "postgresql" else dialect
            return {"status": "healthy", "message": f"{name} connection successful"}
        except Exception as exc:
            logger.warning("Database health check failed: %s", exc)
            return {"status": "unhealthy", "message": f"Database error: {exc}"}

    async def close(self) -> None:
        await self.engine.dispose()


db_service = DatabaseService(engine=engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield a request-scoped session."""
    async with SessionLocal() as session:
        yield session


async def get_db_service() -> DatabaseService:
    return db_service
