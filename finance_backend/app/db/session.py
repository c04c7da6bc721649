"""
Database session configuration.

The store handle is an explicit object: the application lifespan (or a batch
job) constructs a Database, uses its session factory, and disposes it on
shutdown. Routes reach it through the get_db dependency.
"""

from datetime import datetime, timezone
from typing import AsyncIterator, Optional

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.exc import InterfaceError, OperationalError, TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from finance_backend.app.core.config import settings

# Create declarative base for models
Base = declarative_base()

# Errors meaning the store could not be reached; callers may retry
STORAGE_ERRORS = (OperationalError, InterfaceError, PoolTimeoutError, ConnectionError, TimeoutError)


class Database:
    """
    Async engine plus session factory with an open/close lifecycle.

    Args:
        url: SQLAlchemy async database URL
        echo: Log emitted SQL
        pool_size: Connection pool size (ignored for SQLite)
        max_overflow: Pool overflow (ignored for SQLite)
        engine: Pre-built engine, used by tests and tools that need a
            custom pool
    """

    def __init__(
        self,
        url: Optional[str] = None,
        echo: bool = False,
        pool_size: int = 5,
        max_overflow: int = 10,
        engine: Optional[AsyncEngine] = None,
    ):
        if engine is None:
            url = url or settings.database_url
            kwargs = {"echo": echo, "future": True}
            if not url.startswith("sqlite"):
                kwargs.update(
                    pool_size=pool_size,
                    max_overflow=max_overflow,
                    pool_pre_ping=True,
                )
            engine = create_async_engine(url, **kwargs)

        self.engine = engine
        self.session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls) -> "Database":
        return cls(
            settings.database_url,
            echo=settings.db_echo,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
        )

    def session(self) -> AsyncSession:
        """Open a new session; use as an async context manager."""
        return self.session_factory()

    async def create_all(self) -> None:
        """Create all tables registered on Base."""
        # Import models so they are registered with Base
        from finance_backend.app.models import (  # noqa: F401
            category, company, employee, reimbursement, transaction, user
        )

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> bool:
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True

    async def dispose(self) -> None:
        await self.engine.dispose()


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """
    FastAPI dependency for database sessions.

    Yields a session from the Database attached to the application state and
    makes sure it is closed (rolling back anything left uncommitted).
    """
    database: Database = request.app.state.database
    async with database.session() as session:
        try:
            yield session
        finally:
            await session.close()


def utcnow() -> datetime:
    """Timezone-aware now, used for Python-side timestamp defaults."""
    return datetime.now(timezone.utc)
