"""Async engine, session factory and the transaction boundary used by services.

Every store call is bounded: asyncpg's command_timeout caps each statement and
pool_timeout caps waiting for a connection. `transaction()` turns the resulting
driver errors into StoreUnavailableError after rolling back.
"""

from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from config.settings import settings
from src.px_common.errors import StoreUnavailableError

# Errors that mean "the store did not answer", as opposed to a constraint or
# programming error. Nothing can have been committed when one of these escapes.
STORE_FAILURES: tuple[type[BaseException], ...] = (
    OperationalError,
    InterfaceError,
    PoolTimeoutError,
    TimeoutError,
)

engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_size=20,
    max_overflow=10,
    pool_timeout=settings.STORE_TIMEOUT_SECONDS,
    connect_args={"command_timeout": settings.STORE_TIMEOUT_SECONDS},
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: yields an AsyncSession, auto-closes after request."""
    async with async_session_factory() as session:
        yield session


@asynccontextmanager
async def transaction(db: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Commit on success, roll back on any error.

    Usage:
        async with transaction(db):
            await repo.insert(db, ...)
    """
    try:
        yield db
        await db.commit()
    except STORE_FAILURES as exc:
        await db.rollback()
        raise StoreUnavailableError() from exc
    except BaseException:
        await db.rollback()
        raise
