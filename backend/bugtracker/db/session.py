"""
Database session management.

WHAT: Async engine, session factory and the get_db dependency.

WHY: One AsyncSession per request gives each request its own transaction:
DAOs only flush, and the whole request commits or rolls back together.

HOW: get_db commits when the handler returns and rolls back if it raises.
"""

from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from bugtracker.core.config import settings


def _engine_options() -> dict:
    # SQLite (local runs) does not accept pool sizing arguments.
    if settings.async_database_url.startswith("sqlite"):
        return {}
    return {"pool_pre_ping": True, "pool_size": 10, "max_overflow": 20}


engine = create_async_engine(
    settings.async_database_url,
    echo=settings.DEBUG,
    **_engine_options(),
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency to get database session.

    WHY: Tests override this dependency to hand the app their in-memory
    SQLite session.

    Yields:
        AsyncSession: Database session for the request
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
