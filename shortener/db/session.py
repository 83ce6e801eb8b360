"""
Database Session Management

Builds the async engine through the configured DatabaseAdapter and exposes:
- async_session_maker: for code running outside a request (click worker)
- get_session: FastAPI dependency, commit on success and rollback on error
- init_db: create missing tables when migrations are not used
"""

import logging
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession as SQLModelAsyncSession

from shortener.core.setting import settings
from shortener.db.sqlite_adapter import get_database_adapter

logger = logging.getLogger(__name__)

db_adapter = get_database_adapter(settings.DATABASE_URL)

engine = db_adapter.create_engine(
    settings.DATABASE_URL
)

async_session_maker = async_sessionmaker(
    engine,
    class_=SQLModelAsyncSession,
    expire_on_commit=False,  # Prevents SQLAlchemy from expiring objects after commit
    autoflush=False,
)


async def init_db() -> None:
    """Create any missing tables. Used when Alembic migrations are not run."""
    from shortener.db import models  # noqa: F401  (registers tables on the metadata)

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info(f"Database tables ensured ({db_adapter.dialect})")


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session; committed when the endpoint returns normally."""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
