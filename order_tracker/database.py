"""
Database Connection Module
Builds the SQLAlchemy async engine and session factory.

Nothing is created at import time: the API lifespan (or a test fixture)
builds the engine explicitly and hands it to whoever needs it.
"""

import logging

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)


# Base class for all our models
class Base(DeclarativeBase):
    pass


def build_engine(
    database_url: str,
    pool_size: int = 5,
    max_overflow: int = 10,
    echo: bool = False,
    **kwargs,
) -> AsyncEngine:
    """
    Create the async engine that owns the connection pool.

    SQLite drivers do not take pool sizing arguments, so those are only
    passed for server databases.
    """
    if not database_url.startswith("sqlite"):
        kwargs.setdefault("pool_size", pool_size)  # Connection pool size
        kwargs.setdefault("max_overflow", max_overflow)  # Extra connections when pool is full
        kwargs.setdefault("pool_pre_ping", True)

    return create_async_engine(database_url, echo=echo, **kwargs)


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to `engine`."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False  # Objects remain accessible after commit
    )


async def init_db(engine: AsyncEngine) -> None:
    """
    Create all tables in database.
    Called once at application startup.
    """
    # Models must be registered on Base.metadata before create_all
    from order_tracker import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created successfully")
