"""
TeamClock - Database Connection
===============================

Async SQLAlchemy engine and sessions for the SQL storage backend.

Transactions are owned by SqlUnitOfWork: services call ``uow.commit()``
when an operation is complete. The session helpers here only hand out a
session and roll back whatever an operation left uncommitted.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from teamclock.core.config import settings


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


# ==========================================================================
# Engine Setup
# ==========================================================================

def configure_sqlite(engine: AsyncEngine) -> AsyncEngine:
    """
    Make a SQLite engine honour foreign keys and savepoints.

    The driver's implicit transaction handling is switched off and every
    transaction starts with an explicit BEGIN, so ``begin_nested()``
    (used when inserting companies) gets a real SAVEPOINT. Foreign keys
    are off by default in SQLite; without them the ``ondelete`` rules on
    users and projects never fire.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


def create_engine() -> AsyncEngine:
    """Create the async engine for settings.DATABASE_URL."""
    # SQLite doesn't support pool_size/max_overflow
    if settings.is_sqlite:
        return configure_sqlite(
            create_async_engine(
                str(settings.DATABASE_URL),
                echo=settings.DATABASE_ECHO,
                connect_args={"check_same_thread": False},
            )
        )
    return create_async_engine(
        str(settings.DATABASE_URL),
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        echo=settings.DATABASE_ECHO,
        pool_pre_ping=True,
    )


engine = create_engine()


# ==========================================================================
# Session Factory
# ==========================================================================

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


# ==========================================================================
# Session Dependencies
# ==========================================================================

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Request dependency that provides a database session.

    Routers wrap it in a SqlUnitOfWork (see ``api.deps.get_uow``); nothing
    is committed here. Work a request did not commit is discarded when
    the session closes.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Session for scripts, outside of a request.

    Usage:
        async with get_db_session() as db:
            await MembershipService(SqlUnitOfWork(db)).create_company(...)
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


# ==========================================================================
# Lifecycle
# ==========================================================================

async def init_db() -> None:
    """Create missing tables. Deployed databases are migrated with alembic."""
    async with engine.begin() as conn:
        from teamclock.core import models  # noqa: F401
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    await engine.dispose()
