from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
)

from leasedesk.core import get_settings


def _enable_sqlite_transactions(engine: AsyncEngine) -> None:
    """Let SQLAlchemy emit BEGIN itself so SAVEPOINTs behave on pysqlite/aiosqlite."""

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # disable the driver's own (lazy) BEGIN handling
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def build_engine(dsn: str, *, echo: bool = False, pool_size: int = 5) -> AsyncEngine:
    """Create the async engine for *dsn*."""
    if dsn.startswith("sqlite"):
        engine = create_async_engine(dsn, echo=echo)
        _enable_sqlite_transactions(engine)
        return engine

    return create_async_engine(
        dsn,
        echo=echo,
        pool_size=pool_size,
        pool_pre_ping=True  # Enable connection health checks
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


settings = get_settings()

engine = build_engine(
    settings.DB_DSN,
    echo=settings.DB_ECHO,
    pool_size=settings.DB_POOL_SIZE,
)

AsyncSessionFactory = build_session_factory(engine)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Dependency to get database session"""
    async with AsyncSessionFactory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
