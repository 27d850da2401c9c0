"""
Database connection and session management.

Sets up async SQLAlchemy engine with connection pooling for PostgreSQL
(SQLite via aiosqlite is accepted for local development and tests).
"""

from typing import AsyncIterator

from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy import text
from config import settings

# Shared Base class for all models
Base = declarative_base()


def _engine_options(database_url: str) -> dict:
    """Pool and driver options for the given database URL."""
    if database_url.startswith("sqlite"):
        # SQLite picks its own pool; asyncpg timeouts don't apply
        return {"echo": settings.log_level == "debug"}

    return {
        "echo": settings.log_level == "debug",  # Log SQL queries in debug mode
        "pool_size": 5,
        "max_overflow": 10,  # +10 overflow connections
        "pool_timeout": 30,  # 30s wait for connection
        "pool_recycle": 300,  # Recycle connections after 5 mins
        "pool_pre_ping": True,  # Verify connection health before use
        "connect_args": {
            "timeout": 10,  # Connection timeout 10s
            "command_timeout": 10,  # Query timeout 10s
        },
    }


def build_engine(database_url: str) -> AsyncEngine:
    """Create an async engine configured for the given URL."""
    return create_async_engine(database_url, **_engine_options(database_url))


def build_sessionmaker(bind: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


engine = build_engine(settings.database_url)

# Create async session maker
AsyncSessionLocal = build_sessionmaker(engine)


async def get_db() -> AsyncIterator[AsyncSession]:
    """
    Dependency for FastAPI routes to get database session.

    Yields:
        AsyncSession: Database session
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def create_tables(bind: AsyncEngine = engine) -> None:
    """Create all tables known to the metadata (no-op for existing ones)."""
    # Import models so they register with Base.metadata
    import models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def init_db():
    """
    Initialize database connection.

    Called at application startup to verify database connectivity and,
    when enabled, create the schema.
    """
    async with engine.connect() as conn:
        # Test connection (no transaction needed for health check)
        await conn.execute(text("SELECT 1"))

    if settings.create_tables:
        await create_tables()


async def close_db():
    """
    Close database connection.

    Called at application shutdown to cleanup resources.
    """
    await engine.dispose()
