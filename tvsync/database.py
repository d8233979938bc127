import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy import event

from tvsync.config import settings
from tvsync.models import Base

logger = logging.getLogger(__name__)

# Engine and session factory - initialized in init_db() during startup
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


async def get_db() -> AsyncIterator[AsyncSession]:
    """Database dependency for FastAPI"""
    session_factory = get_session_factory()

    async with session_factory() as session:
        yield session


def _create_session_factory(engine):
    """Create async session factory from engine"""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
        autocommit=False,
    )


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get the session factory (initialized in init_db)"""
    global _session_factory
    if _session_factory is None:
        raise RuntimeError("Database not initialized. Call init_db() during startup.")
    return _session_factory


async def init_db(database_path: str | None = None) -> None:
    """Initialize database schema and engine"""
    global _engine, _session_factory

    database_path = database_path or settings.database_path
    logger.info(f"Initializing database at {database_path}")

    # Create engine
    _engine = create_async_engine(
        f"sqlite+aiosqlite:///{database_path}",
        echo=False,
        future=True,
        pool_pre_ping=True,
        connect_args={"timeout": 30, "check_same_thread": False},
    )

    def configure_sqlite(dbapi_conn, _):
        """Configure SQLite connection parameters"""
        cursor = dbapi_conn.cursor()
        cursor.execute(f"PRAGMA journal_mode = {settings.sqlite_journal_mode}")
        cursor.execute(f"PRAGMA cache_size = -{settings.sqlite_cache_size_kb}")
        cursor.execute("PRAGMA foreign_keys = ON")
        cursor.close()

    event.listen(_engine.sync_engine, "connect", configure_sqlite)

    # Create all tables
    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    _session_factory = _create_session_factory(_engine)

    logger.info("Database initialized successfully")


async def close_db() -> None:
    """Close database connections on shutdown"""
    global _engine, _session_factory
    if _engine:
        await _engine.dispose()
        logger.info("Database connections closed")
    _engine = None
    _session_factory = None


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """
    Provide an async session wrapped in `session.begin()` for automatic commit/rollback.
    """
    session_factory = get_session_factory()

    async with session_factory() as session:
        async with session.begin():
            yield session
