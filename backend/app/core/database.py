from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker, AsyncEngine
from sqlalchemy.orm import declarative_base
from sqlalchemy import event, text
from fastapi import Request
from typing import AsyncGenerator, Optional, Any, Dict

from app.core.config import settings

# Create base class for models (can be defined before engine)
Base = declarative_base()


def get_database_url(db_url: Optional[str] = None) -> str:
    """Get properly formatted async database URL"""
    db_url = db_url or settings.DATABASE_URL
    if db_url.startswith("postgresql://"):
        db_url = db_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    elif db_url.startswith("sqlite:///"):
        db_url = db_url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return db_url


def _configure_sqlite_connection(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
    # The driver's implicit BEGIN breaks SAVEPOINT; transactions start in _begin_sqlite_transaction
    dbapi_connection.isolation_level = None


def _begin_sqlite_transaction(conn):
    conn.exec_driver_sql("BEGIN")


class Database:
    """
    Owns the engine and the session factory.

    Created once in the application lifespan, stored on ``app.state.database``
    and handed to request handlers through ``get_db``. Nothing opens
    connections at import time.

    Pool sizing comes from settings (DB_POOL_SIZE, DB_MAX_OVERFLOW,
    DB_POOL_TIMEOUT, DB_POOL_RECYCLE); a request that cannot get a connection
    within DB_POOL_TIMEOUT fails instead of queueing forever.
    """

    def __init__(self, url: Optional[str] = None, **engine_options: Any):
        self.url = get_database_url(url)
        self._engine_options = engine_options
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database is not connected")
        return self._engine

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    def connect(self) -> None:
        """Create the engine and session factory"""
        if self._engine is not None:
            return

        options: Dict[str, Any] = dict(self._engine_options)
        if self.url.startswith("sqlite"):
            options.setdefault("echo", settings.DB_ECHO)
        else:
            for key, value in settings.get_database_config().items():
                options.setdefault(key, value)

        self._engine = create_async_engine(self.url, **options)

        if self.url.startswith("sqlite"):
            event.listen(self._engine.sync_engine, "connect", _configure_sqlite_connection)
            event.listen(self._engine.sync_engine, "begin", _begin_sqlite_transaction)

        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False
        )

    def session(self) -> AsyncSession:
        """Open a new session; use as ``async with database.session() as db``"""
        if self._session_factory is None:
            raise RuntimeError("Database is not connected")
        return self._session_factory()

    async def create_all(self) -> None:
        """Create any missing tables"""
        # Import models so every table is registered on the metadata
        import app.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        import app.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def ping(self) -> bool:
        """Check that a connection can be checked out and used"""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True

    async def dispose(self) -> None:
        """Close every pooled connection"""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None


# Dependency to get DB session
async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Get database session from the application's Database handle.

    Services commit their own units of work; anything still pending when the
    handler returns is committed here, and an exception rolls it back.
    """
    database: Database = request.app.state.database
    async with database.session() as session:
        try:
            yield session
            if session.new or session.dirty or session.deleted:
                await session.commit()
        except Exception:
            await session.rollback()
            raise
