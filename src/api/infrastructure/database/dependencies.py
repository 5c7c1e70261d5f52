"""Database dependency injection for FastAPI.

Provides the async engine, a per-request session with transaction
management, and the persistence gateway selected by
``Settings.storage_backend``.
"""

from __future__ import annotations

import threading
from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from infrastructure.database.engines import create_session_factory, create_write_engine
from infrastructure.database.models import Base
from infrastructure.observability import DefaultDatabaseProbe
from infrastructure.persistence import SqlAlchemyPersistenceGateway
from infrastructure.settings import DatabaseSettings, get_database_settings
from shared_kernel.exceptions import DownstreamError
from shared_kernel.persistence import PersistenceGateway

# Module-level probe for observability
_probe = DefaultDatabaseProbe()

# Module-level engine instance (created on first use)
_write_engine: AsyncEngine | None = None

# Module-level sessionmaker instance (created with the engine)
_write_sessionmaker: async_sessionmaker[AsyncSession] | None = None

# Settings the engine is built from; falls back to the environment
_database_settings: DatabaseSettings | None = None

# Thread lock for safe engine initialization
_engine_lock = threading.Lock()


def configure_database(settings: DatabaseSettings) -> None:
    """Set the settings used when the engine is first created."""
    global _database_settings
    _database_settings = settings


def get_write_engine() -> AsyncEngine:
    """Get the database engine (singleton).

    Creates engine on first call and caches for subsequent calls.
    Uses double-check locking for thread-safe initialization.
    Also creates and caches the sessionmaker for efficient session creation.

    Returns:
        Configured async engine
    """
    global _write_engine, _write_sessionmaker
    if _write_engine is None:
        with _engine_lock:
            # Double-check after acquiring lock
            if _write_engine is None:
                settings = _database_settings or get_database_settings()
                _write_engine = create_write_engine(settings)
                _write_sessionmaker = create_session_factory(_write_engine)
                _probe.engine_created(
                    connection_string=settings.connection_string,
                    pool_size=settings.pool_max_connections,
                )
    return _write_engine


async def create_schema() -> None:
    """Create missing tables for every registered model.

    Development convenience enabled by ``CLINIC_DB_CREATE_SCHEMA``; it never
    alters existing tables.
    """
    engine = get_write_engine()
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)
    _probe.schema_created(tables=sorted(Base.metadata.tables))


def _uses_database(request: Request) -> bool:
    return request.app.state.settings.storage_backend == "postgres"


async def get_write_session(
    request: Request,
) -> AsyncGenerator[AsyncSession | None, None]:
    """Provide the request's session inside a transaction (FastAPI dependency).

    The transaction commits when the request's dependencies are torn down
    and rolls back if the request raised. Yields None when the application
    runs on in-memory storage, so no engine is created.

    FastAPI caches the result per request; every dependency sharing it
    works in the same transaction.

    Yields:
        AsyncSession with an open transaction, or None

    Raises:
        DownstreamError: If the database fails to open or commit the
            transaction.
    """
    if not _uses_database(request):
        yield None
        return

    # Ensure engine and sessionmaker are initialized
    get_write_engine()
    assert _write_sessionmaker is not None

    try:
        async with _write_sessionmaker() as session:
            async with session.begin():
                yield session
    except (SQLAlchemyError, OSError) as e:
        _probe.storage_operation_failed(
            operation="commit", entity="transaction", error=e
        )
        raise DownstreamError(
            f"Failed to commit transaction: {e}", operation="commit"
        ) from e


async def get_persistence_gateway(
    request: Request,
    session: AsyncSession | None = Depends(get_write_session),
) -> PersistenceGateway:
    """Provide the persistence gateway for the configured storage backend."""
    if session is None:
        return request.app.state.memory_gateway
    return SqlAlchemyPersistenceGateway(session=session)


async def close_database_connections() -> None:
    """Close all database engine connections.

    Should be called on application shutdown to properly cleanup connections.
    Also resets the sessionmaker to allow reinitialization.
    """
    global _write_engine, _write_sessionmaker

    if _write_engine is not None:
        await _write_engine.dispose()
        _probe.engine_disposed()
        _write_engine = None
        _write_sessionmaker = None


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """Provide a session in a transaction outside of a request (startup tasks)."""
    get_write_engine()
    assert _write_sessionmaker is not None

    async with _write_sessionmaker() as session:
        async with session.begin():
            yield session
