"""
Blog API — Database Engine and Session Management
===================================================

What:  Process-scoped async SQLAlchemy engine, session factory, and the
       FastAPI dependency that hands each request its own session.
Why:   The connection pool is shared by every in-flight request, so it is
       created once at startup, disposed once at shutdown, and injected
       through `app.state` rather than built at import time.
How:   `Database` owns the engine. The lifespan handler in main.py calls
       `connect()` / `dispose()`; `get_db_session()` reads the instance from
       the running application.

Connection Pooling (server databases):
    pool_size=20, max_overflow=10 → at most 30 connections.
    pool_pre_ping catches connections killed by a database restart.
    pool_recycle=3600 retires long-lived connections.

SQLite (tests):
    In-memory URLs use a StaticPool so every session shares the single
    connection that holds the schema.
"""

from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import Request
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from app.config import settings


class Base(DeclarativeBase):
    """Base class for all ORM models; Alembic reads its metadata."""
    pass


class Database:
    """
    Owns the async engine and session factory for one process.

    Usage:
        database = Database()
        database.connect()
        async with database.session() as session:
            ...
        await database.dispose()
    """

    def __init__(self, url: Optional[str] = None):
        self.url = url or settings.database_url
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    def _engine_options(self) -> Dict[str, Any]:
        url = make_url(self.url)
        options: Dict[str, Any] = {"echo": settings.log_level == "DEBUG"}

        if url.get_backend_name() == "sqlite":
            if url.database in (None, "", ":memory:"):
                options["poolclass"] = StaticPool
                options["connect_args"] = {"check_same_thread": False}
            return options

        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
        return options

    def connect(self) -> None:
        if self.engine is not None:
            return
        self.engine = create_async_engine(self.url, **self._engine_options())
        # expire_on_commit=False: attributes stay readable after the
        # dependency commits at the end of the request
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @property
    def is_connected(self) -> bool:
        return self.engine is not None

    async def create_all(self) -> None:
        """Creates every table from model metadata (tests and local dev only)."""
        # Registers the models with Base.metadata
        import app.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Closes all pooled connections; safe to call when never connected."""
        if self.engine is not None:
            await self.engine.dispose()
        self.engine = None
        self.session_factory = None


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency providing one session per request.

    Commits when the handler returns normally, rolls back when it raises, and
    always returns the connection to the pool. Services flush; only this
    dependency commits.
    """
    database: Database = request.app.state.database
    async with database.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
