"""Database Session Manager — async engine for the Supabase Postgres behind Okeyo.

Invariants:
    - One engine per process, created in the FastAPI lifespan and disposed on shutdown
    - A session that raises is rolled back before it is closed
    - Driver failures escaping a request surface as DatabaseError (core/errors.py),
      tagged with the operation that failed
    - The readiness check answers within health_timeout_seconds even when the
      pooler hangs

Design Decisions:
    - asyncpg through the Supabase pooler (pgbouncer, transaction mode):
      statement cache disabled, connections recycled before the pooler drops them
    - expire_on_commit=False: handlers keep reading rows after commit
    - Schema is owned by Supabase: no create_all or migrations at startup
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.exc import (
    IntegrityError, OperationalError, DBAPIError, SQLAlchemyError,
)
from sqlalchemy import text

from app.core.errors import DatabaseError

logger = logging.getLogger(__name__)

# Most specific first: IntegrityError and OperationalError are DBAPIErrors
_ERROR_OPERATIONS = (
    (IntegrityError, "Integrity constraint violated", "commit"),
    (OperationalError, "Connection or operational error", "execute"),
    (DBAPIError, "Database driver error", "query"),
    (SQLAlchemyError, "Database operation failed", "unknown"),
)


def _pooler_connect_args(database_url: str) -> dict:
    # pgbouncer in transaction mode cannot hold prepared statements
    return {"statement_cache_size": 0} if "+asyncpg" in database_url else {}


class DatabaseSessionManager:
    """Owns the engine and hands out request-scoped sessions."""

    def __init__(
        self,
        database_url: str,
        pool_size: int = 10,
        max_overflow: int = 5,
        health_timeout_seconds: float = 3.0,
    ):
        self.engine = create_async_engine(
            database_url,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=True,
            pool_recycle=1800,
            connect_args=_pooler_connect_args(database_url),
        )
        self._session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        self.health_timeout_seconds = health_timeout_seconds

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        session = self._session_factory()
        try:
            yield session
        except SQLAlchemyError as e:
            await session.rollback()
            message, operation = _describe(e)
            logger.error("%s: %s", message, e, extra={"error_code": "DATABASE_ERROR"})
            raise DatabaseError(message, operation) from e
        finally:
            await session.close()

    async def health_check(self) -> bool:
        """SELECT 1 against the pooler, bounded by health_timeout_seconds."""
        try:
            await asyncio.wait_for(self._ping(), timeout=self.health_timeout_seconds)
            return True
        except (DatabaseError, OSError, asyncio.TimeoutError) as e:
            logger.error("Database readiness check failed: %r", e)
            return False

    async def _ping(self) -> None:
        async with self.session() as db:
            await db.execute(text("SELECT 1"))

    async def close(self) -> None:
        await self.engine.dispose()


def _describe(e: SQLAlchemyError) -> tuple[str, str]:
    for cls, message, operation in _ERROR_OPERATIONS:
        if isinstance(e, cls):
            return message, operation
    return "Database operation failed", "unknown"


# Set by the lifespan; None until startup
db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs) -> DatabaseSessionManager:
    global db_manager
    db_manager = DatabaseSessionManager(database_url, **kwargs)
    return db_manager


async def close_db() -> None:
    global db_manager
    if db_manager is not None:
        await db_manager.close()
        db_manager = None


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request."""
    if not db_manager:
        raise RuntimeError("Database not initialized")
    async with db_manager.session() as session:
        yield session
