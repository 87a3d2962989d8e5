"""Tests for DatabaseSessionManager — sessions, error mapping and readiness.

Tests cover:
    - Readiness check passes against a reachable database
    - Readiness check fails (no raise) when the ping exceeds its timeout
    - SQLAlchemy errors raised inside a session become DatabaseError with the
      failing operation, after rollback
    - init_db / close_db manage the process-wide manager
"""

import asyncio

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, OperationalError

import app.infrastructure.database as db_module
from app.core.errors import DatabaseError
from app.infrastructure.database import DatabaseSessionManager


@pytest.fixture
async def manager(tmp_path):
    # File-backed: an in-memory SQLite engine takes no pool sizing
    mgr = DatabaseSessionManager(f"sqlite+aiosqlite:///{tmp_path / 'okeyo.db'}")
    yield mgr
    await mgr.close()


async def test_health_check_passes(manager):
    assert await manager.health_check() is True


async def test_health_check_times_out(manager, monkeypatch):
    async def hanging_ping():
        await asyncio.sleep(1)

    monkeypatch.setattr(manager, "_ping", hanging_ping)
    manager.health_timeout_seconds = 0.01
    assert await manager.health_check() is False


@pytest.mark.parametrize("error, operation", [
    (IntegrityError("INSERT INTO bookings", {}, Exception("duplicate key")), "commit"),
    (OperationalError("SELECT 1", {}, Exception("server closed the connection")), "execute"),
])
async def test_session_errors_mapped(manager, error, operation):
    with pytest.raises(DatabaseError) as exc:
        async with manager.session() as db:
            await db.execute(text("SELECT 1"))
            raise error
    assert exc.value.operation == operation
    assert exc.value.http_status == 503


async def test_init_and_close_db(tmp_path, monkeypatch):
    monkeypatch.setattr(db_module, "db_manager", None)
    mgr = db_module.init_db(f"sqlite+aiosqlite:///{tmp_path / 'okeyo.db'}", pool_size=2)
    assert db_module.db_manager is mgr

    await db_module.close_db()
    assert db_module.db_manager is None
