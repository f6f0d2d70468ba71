"""Tests for the SQLite connection pool and unit of work."""

import asyncio
from pathlib import Path

import aiosqlite
import pytest

from stockledger.core.exceptions import PersistenceError
from stockledger.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    SQLiteUnitOfWork,
    get_connection,
    get_pool,
    in_unit_of_work,
    on_commit,
    savepoint,
    unit_of_work,
)


async def _count(table: str = "conversion_templates") -> int:
    async with get_connection() as conn:
        cursor = await conn.execute(f"SELECT COUNT(*) FROM {table}")
        return (await cursor.fetchone())[0]


async def _insert_template(conn: aiosqlite.Connection, name: str) -> None:
    await conn.execute(
        """
        INSERT INTO conversion_templates (name, inputs_json, outputs_json, status, created_at, updated_at)
        VALUES (?, '[]', '[]', 'ACTIVE', datetime('now'), datetime('now'))
        """,
        (name,),
    )


class TestConnectionPoolInit:
    """Tests for ConnectionPool initialization."""

    def test_init_defaults(self, temp_db_path: Path):
        """Default pool size and busy timeout."""
        pool = ConnectionPool(temp_db_path)
        assert pool.db_path == temp_db_path
        assert pool.pool_size == 5
        assert pool.busy_timeout == 30000
        assert pool._initialized is False

    async def test_initialize_creates_connections(self, tmp_path: Path):
        """Initialize creates the directory and pool_size connections."""
        db_path = tmp_path / "nested" / "test.db"
        pool = ConnectionPool(db_path, pool_size=3)
        await pool.initialize()
        try:
            assert db_path.parent.exists()
            assert len(pool._connections) == 3
            assert pool._pool.qsize() == 3
        finally:
            await pool.close()
        assert pool._initialized is False

    async def test_acquire_returns_connection_to_pool(self, temp_db_path: Path):
        """Acquired connections go back to the queue."""
        pool = ConnectionPool(temp_db_path, pool_size=1)
        try:
            async with pool.acquire() as conn:
                assert pool._pool.qsize() == 0
                cursor = await conn.execute("SELECT 1")
                assert (await cursor.fetchone())[0] == 1
            assert pool._pool.qsize() == 1
        finally:
            await pool.close()


class TestUnitOfWork:
    """Tests for the task-scoped unit of work."""

    async def test_commit(self, ledger_db):
        """Writes are visible after the unit commits."""
        async with unit_of_work() as conn:
            await _insert_template(conn, "Cut sheet")
        assert await _count() == 1

    async def test_rollback_on_error(self, ledger_db):
        """An exception rolls back every write of the unit."""
        with pytest.raises(RuntimeError):
            async with unit_of_work() as conn:
                await _insert_template(conn, "Cut sheet")
                raise RuntimeError("boom")
        assert await _count() == 0

    async def test_nested_units_join(self, ledger_db):
        """A nested unit shares the outer connection; the outer failure undoes both."""
        with pytest.raises(RuntimeError):
            async with unit_of_work() as outer:
                async with unit_of_work() as inner:
                    assert inner is outer
                    await _insert_template(inner, "Inner")
                raise RuntimeError("boom")
        assert await _count() == 0

    async def test_in_unit_of_work(self, ledger_db):
        assert not in_unit_of_work()
        async with unit_of_work():
            assert in_unit_of_work()
        assert not in_unit_of_work()

    async def test_reads_inside_unit_see_uncommitted_writes(self, ledger_db):
        async with unit_of_work() as conn:
            await _insert_template(conn, "Visible")
            assert await _count() == 1

    async def test_sqlite_error_becomes_persistence_error(self, ledger_db):
        """Driver errors surface as PersistenceError."""
        with pytest.raises(PersistenceError):
            async with unit_of_work() as conn:
                await conn.execute("INSERT INTO no_such_table VALUES (1)")

    async def test_units_in_separate_tasks_are_isolated(self, ledger_db):
        """Concurrent tasks each open their own unit."""

        async def write(name: str) -> None:
            async with unit_of_work() as conn:
                await _insert_template(conn, name)
                await asyncio.sleep(0)

        await asyncio.gather(write("A"), write("B"))
        assert await _count() == 2


class TestOnCommit:
    """Tests for after-commit hooks."""

    async def test_hook_runs_after_commit(self, ledger_db):
        calls = []
        async with unit_of_work():
            on_commit(lambda: calls.append("done"))
            assert calls == []
        assert calls == ["done"]

    async def test_hook_discarded_on_rollback(self, ledger_db):
        calls = []
        with pytest.raises(RuntimeError):
            async with unit_of_work():
                on_commit(lambda: calls.append("done"))
                raise RuntimeError("boom")
        assert calls == []

    async def test_hook_outside_unit_runs_immediately(self, ledger_db):
        calls = []
        on_commit(lambda: calls.append("now"))
        assert calls == ["now"]

    async def test_failing_hook_does_not_raise(self, ledger_db):
        """A failing hook is logged; the commit stands."""

        def broken() -> None:
            raise ValueError("hook failed")

        async with unit_of_work() as conn:
            await _insert_template(conn, "Kept")
            on_commit(broken)
        assert await _count() == 1

    async def test_nested_hooks_wait_for_outer_commit(self, ledger_db):
        calls = []
        async with unit_of_work():
            async with unit_of_work():
                on_commit(lambda: calls.append("inner"))
            assert calls == []
        assert calls == ["inner"]


class TestSavepoint:
    """Tests for savepoints inside a unit of work."""

    async def test_savepoint_rollback_keeps_outer_writes(self, ledger_db):
        async with unit_of_work() as conn:
            await _insert_template(conn, "Outer")
            with pytest.raises(RuntimeError):
                async with savepoint("step") as sp_conn:
                    await _insert_template(sp_conn, "Step")
                    raise RuntimeError("step failed")
        assert await _count() == 1

    async def test_savepoint_release(self, ledger_db):
        async with unit_of_work():
            async with savepoint("step") as conn:
                await _insert_template(conn, "Step")
        assert await _count() == 1


class TestSQLiteUnitOfWork:
    async def test_delegates_to_module_functions(self, ledger_db):
        uow = SQLiteUnitOfWork()
        calls = []
        async with uow.unit_of_work() as conn:
            async with uow.savepoint("s1"):
                await _insert_template(conn, "Via adapter")
            uow.on_commit(lambda: calls.append(1))
        assert calls == [1]
        assert await _count() == 1

    async def test_global_pool_uses_settings(self, ledger_db):
        pool = await get_pool()
        assert pool.db_path == ledger_db
        assert pool.pool_size == 2
