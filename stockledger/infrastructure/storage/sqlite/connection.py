"""
Async SQLite connection pool with aiosqlite.

Connections run in autocommit mode; writes go through ``unit_of_work()``,
which opens ``BEGIN IMMEDIATE`` so the database write lock is held from the
first read of a read-modify-write sequence until commit. The active
connection is tracked in a ContextVar: store calls made inside a unit of work
reuse its connection, and nested units join the outermost one.
"""

import asyncio
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from pathlib import Path

import aiosqlite

from stockledger.config import get_logger, get_settings
from stockledger.core.exceptions import PersistenceError
from stockledger.core.interfaces.transactions import IUnitOfWork

logger = get_logger(__name__)


@dataclass
class _ActiveUnit:
    """State of the unit of work bound to the current task."""

    conn: aiosqlite.Connection
    hooks: list[Callable[[], None]] = field(default_factory=list)
    depth: int = 0


_active_unit: ContextVar[_ActiveUnit | None] = ContextVar("stockledger_active_unit", default=None)


class ConnectionPool:
    """
    Async SQLite connection pool.

    Manages a pool of connections with configurable size.
    """

    def __init__(
        self,
        db_path: Path,
        pool_size: int = 5,
        busy_timeout: int = 30000,
    ):
        self.db_path = db_path
        self.pool_size = pool_size
        self.busy_timeout = busy_timeout

        self._pool: asyncio.Queue[aiosqlite.Connection] = asyncio.Queue(maxsize=pool_size)
        self._connections: list[aiosqlite.Connection] = []
        self._initialized = False
        self._lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Initialize the connection pool."""
        async with self._lock:
            if self._initialized:
                return

            self.db_path.parent.mkdir(parents=True, exist_ok=True)

            for _ in range(self.pool_size):
                conn = await self._create_connection()
                self._connections.append(conn)
                await self._pool.put(conn)

            self._initialized = True
            logger.info(
                "connection_pool_initialized",
                db_path=str(self.db_path),
                pool_size=self.pool_size,
            )

    async def _create_connection(self) -> aiosqlite.Connection:
        """Create a new autocommit connection with optimized settings."""
        conn = await aiosqlite.connect(self.db_path, isolation_level=None)

        # WAL lets readers proceed while a unit of work holds the write lock
        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute("PRAGMA synchronous=NORMAL")
        await conn.execute(f"PRAGMA busy_timeout={self.busy_timeout}")
        await conn.execute("PRAGMA foreign_keys=ON")

        conn.row_factory = aiosqlite.Row

        return conn

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Acquire a connection from the pool.

        Usage:
            async with pool.acquire() as conn:
                await conn.execute(...)
        """
        if not self._initialized:
            await self.initialize()

        conn = await self._pool.get()
        try:
            yield conn
        finally:
            await self._pool.put(conn)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Acquire a connection inside ``BEGIN IMMEDIATE``.

        Commits on success, rolls back on any exception (cancellation
        included).
        """
        async with self.acquire() as conn:
            await conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                await conn.execute("ROLLBACK")
                raise
            await conn.execute("COMMIT")

    async def close(self) -> None:
        """Close all connections in the pool."""
        async with self._lock:
            for conn in self._connections:
                await conn.close()
            self._connections.clear()
            self._initialized = False
            logger.info("connection_pool_closed")


# Global connection pool
_pool: ConnectionPool | None = None


async def get_pool() -> ConnectionPool:
    """Get or create the global connection pool."""
    global _pool
    if _pool is None:
        settings = get_settings()
        _pool = ConnectionPool(
            db_path=settings.storage.db_path,
            pool_size=settings.storage.pool_size,
            busy_timeout=settings.storage.busy_timeout,
        )
        await _pool.initialize()
    return _pool


async def close_pool() -> None:
    """Close the global connection pool."""
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None


def _run_hooks(hooks: list[Callable[[], None]]) -> None:
    for hook in hooks:
        try:
            hook()
        except Exception as e:
            logger.error("after_commit_hook_failed", hook=repr(hook), error=str(e), exc_info=True)


@asynccontextmanager
async def unit_of_work() -> AsyncIterator[aiosqlite.Connection]:
    """
    Open a write transaction, or join the one already active in this task.

    Only the outermost unit commits. Any exception rolls back every write made
    in the unit and discards its after-commit hooks; sqlite errors surface as
    PersistenceError.
    """
    active = _active_unit.get()
    if active is not None:
        active.depth += 1
        try:
            yield active.conn
        finally:
            active.depth -= 1
        return

    pool = await get_pool()
    try:
        async with pool.transaction() as conn:
            unit = _ActiveUnit(conn=conn)
            token = _active_unit.set(unit)
            try:
                yield conn
            finally:
                _active_unit.reset(token)
    except aiosqlite.Error as e:
        logger.error("unit_of_work_rolled_back", error=str(e))
        raise PersistenceError("unit_of_work", str(e)) from e

    _run_hooks(unit.hooks)


@asynccontextmanager
async def savepoint(name: str) -> AsyncIterator[aiosqlite.Connection]:
    """
    Open a savepoint inside the current unit of work (opening one if needed).

    On exception the savepoint is rolled back and the exception re-raised, so
    the enclosing unit may retry the step.
    """
    async with unit_of_work() as conn:
        await conn.execute(f"SAVEPOINT {name}")
        try:
            yield conn
        except BaseException:
            await conn.execute(f"ROLLBACK TO SAVEPOINT {name}")
            await conn.execute(f"RELEASE SAVEPOINT {name}")
            raise
        await conn.execute(f"RELEASE SAVEPOINT {name}")


def on_commit(callback: Callable[[], None]) -> None:
    """
    Register a callback for after the outermost commit.

    Outside a unit of work the callback runs immediately.
    """
    active = _active_unit.get()
    if active is None:
        _run_hooks([callback])
    else:
        active.hooks.append(callback)


def in_unit_of_work() -> bool:
    return _active_unit.get() is not None


@asynccontextmanager
async def get_connection() -> AsyncIterator[aiosqlite.Connection]:
    """
    Get a connection for reads.

    Inside a unit of work this is the unit's connection, so reads see the
    unit's uncommitted writes.
    """
    active = _active_unit.get()
    if active is not None:
        yield active.conn
        return

    pool = await get_pool()
    async with pool.acquire() as conn:
        yield conn


@asynccontextmanager
async def get_transaction() -> AsyncIterator[aiosqlite.Connection]:
    """
    Get a connection with transaction context.

    Convenience wrapper that joins or opens a unit of work.
    """
    async with unit_of_work() as conn:
        yield conn


class SQLiteUnitOfWork(IUnitOfWork):
    """IUnitOfWork backed by the global connection pool."""

    def unit_of_work(self):
        return unit_of_work()

    def savepoint(self, name: str):
        return savepoint(name)

    def on_commit(self, callback: Callable[[], None]) -> None:
        on_commit(callback)
