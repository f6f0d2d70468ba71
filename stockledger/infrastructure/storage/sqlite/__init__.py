"""SQLite storage implementations."""

from stockledger.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    SQLiteUnitOfWork,
    close_pool,
    get_connection,
    get_pool,
    get_transaction,
    on_commit,
    savepoint,
    unit_of_work,
)
from stockledger.infrastructure.storage.sqlite.conversion_store import SQLiteConversionStore
from stockledger.infrastructure.storage.sqlite.ledger_store import SQLiteLedgerStore
from stockledger.infrastructure.storage.sqlite.projection_store import SQLiteProjectionStore
from stockledger.infrastructure.storage.sqlite.summary_store import SQLiteSummaryStore

# Singleton instances
_ledger_store: SQLiteLedgerStore | None = None
_conversion_store: SQLiteConversionStore | None = None
_summary_store: SQLiteSummaryStore | None = None
_projection_store: SQLiteProjectionStore | None = None
_unit_of_work: SQLiteUnitOfWork | None = None


async def get_ledger_store() -> SQLiteLedgerStore:
    """Get singleton ledger store instance."""
    global _ledger_store
    if _ledger_store is None:
        _ledger_store = SQLiteLedgerStore()
    return _ledger_store


async def get_conversion_store() -> SQLiteConversionStore:
    """Get singleton conversion store instance."""
    global _conversion_store
    if _conversion_store is None:
        _conversion_store = SQLiteConversionStore()
    return _conversion_store


async def get_summary_store() -> SQLiteSummaryStore:
    """Get singleton summary store instance."""
    global _summary_store
    if _summary_store is None:
        _summary_store = SQLiteSummaryStore()
    return _summary_store


async def get_projection_store() -> SQLiteProjectionStore:
    """Get singleton projection store instance."""
    global _projection_store
    if _projection_store is None:
        _projection_store = SQLiteProjectionStore()
    return _projection_store


async def get_unit_of_work() -> SQLiteUnitOfWork:
    """Get singleton unit-of-work manager."""
    global _unit_of_work
    if _unit_of_work is None:
        _unit_of_work = SQLiteUnitOfWork()
    return _unit_of_work


__all__ = [
    # Connection
    "ConnectionPool",
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
    "unit_of_work",
    "savepoint",
    "on_commit",
    "SQLiteUnitOfWork",
    # Store classes
    "SQLiteLedgerStore",
    "SQLiteConversionStore",
    "SQLiteSummaryStore",
    "SQLiteProjectionStore",
    # Factory functions
    "get_ledger_store",
    "get_conversion_store",
    "get_summary_store",
    "get_projection_store",
    "get_unit_of_work",
]
