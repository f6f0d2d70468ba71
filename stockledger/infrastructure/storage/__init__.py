"""Storage infrastructure implementations."""

from stockledger.infrastructure.storage.sqlite import (
    SQLiteConversionStore,
    SQLiteLedgerStore,
    SQLiteProjectionStore,
    SQLiteSummaryStore,
    close_pool,
    get_connection,
    get_pool,
    get_transaction,
    unit_of_work,
)

__all__ = [
    # SQLite stores
    "SQLiteLedgerStore",
    "SQLiteConversionStore",
    "SQLiteSummaryStore",
    "SQLiteProjectionStore",
    # Connection pool
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
    "unit_of_work",
]
