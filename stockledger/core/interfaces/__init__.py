"""Core interfaces (ports) for dependency injection."""

from stockledger.core.interfaces.conversion_store import IConversionStore
from stockledger.core.interfaces.ledger_store import ILedgerStore
from stockledger.core.interfaces.projection_store import IProjectionStore
from stockledger.core.interfaces.summary_store import ISummaryStore
from stockledger.core.interfaces.transactions import IUnitOfWork

__all__ = [
    "ILedgerStore",
    "IConversionStore",
    "ISummaryStore",
    "IProjectionStore",
    "IUnitOfWork",
]
