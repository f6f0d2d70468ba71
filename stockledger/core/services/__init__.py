"""Core services - layer-pure ledger engines."""

from stockledger.core.services.conversion import ConversionCoordinator, ProductionResult
from stockledger.core.services.fifo import FIFOConsumptionEngine
from stockledger.core.services.ledger_service import LedgerService
from stockledger.core.services.projection import (
    CurrentValueProjection,
    ProjectionRefresher,
    compute_current_value,
)
from stockledger.core.services.summary import SummaryReconciler

__all__ = [
    "FIFOConsumptionEngine",
    "LedgerService",
    "ConversionCoordinator",
    "ProductionResult",
    "SummaryReconciler",
    "CurrentValueProjection",
    "ProjectionRefresher",
    "compute_current_value",
]
