"""
Service factory functions for dependency injection.

Wires the SQLite infrastructure to the layer-pure core services. Use cases
import from here.

Clean Architecture: Application layer orchestrates DI, not core layer.
"""

from typing import TYPE_CHECKING

from stockledger.config import get_settings
from stockledger.core.clock import Clock, get_clock
from stockledger.core.services import (
    ConversionCoordinator,
    CurrentValueProjection,
    FIFOConsumptionEngine,
    LedgerService,
    ProjectionRefresher,
    SummaryReconciler,
)

if TYPE_CHECKING:
    from stockledger.core.interfaces import (
        IConversionStore,
        ILedgerStore,
        IProjectionStore,
        ISummaryStore,
        IUnitOfWork,
    )


# Singleton service instances
_projection: CurrentValueProjection | None = None
_refresher: ProjectionRefresher | None = None
_fifo: FIFOConsumptionEngine | None = None
_ledger_service: LedgerService | None = None
_coordinator: ConversionCoordinator | None = None
_reconciler: SummaryReconciler | None = None


async def _infrastructure() -> tuple:
    # Lazy import infrastructure to avoid circular imports
    from stockledger.infrastructure.storage.sqlite import (
        get_conversion_store,
        get_ledger_store,
        get_projection_store,
        get_summary_store,
        get_unit_of_work,
    )

    return (
        await get_ledger_store(),
        await get_conversion_store(),
        await get_summary_store(),
        await get_projection_store(),
        await get_unit_of_work(),
    )


async def get_current_value_projection(
    ledger_store: "ILedgerStore | None" = None,
    projection_store: "IProjectionStore | None" = None,
    unit_of_work: "IUnitOfWork | None" = None,
) -> CurrentValueProjection:
    """Get or create the CurrentValueProjection."""
    global _projection

    overridden = any(x is not None for x in (ledger_store, projection_store, unit_of_work))
    if _projection is not None and not overridden:
        return _projection

    ledger, _, _, projection, uow = await _infrastructure()
    service = CurrentValueProjection(
        ledger_store=ledger_store or ledger,
        projection_store=projection_store or projection,
        unit_of_work=unit_of_work or uow,
    )
    if not overridden:
        _projection = service
    return service


async def get_projection_refresher() -> ProjectionRefresher:
    """Get or create the process-wide ProjectionRefresher."""
    global _refresher
    if _refresher is None:
        _refresher = ProjectionRefresher(await get_current_value_projection())
    return _refresher


async def get_fifo_engine(clock: Clock | None = None) -> FIFOConsumptionEngine:
    """Get or create the FIFOConsumptionEngine."""
    global _fifo
    if _fifo is not None and clock is None:
        return _fifo

    ledger, _, _, _, uow = await _infrastructure()
    service = FIFOConsumptionEngine(
        ledger_store=ledger,
        unit_of_work=uow,
        clock=clock or get_clock(),
        conflict_retries=get_settings().ledger.conflict_retries,
    )
    if clock is None:
        _fifo = service
    return service


async def get_ledger_service(clock: Clock | None = None) -> LedgerService:
    """Get or create the LedgerService."""
    global _ledger_service
    if _ledger_service is not None and clock is None:
        return _ledger_service

    ledger, _, _, _, uow = await _infrastructure()
    service = LedgerService(
        ledger_store=ledger,
        unit_of_work=uow,
        fifo=await get_fifo_engine(clock),
        refresher=await get_projection_refresher(),
        clock=clock or get_clock(),
    )
    if clock is None:
        _ledger_service = service
    return service


async def get_conversion_coordinator(
    conversion_store: "IConversionStore | None" = None,
    clock: Clock | None = None,
) -> ConversionCoordinator:
    """Get or create the ConversionCoordinator."""
    global _coordinator
    overridden = conversion_store is not None or clock is not None
    if _coordinator is not None and not overridden:
        return _coordinator

    settings = get_settings()
    ledger, conversions, _, _, uow = await _infrastructure()
    service = ConversionCoordinator(
        ledger_store=ledger,
        conversion_store=conversion_store or conversions,
        unit_of_work=uow,
        fifo=await get_fifo_engine(clock),
        refresher=await get_projection_refresher(),
        clock=clock or get_clock(),
        conversion_prefix=settings.ledger.conversion_prefix,
        production_prefix=settings.ledger.production_prefix,
    )
    if not overridden:
        _coordinator = service
    return service


async def get_summary_reconciler(
    summary_store: "ISummaryStore | None" = None,
    clock: Clock | None = None,
) -> SummaryReconciler:
    """Get or create the SummaryReconciler."""
    global _reconciler
    overridden = summary_store is not None or clock is not None
    if _reconciler is not None and not overridden:
        return _reconciler

    ledger, _, summaries, _, uow = await _infrastructure()
    service = SummaryReconciler(
        ledger_store=ledger,
        summary_store=summary_store or summaries,
        unit_of_work=uow,
        clock=clock or get_clock(),
        max_parallel=get_settings().summary.max_parallel,
    )
    if not overridden:
        _reconciler = service
    return service


def reset_services() -> None:
    """
    Reset all singleton service instances.

    Useful for testing or when configuration changes.
    """
    global _projection, _refresher, _fifo, _ledger_service, _coordinator, _reconciler

    _projection = None
    _refresher = None
    _fifo = None
    _ledger_service = None
    _coordinator = None
    _reconciler = None


__all__ = [
    "get_current_value_projection",
    "get_projection_refresher",
    "get_fifo_engine",
    "get_ledger_service",
    "get_conversion_coordinator",
    "get_summary_reconciler",
    "reset_services",
]
