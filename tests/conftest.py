"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import date, datetime, timezone
from decimal import Decimal
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from stockledger.core.clock import FixedClock
from stockledger.core.entities import ItemType, MovementEntry, MovementSource, MovementType
from stockledger.core.services import (
    ConversionCoordinator,
    CurrentValueProjection,
    FIFOConsumptionEngine,
    LedgerService,
    ProjectionRefresher,
    SummaryReconciler,
)
from stockledger.infrastructure.storage.sqlite import (
    SQLiteConversionStore,
    SQLiteLedgerStore,
    SQLiteProjectionStore,
    SQLiteSummaryStore,
    SQLiteUnitOfWork,
)
from stockledger.infrastructure.storage.sqlite.migrations import initialize_database


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Create a temporary database path."""
    return tmp_path / "test.db"


@pytest.fixture
def mock_settings(temp_db_path: Path):
    """Mock settings with temp database path."""
    mock = MagicMock()
    mock.storage.db_path = temp_db_path
    mock.storage.pool_size = 2
    mock.storage.busy_timeout = 5000
    mock.ledger.conflict_retries = 1
    mock.ledger.conversion_prefix = "CONV"
    mock.ledger.production_prefix = "PROD"
    mock.summary.max_parallel = 4
    return mock


@pytest.fixture
async def ledger_db(temp_db_path: Path, mock_settings) -> AsyncGenerator[Path, None]:
    """Migrated temporary database with the global pool pointed at it."""
    import stockledger.infrastructure.storage.sqlite.connection as conn_module

    await initialize_database(temp_db_path, create_backup_before=False)

    conn_module._pool = None
    with patch.object(conn_module, "get_settings", return_value=mock_settings):
        try:
            yield temp_db_path
        finally:
            await conn_module.close_pool()


@pytest.fixture
def clock() -> FixedClock:
    """Business clock frozen at 2024-03-15."""
    return FixedClock(datetime(2024, 3, 15, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def uow() -> SQLiteUnitOfWork:
    return SQLiteUnitOfWork()


@pytest.fixture
def ledger_store(ledger_db) -> SQLiteLedgerStore:
    return SQLiteLedgerStore()


@pytest.fixture
def conversion_store(ledger_db) -> SQLiteConversionStore:
    return SQLiteConversionStore()


@pytest.fixture
def summary_store(ledger_db) -> SQLiteSummaryStore:
    return SQLiteSummaryStore()


@pytest.fixture
def projection_store(ledger_db) -> SQLiteProjectionStore:
    return SQLiteProjectionStore()


@pytest.fixture
def fifo(ledger_store, uow, clock) -> FIFOConsumptionEngine:
    return FIFOConsumptionEngine(ledger_store=ledger_store, unit_of_work=uow, clock=clock)


@pytest.fixture
def projection(ledger_store, projection_store, uow) -> CurrentValueProjection:
    return CurrentValueProjection(
        ledger_store=ledger_store, projection_store=projection_store, unit_of_work=uow
    )


@pytest.fixture
async def refresher(projection) -> AsyncGenerator[ProjectionRefresher, None]:
    refresher = ProjectionRefresher(projection)
    yield refresher
    await refresher.drain()


@pytest.fixture
def ledger_service(ledger_store, uow, fifo, refresher, clock) -> LedgerService:
    return LedgerService(
        ledger_store=ledger_store,
        unit_of_work=uow,
        fifo=fifo,
        refresher=refresher,
        clock=clock,
    )


@pytest.fixture
def coordinator(ledger_store, conversion_store, uow, fifo, refresher, clock) -> ConversionCoordinator:
    return ConversionCoordinator(
        ledger_store=ledger_store,
        conversion_store=conversion_store,
        unit_of_work=uow,
        fifo=fifo,
        refresher=refresher,
        clock=clock,
    )


@pytest.fixture
def reconciler(ledger_store, summary_store, uow, clock) -> SummaryReconciler:
    return SummaryReconciler(
        ledger_store=ledger_store,
        summary_store=summary_store,
        unit_of_work=uow,
        clock=clock,
        max_parallel=2,
    )


def build_entry(
    fk_id: int = 1,
    quantity: str | int = "100",
    unit_cost: str | int = "5",
    effective_date: date = date(2024, 1, 10),
    movement_type: MovementType = MovementType.IN,
    sku: str = "MAT-001",
    variant_id: str | None = None,
    item_type: ItemType = ItemType.MATERIAL,
    source: MovementSource = MovementSource.PURCHASE,
    **kwargs,
) -> MovementEntry:
    """Build a ledger entry draft."""
    return MovementEntry(
        item_type=item_type,
        fk_id=fk_id,
        sku=sku,
        variant_id=variant_id,
        quantity=Decimal(str(quantity)),
        unit_cost=Decimal(str(unit_cost)),
        movement_type=movement_type,
        source=source,
        effective_date=effective_date,
        **kwargs,
    )


@pytest.fixture
def receive(ledger_service) -> Callable[..., Awaitable[MovementEntry]]:
    """Append an IN batch through the ledger service."""

    async def _receive(**kwargs) -> MovementEntry:
        return await ledger_service.append(build_entry(**kwargs))

    return _receive


@pytest.fixture
def make_entry() -> Callable[..., MovementEntry]:
    """Factory for ledger entry drafts."""
    return build_entry
