"""
Movement ledger service.

Layer-pure service: depends only on core entities, interfaces and exceptions.

Front door for every movement-creating command. IN movements are appended as
new batches; OUT movements are issued through the FIFO engine so a batch's
remaining quantity is never bypassed. After each commit the touched items are
handed to the projection refresher.
"""

from collections.abc import Iterable

from stockledger.config import get_logger
from stockledger.core.clock import Clock, get_clock
from stockledger.core.entities.ledger import (
    ConsumptionContext,
    ConsumptionResult,
    EntryPage,
    EntryStatus,
    ItemKey,
    MovementEntry,
    MovementFilter,
    MovementType,
)
from stockledger.core.entities.summary import Period
from stockledger.core.exceptions import EntryNotFoundError, ValidationError
from stockledger.core.interfaces import ILedgerStore, IUnitOfWork
from stockledger.core.numeric import ZERO
from stockledger.core.services.fifo import FIFOConsumptionEngine
from stockledger.core.services.projection import ProjectionRefresher

logger = get_logger(__name__)


class LedgerService:
    """
    Append, issue, query and soft-delete ledger movements.

    Required interfaces for DI:
    - ILedgerStore: entry persistence
    - IUnitOfWork: atomic scope and after-commit hooks
    - FIFOConsumptionEngine: OUT movements
    - ProjectionRefresher: optional post-commit refresh
    """

    def __init__(
        self,
        ledger_store: ILedgerStore,
        unit_of_work: IUnitOfWork,
        fifo: FIFOConsumptionEngine,
        refresher: ProjectionRefresher | None = None,
        clock: Clock | None = None,
    ):
        self._store = ledger_store
        self._uow = unit_of_work
        self._fifo = fifo
        self._refresher = refresher
        self._clock = clock or get_clock()

    def validate(self, entry: MovementEntry) -> MovementEntry:
        """Check a movement before any write and resolve its effective date."""
        if not entry.sku or not entry.sku.strip():
            raise ValidationError("sku", "must not be empty", entry.sku)
        if entry.quantity <= ZERO:
            raise ValidationError("quantity", "must be greater than zero", entry.quantity)
        if entry.unit_cost < ZERO:
            raise ValidationError("unit_cost", "must not be negative", entry.unit_cost)
        if entry.fk_id is None or entry.fk_id <= 0:
            raise ValidationError("fk_id", "must be a positive id", entry.fk_id)
        if entry.effective_date is None:
            entry.effective_date = self._clock.today()
        return entry

    def schedule_refresh(self, keys: Iterable[ItemKey]) -> None:
        """Refresh projections for ``keys`` once the active unit commits."""
        if self._refresher is None:
            return
        keys = list(dict.fromkeys(keys))
        if keys:
            self._uow.on_commit(lambda: self._refresher.schedule(keys))

    def _log_backdated(self, entry: MovementEntry) -> None:
        if Period.of(entry.effective_date) < Period.of(self._clock.today()):
            logger.info(
                "backdated_entry_appended",
                entry_id=entry.id,
                sku=entry.sku,
                variant_id=entry.variant_id,
                effective_date=entry.effective_date.isoformat(),
            )

    async def append(self, entry: MovementEntry) -> MovementEntry:
        """Append one IN movement as a new batch."""
        self.validate(entry)
        if entry.movement_type != MovementType.IN:
            raise ValidationError(
                "movement_type", "OUT movements are issued through FIFO consumption", entry.movement_type
            )
        async with self._uow.unit_of_work():
            saved = await self._store.append(entry)
            self.schedule_refresh([saved.key])
        self._log_backdated(saved)
        logger.info(
            "movement_appended",
            entry_id=saved.id,
            key=str(saved.key),
            qty=str(saved.quantity),
            source=saved.source.value,
        )
        return saved

    async def append_batch(self, entries: list[MovementEntry]) -> list[MovementEntry]:
        """Append IN movements all-or-nothing."""
        if not entries:
            raise ValidationError("entries", "must not be empty")
        for entry in entries:
            self.validate(entry)
            if entry.movement_type != MovementType.IN:
                raise ValidationError(
                    "movement_type", "OUT movements are issued through FIFO consumption", entry.movement_type
                )
        async with self._uow.unit_of_work():
            saved = await self._store.append_many(entries)
            self.schedule_refresh(e.key for e in saved)
        for entry in saved:
            self._log_backdated(entry)
        logger.info("movements_appended", count=len(saved))
        return saved

    async def issue(self, entry: MovementEntry) -> ConsumptionResult:
        """Issue one OUT movement through FIFO, one OUT entry per batch touched."""
        self.validate(entry)
        context = ConsumptionContext(
            source=entry.source,
            effective_date=entry.effective_date,
            batch_number=entry.batch_number,
            notes=entry.notes,
            user=entry.created_by,
        )
        async with self._uow.unit_of_work():
            result = await self._fifo.consume(entry.key, entry.quantity, context)
            self.schedule_refresh([entry.key])
        for out_entry in result.out_entries:
            self._log_backdated(out_entry)
        return result

    async def record(self, entry: MovementEntry) -> list[MovementEntry]:
        """Record any movement; returns the entries written."""
        if entry.movement_type == MovementType.OUT:
            result = await self.issue(entry)
            return result.out_entries
        return [await self.append(entry)]

    async def record_many(self, entries: list[MovementEntry]) -> list[MovementEntry]:
        """Record movements in order inside one unit of work."""
        if not entries:
            raise ValidationError("entries", "must not be empty")
        for entry in entries:
            self.validate(entry)
        written: list[MovementEntry] = []
        async with self._uow.unit_of_work():
            for entry in entries:
                written.extend(await self.record(entry))
        logger.info("movements_recorded", requested=len(entries), written=len(written))
        return written

    async def query(
        self, filters: MovementFilter | None = None, limit: int = 50, offset: int = 0
    ) -> EntryPage:
        """Filtered, paginated ledger read."""
        if limit <= 0:
            raise ValidationError("limit", "must be positive", limit)
        if offset < 0:
            raise ValidationError("offset", "must not be negative", offset)
        return await self._store.query(filters or MovementFilter(), limit, offset)

    async def get(self, entry_id: int) -> MovementEntry:
        entry = await self._store.get(entry_id)
        if entry is None:
            raise EntryNotFoundError(entry_id)
        return entry

    async def delete(self, entry_id: int, deleted_by: str | None = None) -> MovementEntry:
        """Soft-delete an untouched IN batch."""
        async with self._uow.unit_of_work():
            entry = await self.get(entry_id)
            if not entry.is_untouched_batch or entry.status != EntryStatus.ACTIVE:
                raise ValidationError(
                    "entry_id",
                    "only unconsumed ACTIVE IN entries can be deleted",
                    entry_id,
                )
            deleted = await self._store.soft_delete(entry_id, deleted_by)
            self.schedule_refresh([deleted.key])
        return deleted
