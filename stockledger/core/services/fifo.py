"""
FIFO consumption engine.

Layer-pure service: depends only on core entities, interfaces and exceptions.

Consumes a required quantity of one item from its ACTIVE IN batches, oldest
effective date first (entry id breaks ties), writing one OUT entry per batch
touched at that batch's own unit cost. The whole step runs in a savepoint of
the caller's unit of work, so a shortage or a version conflict leaves every
batch untouched; conflicts are retried a bounded number of times.
"""

from decimal import Decimal
from typing import Any

from tenacity import RetryCallState, retry, retry_if_exception_type, stop_after_attempt

from stockledger.config import get_logger
from stockledger.core.clock import Clock, get_clock
from stockledger.core.entities.ledger import (
    Allocation,
    ConsumptionContext,
    ConsumptionResult,
    ItemKey,
    MovementEntry,
    MovementType,
)
from stockledger.core.exceptions import (
    ConcurrencyConflictError,
    InsufficientStockError,
    ValidationError,
)
from stockledger.core.interfaces import ILedgerStore, IUnitOfWork
from stockledger.core.numeric import ZERO, qty

logger = get_logger(__name__)


def _out_notes(notes: str | None, batch_id: int) -> str:
    """OUT entry notes; the source batch is always recorded."""
    source = f"FIFO from batch #{batch_id}"
    return f"{notes} ({source})" if notes else source


class FIFOConsumptionEngine:
    """
    Oldest-batch-first consumption with per-batch cost tracking.

    Required interfaces for DI:
    - ILedgerStore: batch scan, guarded decrement and OUT entry append
    - IUnitOfWork: savepoint around each consumption attempt
    """

    def __init__(
        self,
        ledger_store: ILedgerStore,
        unit_of_work: IUnitOfWork,
        clock: Clock | None = None,
        conflict_retries: int = 1,
    ):
        self._store = ledger_store
        self._uow = unit_of_work
        self._clock = clock or get_clock()
        self._conflict_retries = conflict_retries

    async def available(self, key: ItemKey) -> Decimal:
        """Canonical availability: remaining quantity over ACTIVE IN batches."""
        return await self._store.available_quantity(key)

    def _get_retry_decorator(self) -> Any:
        """Retry the whole consumption step after a version conflict."""
        return retry(
            stop=stop_after_attempt(1 + max(self._conflict_retries, 0)),
            retry=retry_if_exception_type(ConcurrencyConflictError),
            before_sleep=self._log_retry,
            reraise=True,
        )

    @staticmethod
    def _log_retry(retry_state: RetryCallState) -> None:
        logger.warning(
            "fifo_conflict_retry",
            attempt=retry_state.attempt_number,
            error=str(retry_state.outcome.exception()) if retry_state.outcome else None,
        )

    async def consume(
        self,
        key: ItemKey,
        required: Decimal,
        context: ConsumptionContext,
    ) -> ConsumptionResult:
        """
        Consume ``required`` units of ``key`` oldest batch first.

        Raises:
            ValidationError: required is not positive
            InsufficientStockError: ACTIVE batches hold less than required
            ConcurrencyConflictError: a batch kept changing under every attempt
        """
        required = qty(required)
        if required <= ZERO:
            raise ValidationError("quantity", "must be greater than zero", required)

        consume_step = self._get_retry_decorator()(self._consume_once)
        result = await consume_step(key, required, context)

        logger.info(
            "fifo_consumed",
            key=str(key),
            required=str(required),
            batches=len(result.allocations),
            total_cost=str(result.total_cost),
            batch_number=context.batch_number,
        )
        return result

    async def _consume_once(
        self,
        key: ItemKey,
        required: Decimal,
        context: ConsumptionContext,
    ) -> ConsumptionResult:
        async with self._uow.savepoint("fifo_consume"):
            batches = await self._store.list_active_batches(key)
            available = sum((b.remaining_qty for b in batches), ZERO)
            if available < required:
                label = batches[0].sku if batches else str(key)
                logger.info(
                    "fifo_insufficient_stock",
                    key=str(key),
                    required=str(required),
                    available=str(available),
                )
                raise InsufficientStockError(label, required, available)

            effective_date = context.effective_date or self._clock.today()
            result = ConsumptionResult(key=key, required=required)
            needed = required

            for batch in batches:
                if needed <= ZERO:
                    break
                take = min(batch.remaining_qty, needed)
                await self._store.decrement_batch(
                    batch.id,
                    batch.version,
                    batch.remaining_qty - take,
                    updated_by=context.user,
                )
                out_entry = await self._store.append(
                    MovementEntry(
                        item_type=batch.item_type,
                        fk_id=batch.fk_id,
                        sku=batch.sku,
                        variant_id=batch.variant_id,
                        item_name=batch.item_name,
                        batch_number=context.batch_number,
                        quantity=take,
                        unit_cost=batch.unit_cost,
                        unit=batch.unit,
                        movement_type=MovementType.OUT,
                        source=context.source,
                        effective_date=effective_date,
                        notes=_out_notes(context.notes, batch.id),
                        created_by=context.user,
                    )
                )
                result.allocations.append(
                    Allocation(
                        batch=batch,
                        qty_taken=take,
                        unit_cost=batch.unit_cost,
                        out_entry=out_entry,
                    )
                )
                needed -= take

            return result
