"""
Current-value projection.

Layer-pure service: depends only on core entities, interfaces and exceptions.

The projection caches quantity x cost per item over its ACTIVE IN batches,
summing every variant of the item.
It is never authoritative: any row can be recomputed from the ledger, and the
whole table can be dropped and rebuilt.
"""

import asyncio
from collections import defaultdict
from collections.abc import Iterable
from datetime import datetime, timezone

from stockledger.config import get_logger
from stockledger.core.entities.ledger import ItemKey, ItemType, MovementEntry
from stockledger.core.entities.projection import CurrentValue
from stockledger.core.interfaces import ILedgerStore, IProjectionStore, IUnitOfWork
from stockledger.core.numeric import ZERO, line_value

logger = get_logger(__name__)


def compute_current_value(key: ItemKey, batches: list[MovementEntry]) -> CurrentValue:
    """Fold an item's ACTIVE IN batches (oldest first) into a CurrentValue."""
    quantity = sum((b.remaining_qty for b in batches), ZERO)
    value = sum((line_value(b.remaining_qty, b.unit_cost) for b in batches), ZERO)
    newest = batches[-1] if batches else None
    variants = {b.variant_id for b in batches}
    return CurrentValue(
        item_type=key.item_type,
        fk_id=key.fk_id,
        sku=newest.sku if newest else None,
        variant_id=newest.variant_id if newest and len(variants) == 1 else None,
        item_name=newest.item_name if newest else None,
        unit=newest.unit if newest else None,
        current_quantity=quantity,
        current_value=value,
        last_cost=newest.unit_cost if newest else ZERO,
        last_movement_date=newest.effective_date if newest else None,
        refreshed_at=datetime.now(timezone.utc),
    )


class CurrentValueProjection:
    """
    Recompute and cache per-item current values.

    Required interfaces for DI:
    - ILedgerStore: source of ACTIVE batches
    - IProjectionStore: projection rows
    - IUnitOfWork: atomic refresh and rebuild
    """

    def __init__(
        self,
        ledger_store: ILedgerStore,
        projection_store: IProjectionStore,
        unit_of_work: IUnitOfWork,
    ):
        self._ledger = ledger_store
        self._projection = projection_store
        self._uow = unit_of_work

    async def refresh(self, key: ItemKey) -> CurrentValue:
        """Recompute one item."""
        values = await self.refresh_bulk([key])
        return values[0]

    async def refresh_bulk(self, keys: Iterable[ItemKey]) -> list[CurrentValue]:
        """Recompute several items with one aggregate pass over the ledger."""
        unique = list(dict.fromkeys(key.item for key in keys))
        if not unique:
            return []

        # Read and upsert under the write lock; rows never regress to older state
        async with self._uow.unit_of_work():
            entries = await self._ledger.list_active_for_keys(unique)
            grouped: dict[ItemKey, list[MovementEntry]] = defaultdict(list)
            for entry in entries:
                if entry.remaining_qty and entry.remaining_qty > ZERO:
                    grouped[entry.key.item].append(entry)

            values = []
            for key in unique:
                value = compute_current_value(key, grouped.get(key, []))
                if value.sku is None:
                    # No stock left: keep the last known identity on the row
                    existing = await self._projection.get(key)
                    if existing is not None:
                        value = value.model_copy(
                            update={
                                "sku": existing.sku,
                                "variant_id": existing.variant_id,
                                "item_name": existing.item_name,
                                "unit": existing.unit,
                                "last_cost": existing.last_cost,
                                "last_movement_date": existing.last_movement_date,
                            }
                        )
                values.append(value)

            await self._projection.upsert_many(values)
        logger.debug("current_values_refreshed", count=len(values))
        return values

    async def rebuild_all(self) -> int:
        """Drop every projection row and rebuild from the ledger."""
        async with self._uow.unit_of_work():
            await self._projection.clear()
            entries = await self._ledger.list_active_for_keys(None)
            grouped: dict[ItemKey, list[MovementEntry]] = defaultdict(list)
            for entry in entries:
                if entry.remaining_qty and entry.remaining_qty > ZERO:
                    grouped[entry.key.item].append(entry)
            values = [compute_current_value(key, batches) for key, batches in grouped.items()]
            await self._projection.upsert_many(values)

        logger.info("current_values_rebuilt", count=len(values))
        return len(values)

    async def get(self, key: ItemKey) -> CurrentValue | None:
        return await self._projection.get(key)

    async def list_values(
        self,
        item_type: ItemType | None = None,
        sku: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[CurrentValue]:
        return await self._projection.list_values(item_type, sku, limit, offset)


class ProjectionRefresher:
    """
    Fire-and-forget projection refreshes after ledger commits.

    Failures are logged as ``current_value_refresh_failed`` and never reach
    the caller whose write triggered the refresh.
    """

    def __init__(self, projection: CurrentValueProjection):
        self._projection = projection
        self._tasks: set[asyncio.Task] = set()

    def schedule(self, keys: Iterable[ItemKey]) -> asyncio.Task | None:
        """Start a background refresh of ``keys``."""
        keys = list(dict.fromkeys(keys))
        if not keys:
            return None
        task = asyncio.get_running_loop().create_task(self._run(keys))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, keys: list[ItemKey]) -> None:
        try:
            await self._projection.refresh_bulk(keys)
        except Exception as e:
            logger.error(
                "current_value_refresh_failed",
                keys=[str(k) for k in keys],
                error=str(e),
                exc_info=True,
            )

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every scheduled refresh to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
