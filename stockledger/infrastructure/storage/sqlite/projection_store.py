"""SQLite implementation of the current-value projection."""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

import aiosqlite

from stockledger.config import get_logger
from stockledger.core.entities.ledger import ItemKey, ItemType
from stockledger.core.entities.projection import CurrentValue
from stockledger.core.interfaces.projection_store import IProjectionStore
from stockledger.core.numeric import to_text
from stockledger.infrastructure.storage.sqlite.connection import get_connection, get_transaction

logger = get_logger(__name__)


class SQLiteProjectionStore(IProjectionStore):
    """SQLite implementation of cached current values."""

    async def upsert_many(self, values: list[CurrentValue]) -> None:
        """Insert or replace rows keyed by (item_type, fk_id)."""
        if not values:
            return
        now = datetime.now(timezone.utc)
        async with get_transaction() as conn:
            await conn.executemany(
                """
                INSERT OR REPLACE INTO current_values (
                    item_type, fk_id, sku, variant_id, item_name, unit,
                    current_quantity, current_value, last_cost,
                    last_movement_date, refreshed_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        v.item_type.value,
                        v.fk_id,
                        v.sku,
                        v.variant_id,
                        v.item_name,
                        v.unit,
                        to_text(v.current_quantity),
                        to_text(v.current_value),
                        to_text(v.last_cost),
                        v.last_movement_date.isoformat() if v.last_movement_date else None,
                        (v.refreshed_at or now).isoformat(),
                    )
                    for v in values
                ],
            )

    async def delete(self, keys: list[ItemKey]) -> None:
        """Remove rows for the given items."""
        if not keys:
            return
        async with get_transaction() as conn:
            await conn.executemany(
                "DELETE FROM current_values WHERE item_type = ? AND fk_id = ?",
                [(k.item_type.value, k.fk_id) for k in keys],
            )

    async def clear(self) -> None:
        """Remove every row."""
        async with get_transaction() as conn:
            await conn.execute("DELETE FROM current_values")

    async def get(self, key: ItemKey) -> CurrentValue | None:
        """Get one item's current value."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM current_values WHERE item_type = ? AND fk_id = ?",
                (key.item_type.value, key.fk_id),
            )
            row = await cursor.fetchone()
            return self._row_to_value(row) if row else None

    async def list_values(
        self,
        item_type: ItemType | None = None,
        sku: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[CurrentValue]:
        """List current values by item."""
        clauses: list[str] = []
        params: list[Any] = []
        if item_type:
            clauses.append("item_type = ?")
            params.append(item_type.value)
        if sku:
            clauses.append("sku = ?")
            params.append(sku)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        async with get_connection() as conn:
            cursor = await conn.execute(
                f"""
                SELECT * FROM current_values {where}
                ORDER BY item_type, fk_id
                LIMIT ? OFFSET ?
                """,
                [*params, limit, offset],
            )
            rows = await cursor.fetchall()
            return [self._row_to_value(row) for row in rows]

    @staticmethod
    def _row_to_value(row: aiosqlite.Row) -> CurrentValue:
        return CurrentValue(
            item_type=ItemType(row["item_type"]),
            fk_id=row["fk_id"],
            sku=row["sku"],
            variant_id=row["variant_id"],
            item_name=row["item_name"],
            unit=row["unit"],
            current_quantity=Decimal(row["current_quantity"]),
            current_value=Decimal(row["current_value"]),
            last_cost=Decimal(row["last_cost"]),
            last_movement_date=(
                date.fromisoformat(row["last_movement_date"]) if row["last_movement_date"] else None
            ),
            refreshed_at=datetime.fromisoformat(row["refreshed_at"]),
        )
