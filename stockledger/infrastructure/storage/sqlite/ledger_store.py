"""SQLite implementation of the movement ledger."""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

import aiosqlite

from stockledger.config import get_logger
from stockledger.core.entities.ledger import (
    EntryPage,
    EntryStatus,
    ItemKey,
    ItemType,
    MovementEntry,
    MovementFilter,
    MovementSource,
    MovementType,
)
from stockledger.core.entities.summary import SummaryScope
from stockledger.core.exceptions import ConcurrencyConflictError, EntryNotFoundError
from stockledger.core.interfaces.ledger_store import ILedgerStore
from stockledger.core.numeric import ZERO, to_text
from stockledger.infrastructure.storage.sqlite.connection import get_connection, get_transaction

logger = get_logger(__name__)

_INSERT_SQL = """
    INSERT INTO movement_entries (
        item_type, fk_id, sku, variant_id, item_name, batch_number,
        quantity, remaining_qty, version, unit_cost, unit,
        movement_type, source, effective_date, status, notes,
        created_by, updated_by, created_at, updated_at
    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
"""


def _scope_clause(scope: SummaryScope) -> tuple[str, list[Any]]:
    if scope.variant_id:
        if scope.sku:
            return "variant_id = ? AND sku = ?", [scope.variant_id, scope.sku]
        return "variant_id = ?", [scope.variant_id]
    if scope.no_variant:
        return "sku = ? AND variant_id IS NULL", [scope.sku]
    return "sku = ?", [scope.sku]


class SQLiteLedgerStore(ILedgerStore):
    """SQLite implementation of movement entry storage."""

    async def append(self, entry: MovementEntry) -> MovementEntry:
        """Insert one entry."""
        async with get_transaction() as conn:
            return await self._insert(conn, entry)

    async def append_many(self, entries: list[MovementEntry]) -> list[MovementEntry]:
        """Insert entries in order inside one transaction."""
        async with get_transaction() as conn:
            return [await self._insert(conn, entry) for entry in entries]

    async def _insert(self, conn: aiosqlite.Connection, entry: MovementEntry) -> MovementEntry:
        now = datetime.now(timezone.utc)
        entry.created_at = entry.created_at or now
        entry.updated_at = now
        entry.updated_by = entry.updated_by or entry.created_by
        cursor = await conn.execute(
            _INSERT_SQL,
            (
                entry.item_type.value,
                entry.fk_id,
                entry.sku,
                entry.variant_id,
                entry.item_name,
                entry.batch_number,
                to_text(entry.quantity),
                to_text(entry.remaining_qty if entry.remaining_qty is not None else ZERO),
                entry.version,
                to_text(entry.unit_cost),
                entry.unit,
                entry.movement_type.value,
                entry.source.value,
                entry.effective_date.isoformat(),
                entry.status.value,
                entry.notes,
                entry.created_by,
                entry.updated_by,
                entry.created_at.isoformat(),
                entry.updated_at.isoformat(),
            ),
        )
        entry.id = cursor.lastrowid
        logger.debug(
            "ledger_entry_appended",
            entry_id=entry.id,
            key=str(entry.key),
            type=entry.movement_type.value,
            qty=str(entry.quantity),
        )
        return entry

    async def get(self, entry_id: int) -> MovementEntry | None:
        """Get entry by ID."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM movement_entries WHERE id = ?", (entry_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_entry(row)

    async def query(
        self, filters: MovementFilter, limit: int = 50, offset: int = 0
    ) -> EntryPage:
        """Filtered page, newest effective date first."""
        clauses: list[str] = []
        params: list[Any] = []

        for column, value in (
            ("item_type", filters.item_type.value if filters.item_type else None),
            ("fk_id", filters.fk_id),
            ("sku", filters.sku),
            ("variant_id", filters.variant_id),
            ("movement_type", filters.movement_type.value if filters.movement_type else None),
            ("source", filters.source.value if filters.source else None),
            ("status", filters.status.value if filters.status else None),
            ("batch_number", filters.batch_number),
        ):
            if value is not None:
                clauses.append(f"{column} = ?")
                params.append(value)

        if filters.date_from:
            clauses.append("effective_date >= ?")
            params.append(filters.date_from.isoformat())
        if filters.date_to:
            clauses.append("effective_date <= ?")
            params.append(filters.date_to.isoformat())
        if filters.status is None and not filters.include_deleted:
            clauses.append("status != 'DELETED'")

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        async with get_connection() as conn:
            cursor = await conn.execute(
                f"SELECT COUNT(*) FROM movement_entries {where}", params
            )
            total = (await cursor.fetchone())[0]

            cursor = await conn.execute(
                f"""
                SELECT * FROM movement_entries {where}
                ORDER BY effective_date DESC, id DESC
                LIMIT ? OFFSET ?
                """,
                [*params, limit, offset],
            )
            rows = await cursor.fetchall()

        return EntryPage(
            items=[self._row_to_entry(row) for row in rows],
            total=total,
            limit=limit,
            offset=offset,
        )

    async def list_active_batches(self, key: ItemKey) -> list[MovementEntry]:
        """ACTIVE IN entries of one item variant with stock left, oldest first."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM movement_entries
                WHERE item_type = ? AND fk_id = ? AND variant_id IS ?
                  AND status = 'ACTIVE' AND movement_type = 'IN'
                ORDER BY effective_date ASC, id ASC
                """,
                (key.item_type.value, key.fk_id, key.variant_id),
            )
            rows = await cursor.fetchall()
        batches = [self._row_to_entry(row) for row in rows]
        return [b for b in batches if b.remaining_qty and b.remaining_qty > ZERO]

    async def available_quantity(self, key: ItemKey) -> Decimal:
        """Sum of remaining quantity over ACTIVE IN entries."""
        batches = await self.list_active_batches(key)
        return sum((b.remaining_qty for b in batches), ZERO)

    async def decrement_batch(
        self,
        entry_id: int,
        expected_version: int,
        new_remaining: Decimal,
        updated_by: str | None = None,
    ) -> None:
        """Version-guarded remaining-quantity update."""
        status = EntryStatus.INACTIVE if new_remaining <= ZERO else EntryStatus.ACTIVE
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                UPDATE movement_entries SET
                    remaining_qty = ?,
                    status = ?,
                    version = version + 1,
                    updated_by = ?,
                    updated_at = ?
                WHERE id = ? AND version = ? AND status = 'ACTIVE' AND movement_type = 'IN'
                """,
                (
                    to_text(max(new_remaining, ZERO)),
                    status.value,
                    updated_by,
                    datetime.now(timezone.utc).isoformat(),
                    entry_id,
                    expected_version,
                ),
            )
            if cursor.rowcount == 0:
                logger.warning(
                    "batch_version_conflict",
                    entry_id=entry_id,
                    expected_version=expected_version,
                )
                raise ConcurrencyConflictError(entry_id)

    async def soft_delete(self, entry_id: int, deleted_by: str | None = None) -> MovementEntry:
        """Mark an entry DELETED."""
        now = datetime.now(timezone.utc).isoformat()
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                UPDATE movement_entries SET
                    status = 'DELETED',
                    version = version + 1,
                    deleted_by = ?,
                    deleted_at = ?,
                    updated_by = ?,
                    updated_at = ?
                WHERE id = ? AND status != 'DELETED'
                """,
                (deleted_by, now, deleted_by, now, entry_id),
            )
            if cursor.rowcount == 0:
                raise EntryNotFoundError(entry_id)
            logger.info("ledger_entry_deleted", entry_id=entry_id, deleted_by=deleted_by)

        entry = await self.get(entry_id)
        if entry is None:
            raise EntryNotFoundError(entry_id)
        return entry

    async def list_for_scope(
        self,
        scope: SummaryScope,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> list[MovementEntry]:
        """Non-deleted entries of a summary scope, oldest first."""
        clause, params = _scope_clause(scope)
        sql = f"SELECT * FROM movement_entries WHERE {clause} AND status != 'DELETED'"
        if date_from:
            sql += " AND effective_date >= ?"
            params.append(date_from.isoformat())
        if date_to:
            sql += " AND effective_date <= ?"
            params.append(date_to.isoformat())
        sql += " ORDER BY effective_date ASC, id ASC"

        async with get_connection() as conn:
            cursor = await conn.execute(sql, params)
            rows = await cursor.fetchall()
            return [self._row_to_entry(row) for row in rows]

    async def first_entry_date(self, scope: SummaryScope) -> date | None:
        """Earliest effective date in the scope."""
        clause, params = _scope_clause(scope)
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"""
                SELECT MIN(effective_date) FROM movement_entries
                WHERE {clause} AND status != 'DELETED'
                """,
                params,
            )
            row = await cursor.fetchone()
        if row is None or row[0] is None:
            return None
        return date.fromisoformat(row[0])

    async def skus_for_variant(self, variant_id: str) -> list[str]:
        """SKUs whose non-deleted entries carry ``variant_id``."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT DISTINCT sku FROM movement_entries
                WHERE variant_id = ? AND status != 'DELETED'
                ORDER BY sku
                """,
                (variant_id,),
            )
            rows = await cursor.fetchall()
            return [row[0] for row in rows]

    async def distinct_sku_variants(self) -> list[tuple[str, str | None]]:
        """Distinct (sku, variant_id) pairs among non-deleted entries."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT DISTINCT sku, variant_id FROM movement_entries
                WHERE status != 'DELETED'
                ORDER BY sku, variant_id
                """
            )
            rows = await cursor.fetchall()
            return [(row[0], row[1]) for row in rows]

    async def list_active_for_keys(
        self, keys: list[ItemKey] | None = None
    ) -> list[MovementEntry]:
        """ACTIVE IN entries for the given items across all their variants (all items when None)."""
        sql = "SELECT * FROM movement_entries WHERE status = 'ACTIVE' AND movement_type = 'IN'"
        params: list[Any] = []
        if keys is not None:
            if not keys:
                return []
            pairs = " OR ".join("(item_type = ? AND fk_id = ?)" for _ in keys)
            sql += f" AND ({pairs})"
            for key in keys:
                params.extend([key.item_type.value, key.fk_id])
        sql += " ORDER BY item_type, fk_id, effective_date ASC, id ASC"

        async with get_connection() as conn:
            cursor = await conn.execute(sql, params)
            rows = await cursor.fetchall()
            return [self._row_to_entry(row) for row in rows]

    @staticmethod
    def _row_to_entry(row: aiosqlite.Row) -> MovementEntry:
        """Convert a database row to a MovementEntry entity."""

        def _ts(value: str | None) -> datetime | None:
            return datetime.fromisoformat(value) if value else None

        return MovementEntry(
            id=row["id"],
            item_type=ItemType(row["item_type"]),
            fk_id=row["fk_id"],
            sku=row["sku"],
            variant_id=row["variant_id"],
            item_name=row["item_name"],
            batch_number=row["batch_number"],
            quantity=Decimal(row["quantity"]),
            remaining_qty=Decimal(row["remaining_qty"]),
            version=row["version"],
            unit_cost=Decimal(row["unit_cost"]),
            unit=row["unit"],
            movement_type=MovementType(row["movement_type"]),
            source=MovementSource(row["source"]),
            effective_date=date.fromisoformat(row["effective_date"]),
            status=EntryStatus(row["status"]),
            notes=row["notes"],
            created_by=row["created_by"],
            updated_by=row["updated_by"],
            deleted_by=row["deleted_by"],
            created_at=_ts(row["created_at"]),
            updated_at=_ts(row["updated_at"]),
            deleted_at=_ts(row["deleted_at"]),
        )
