"""SQLite implementation of monthly summary storage."""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

import aiosqlite

from stockledger.config import get_logger
from stockledger.core.entities.summary import MonthlySummary, Period, SummaryScope
from stockledger.core.interfaces.summary_store import ISummaryStore
from stockledger.core.numeric import to_text
from stockledger.infrastructure.storage.sqlite.connection import get_connection, get_transaction

logger = get_logger(__name__)

_AMOUNT_COLUMNS = (
    "opening_qty",
    "in_qty",
    "out_qty",
    "closing_qty",
    "opening_value",
    "in_value",
    "out_value",
    "closing_value",
)


# Variant column of a SKU scope restricted to entries without a variant
NO_VARIANT_KEY = "-"


def _key(scope: SummaryScope) -> tuple[str, str]:
    # Empty string marks the unused half of the natural key
    if scope.no_variant:
        return scope.sku, NO_VARIANT_KEY
    return scope.sku or "", scope.variant_id or ""


class SQLiteSummaryStore(ISummaryStore):
    """SQLite implementation of monthly summaries."""

    async def get(self, scope: SummaryScope, period: Period) -> MonthlySummary | None:
        """Get summary by natural key."""
        sku, variant_id = _key(scope)
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM monthly_summaries
                WHERE sku = ? AND variant_id = ? AND period = ?
                """,
                (sku, variant_id, str(period)),
            )
            row = await cursor.fetchone()
            return self._row_to_summary(row) if row else None

    async def upsert(self, summary: MonthlySummary) -> MonthlySummary:
        """Insert or update the row keyed by (sku, variant_id, period)."""
        sku, variant_id = _key(summary.scope)
        now = datetime.now(timezone.utc)
        summary.created_at = summary.created_at or now
        summary.updated_at = now
        amounts = [to_text(getattr(summary, column)) for column in _AMOUNT_COLUMNS]

        async with get_transaction() as conn:
            await conn.execute(
                f"""
                INSERT INTO monthly_summaries (
                    sku, variant_id, year, month, period,
                    {", ".join(_AMOUNT_COLUMNS)},
                    created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT (sku, variant_id, period) DO UPDATE SET
                    {", ".join(f"{c} = excluded.{c}" for c in _AMOUNT_COLUMNS)},
                    updated_at = excluded.updated_at
                """,
                (
                    sku,
                    variant_id,
                    summary.year,
                    summary.month,
                    str(summary.period),
                    *amounts,
                    summary.created_at.isoformat(),
                    summary.updated_at.isoformat(),
                ),
            )
            cursor = await conn.execute(
                """
                SELECT id FROM monthly_summaries
                WHERE sku = ? AND variant_id = ? AND period = ?
                """,
                (sku, variant_id, str(summary.period)),
            )
            summary.id = (await cursor.fetchone())[0]
            logger.debug(
                "monthly_summary_upserted",
                summary_id=summary.id,
                scope=str(summary.scope),
                period=str(summary.period),
            )
            return summary

    async def list_summaries(
        self,
        sku: str | None = None,
        variant_id: str | None = None,
        year: int | None = None,
        month: int | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[MonthlySummary]:
        """List summaries, newest period first."""
        clauses: list[str] = []
        params: list[Any] = []
        for column, value in (
            ("sku", sku),
            ("variant_id", variant_id),
            ("year", year),
            ("month", month),
        ):
            if value is not None:
                clauses.append(f"{column} = ?")
                params.append(value)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        async with get_connection() as conn:
            cursor = await conn.execute(
                f"""
                SELECT * FROM monthly_summaries {where}
                ORDER BY period DESC, sku, variant_id
                LIMIT ? OFFSET ?
                """,
                [*params, limit, offset],
            )
            rows = await cursor.fetchall()
            return [self._row_to_summary(row) for row in rows]

    async def delete_from(self, scope: SummaryScope, period: Period) -> int:
        """Delete a scope's summaries for ``period`` and later."""
        sku, variant_id = _key(scope)
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                DELETE FROM monthly_summaries
                WHERE sku = ? AND variant_id = ? AND period >= ?
                """,
                (sku, variant_id, str(period)),
            )
            deleted = cursor.rowcount
        logger.info("monthly_summaries_deleted", scope=str(scope), from_period=str(period), count=deleted)
        return deleted

    async def latest_period(self, scope: SummaryScope) -> Period | None:
        """Most recent summarized period of a scope."""
        sku, variant_id = _key(scope)
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT MAX(period) FROM monthly_summaries
                WHERE sku = ? AND variant_id = ?
                """,
                (sku, variant_id),
            )
            row = await cursor.fetchone()
        if row is None or row[0] is None:
            return None
        return Period.parse(row[0])

    @staticmethod
    def _row_to_summary(row: aiosqlite.Row) -> MonthlySummary:
        return MonthlySummary(
            id=row["id"],
            sku=row["sku"] or None,
            variant_id=None if row["variant_id"] == NO_VARIANT_KEY else row["variant_id"] or None,
            no_variant=row["variant_id"] == NO_VARIANT_KEY,
            year=row["year"],
            month=row["month"],
            **{column: Decimal(row[column]) for column in _AMOUNT_COLUMNS},
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
