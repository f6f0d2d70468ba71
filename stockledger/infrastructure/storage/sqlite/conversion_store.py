"""SQLite implementation of conversion template and record storage."""

import json
from datetime import datetime, timezone
from decimal import Decimal

import aiosqlite

from stockledger.config import get_logger
from stockledger.core.entities.conversion import (
    ConversionLine,
    ConversionRecord,
    ConversionStatus,
    ConversionTemplate,
    TemplateStatus,
)
from stockledger.core.exceptions import TemplateNotFoundError
from stockledger.core.interfaces.conversion_store import IConversionStore
from stockledger.core.numeric import to_text
from stockledger.infrastructure.storage.sqlite.connection import get_connection, get_transaction

logger = get_logger(__name__)


def _lines_to_json(lines: list[ConversionLine]) -> str:
    return json.dumps([line.model_dump(mode="json") for line in lines])


def _lines_from_json(raw: str | None) -> list[ConversionLine]:
    if not raw:
        return []
    return [ConversionLine.model_validate(item) for item in json.loads(raw)]


class SQLiteConversionStore(IConversionStore):
    """SQLite implementation of conversion templates and records."""

    async def create_template(self, template: ConversionTemplate) -> ConversionTemplate:
        """Create a new template."""
        now = datetime.now(timezone.utc)
        template.created_at = now
        template.updated_at = now
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                INSERT INTO conversion_templates (
                    name, description, inputs_json, outputs_json,
                    status, created_by, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    template.name,
                    template.description,
                    _lines_to_json(template.inputs),
                    _lines_to_json(template.outputs),
                    template.status.value,
                    template.created_by,
                    now.isoformat(),
                    now.isoformat(),
                ),
            )
            template.id = cursor.lastrowid
            logger.info("conversion_template_created", template_id=template.id, name=template.name)
            return template

    async def get_template(self, template_id: int) -> ConversionTemplate | None:
        """Get template by ID."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM conversion_templates WHERE id = ?", (template_id,)
            )
            row = await cursor.fetchone()
            return self._row_to_template(row) if row else None

    async def get_template_by_name(self, name: str) -> ConversionTemplate | None:
        """Get template by name."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM conversion_templates WHERE name = ?", (name,)
            )
            row = await cursor.fetchone()
            return self._row_to_template(row) if row else None

    async def list_templates(
        self, status: TemplateStatus | None = None, limit: int = 100, offset: int = 0
    ) -> list[ConversionTemplate]:
        """List templates by name."""
        async with get_connection() as conn:
            if status:
                cursor = await conn.execute(
                    """
                    SELECT * FROM conversion_templates WHERE status = ?
                    ORDER BY name LIMIT ? OFFSET ?
                    """,
                    (status.value, limit, offset),
                )
            else:
                cursor = await conn.execute(
                    "SELECT * FROM conversion_templates ORDER BY name LIMIT ? OFFSET ?",
                    (limit, offset),
                )
            rows = await cursor.fetchall()
            return [self._row_to_template(row) for row in rows]

    async def set_template_status(
        self, template_id: int, status: TemplateStatus
    ) -> ConversionTemplate:
        """Change a template's status."""
        async with get_transaction() as conn:
            cursor = await conn.execute(
                "UPDATE conversion_templates SET status = ?, updated_at = ? WHERE id = ?",
                (status.value, datetime.now(timezone.utc).isoformat(), template_id),
            )
            if cursor.rowcount == 0:
                raise TemplateNotFoundError(template_id)
            logger.info("conversion_template_status_changed", template_id=template_id, status=status.value)

        template = await self.get_template(template_id)
        if template is None:
            raise TemplateNotFoundError(template_id)
        return template

    async def create_record(self, record: ConversionRecord) -> ConversionRecord:
        """Persist a conversion record."""
        record.created_at = record.created_at or datetime.now(timezone.utc)
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                INSERT INTO conversion_records (
                    reference, batch_number, template_id, inputs_json, outputs_json,
                    total_input_cost, status, notes, created_by, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.reference,
                    record.batch_number,
                    record.template_id,
                    _lines_to_json(record.inputs),
                    _lines_to_json(record.outputs),
                    to_text(record.total_input_cost),
                    record.status.value,
                    record.notes,
                    record.created_by,
                    record.created_at.isoformat(),
                ),
            )
            record.id = cursor.lastrowid
            return record

    async def get_record(self, reference: str) -> ConversionRecord | None:
        """Get record by reference code."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM conversion_records WHERE reference = ?", (reference,)
            )
            row = await cursor.fetchone()
            return self._row_to_record(row) if row else None

    async def list_records(
        self, limit: int = 50, offset: int = 0
    ) -> tuple[list[ConversionRecord], int]:
        """Records newest first, with the total count."""
        async with get_connection() as conn:
            cursor = await conn.execute("SELECT COUNT(*) FROM conversion_records")
            total = (await cursor.fetchone())[0]
            cursor = await conn.execute(
                "SELECT * FROM conversion_records ORDER BY id DESC LIMIT ? OFFSET ?",
                (limit, offset),
            )
            rows = await cursor.fetchall()
            return [self._row_to_record(row) for row in rows], total

    async def list_records_by_batch(self, batch_number: str) -> list[ConversionRecord]:
        """Records sharing a batch number."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM conversion_records WHERE batch_number = ? ORDER BY id",
                (batch_number,),
            )
            rows = await cursor.fetchall()
            return [self._row_to_record(row) for row in rows]

    @staticmethod
    def _row_to_template(row: aiosqlite.Row) -> ConversionTemplate:
        return ConversionTemplate(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            inputs=_lines_from_json(row["inputs_json"]),
            outputs=_lines_from_json(row["outputs_json"]),
            status=TemplateStatus(row["status"]),
            created_by=row["created_by"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    @staticmethod
    def _row_to_record(row: aiosqlite.Row) -> ConversionRecord:
        return ConversionRecord(
            id=row["id"],
            reference=row["reference"],
            batch_number=row["batch_number"],
            template_id=row["template_id"],
            inputs=_lines_from_json(row["inputs_json"]),
            outputs=_lines_from_json(row["outputs_json"]),
            total_input_cost=Decimal(row["total_input_cost"]),
            status=ConversionStatus(row["status"]),
            notes=row["notes"],
            created_by=row["created_by"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )
