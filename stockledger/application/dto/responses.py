"""Response DTOs for API endpoints.

Pydantic v2 models for API response serialization.
These are the ONLY contracts between use cases and API layer.

Every endpoint answers with an ``Envelope``: ``{success, data, error}``.
Decimals serialize as strings so amounts keep their fixed precision.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

from stockledger.core.entities import (
    Allocation,
    ConversionLine,
    ConversionRecord,
    ConversionTemplate,
    CurrentValue,
    MonthlySummary,
    MovementEntry,
    Requirement,
)

T = TypeVar("T")


class ErrorBody(BaseModel):
    """Machine-readable error carried by a failed envelope."""

    kind: str = Field(..., description="Stable error code, e.g. INSUFFICIENT_STOCK")
    message: str = Field(..., description="Human-readable description")
    hint: str | None = Field(default=None, description="Suggested recovery action")
    details: dict[str, Any] = Field(default_factory=dict, description="Structured context")
    path: str | None = Field(default=None, description="Request path")


class Envelope(BaseModel, Generic[T]):
    """Uniform result wrapper."""

    success: bool = Field(..., description="Whether the command succeeded")
    data: T | None = Field(default=None, description="Payload on success")
    error: ErrorBody | None = Field(default=None, description="Error on failure")

    @classmethod
    def ok(cls, data: Any) -> "Envelope":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: ErrorBody) -> "Envelope":
        return cls(success=False, error=error)


# --- Movements ---


class MovementEntryResponse(BaseModel):
    """Ledger entry."""

    id: int
    item_type: str
    fk_id: int
    sku: str
    variant_id: str | None = None
    item_name: str | None = None
    batch_number: str | None = None
    quantity: Decimal
    remaining_qty: Decimal
    unit_cost: Decimal
    value: Decimal = Field(..., description="quantity x unit_cost, 2 places")
    unit: str | None = None
    movement_type: str
    source: str
    effective_date: date
    status: str
    notes: str | None = None
    created_by: str | None = None
    created_at: datetime | None = None


class AllocationResponse(BaseModel):
    """Quantity taken from one batch."""

    batch_id: int
    batch_effective_date: date
    qty_taken: Decimal
    unit_cost: Decimal
    value: Decimal
    out_entry_id: int | None = None


class CreateMovementResponse(BaseModel):
    """Entries written by a movement command."""

    entries: list[MovementEntryResponse] = Field(default_factory=list)
    allocations: list[AllocationResponse] = Field(
        default_factory=list, description="FIFO allocations (OUT movements)"
    )
    total_cost: Decimal = Field(default=Decimal("0"), description="FIFO cost of OUT movements")


class EntryPageResponse(BaseModel):
    """Paginated ledger query."""

    items: list[MovementEntryResponse] = Field(default_factory=list)
    total: int
    limit: int
    offset: int


# --- Conversions ---


class ConversionLineResponse(BaseModel):
    sku: str
    quantity: Decimal
    item_type: str
    fk_id: int
    unit: str | None = None
    variant_id: str | None = None
    item_name: str | None = None
    unit_cost: Decimal | None = None
    total_cost: Decimal | None = None


class ConversionRecordResponse(BaseModel):
    """Audit record of one conversion or production template run."""

    id: int
    reference: str
    batch_number: str
    template_id: int | None = None
    inputs: list[ConversionLineResponse]
    outputs: list[ConversionLineResponse]
    total_input_cost: Decimal
    status: str
    notes: str | None = None
    created_by: str | None = None
    created_at: datetime | None = None


class ConversionRecordListResponse(BaseModel):
    items: list[ConversionRecordResponse] = Field(default_factory=list)
    total: int
    limit: int
    offset: int


class TemplateResponse(BaseModel):
    """Conversion template."""

    id: int
    name: str
    description: str | None = None
    inputs: list[ConversionLineResponse]
    outputs: list[ConversionLineResponse]
    status: str
    created_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class RequirementResponse(BaseModel):
    item_type: str
    fk_id: int
    sku: str
    unit: str | None = None
    required: Decimal
    available: Decimal
    shortage: Decimal
    feasible: bool


class RequirementsResponse(BaseModel):
    """Dry-run feasibility of a production plan."""

    feasible: bool
    materials: list[RequirementResponse] = Field(default_factory=list)
    products: list[RequirementResponse] = Field(default_factory=list)
    templates: list[TemplateResponse] = Field(default_factory=list)


class ProductionResponse(BaseModel):
    """Result of a production plan."""

    reference: str
    total_cost: Decimal
    records: list[ConversionRecordResponse] = Field(default_factory=list)
    entries_written: int


# --- Monthly summaries ---


class MonthlySummaryResponse(BaseModel):
    id: int | None = None
    sku: str | None = None
    variant_id: str | None = None
    no_variant: bool = False
    year: int
    month: int
    opening_qty: Decimal
    in_qty: Decimal
    out_qty: Decimal
    closing_qty: Decimal
    opening_value: Decimal
    in_value: Decimal
    out_value: Decimal
    closing_value: Decimal


class SummaryUnitResponse(BaseModel):
    sku: str | None = None
    variant_id: str | None = None
    no_variant: bool = False
    period: str
    outcome: str
    message: str | None = None
    summary_id: int | None = None


class BulkSummaryResponse(BaseModel):
    """Per-unit outcomes of bulk generation."""

    period: str
    created: int
    skipped: int
    failed: int
    results: list[SummaryUnitResponse] = Field(default_factory=list)


# --- Current values ---


class CurrentValueResponse(BaseModel):
    item_type: str
    fk_id: int
    sku: str | None = None
    variant_id: str | None = None
    item_name: str | None = None
    unit: str | None = None
    current_quantity: Decimal
    current_value: Decimal
    last_cost: Decimal
    last_movement_date: date | None = None
    refreshed_at: datetime | None = None


class RefreshCurrentValueResponse(BaseModel):
    refreshed: int
    values: list[CurrentValueResponse] = Field(default_factory=list)


# --- Health ---


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Overall status: healthy, degraded, unhealthy")
    version: str = Field(..., description="Application version")
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    database: dict[str, Any] = Field(default_factory=dict, description="Database status")


# --- Entity to response conversion ---


def movement_response(entry: MovementEntry) -> MovementEntryResponse:
    return MovementEntryResponse(
        id=entry.id,
        item_type=entry.item_type.value,
        fk_id=entry.fk_id,
        sku=entry.sku,
        variant_id=entry.variant_id,
        item_name=entry.item_name,
        batch_number=entry.batch_number,
        quantity=entry.quantity,
        remaining_qty=entry.remaining_qty,
        unit_cost=entry.unit_cost,
        value=entry.value,
        unit=entry.unit,
        movement_type=entry.movement_type.value,
        source=entry.source.value,
        effective_date=entry.effective_date,
        status=entry.status.value,
        notes=entry.notes,
        created_by=entry.created_by,
        created_at=entry.created_at,
    )


def allocation_response(allocation: Allocation) -> AllocationResponse:
    return AllocationResponse(
        batch_id=allocation.batch.id,
        batch_effective_date=allocation.batch.effective_date,
        qty_taken=allocation.qty_taken,
        unit_cost=allocation.unit_cost,
        value=allocation.value,
        out_entry_id=allocation.out_entry.id if allocation.out_entry else None,
    )


def line_response(line: ConversionLine) -> ConversionLineResponse:
    return ConversionLineResponse(
        sku=line.sku,
        quantity=line.quantity,
        item_type=line.item_type.value,
        fk_id=line.fk_id,
        unit=line.unit,
        variant_id=line.variant_id,
        item_name=line.item_name,
        unit_cost=line.unit_cost,
        total_cost=line.total_cost,
    )


def record_response(record: ConversionRecord) -> ConversionRecordResponse:
    return ConversionRecordResponse(
        id=record.id,
        reference=record.reference,
        batch_number=record.batch_number,
        template_id=record.template_id,
        inputs=[line_response(line) for line in record.inputs],
        outputs=[line_response(line) for line in record.outputs],
        total_input_cost=record.total_input_cost,
        status=record.status.value,
        notes=record.notes,
        created_by=record.created_by,
        created_at=record.created_at,
    )


def template_response(template: ConversionTemplate) -> TemplateResponse:
    return TemplateResponse(
        id=template.id,
        name=template.name,
        description=template.description,
        inputs=[line_response(line) for line in template.inputs],
        outputs=[line_response(line) for line in template.outputs],
        status=template.status.value,
        created_by=template.created_by,
        created_at=template.created_at,
        updated_at=template.updated_at,
    )


def requirement_response(requirement: Requirement) -> RequirementResponse:
    return RequirementResponse(
        item_type=requirement.item_type.value,
        fk_id=requirement.fk_id,
        sku=requirement.sku,
        unit=requirement.unit,
        required=requirement.required,
        available=requirement.available,
        shortage=requirement.shortage,
        feasible=requirement.feasible,
    )


def summary_response(summary: MonthlySummary) -> MonthlySummaryResponse:
    return MonthlySummaryResponse(
        id=summary.id,
        sku=summary.sku,
        variant_id=summary.variant_id,
        no_variant=summary.no_variant,
        year=summary.year,
        month=summary.month,
        opening_qty=summary.opening_qty,
        in_qty=summary.in_qty,
        out_qty=summary.out_qty,
        closing_qty=summary.closing_qty,
        opening_value=summary.opening_value,
        in_value=summary.in_value,
        out_value=summary.out_value,
        closing_value=summary.closing_value,
    )


def current_value_response(value: CurrentValue) -> CurrentValueResponse:
    return CurrentValueResponse(
        item_type=value.item_type.value,
        fk_id=value.fk_id,
        sku=value.sku,
        variant_id=value.variant_id,
        item_name=value.item_name,
        unit=value.unit,
        current_quantity=value.current_quantity,
        current_value=value.current_value,
        last_cost=value.last_cost,
        last_movement_date=value.last_movement_date,
        refreshed_at=value.refreshed_at,
    )
