"""Request DTOs for API endpoints.

Pydantic v2 models for request validation.
"""

from decimal import Decimal

from pydantic import BaseModel, Field

from stockledger.core.entities.conversion import TemplateStatus
from stockledger.core.entities.ledger import (
    EntryStatus,
    ItemType,
    MovementSource,
    MovementType,
)

# --- Movements ---


class CreateMovementRequest(BaseModel):
    """Request to record one stock movement."""

    item_type: ItemType = Field(..., description="MATERIAL or PRODUCT")
    fk_id: int = Field(..., gt=0, description="Owning material/product record ID")
    sku: str = Field(..., min_length=1, description="Stock keeping unit")
    variant_id: str | None = Field(default=None, description="Product variant ID")
    item_name: str | None = Field(default=None, description="Display name")
    batch_number: str | None = Field(default=None, description="Grouping batch / reference code")
    quantity: Decimal = Field(..., ge=0, description="Quantity moved (direction from movement_type)")
    unit_cost: Decimal = Field(default=Decimal("0"), ge=0, description="Cost per unit (IN only)")
    unit: str | None = Field(default=None, description="Unit of measure")
    movement_type: MovementType = Field(..., description="IN or OUT")
    source: MovementSource = Field(..., description="Business origin of the movement")
    effective_date: str | None = Field(
        default=None,
        description="Business date in ISO format (defaults to today)",
    )
    notes: str | None = Field(default=None, description="Additional notes")
    user: str | None = Field(default=None, description="Acting user")


class BulkCreateMovementsRequest(BaseModel):
    """Request to record several movements atomically."""

    entries: list[CreateMovementRequest] = Field(..., min_length=1, description="Movements in order")


class DeleteMovementRequest(BaseModel):
    """Request to soft-delete an untouched IN entry."""

    deleted_by: str | None = Field(default=None, description="Acting user")


class QueryMovementsRequest(BaseModel):
    """Filters for a ledger query."""

    item_type: ItemType | None = None
    fk_id: int | None = None
    sku: str | None = None
    variant_id: str | None = None
    movement_type: MovementType | None = None
    source: MovementSource | None = None
    status: EntryStatus | None = None
    batch_number: str | None = None
    date_from: str | None = Field(default=None, description="ISO date, inclusive")
    date_to: str | None = Field(default=None, description="ISO date, inclusive")
    include_deleted: bool = False
    limit: int = Field(default=50, ge=1, le=500)
    offset: int = Field(default=0, ge=0)


# --- Conversions ---


class ConversionLineRequest(BaseModel):
    """One input or output of a conversion."""

    sku: str = Field(..., min_length=1, description="Stock keeping unit")
    quantity: Decimal = Field(..., gt=0, description="Quantity")
    item_type: ItemType = Field(..., description="MATERIAL or PRODUCT")
    fk_id: int = Field(..., gt=0, description="Owning material/product record ID")
    unit: str | None = Field(default=None, description="Unit of measure")
    variant_id: str | None = Field(default=None, description="Product variant ID")
    item_name: str | None = Field(default=None, description="Display name")
    unit_cost: Decimal | None = Field(
        default=None, ge=0, description="Outputs only: explicit unit cost"
    )


class ExecuteConversionRequest(BaseModel):
    """Request to convert inputs into outputs atomically."""

    inputs: list[ConversionLineRequest] = Field(..., min_length=1)
    outputs: list[ConversionLineRequest] = Field(..., min_length=1)
    template_id: int | None = Field(default=None, description="Template this run follows")
    notes: str | None = None
    effective_date: str | None = Field(default=None, description="ISO date (defaults to today)")
    user: str | None = None


class CreateTemplateRequest(BaseModel):
    """Request to create a conversion template."""

    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    inputs: list[ConversionLineRequest] = Field(..., min_length=1)
    outputs: list[ConversionLineRequest] = Field(..., min_length=1)
    user: str | None = None


class ListTemplatesRequest(BaseModel):
    status: TemplateStatus | None = None
    limit: int = Field(default=100, ge=1, le=500)
    offset: int = Field(default=0, ge=0)


# --- Production ---


class ProductionPlanItemRequest(BaseModel):
    """Run ``quantity`` units of a template."""

    template_id: int = Field(..., gt=0)
    quantity: Decimal = Field(..., gt=0)


class CalculateRequirementsRequest(BaseModel):
    """Dry-run feasibility check of a production plan."""

    plan: list[ProductionPlanItemRequest] = Field(..., min_length=1)


class ExecuteProductionRequest(BaseModel):
    """Request to run a production plan atomically."""

    plan: list[ProductionPlanItemRequest] = Field(..., min_length=1)
    notes: str | None = None
    effective_date: str | None = Field(default=None, description="ISO date (defaults to today)")
    user: str | None = None


# --- Monthly summaries ---


class GenerateSummaryRequest(BaseModel):
    """Generate one monthly summary for a SKU or a variant."""

    sku: str | None = Field(default=None, description="SKU scope")
    variant_id: str | None = Field(default=None, description="Variant scope")
    no_variant: bool = Field(default=False, description="Only the SKU's entries without a variant")
    year: int = Field(..., ge=1, le=9999)
    month: int = Field(..., ge=1, le=12)


class GenerateAllSummariesRequest(BaseModel):
    """Generate summaries of every scope up to a month (default: last month)."""

    year: int | None = Field(default=None, ge=1, le=9999)
    month: int | None = Field(default=None, ge=1, le=12)


class RebuildSummariesRequest(BaseModel):
    """Regenerate a scope's summaries from a month onward."""

    sku: str | None = None
    variant_id: str | None = None
    no_variant: bool = False
    from_period: str = Field(..., description="YYYY-MM")
    to_period: str | None = Field(default=None, description="YYYY-MM (default: latest summarized)")


# --- Current values ---


class RefreshCurrentValueRequest(BaseModel):
    """Refresh one item, or rebuild every projection row when both are omitted."""

    item_type: ItemType | None = None
    fk_id: int | None = Field(default=None, gt=0)
