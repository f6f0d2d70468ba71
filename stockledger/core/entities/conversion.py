"""Conversion and production entities."""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from stockledger.core.entities.ledger import ItemKey, ItemType, blank_to_none
from stockledger.core.numeric import ZERO, cost, money, qty


class TemplateStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    ARCHIVED = "ARCHIVED"


class ConversionStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"
    ROLLED_BACK = "ROLLED_BACK"


class ConversionStage(str, Enum):
    """Stages of one conversion execution, in order."""

    VALIDATE = "VALIDATE"
    CONSUME_INPUTS = "CONSUME_INPUTS"
    CREDIT_OUTPUTS = "CREDIT_OUTPUTS"
    RECORD = "RECORD"
    COMMIT = "COMMIT"
    ROLLBACK = "ROLLBACK"


class ConversionLine(BaseModel):
    """One input or output of a conversion, snapshotted at execution time."""

    sku: str
    quantity: Decimal
    item_type: ItemType
    fk_id: int
    unit: str | None = None
    variant_id: str | None = None
    item_name: str | None = None
    # Outputs only: explicit unit cost; inputs carry the resolved FIFO cost
    unit_cost: Decimal | None = None
    total_cost: Decimal | None = None

    @field_validator("variant_id")
    @classmethod
    def normalize_variant(cls, v: str | None) -> str | None:
        return blank_to_none(v)

    @field_validator("quantity")
    @classmethod
    def quantize_quantity(cls, v: Decimal) -> Decimal:
        return qty(v)

    @field_validator("unit_cost")
    @classmethod
    def quantize_unit_cost(cls, v: Decimal | None) -> Decimal | None:
        return None if v is None else cost(v)

    @field_validator("total_cost")
    @classmethod
    def quantize_total_cost(cls, v: Decimal | None) -> Decimal | None:
        return None if v is None else money(v)

    @property
    def key(self) -> ItemKey:
        return ItemKey(item_type=self.item_type, fk_id=self.fk_id, variant_id=self.variant_id)


class ConversionTemplate(BaseModel):
    """Reusable recipe of inputs and outputs."""

    id: int | None = None
    name: str
    description: str | None = None
    inputs: list[ConversionLine] = Field(default_factory=list)
    outputs: list[ConversionLine] = Field(default_factory=list)
    status: TemplateStatus = TemplateStatus.ACTIVE
    created_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_usable(self) -> bool:
        return self.status == TemplateStatus.ACTIVE


class ConversionRecord(BaseModel):
    """Audit record of one completed conversion or production template run."""

    id: int | None = None
    reference: str
    batch_number: str
    template_id: int | None = None
    inputs: list[ConversionLine] = Field(default_factory=list)
    outputs: list[ConversionLine] = Field(default_factory=list)
    total_input_cost: Decimal = ZERO
    status: ConversionStatus = ConversionStatus.COMPLETED
    notes: str | None = None
    created_by: str | None = None
    created_at: datetime | None = None

    @field_validator("total_input_cost")
    @classmethod
    def quantize_total(cls, v: Decimal) -> Decimal:
        return money(v)


class ProductionPlanItem(BaseModel):
    """Run ``quantity`` units of a template."""

    template_id: int
    quantity: Decimal

    @field_validator("quantity")
    @classmethod
    def quantize_quantity(cls, v: Decimal) -> Decimal:
        return qty(v)


class Requirement(BaseModel):
    """Aggregated need for one item across a plan."""

    item_type: ItemType
    fk_id: int
    sku: str
    unit: str | None = None
    variant_id: str | None = None
    item_name: str | None = None
    required: Decimal
    available: Decimal = ZERO

    @property
    def key(self) -> ItemKey:
        return ItemKey(item_type=self.item_type, fk_id=self.fk_id, variant_id=self.variant_id)

    @property
    def shortage(self) -> Decimal:
        return max(self.required - self.available, ZERO)

    @property
    def feasible(self) -> bool:
        return self.available >= self.required


class RequirementsReport(BaseModel):
    """Dry-run feasibility of a production plan."""

    materials: list[Requirement] = Field(default_factory=list)
    products: list[Requirement] = Field(default_factory=list)
    templates: list[ConversionTemplate] = Field(default_factory=list)

    @property
    def feasible(self) -> bool:
        return all(r.feasible for r in self.materials)

    @property
    def shortages(self) -> list[dict]:
        return [
            {
                "sku": r.sku,
                "item_type": r.item_type.value,
                "fk_id": r.fk_id,
                "required": str(r.required),
                "available": str(r.available),
                "shortage": str(r.shortage),
            }
            for r in self.materials
            if not r.feasible
        ]
