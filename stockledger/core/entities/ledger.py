"""
Movement ledger entities.

A MovementEntry is one stock movement. IN entries double as FIFO batches:
their ``quantity`` never changes after commit, while ``remaining_qty`` is the
materialized counter the FIFO engine decrements under a version guard.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from stockledger.core.numeric import ZERO, cost, line_value, qty


class ItemType(str, Enum):
    """Kind of item a movement belongs to."""

    MATERIAL = "MATERIAL"
    PRODUCT = "PRODUCT"


class MovementType(str, Enum):
    """Direction of a stock movement."""

    IN = "IN"
    OUT = "OUT"


class MovementSource(str, Enum):
    """Business origin of a stock movement."""

    PURCHASE = "PURCHASE"
    PRODUCTION = "PRODUCTION"
    SALES = "SALES"
    ADJUSTMENT = "ADJUSTMENT"
    RETURN = "RETURN"
    CUSTOMER_RETURN = "CUSTOMER_RETURN"
    VENDOR_RETURN = "VENDOR_RETURN"
    OPENING_STOCK = "OPENING_STOCK"
    CONVERSION = "CONVERSION"


class EntryStatus(str, Enum):
    """Lifecycle status of a ledger entry."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"  # exhausted batch, kept for audit
    DELETED = "DELETED"


def blank_to_none(v: str | None) -> str | None:
    """Treat an empty or whitespace variant as no variant."""
    if v is None:
        return None
    v = v.strip()
    return v or None


class ItemKey(BaseModel):
    """
    Identity of a stocked item.

    FIFO batches are drawn per variant: a key without ``variant_id`` only
    matches batches that carry no variant. The current-value projection rolls
    variants up to the item (see ``item``).
    """

    model_config = ConfigDict(frozen=True)

    item_type: ItemType
    fk_id: int
    variant_id: str | None = None

    @field_validator("variant_id")
    @classmethod
    def normalize_variant(cls, v: str | None) -> str | None:
        return blank_to_none(v)

    @property
    def item(self) -> "ItemKey":
        """The key with its variant dropped."""
        if self.variant_id is None:
            return self
        return ItemKey(item_type=self.item_type, fk_id=self.fk_id)

    def __str__(self) -> str:
        if self.variant_id:
            return f"{self.item_type.value}:{self.fk_id}/{self.variant_id}"
        return f"{self.item_type.value}:{self.fk_id}"


class MovementEntry(BaseModel):
    """One row of the movement ledger."""

    id: int | None = None
    item_type: ItemType
    fk_id: int
    sku: str
    variant_id: str | None = None
    item_name: str | None = None
    batch_number: str | None = None

    quantity: Decimal
    remaining_qty: Decimal | None = None
    version: int = 0
    unit_cost: Decimal = ZERO
    unit: str | None = None

    movement_type: MovementType
    source: MovementSource
    effective_date: date | None = None
    status: EntryStatus = EntryStatus.ACTIVE
    notes: str | None = None

    created_by: str | None = None
    updated_by: str | None = None
    deleted_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None

    @field_validator("variant_id")
    @classmethod
    def normalize_variant(cls, v: str | None) -> str | None:
        return blank_to_none(v)

    @field_validator("quantity", "remaining_qty")
    @classmethod
    def quantize_quantity(cls, v: Decimal | None) -> Decimal | None:
        return None if v is None else qty(v)

    @field_validator("unit_cost")
    @classmethod
    def quantize_cost(cls, v: Decimal) -> Decimal:
        return cost(v)

    @model_validator(mode="after")
    def default_remaining(self) -> "MovementEntry":
        if self.remaining_qty is None:
            self.remaining_qty = self.quantity if self.movement_type == MovementType.IN else ZERO
        return self

    @property
    def key(self) -> ItemKey:
        return ItemKey(item_type=self.item_type, fk_id=self.fk_id, variant_id=self.variant_id)

    @property
    def value(self) -> Decimal:
        """Money value of the movement: quantity x unit cost."""
        return line_value(self.quantity, self.unit_cost)

    @property
    def remaining_value(self) -> Decimal:
        return line_value(self.remaining_qty or ZERO, self.unit_cost)

    @property
    def is_untouched_batch(self) -> bool:
        return self.movement_type == MovementType.IN and self.remaining_qty == self.quantity


class MovementFilter(BaseModel):
    """Filters for ledger queries; unset fields do not constrain."""

    item_type: ItemType | None = None
    fk_id: int | None = None
    sku: str | None = None
    variant_id: str | None = None
    movement_type: MovementType | None = None
    source: MovementSource | None = None
    status: EntryStatus | None = None
    batch_number: str | None = None
    date_from: date | None = None
    date_to: date | None = None
    include_deleted: bool = False


class EntryPage(BaseModel):
    """One page of ledger query results."""

    items: list[MovementEntry] = Field(default_factory=list)
    total: int = 0
    limit: int = 50
    offset: int = 0


@dataclass
class ConsumptionContext:
    """How the OUT entries produced by a FIFO consumption are tagged."""

    source: MovementSource
    effective_date: date | None = None
    batch_number: str | None = None
    notes: str | None = None
    user: str | None = None


@dataclass
class Allocation:
    """Quantity taken from one batch during a FIFO consumption."""

    batch: MovementEntry
    qty_taken: Decimal
    unit_cost: Decimal
    out_entry: MovementEntry | None = None

    @property
    def value(self) -> Decimal:
        return line_value(self.qty_taken, self.unit_cost)


@dataclass
class ConsumptionResult:
    """Outcome of consuming a quantity of one item oldest-batch-first."""

    key: ItemKey
    required: Decimal
    allocations: list[Allocation] = field(default_factory=list)

    @property
    def total_cost(self) -> Decimal:
        return sum((a.value for a in self.allocations), ZERO)

    @property
    def consumed(self) -> Decimal:
        return sum((a.qty_taken for a in self.allocations), ZERO)

    @property
    def out_entries(self) -> list[MovementEntry]:
        return [a.out_entry for a in self.allocations if a.out_entry is not None]
