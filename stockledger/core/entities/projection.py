"""Current-value projection entity."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, field_validator

from stockledger.core.entities.ledger import ItemKey, ItemType
from stockledger.core.numeric import ZERO, cost, money, qty


class CurrentValue(BaseModel):
    """Cached quantity and value of an item; rebuildable from the ledger."""

    item_type: ItemType
    fk_id: int
    sku: str | None = None
    variant_id: str | None = None
    item_name: str | None = None
    unit: str | None = None
    current_quantity: Decimal = ZERO
    current_value: Decimal = ZERO
    last_cost: Decimal = ZERO
    last_movement_date: date | None = None
    refreshed_at: datetime | None = None

    @field_validator("current_quantity")
    @classmethod
    def quantize_qty(cls, v: Decimal) -> Decimal:
        return qty(v)

    @field_validator("current_value")
    @classmethod
    def quantize_value(cls, v: Decimal) -> Decimal:
        return money(v)

    @field_validator("last_cost")
    @classmethod
    def quantize_cost(cls, v: Decimal) -> Decimal:
        return cost(v)

    @property
    def key(self) -> ItemKey:
        return ItemKey(item_type=self.item_type, fk_id=self.fk_id)
