"""Fixed-precision decimal helpers for quantities, unit costs and money."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

QTY_PLACES = Decimal("0.0001")
COST_PLACES = Decimal("0.0001")
MONEY_PLACES = Decimal("0.01")

ZERO = Decimal("0")


def to_decimal(value: Any) -> Decimal:
    """Coerce int/str/float/Decimal to Decimal without binary float noise."""
    if isinstance(value, Decimal):
        return value
    if value is None:
        return ZERO
    if isinstance(value, float):
        value = repr(value)
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"Not a decimal number: {value!r}") from e


def qty(value: Any) -> Decimal:
    return to_decimal(value).quantize(QTY_PLACES, rounding=ROUND_HALF_UP)


def cost(value: Any) -> Decimal:
    return to_decimal(value).quantize(COST_PLACES, rounding=ROUND_HALF_UP)


def money(value: Any) -> Decimal:
    return to_decimal(value).quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


def line_value(quantity: Any, unit_cost: Any) -> Decimal:
    """Value of one ledger line; all value aggregates are sums of these."""
    return money(to_decimal(quantity) * to_decimal(unit_cost))


def to_text(value: Decimal) -> str:
    """Canonical TEXT form for storage (fixed-point, never exponent notation)."""
    return format(value, "f")
