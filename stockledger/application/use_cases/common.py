"""Parsing helpers shared by use cases."""

from datetime import date

from stockledger.core.entities.summary import Period, SummaryScope
from stockledger.core.exceptions import ValidationError


def parse_iso_date(field: str, value: str | None) -> date | None:
    """Parse an optional ISO date, raising ValidationError when unresolvable."""
    if value is None or value == "":
        return None
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise ValidationError(field, "must be an ISO date (YYYY-MM-DD)", value) from e


def parse_period(field: str, value: str) -> Period:
    """Parse ``YYYY-MM``, raising ValidationError when malformed."""
    try:
        return Period.parse(value)
    except ValueError as e:
        raise ValidationError(field, str(e), value) from e


def make_scope(sku: str | None, variant_id: str | None, no_variant: bool = False) -> SummaryScope:
    """Build a summary scope from optional sku / variant_id."""
    sku = sku.strip() if sku else None
    variant_id = variant_id.strip() if variant_id else None
    if not sku and not variant_id:
        raise ValidationError("sku", "either sku or variant_id is required")
    if no_variant and (variant_id or not sku):
        raise ValidationError("no_variant", "needs a sku and no variant_id", variant_id)
    return SummaryScope(sku=sku, variant_id=variant_id, no_variant=no_variant)
