"""
Domain exceptions for the stock ledger.

Every error carries a stable machine-readable ``code`` used as the error
``kind`` in API result envelopes.
"""

from decimal import Decimal
from typing import Any


class LedgerError(Exception):
    """Base exception for all ledger errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Storage Exceptions
class StorageError(LedgerError):
    """Base exception for storage operations."""

    pass


class PersistenceError(StorageError):
    """The underlying store failed; the open transaction was rolled back."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Database error during {operation}: {error}",
            code="PERSISTENCE_ERROR",
            details={"operation": operation, "error": error},
        )


class EntryNotFoundError(StorageError):
    """Ledger entry not found."""

    def __init__(self, entry_id: int):
        super().__init__(
            f"Ledger entry not found: {entry_id}",
            code="ENTRY_NOT_FOUND",
            details={"entry_id": entry_id},
        )


class TemplateNotFoundError(StorageError):
    """Conversion template not found."""

    def __init__(self, template_ref: int | str):
        super().__init__(
            f"Conversion template not found: {template_ref}",
            code="TEMPLATE_NOT_FOUND",
            details={"template_ref": template_ref},
        )


class ConversionRecordNotFoundError(StorageError):
    """Conversion record not found."""

    def __init__(self, reference: str):
        super().__init__(
            f"Conversion record not found: {reference}",
            code="CONVERSION_NOT_FOUND",
            details={"reference": reference},
        )


class CurrentValueNotFoundError(StorageError):
    """No projection row exists for the item."""

    def __init__(self, item_type: str, fk_id: int):
        super().__init__(
            f"No current value for {item_type}:{fk_id}",
            code="CURRENT_VALUE_NOT_FOUND",
            details={"item_type": item_type, "fk_id": fk_id},
        )


# Validation Exceptions
class ValidationError(LedgerError):
    """Command input is malformed; nothing was written."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Validation error for '{field}': {message}",
            code="VALIDATION_ERROR",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value is not None else None,
            },
        )


# Inventory Exceptions
class InventoryError(LedgerError):
    """Base exception for stock movement failures."""

    pass


class InsufficientStockError(InventoryError):
    """Active batches cannot cover the requested quantity."""

    def __init__(
        self,
        item: str,
        required: Decimal,
        available: Decimal,
        shortages: list[dict[str, Any]] | None = None,
    ):
        super().__init__(
            f"Insufficient stock for {item}: required {required}, available {available}",
            code="INSUFFICIENT_STOCK",
            details={
                "item": item,
                "required": str(required),
                "available": str(available),
                "shortages": shortages or [],
            },
        )
        self.item = item
        self.required = required
        self.available = available
        self.shortages = shortages or []


class ConversionInfeasibleError(InsufficientStockError):
    """One or more conversion inputs are short; raised before any ledger write."""

    def __init__(self, shortages: list[dict[str, Any]]):
        first = shortages[0]
        super().__init__(
            item=first["sku"],
            required=Decimal(first["required"]),
            available=Decimal(first["available"]),
            shortages=shortages,
        )
        self.message = f"Insufficient stock for {len(shortages)} input(s): " + ", ".join(
            f"{s['sku']} short by {s['shortage']}" for s in shortages
        )
        self.args = (self.message,)


class ConcurrencyConflictError(InventoryError):
    """A concurrent writer changed a batch the FIFO scan depended on."""

    def __init__(self, entry_id: int, reason: str = "batch changed during consumption"):
        super().__init__(
            f"Concurrent update on batch {entry_id}: {reason}",
            code="CONCURRENCY_CONFLICT",
            details={"entry_id": entry_id, "reason": reason},
        )
        self.entry_id = entry_id


class TemplateInactiveError(InventoryError):
    """Template is not ACTIVE and cannot drive production."""

    def __init__(self, template_id: int, status: str):
        super().__init__(
            f"Conversion template {template_id} is {status}",
            code="TEMPLATE_INACTIVE",
            details={"template_id": template_id, "status": status},
        )


# Summary Exceptions
class SummaryError(LedgerError):
    """Base exception for monthly summary reconciliation."""

    pass


class AlreadyExistsError(SummaryError):
    """A summary for the period already exists; treated as a no-op signal."""

    def __init__(self, scope: str, period: str, summary_id: int | None = None):
        super().__init__(
            f"Summary for {scope} {period} already exists",
            code="ALREADY_EXISTS",
            details={"scope": scope, "period": period, "summary_id": summary_id},
        )


class NoHistoryError(SummaryError):
    """No ledger entries exist up to the end of the period; skip, do not retry."""

    def __init__(self, scope: str, period: str):
        super().__init__(
            f"No ledger entries for {scope} up to {period}",
            code="NO_HISTORY",
            details={"scope": scope, "period": period},
        )


class ConfigurationError(LedgerError):
    """Configuration error."""

    pass
