"""Abstract interface for the movement ledger."""

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal

from stockledger.core.entities.ledger import (
    EntryPage,
    ItemKey,
    MovementEntry,
    MovementFilter,
)
from stockledger.core.entities.summary import SummaryScope


class ILedgerStore(ABC):
    """Interface for movement entry persistence."""

    @abstractmethod
    async def append(self, entry: MovementEntry) -> MovementEntry:
        """Insert one entry and return it with its id."""
        pass

    @abstractmethod
    async def append_many(self, entries: list[MovementEntry]) -> list[MovementEntry]:
        """Insert entries in order, all-or-nothing."""
        pass

    @abstractmethod
    async def get(self, entry_id: int) -> MovementEntry | None:
        """Get entry by ID."""
        pass

    @abstractmethod
    async def query(
        self, filters: MovementFilter, limit: int = 50, offset: int = 0
    ) -> EntryPage:
        """Filtered page, newest effective date first."""
        pass

    @abstractmethod
    async def list_active_batches(self, key: ItemKey) -> list[MovementEntry]:
        """ACTIVE IN entries of the key's variant with stock left, oldest first (effective_date, id)."""
        pass

    @abstractmethod
    async def available_quantity(self, key: ItemKey) -> Decimal:
        """Sum of remaining quantity over ACTIVE IN entries."""
        pass

    @abstractmethod
    async def decrement_batch(
        self,
        entry_id: int,
        expected_version: int,
        new_remaining: Decimal,
        updated_by: str | None = None,
    ) -> None:
        """
        Set a batch's remaining quantity if its version still matches.

        Marks the batch INACTIVE when the remaining quantity reaches zero.
        Raises ConcurrencyConflictError when no row matched.
        """
        pass

    @abstractmethod
    async def soft_delete(self, entry_id: int, deleted_by: str | None = None) -> MovementEntry:
        """Mark an entry DELETED."""
        pass

    @abstractmethod
    async def list_for_scope(
        self,
        scope: SummaryScope,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> list[MovementEntry]:
        """Non-deleted entries of a summary scope within an inclusive date range."""
        pass

    @abstractmethod
    async def first_entry_date(self, scope: SummaryScope) -> date | None:
        """Earliest effective date of a non-deleted entry in the scope."""
        pass

    @abstractmethod
    async def skus_for_variant(self, variant_id: str) -> list[str]:
        """SKUs whose non-deleted entries carry ``variant_id``."""
        pass

    @abstractmethod
    async def distinct_sku_variants(self) -> list[tuple[str, str | None]]:
        """Distinct (sku, variant_id) pairs among non-deleted entries."""
        pass

    @abstractmethod
    async def list_active_for_keys(
        self, keys: list[ItemKey] | None = None
    ) -> list[MovementEntry]:
        """ACTIVE IN entries for the given items over all variants, or for every item when None."""
        pass
