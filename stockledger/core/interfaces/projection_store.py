"""Abstract interface for the current-value projection."""

from abc import ABC, abstractmethod

from stockledger.core.entities.ledger import ItemKey, ItemType
from stockledger.core.entities.projection import CurrentValue


class IProjectionStore(ABC):
    """Interface for cached per-item current values."""

    @abstractmethod
    async def upsert_many(self, values: list[CurrentValue]) -> None:
        """Insert or replace rows keyed by (item_type, fk_id)."""
        pass

    @abstractmethod
    async def delete(self, keys: list[ItemKey]) -> None:
        """Remove rows for items that no longer hold stock."""
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Remove every row."""
        pass

    @abstractmethod
    async def get(self, key: ItemKey) -> CurrentValue | None:
        """Get one item's current value."""
        pass

    @abstractmethod
    async def list_values(
        self,
        item_type: ItemType | None = None,
        sku: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[CurrentValue]:
        """List current values."""
        pass
