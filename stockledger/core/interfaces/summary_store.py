"""Abstract interface for monthly summaries."""

from abc import ABC, abstractmethod

from stockledger.core.entities.summary import MonthlySummary, Period, SummaryScope


class ISummaryStore(ABC):
    """Interface for monthly summary persistence, keyed by (sku, variant, period)."""

    @abstractmethod
    async def get(self, scope: SummaryScope, period: Period) -> MonthlySummary | None:
        """Get the summary of a scope for a period."""
        pass

    @abstractmethod
    async def upsert(self, summary: MonthlySummary) -> MonthlySummary:
        """Insert or replace the row for the summary's natural key."""
        pass

    @abstractmethod
    async def list_summaries(
        self,
        sku: str | None = None,
        variant_id: str | None = None,
        year: int | None = None,
        month: int | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[MonthlySummary]:
        """List summaries, newest period first."""
        pass

    @abstractmethod
    async def delete_from(self, scope: SummaryScope, period: Period) -> int:
        """Delete a scope's summaries for ``period`` and later; return count."""
        pass

    @abstractmethod
    async def latest_period(self, scope: SummaryScope) -> Period | None:
        """Most recent summarized period of a scope."""
        pass
