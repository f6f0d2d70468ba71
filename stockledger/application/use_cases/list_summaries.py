"""List Monthly Summaries Use Case."""

from stockledger.application.dto.responses import MonthlySummaryResponse, summary_response
from stockledger.core.entities.summary import MonthlySummary
from stockledger.core.services import SummaryReconciler


class ListSummariesUseCase:
    def __init__(self, reconciler: SummaryReconciler | None = None):
        self._reconciler = reconciler

    async def _get_reconciler(self) -> SummaryReconciler:
        if self._reconciler is None:
            from stockledger.application.services import get_summary_reconciler

            self._reconciler = await get_summary_reconciler()
        return self._reconciler

    async def execute(
        self,
        sku: str | None = None,
        variant_id: str | None = None,
        year: int | None = None,
        month: int | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[MonthlySummary]:
        reconciler = await self._get_reconciler()
        return await reconciler.list_summaries(sku, variant_id, year, month, limit, offset)

    def to_response(self, result: list[MonthlySummary]) -> list[MonthlySummaryResponse]:
        return [summary_response(s) for s in result]
