"""Rebuild Summaries Use Case - folds back-dated entries into summaries."""

from stockledger.application.dto.requests import RebuildSummariesRequest
from stockledger.application.dto.responses import MonthlySummaryResponse, summary_response
from stockledger.application.use_cases.common import make_scope, parse_period
from stockledger.core.entities.summary import MonthlySummary
from stockledger.core.services import SummaryReconciler


class RebuildSummariesUseCase:
    def __init__(self, reconciler: SummaryReconciler | None = None):
        self._reconciler = reconciler

    async def _get_reconciler(self) -> SummaryReconciler:
        if self._reconciler is None:
            from stockledger.application.services import get_summary_reconciler

            self._reconciler = await get_summary_reconciler()
        return self._reconciler

    async def execute(self, request: RebuildSummariesRequest) -> list[MonthlySummary]:
        scope = make_scope(request.sku, request.variant_id, request.no_variant)
        from_period = parse_period("from_period", request.from_period)
        to_period = parse_period("to_period", request.to_period) if request.to_period else None

        reconciler = await self._get_reconciler()
        return await reconciler.rebuild(scope, from_period, to_period)

    def to_response(self, result: list[MonthlySummary]) -> list[MonthlySummaryResponse]:
        return [summary_response(s) for s in result]
