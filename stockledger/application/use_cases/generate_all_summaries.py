"""Generate All Summaries Use Case - the monthly bulk run."""

from stockledger.application.dto.requests import GenerateAllSummariesRequest
from stockledger.application.dto.responses import BulkSummaryResponse, SummaryUnitResponse
from stockledger.core.entities.summary import BulkSummaryReport, Period
from stockledger.core.exceptions import ValidationError
from stockledger.core.services import SummaryReconciler


class GenerateAllSummariesUseCase:
    """
    Generate every scope's summaries up to a month.

    Without year/month the run targets the previous calendar month.
    """

    def __init__(self, reconciler: SummaryReconciler | None = None):
        self._reconciler = reconciler

    async def _get_reconciler(self) -> SummaryReconciler:
        if self._reconciler is None:
            from stockledger.application.services import get_summary_reconciler

            self._reconciler = await get_summary_reconciler()
        return self._reconciler

    async def execute(self, request: GenerateAllSummariesRequest) -> BulkSummaryReport:
        if (request.year is None) != (request.month is None):
            raise ValidationError("month", "year and month must be given together")

        reconciler = await self._get_reconciler()
        target = Period(request.year, request.month) if request.year is not None else None
        return await reconciler.generate_all(target)

    def to_response(self, result: BulkSummaryReport) -> BulkSummaryResponse:
        return BulkSummaryResponse(
            period=str(result.target),
            created=result.created,
            skipped=result.skipped,
            failed=result.failed,
            results=[
                SummaryUnitResponse(
                    sku=r.sku,
                    variant_id=r.variant_id,
                    no_variant=r.no_variant,
                    period=str(r.period),
                    outcome=r.outcome.value,
                    message=r.message,
                    summary_id=r.summary_id,
                )
                for r in result.results
            ],
        )
