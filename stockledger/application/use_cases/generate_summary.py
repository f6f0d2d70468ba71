"""Generate Monthly Summary Use Case."""

from stockledger.application.dto.requests import GenerateSummaryRequest
from stockledger.application.dto.responses import MonthlySummaryResponse, summary_response
from stockledger.application.use_cases.common import make_scope
from stockledger.config import get_logger
from stockledger.core.entities.summary import MonthlySummary, Period
from stockledger.core.services import SummaryReconciler

logger = get_logger(__name__)


class GenerateSummaryUseCase:
    """
    Use case for generating one (scope, month) summary.

    Generating an existing summary raises AlreadyExistsError and leaves the
    stored row untouched.
    """

    def __init__(self, reconciler: SummaryReconciler | None = None):
        self._reconciler = reconciler

    async def _get_reconciler(self) -> SummaryReconciler:
        if self._reconciler is None:
            from stockledger.application.services import get_summary_reconciler

            self._reconciler = await get_summary_reconciler()
        return self._reconciler

    async def execute(self, request: GenerateSummaryRequest) -> MonthlySummary:
        """Execute generate summary use case."""
        scope = make_scope(request.sku, request.variant_id, request.no_variant)
        period = Period(request.year, request.month)
        logger.info("generate_summary_started", scope=str(scope), period=str(period))

        reconciler = await self._get_reconciler()
        return await reconciler.generate(scope, period)

    def to_response(self, result: MonthlySummary) -> MonthlySummaryResponse:
        return summary_response(result)
