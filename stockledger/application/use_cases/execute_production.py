"""Execute Production Use Case - several templates as one conversion."""

from stockledger.application.dto.requests import ExecuteProductionRequest
from stockledger.application.dto.responses import ProductionResponse, record_response
from stockledger.application.use_cases.common import parse_iso_date
from stockledger.config import get_logger
from stockledger.core.entities.conversion import ProductionPlanItem
from stockledger.core.services import ConversionCoordinator, ProductionResult

logger = get_logger(__name__)


class ExecuteProductionUseCase:
    """
    Use case for running a production plan.

    Requirements are aggregated across templates before consumption; one
    reference is shared by the plan and each template gets its own record.
    """

    def __init__(self, coordinator: ConversionCoordinator | None = None):
        self._coordinator = coordinator

    async def _get_coordinator(self) -> ConversionCoordinator:
        if self._coordinator is None:
            from stockledger.application.services import get_conversion_coordinator

            self._coordinator = await get_conversion_coordinator()
        return self._coordinator

    async def execute(self, request: ExecuteProductionRequest) -> ProductionResult:
        """Execute production use case."""
        logger.info("execute_production_started", templates=len(request.plan))
        coordinator = await self._get_coordinator()
        plan = [
            ProductionPlanItem(template_id=item.template_id, quantity=item.quantity)
            for item in request.plan
        ]
        return await coordinator.execute_production(
            plan,
            notes=request.notes,
            user=request.user,
            effective_date=parse_iso_date("effective_date", request.effective_date),
        )

    def to_response(self, result: ProductionResult) -> ProductionResponse:
        return ProductionResponse(
            reference=result.reference,
            total_cost=result.total_cost,
            records=[record_response(r) for r in result.records],
            entries_written=len(result.entries),
        )
