"""Calculate Requirements Use Case - production dry run."""

from stockledger.application.dto.requests import CalculateRequirementsRequest
from stockledger.application.dto.responses import (
    RequirementsResponse,
    requirement_response,
    template_response,
)
from stockledger.core.entities.conversion import ProductionPlanItem, RequirementsReport
from stockledger.core.services import ConversionCoordinator


class CalculateRequirementsUseCase:
    """Aggregate a plan's needs against availability without writing."""

    def __init__(self, coordinator: ConversionCoordinator | None = None):
        self._coordinator = coordinator

    async def _get_coordinator(self) -> ConversionCoordinator:
        if self._coordinator is None:
            from stockledger.application.services import get_conversion_coordinator

            self._coordinator = await get_conversion_coordinator()
        return self._coordinator

    async def execute(self, request: CalculateRequirementsRequest) -> RequirementsReport:
        coordinator = await self._get_coordinator()
        plan = [
            ProductionPlanItem(template_id=item.template_id, quantity=item.quantity)
            for item in request.plan
        ]
        return await coordinator.calculate_requirements(plan)

    def to_response(self, result: RequirementsReport) -> RequirementsResponse:
        return RequirementsResponse(
            feasible=result.feasible,
            materials=[requirement_response(r) for r in result.materials],
            products=[requirement_response(r) for r in result.products],
            templates=[template_response(t) for t in result.templates],
        )
