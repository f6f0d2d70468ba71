"""Production plan endpoints."""

from fastapi import APIRouter, Depends, status

from stockledger.api.dependencies import (
    get_calculate_requirements_use_case,
    get_execute_production_use_case,
)
from stockledger.application.dto.requests import (
    CalculateRequirementsRequest,
    ExecuteProductionRequest,
)
from stockledger.application.dto.responses import (
    Envelope,
    ProductionResponse,
    RequirementsResponse,
)
from stockledger.application.use_cases import (
    CalculateRequirementsUseCase,
    ExecuteProductionUseCase,
)

router = APIRouter(prefix="/api/production", tags=["production"])


@router.post("/requirements", response_model=Envelope[RequirementsResponse])
async def calculate_requirements(
    request: CalculateRequirementsRequest,
    use_case: CalculateRequirementsUseCase = Depends(get_calculate_requirements_use_case),
) -> Envelope[RequirementsResponse]:
    """Dry run: aggregated material needs against available stock."""
    result = await use_case.execute(request)
    return Envelope.ok(use_case.to_response(result))


@router.post(
    "",
    response_model=Envelope[ProductionResponse],
    status_code=status.HTTP_201_CREATED,
)
async def execute_production(
    request: ExecuteProductionRequest,
    use_case: ExecuteProductionUseCase = Depends(get_execute_production_use_case),
) -> Envelope[ProductionResponse]:
    """Run a production plan as one atomic conversion."""
    result = await use_case.execute(request)
    return Envelope.ok(use_case.to_response(result))
