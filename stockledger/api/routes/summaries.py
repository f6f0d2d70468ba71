"""Monthly summary endpoints."""

from fastapi import APIRouter, Depends, Query, status

from stockledger.api.dependencies import (
    get_generate_all_summaries_use_case,
    get_generate_summary_use_case,
    get_list_summaries_use_case,
    get_rebuild_summaries_use_case,
)
from stockledger.application.dto.requests import (
    GenerateAllSummariesRequest,
    GenerateSummaryRequest,
    RebuildSummariesRequest,
)
from stockledger.application.dto.responses import (
    BulkSummaryResponse,
    Envelope,
    MonthlySummaryResponse,
)
from stockledger.application.use_cases import (
    GenerateAllSummariesUseCase,
    GenerateSummaryUseCase,
    ListSummariesUseCase,
    RebuildSummariesUseCase,
)

router = APIRouter(prefix="/api/summaries", tags=["summaries"])


@router.post(
    "",
    response_model=Envelope[MonthlySummaryResponse],
    status_code=status.HTTP_201_CREATED,
)
async def generate_summary(
    request: GenerateSummaryRequest,
    use_case: GenerateSummaryUseCase = Depends(get_generate_summary_use_case),
) -> Envelope[MonthlySummaryResponse]:
    """Generate one month for a SKU or variant. Existing months are not touched."""
    result = await use_case.execute(request)
    return Envelope.ok(use_case.to_response(result))


@router.post("/generate-all", response_model=Envelope[BulkSummaryResponse])
async def generate_all_summaries(
    request: GenerateAllSummariesRequest,
    use_case: GenerateAllSummariesUseCase = Depends(get_generate_all_summaries_use_case),
) -> Envelope[BulkSummaryResponse]:
    """Generate every scope up to a month (default: previous month)."""
    result = await use_case.execute(request)
    return Envelope.ok(use_case.to_response(result))


@router.post("/rebuild", response_model=Envelope[list[MonthlySummaryResponse]])
async def rebuild_summaries(
    request: RebuildSummariesRequest,
    use_case: RebuildSummariesUseCase = Depends(get_rebuild_summaries_use_case),
) -> Envelope[list[MonthlySummaryResponse]]:
    """Regenerate a scope from a month onward, e.g. after back-dated entries."""
    result = await use_case.execute(request)
    return Envelope.ok(use_case.to_response(result))


@router.get("", response_model=Envelope[list[MonthlySummaryResponse]])
async def list_summaries(
    sku: str | None = None,
    variant_id: str | None = None,
    year: int | None = None,
    month: int | None = Query(default=None, ge=1, le=12),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    use_case: ListSummariesUseCase = Depends(get_list_summaries_use_case),
) -> Envelope[list[MonthlySummaryResponse]]:
    result = await use_case.execute(sku, variant_id, year, month, limit, offset)
    return Envelope.ok(use_case.to_response(result))
