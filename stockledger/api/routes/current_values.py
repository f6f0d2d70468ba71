"""Current-value projection endpoints."""

from fastapi import APIRouter, Depends, Query

from stockledger.api.dependencies import (
    get_get_current_value_use_case,
    get_list_current_values_use_case,
    get_refresh_current_value_use_case,
)
from stockledger.application.dto.requests import RefreshCurrentValueRequest
from stockledger.application.dto.responses import (
    CurrentValueResponse,
    Envelope,
    RefreshCurrentValueResponse,
)
from stockledger.application.use_cases import (
    GetCurrentValueUseCase,
    ListCurrentValuesUseCase,
    RefreshCurrentValueUseCase,
)
from stockledger.core.entities.ledger import ItemType

router = APIRouter(prefix="/api/current-values", tags=["current-values"])


@router.post("/refresh", response_model=Envelope[RefreshCurrentValueResponse])
async def refresh_current_value(
    request: RefreshCurrentValueRequest,
    use_case: RefreshCurrentValueUseCase = Depends(get_refresh_current_value_use_case),
) -> Envelope[RefreshCurrentValueResponse]:
    """Refresh one item; an empty body rebuilds every row from the ledger."""
    result = await use_case.execute(request)
    return Envelope.ok(use_case.to_response(result))


@router.get("", response_model=Envelope[list[CurrentValueResponse]])
async def list_current_values(
    item_type: ItemType | None = None,
    sku: str | None = None,
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    use_case: ListCurrentValuesUseCase = Depends(get_list_current_values_use_case),
) -> Envelope[list[CurrentValueResponse]]:
    result = await use_case.execute(item_type, sku, limit, offset)
    return Envelope.ok(use_case.to_response(result))


@router.get("/{item_type}/{fk_id}", response_model=Envelope[CurrentValueResponse])
async def get_current_value(
    item_type: ItemType,
    fk_id: int,
    use_case: GetCurrentValueUseCase = Depends(get_get_current_value_use_case),
) -> Envelope[CurrentValueResponse]:
    result = await use_case.execute(item_type, fk_id)
    return Envelope.ok(use_case.to_response(result))
