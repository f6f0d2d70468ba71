"""Movement ledger endpoints."""

from fastapi import APIRouter, Depends, Query, status

from stockledger.api.dependencies import (
    get_bulk_create_movements_use_case,
    get_create_movement_use_case,
    get_delete_movement_use_case,
    get_get_movement_use_case,
    get_query_movements_use_case,
)
from stockledger.application.dto.requests import (
    BulkCreateMovementsRequest,
    CreateMovementRequest,
    DeleteMovementRequest,
    QueryMovementsRequest,
)
from stockledger.application.dto.responses import (
    CreateMovementResponse,
    EntryPageResponse,
    Envelope,
    MovementEntryResponse,
)
from stockledger.application.use_cases import (
    BulkCreateMovementsUseCase,
    CreateMovementUseCase,
    DeleteMovementUseCase,
    GetMovementUseCase,
    QueryMovementsUseCase,
)
from stockledger.core.entities.ledger import EntryStatus, ItemType, MovementSource, MovementType

router = APIRouter(prefix="/api/movements", tags=["movements"])


@router.post(
    "",
    response_model=Envelope[CreateMovementResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_movement(
    request: CreateMovementRequest,
    use_case: CreateMovementUseCase = Depends(get_create_movement_use_case),
) -> Envelope[CreateMovementResponse]:
    """Record a movement. OUT movements are issued FIFO, one entry per batch."""
    result = await use_case.execute(request)
    return Envelope.ok(use_case.to_response(result))


@router.post(
    "/bulk",
    response_model=Envelope[CreateMovementResponse],
    status_code=status.HTTP_201_CREATED,
)
async def bulk_create_movements(
    request: BulkCreateMovementsRequest,
    use_case: BulkCreateMovementsUseCase = Depends(get_bulk_create_movements_use_case),
) -> Envelope[CreateMovementResponse]:
    """Record several movements atomically."""
    result = await use_case.execute(request)
    return Envelope.ok(use_case.to_response(result))


@router.get("", response_model=Envelope[EntryPageResponse])
async def query_movements(
    item_type: ItemType | None = None,
    fk_id: int | None = None,
    sku: str | None = None,
    variant_id: str | None = None,
    movement_type: MovementType | None = None,
    source: MovementSource | None = None,
    entry_status: EntryStatus | None = Query(default=None, alias="status"),
    batch_number: str | None = None,
    date_from: str | None = None,
    date_to: str | None = None,
    include_deleted: bool = False,
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    use_case: QueryMovementsUseCase = Depends(get_query_movements_use_case),
) -> Envelope[EntryPageResponse]:
    """Query the ledger, newest effective date first."""
    request = QueryMovementsRequest(
        item_type=item_type,
        fk_id=fk_id,
        sku=sku,
        variant_id=variant_id,
        movement_type=movement_type,
        source=source,
        status=entry_status,
        batch_number=batch_number,
        date_from=date_from,
        date_to=date_to,
        include_deleted=include_deleted,
        limit=limit,
        offset=offset,
    )
    result = await use_case.execute(request)
    return Envelope.ok(use_case.to_response(result))


@router.get("/{entry_id}", response_model=Envelope[MovementEntryResponse])
async def get_movement(
    entry_id: int,
    use_case: GetMovementUseCase = Depends(get_get_movement_use_case),
) -> Envelope[MovementEntryResponse]:
    result = await use_case.execute(entry_id)
    return Envelope.ok(use_case.to_response(result))


@router.delete("/{entry_id}", response_model=Envelope[MovementEntryResponse])
async def delete_movement(
    entry_id: int,
    deleted_by: str | None = None,
    use_case: DeleteMovementUseCase = Depends(get_delete_movement_use_case),
) -> Envelope[MovementEntryResponse]:
    """Soft-delete an IN entry that has not been consumed from."""
    result = await use_case.execute(entry_id, DeleteMovementRequest(deleted_by=deleted_by))
    return Envelope.ok(use_case.to_response(result))
