"""Query Movements Use Case."""

from stockledger.application.dto.requests import QueryMovementsRequest
from stockledger.application.dto.responses import (
    EntryPageResponse,
    MovementEntryResponse,
    movement_response,
)
from stockledger.application.use_cases.common import parse_iso_date
from stockledger.core.entities.ledger import EntryPage, MovementEntry, MovementFilter
from stockledger.core.services import LedgerService


class QueryMovementsUseCase:
    """Filtered, paginated read of the ledger."""

    def __init__(self, ledger_service: LedgerService | None = None):
        self._ledger_service = ledger_service

    async def _get_ledger_service(self) -> LedgerService:
        if self._ledger_service is None:
            from stockledger.application.services import get_ledger_service

            self._ledger_service = await get_ledger_service()
        return self._ledger_service

    async def execute(self, request: QueryMovementsRequest) -> EntryPage:
        service = await self._get_ledger_service()
        filters = MovementFilter(
            item_type=request.item_type,
            fk_id=request.fk_id,
            sku=request.sku,
            variant_id=request.variant_id,
            movement_type=request.movement_type,
            source=request.source,
            status=request.status,
            batch_number=request.batch_number,
            date_from=parse_iso_date("date_from", request.date_from),
            date_to=parse_iso_date("date_to", request.date_to),
            include_deleted=request.include_deleted,
        )
        return await service.query(filters, request.limit, request.offset)

    def to_response(self, result: EntryPage) -> EntryPageResponse:
        return EntryPageResponse(
            items=[movement_response(e) for e in result.items],
            total=result.total,
            limit=result.limit,
            offset=result.offset,
        )


class GetMovementUseCase:
    def __init__(self, ledger_service: LedgerService | None = None):
        self._ledger_service = ledger_service

    async def _get_ledger_service(self) -> LedgerService:
        if self._ledger_service is None:
            from stockledger.application.services import get_ledger_service

            self._ledger_service = await get_ledger_service()
        return self._ledger_service

    async def execute(self, entry_id: int) -> MovementEntry:
        service = await self._get_ledger_service()
        return await service.get(entry_id)

    def to_response(self, result: MovementEntry) -> MovementEntryResponse:
        return movement_response(result)
