"""Bulk Create Movements Use Case - all-or-nothing."""

from stockledger.application.dto.requests import BulkCreateMovementsRequest
from stockledger.application.dto.responses import CreateMovementResponse, movement_response
from stockledger.application.use_cases.create_movement import to_entry
from stockledger.config import get_logger
from stockledger.core.entities.ledger import MovementEntry
from stockledger.core.services import LedgerService

logger = get_logger(__name__)


class BulkCreateMovementsUseCase:
    """Record several movements in order inside one unit of work."""

    def __init__(self, ledger_service: LedgerService | None = None):
        self._ledger_service = ledger_service

    async def _get_ledger_service(self) -> LedgerService:
        if self._ledger_service is None:
            from stockledger.application.services import get_ledger_service

            self._ledger_service = await get_ledger_service()
        return self._ledger_service

    async def execute(self, request: BulkCreateMovementsRequest) -> list[MovementEntry]:
        """Execute bulk create use case; returns every entry written."""
        logger.info("bulk_create_movements_started", count=len(request.entries))
        service = await self._get_ledger_service()
        drafts = [to_entry(r, field_prefix=f"entries[{i}].") for i, r in enumerate(request.entries)]
        return await service.record_many(drafts)

    def to_response(self, result: list[MovementEntry]) -> CreateMovementResponse:
        return CreateMovementResponse(entries=[movement_response(e) for e in result])
