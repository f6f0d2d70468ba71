"""Delete Movement Use Case - soft delete of an untouched batch."""

from stockledger.application.dto.requests import DeleteMovementRequest
from stockledger.application.dto.responses import MovementEntryResponse, movement_response
from stockledger.config import get_logger
from stockledger.core.entities.ledger import MovementEntry
from stockledger.core.services import LedgerService

logger = get_logger(__name__)


class DeleteMovementUseCase:
    """Soft-delete an IN entry nothing has consumed from."""

    def __init__(self, ledger_service: LedgerService | None = None):
        self._ledger_service = ledger_service

    async def _get_ledger_service(self) -> LedgerService:
        if self._ledger_service is None:
            from stockledger.application.services import get_ledger_service

            self._ledger_service = await get_ledger_service()
        return self._ledger_service

    async def execute(self, entry_id: int, request: DeleteMovementRequest) -> MovementEntry:
        service = await self._get_ledger_service()
        entry = await service.delete(entry_id, request.deleted_by)
        logger.info("movement_deleted", entry_id=entry_id, deleted_by=request.deleted_by)
        return entry

    def to_response(self, result: MovementEntry) -> MovementEntryResponse:
        return movement_response(result)
