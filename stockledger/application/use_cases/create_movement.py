"""Create Movement Use Case - IN appends a batch, OUT consumes FIFO."""

from dataclasses import dataclass, field
from decimal import Decimal

from stockledger.application.dto.requests import CreateMovementRequest
from stockledger.application.dto.responses import (
    CreateMovementResponse,
    allocation_response,
    movement_response,
)
from stockledger.application.use_cases.common import parse_iso_date
from stockledger.config import get_logger
from stockledger.core.entities.ledger import Allocation, MovementEntry, MovementType
from stockledger.core.numeric import ZERO
from stockledger.core.services import LedgerService

logger = get_logger(__name__)


def to_entry(request: CreateMovementRequest, field_prefix: str = "") -> MovementEntry:
    """Build a ledger entry draft from a request."""
    return MovementEntry(
        item_type=request.item_type,
        fk_id=request.fk_id,
        sku=request.sku.strip(),
        variant_id=request.variant_id,
        item_name=request.item_name,
        batch_number=request.batch_number,
        quantity=request.quantity,
        unit_cost=request.unit_cost if request.movement_type == MovementType.IN else ZERO,
        unit=request.unit,
        movement_type=request.movement_type,
        source=request.source,
        effective_date=parse_iso_date(f"{field_prefix}effective_date", request.effective_date),
        notes=request.notes,
        created_by=request.user,
    )


@dataclass
class CreateMovementResult:
    """Entries written for one movement command."""

    entries: list[MovementEntry]
    allocations: list[Allocation] = field(default_factory=list)

    @property
    def total_cost(self) -> Decimal:
        return sum((a.value for a in self.allocations), ZERO)


class CreateMovementUseCase:
    """Record one stock movement."""

    def __init__(self, ledger_service: LedgerService | None = None):
        self._ledger_service = ledger_service

    async def _get_ledger_service(self) -> LedgerService:
        if self._ledger_service is None:
            from stockledger.application.services import get_ledger_service

            self._ledger_service = await get_ledger_service()
        return self._ledger_service

    async def execute(self, request: CreateMovementRequest) -> CreateMovementResult:
        """Execute create movement use case."""
        logger.info(
            "create_movement_started",
            sku=request.sku,
            type=request.movement_type.value,
            quantity=str(request.quantity),
        )
        service = await self._get_ledger_service()
        entry = to_entry(request)

        if entry.movement_type == MovementType.OUT:
            consumption = await service.issue(entry)
            return CreateMovementResult(
                entries=consumption.out_entries,
                allocations=consumption.allocations,
            )

        saved = await service.append(entry)
        return CreateMovementResult(entries=[saved])

    def to_response(self, result: CreateMovementResult) -> CreateMovementResponse:
        """Convert result to API response."""
        return CreateMovementResponse(
            entries=[movement_response(e) for e in result.entries],
            allocations=[allocation_response(a) for a in result.allocations],
            total_cost=result.total_cost,
        )
