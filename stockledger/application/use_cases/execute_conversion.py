"""Execute Conversion Use Case - N inputs into M outputs, atomically."""

from stockledger.application.dto.requests import ConversionLineRequest, ExecuteConversionRequest
from stockledger.application.dto.responses import ConversionRecordResponse, record_response
from stockledger.application.use_cases.common import parse_iso_date
from stockledger.config import get_logger
from stockledger.core.entities.conversion import ConversionLine, ConversionRecord
from stockledger.core.services import ConversionCoordinator

logger = get_logger(__name__)


def to_line(request: ConversionLineRequest, keep_cost: bool = False) -> ConversionLine:
    return ConversionLine(
        sku=request.sku.strip(),
        quantity=request.quantity,
        item_type=request.item_type,
        fk_id=request.fk_id,
        unit=request.unit,
        variant_id=request.variant_id,
        item_name=request.item_name,
        unit_cost=request.unit_cost if keep_cost else None,
    )


class ExecuteConversionUseCase:
    """
    Use case for running one conversion.

    Input lines are consumed FIFO; output lines are credited as new batches.
    """

    def __init__(self, coordinator: ConversionCoordinator | None = None):
        self._coordinator = coordinator

    async def _get_coordinator(self) -> ConversionCoordinator:
        if self._coordinator is None:
            from stockledger.application.services import get_conversion_coordinator

            self._coordinator = await get_conversion_coordinator()
        return self._coordinator

    async def execute(self, request: ExecuteConversionRequest) -> ConversionRecord:
        """Execute conversion use case."""
        logger.info(
            "execute_conversion_started",
            inputs=len(request.inputs),
            outputs=len(request.outputs),
            template_id=request.template_id,
        )
        coordinator = await self._get_coordinator()
        return await coordinator.execute(
            inputs=[to_line(line) for line in request.inputs],
            outputs=[to_line(line, keep_cost=True) for line in request.outputs],
            template_id=request.template_id,
            notes=request.notes,
            user=request.user,
            effective_date=parse_iso_date("effective_date", request.effective_date),
        )

    def to_response(self, result: ConversionRecord) -> ConversionRecordResponse:
        return record_response(result)
