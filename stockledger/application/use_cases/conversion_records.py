"""Conversion record read use cases."""

from stockledger.application.dto.responses import (
    ConversionRecordListResponse,
    ConversionRecordResponse,
    record_response,
)
from stockledger.core.entities.conversion import ConversionRecord
from stockledger.core.services import ConversionCoordinator


class _RecordUseCase:
    def __init__(self, coordinator: ConversionCoordinator | None = None):
        self._coordinator = coordinator

    async def _get_coordinator(self) -> ConversionCoordinator:
        if self._coordinator is None:
            from stockledger.application.services import get_conversion_coordinator

            self._coordinator = await get_conversion_coordinator()
        return self._coordinator


class GetConversionRecordUseCase(_RecordUseCase):
    async def execute(self, reference: str) -> ConversionRecord:
        coordinator = await self._get_coordinator()
        return await coordinator.get_record(reference)

    def to_response(self, result: ConversionRecord) -> ConversionRecordResponse:
        return record_response(result)


class ListConversionRecordsUseCase(_RecordUseCase):
    async def execute(self, limit: int = 50, offset: int = 0) -> ConversionRecordListResponse:
        coordinator = await self._get_coordinator()
        records, total = await coordinator.list_records(limit, offset)
        return ConversionRecordListResponse(
            items=[record_response(r) for r in records],
            total=total,
            limit=limit,
            offset=offset,
        )
