"""Current-value projection use cases: refresh, get, list."""

from dataclasses import dataclass, field

from stockledger.application.dto.requests import RefreshCurrentValueRequest
from stockledger.application.dto.responses import (
    CurrentValueResponse,
    RefreshCurrentValueResponse,
    current_value_response,
)
from stockledger.core.entities.ledger import ItemKey, ItemType
from stockledger.core.entities.projection import CurrentValue
from stockledger.core.exceptions import CurrentValueNotFoundError, ValidationError
from stockledger.core.services import CurrentValueProjection


@dataclass
class RefreshResult:
    refreshed: int
    values: list[CurrentValue] = field(default_factory=list)


class _ProjectionUseCase:
    def __init__(self, projection: CurrentValueProjection | None = None):
        self._projection = projection

    async def _get_projection(self) -> CurrentValueProjection:
        if self._projection is None:
            from stockledger.application.services import get_current_value_projection

            self._projection = await get_current_value_projection()
        return self._projection


class RefreshCurrentValueUseCase(_ProjectionUseCase):
    """Refresh one item, or rebuild every row when no item is given."""

    async def execute(self, request: RefreshCurrentValueRequest) -> RefreshResult:
        if (request.item_type is None) != (request.fk_id is None):
            raise ValidationError("fk_id", "item_type and fk_id must be given together")

        projection = await self._get_projection()
        if request.item_type is None:
            count = await projection.rebuild_all()
            return RefreshResult(refreshed=count)

        value = await projection.refresh(ItemKey(item_type=request.item_type, fk_id=request.fk_id))
        return RefreshResult(refreshed=1, values=[value])

    def to_response(self, result: RefreshResult) -> RefreshCurrentValueResponse:
        return RefreshCurrentValueResponse(
            refreshed=result.refreshed,
            values=[current_value_response(v) for v in result.values],
        )


class GetCurrentValueUseCase(_ProjectionUseCase):
    async def execute(self, item_type: ItemType, fk_id: int) -> CurrentValue:
        projection = await self._get_projection()
        value = await projection.get(ItemKey(item_type=item_type, fk_id=fk_id))
        if value is None:
            raise CurrentValueNotFoundError(item_type.value, fk_id)
        return value

    def to_response(self, result: CurrentValue) -> CurrentValueResponse:
        return current_value_response(result)


class ListCurrentValuesUseCase(_ProjectionUseCase):
    async def execute(
        self,
        item_type: ItemType | None = None,
        sku: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[CurrentValue]:
        projection = await self._get_projection()
        return await projection.list_values(item_type, sku, limit, offset)

    def to_response(self, result: list[CurrentValue]) -> list[CurrentValueResponse]:
        return [current_value_response(v) for v in result]
