"""Conversion template use cases: create, get, list, archive."""

from stockledger.application.dto.requests import CreateTemplateRequest, ListTemplatesRequest
from stockledger.application.dto.responses import TemplateResponse, template_response
from stockledger.application.use_cases.execute_conversion import to_line
from stockledger.config import get_logger
from stockledger.core.entities.conversion import ConversionTemplate
from stockledger.core.services import ConversionCoordinator

logger = get_logger(__name__)


class _TemplateUseCase:
    def __init__(self, coordinator: ConversionCoordinator | None = None):
        self._coordinator = coordinator

    async def _get_coordinator(self) -> ConversionCoordinator:
        if self._coordinator is None:
            from stockledger.application.services import get_conversion_coordinator

            self._coordinator = await get_conversion_coordinator()
        return self._coordinator

    def to_response(self, result: ConversionTemplate) -> TemplateResponse:
        return template_response(result)


class CreateTemplateUseCase(_TemplateUseCase):
    """Create a reusable recipe."""

    async def execute(self, request: CreateTemplateRequest) -> ConversionTemplate:
        coordinator = await self._get_coordinator()
        template = ConversionTemplate(
            name=request.name,
            description=request.description,
            inputs=[to_line(line) for line in request.inputs],
            outputs=[to_line(line, keep_cost=True) for line in request.outputs],
            created_by=request.user,
        )
        return await coordinator.create_template(template)


class GetTemplateUseCase(_TemplateUseCase):
    async def execute(self, template_id: int) -> ConversionTemplate:
        coordinator = await self._get_coordinator()
        return await coordinator.get_template(template_id)


class ArchiveTemplateUseCase(_TemplateUseCase):
    async def execute(self, template_id: int) -> ConversionTemplate:
        coordinator = await self._get_coordinator()
        return await coordinator.archive_template(template_id)


class ListTemplatesUseCase(_TemplateUseCase):
    async def execute(self, request: ListTemplatesRequest) -> list[ConversionTemplate]:
        coordinator = await self._get_coordinator()
        return await coordinator.list_templates(request.status, request.limit, request.offset)

    def to_response(self, result: list[ConversionTemplate]) -> list[TemplateResponse]:
        return [template_response(t) for t in result]
