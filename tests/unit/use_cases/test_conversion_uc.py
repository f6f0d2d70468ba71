"""Tests for conversion, template and production use cases."""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from stockledger.application.dto.requests import (
    CalculateRequirementsRequest,
    CreateTemplateRequest,
    ExecuteConversionRequest,
    ExecuteProductionRequest,
    ListTemplatesRequest,
)
from stockledger.application.use_cases import (
    ArchiveTemplateUseCase,
    CalculateRequirementsUseCase,
    CreateTemplateUseCase,
    ExecuteConversionUseCase,
    ExecuteProductionUseCase,
    GetConversionRecordUseCase,
    ListConversionRecordsUseCase,
    ListTemplatesUseCase,
)
from stockledger.core.entities import (
    ConversionLine,
    ConversionRecord,
    ConversionTemplate,
    ItemType,
    Requirement,
    RequirementsReport,
    TemplateStatus,
)
from stockledger.core.exceptions import ConversionRecordNotFoundError
from stockledger.core.services import ProductionResult

LINE = {"sku": "SHEET", "quantity": "2", "item_type": "MATERIAL", "fk_id": 1}
OUT = {"sku": "PANEL", "quantity": "4", "item_type": "PRODUCT", "fk_id": 9, "unit_cost": "3"}


def _record(reference: str = "CONV-20240315-ABCDEF12") -> ConversionRecord:
    return ConversionRecord(
        id=1,
        reference=reference,
        batch_number=reference,
        inputs=[ConversionLine(sku="SHEET", quantity=Decimal("2"), item_type=ItemType.MATERIAL, fk_id=1)],
        outputs=[ConversionLine(sku="PANEL", quantity=Decimal("4"), item_type=ItemType.PRODUCT, fk_id=9)],
        total_input_cost=Decimal("40"),
    )


def _template(status: TemplateStatus = TemplateStatus.ACTIVE) -> ConversionTemplate:
    record = _record()
    return ConversionTemplate(
        id=3, name="Panel", inputs=record.inputs, outputs=record.outputs, status=status
    )


@pytest.fixture
def mock_coordinator():
    return AsyncMock()


class TestExecuteConversionUseCase:
    async def test_input_costs_dropped_output_costs_kept(self, mock_coordinator):
        """Input cost always comes from FIFO; output cost may be explicit."""
        mock_coordinator.execute.return_value = _record()
        use_case = ExecuteConversionUseCase(coordinator=mock_coordinator)

        result = await use_case.execute(
            ExecuteConversionRequest(
                inputs=[{**LINE, "unit_cost": "100"}],
                outputs=[OUT],
                effective_date="2024-03-01",
                user="alice",
            )
        )

        kwargs = mock_coordinator.execute.call_args.kwargs
        assert kwargs["inputs"][0].unit_cost is None
        assert kwargs["outputs"][0].unit_cost == Decimal("3")
        assert kwargs["effective_date"].isoformat() == "2024-03-01"
        assert kwargs["user"] == "alice"
        assert use_case.to_response(result).reference == "CONV-20240315-ABCDEF12"


class TestRecordUseCases:
    async def test_get_record(self, mock_coordinator):
        mock_coordinator.get_record.return_value = _record()
        use_case = GetConversionRecordUseCase(coordinator=mock_coordinator)

        result = await use_case.execute("CONV-20240315-ABCDEF12")

        assert use_case.to_response(result).total_input_cost == Decimal("40.00")

    async def test_get_missing_record(self, mock_coordinator):
        mock_coordinator.get_record.side_effect = ConversionRecordNotFoundError("X")
        use_case = GetConversionRecordUseCase(coordinator=mock_coordinator)

        with pytest.raises(ConversionRecordNotFoundError):
            await use_case.execute("X")

    async def test_list_records(self, mock_coordinator):
        mock_coordinator.list_records.return_value = ([_record()], 12)
        use_case = ListConversionRecordsUseCase(coordinator=mock_coordinator)

        response = await use_case.execute(limit=1, offset=3)

        assert response.total == 12
        assert response.offset == 3
        assert len(response.items) == 1


class TestTemplateUseCases:
    async def test_create(self, mock_coordinator):
        mock_coordinator.create_template.return_value = _template()
        use_case = CreateTemplateUseCase(coordinator=mock_coordinator)

        result = await use_case.execute(
            CreateTemplateRequest(name="Panel", inputs=[LINE], outputs=[OUT], user="alice")
        )

        template = mock_coordinator.create_template.call_args[0][0]
        assert template.name == "Panel"
        assert template.created_by == "alice"
        assert use_case.to_response(result).status == "ACTIVE"

    async def test_archive(self, mock_coordinator):
        mock_coordinator.archive_template.return_value = _template(TemplateStatus.ARCHIVED)
        use_case = ArchiveTemplateUseCase(coordinator=mock_coordinator)

        result = await use_case.execute(3)

        mock_coordinator.archive_template.assert_awaited_once_with(3)
        assert result.status == TemplateStatus.ARCHIVED

    async def test_list(self, mock_coordinator):
        mock_coordinator.list_templates.return_value = [_template()]
        use_case = ListTemplatesUseCase(coordinator=mock_coordinator)

        result = await use_case.execute(ListTemplatesRequest(status="ACTIVE"))

        mock_coordinator.list_templates.assert_awaited_once_with(TemplateStatus.ACTIVE, 100, 0)
        assert [t.name for t in use_case.to_response(result)] == ["Panel"]


class TestProductionUseCases:
    async def test_calculate_requirements(self, mock_coordinator):
        mock_coordinator.calculate_requirements.return_value = RequirementsReport(
            materials=[
                Requirement(
                    item_type=ItemType.MATERIAL,
                    fk_id=1,
                    sku="SHEET",
                    required=Decimal("7"),
                    available=Decimal("5"),
                )
            ],
            templates=[_template()],
        )
        use_case = CalculateRequirementsUseCase(coordinator=mock_coordinator)

        result = await use_case.execute(
            CalculateRequirementsRequest(plan=[{"template_id": 3, "quantity": "3.5"}])
        )

        plan = mock_coordinator.calculate_requirements.call_args[0][0]
        assert plan[0].quantity == Decimal("3.5")
        response = use_case.to_response(result)
        assert response.feasible is False
        assert response.materials[0].shortage == Decimal("2")

    async def test_execute_production(self, mock_coordinator):
        mock_coordinator.execute_production.return_value = ProductionResult(
            reference="PROD-20240315-0000ABCD",
            records=[_record("PROD-20240315-0000ABCD-T3")],
        )
        use_case = ExecuteProductionUseCase(coordinator=mock_coordinator)

        result = await use_case.execute(
            ExecuteProductionRequest(plan=[{"template_id": 3, "quantity": "2"}], notes="shift 1")
        )

        assert mock_coordinator.execute_production.call_args.kwargs["notes"] == "shift 1"
        response = use_case.to_response(result)
        assert response.total_cost == Decimal("40.00")
        assert response.records[0].reference.endswith("-T3")
        assert response.entries_written == 0
