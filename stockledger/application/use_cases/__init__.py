"""Application use cases."""

from stockledger.application.use_cases.bulk_create_movements import BulkCreateMovementsUseCase
from stockledger.application.use_cases.calculate_requirements import CalculateRequirementsUseCase
from stockledger.application.use_cases.conversion_records import (
    GetConversionRecordUseCase,
    ListConversionRecordsUseCase,
)
from stockledger.application.use_cases.create_movement import (
    CreateMovementResult,
    CreateMovementUseCase,
)
from stockledger.application.use_cases.current_values import (
    GetCurrentValueUseCase,
    ListCurrentValuesUseCase,
    RefreshCurrentValueUseCase,
    RefreshResult,
)
from stockledger.application.use_cases.delete_movement import DeleteMovementUseCase
from stockledger.application.use_cases.execute_conversion import ExecuteConversionUseCase
from stockledger.application.use_cases.execute_production import ExecuteProductionUseCase
from stockledger.application.use_cases.generate_all_summaries import GenerateAllSummariesUseCase
from stockledger.application.use_cases.generate_summary import GenerateSummaryUseCase
from stockledger.application.use_cases.list_summaries import ListSummariesUseCase
from stockledger.application.use_cases.manage_templates import (
    ArchiveTemplateUseCase,
    CreateTemplateUseCase,
    GetTemplateUseCase,
    ListTemplatesUseCase,
)
from stockledger.application.use_cases.query_movements import (
    GetMovementUseCase,
    QueryMovementsUseCase,
)
from stockledger.application.use_cases.rebuild_summaries import RebuildSummariesUseCase

__all__ = [
    # Movements
    "CreateMovementUseCase",
    "CreateMovementResult",
    "BulkCreateMovementsUseCase",
    "DeleteMovementUseCase",
    "QueryMovementsUseCase",
    "GetMovementUseCase",
    # Conversions
    "ExecuteConversionUseCase",
    "GetConversionRecordUseCase",
    "ListConversionRecordsUseCase",
    "CreateTemplateUseCase",
    "GetTemplateUseCase",
    "ListTemplatesUseCase",
    "ArchiveTemplateUseCase",
    # Production
    "CalculateRequirementsUseCase",
    "ExecuteProductionUseCase",
    # Summaries
    "GenerateSummaryUseCase",
    "GenerateAllSummariesUseCase",
    "RebuildSummariesUseCase",
    "ListSummariesUseCase",
    # Current values
    "RefreshCurrentValueUseCase",
    "RefreshResult",
    "GetCurrentValueUseCase",
    "ListCurrentValuesUseCase",
]
