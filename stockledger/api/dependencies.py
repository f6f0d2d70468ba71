"""
Dependency injection container for FastAPI.

Provides use case instances to route handlers. Tests override these with
``app.dependency_overrides``.
"""

from functools import lru_cache

from stockledger.application.use_cases import (
    ArchiveTemplateUseCase,
    BulkCreateMovementsUseCase,
    CalculateRequirementsUseCase,
    CreateMovementUseCase,
    CreateTemplateUseCase,
    DeleteMovementUseCase,
    ExecuteConversionUseCase,
    ExecuteProductionUseCase,
    GenerateAllSummariesUseCase,
    GenerateSummaryUseCase,
    GetConversionRecordUseCase,
    GetCurrentValueUseCase,
    GetMovementUseCase,
    GetTemplateUseCase,
    ListConversionRecordsUseCase,
    ListCurrentValuesUseCase,
    ListSummariesUseCase,
    ListTemplatesUseCase,
    QueryMovementsUseCase,
    RebuildSummariesUseCase,
    RefreshCurrentValueUseCase,
)
from stockledger.config import Settings, get_settings


@lru_cache
def get_app_settings() -> Settings:
    """Get cached application settings."""
    return get_settings()


# Movement use cases
def get_create_movement_use_case() -> CreateMovementUseCase:
    return CreateMovementUseCase()


def get_bulk_create_movements_use_case() -> BulkCreateMovementsUseCase:
    return BulkCreateMovementsUseCase()


def get_delete_movement_use_case() -> DeleteMovementUseCase:
    return DeleteMovementUseCase()


def get_query_movements_use_case() -> QueryMovementsUseCase:
    return QueryMovementsUseCase()


def get_get_movement_use_case() -> GetMovementUseCase:
    return GetMovementUseCase()


# Conversion use cases
def get_execute_conversion_use_case() -> ExecuteConversionUseCase:
    return ExecuteConversionUseCase()


def get_conversion_record_use_case() -> GetConversionRecordUseCase:
    return GetConversionRecordUseCase()


def get_list_conversion_records_use_case() -> ListConversionRecordsUseCase:
    return ListConversionRecordsUseCase()


def get_create_template_use_case() -> CreateTemplateUseCase:
    return CreateTemplateUseCase()


def get_get_template_use_case() -> GetTemplateUseCase:
    return GetTemplateUseCase()


def get_list_templates_use_case() -> ListTemplatesUseCase:
    return ListTemplatesUseCase()


def get_archive_template_use_case() -> ArchiveTemplateUseCase:
    return ArchiveTemplateUseCase()


# Production use cases
def get_calculate_requirements_use_case() -> CalculateRequirementsUseCase:
    return CalculateRequirementsUseCase()


def get_execute_production_use_case() -> ExecuteProductionUseCase:
    return ExecuteProductionUseCase()


# Summary use cases
def get_generate_summary_use_case() -> GenerateSummaryUseCase:
    return GenerateSummaryUseCase()


def get_generate_all_summaries_use_case() -> GenerateAllSummariesUseCase:
    return GenerateAllSummariesUseCase()


def get_rebuild_summaries_use_case() -> RebuildSummariesUseCase:
    return RebuildSummariesUseCase()


def get_list_summaries_use_case() -> ListSummariesUseCase:
    return ListSummariesUseCase()


# Current-value use cases
def get_refresh_current_value_use_case() -> RefreshCurrentValueUseCase:
    return RefreshCurrentValueUseCase()


def get_get_current_value_use_case() -> GetCurrentValueUseCase:
    return GetCurrentValueUseCase()


def get_list_current_values_use_case() -> ListCurrentValuesUseCase:
    return ListCurrentValuesUseCase()
