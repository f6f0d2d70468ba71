"""
Data Transfer Objects for API layer.

Request DTOs: Validate and parse incoming API requests.
Response DTOs: Structure and serialize API responses inside the uniform envelope.
"""

from stockledger.application.dto.requests import (
    BulkCreateMovementsRequest,
    CalculateRequirementsRequest,
    ConversionLineRequest,
    CreateMovementRequest,
    CreateTemplateRequest,
    DeleteMovementRequest,
    ExecuteConversionRequest,
    ExecuteProductionRequest,
    GenerateAllSummariesRequest,
    GenerateSummaryRequest,
    ListTemplatesRequest,
    ProductionPlanItemRequest,
    QueryMovementsRequest,
    RebuildSummariesRequest,
    RefreshCurrentValueRequest,
)
from stockledger.application.dto.responses import (
    AllocationResponse,
    BulkSummaryResponse,
    ConversionLineResponse,
    ConversionRecordListResponse,
    ConversionRecordResponse,
    CreateMovementResponse,
    CurrentValueResponse,
    EntryPageResponse,
    Envelope,
    ErrorBody,
    HealthResponse,
    MonthlySummaryResponse,
    MovementEntryResponse,
    ProductionResponse,
    RefreshCurrentValueResponse,
    RequirementResponse,
    RequirementsResponse,
    SummaryUnitResponse,
    TemplateResponse,
)

__all__ = [
    # Requests
    "CreateMovementRequest",
    "BulkCreateMovementsRequest",
    "DeleteMovementRequest",
    "QueryMovementsRequest",
    "ConversionLineRequest",
    "ExecuteConversionRequest",
    "CreateTemplateRequest",
    "ListTemplatesRequest",
    "ProductionPlanItemRequest",
    "CalculateRequirementsRequest",
    "ExecuteProductionRequest",
    "GenerateSummaryRequest",
    "GenerateAllSummariesRequest",
    "RebuildSummariesRequest",
    "RefreshCurrentValueRequest",
    # Responses
    "Envelope",
    "ErrorBody",
    "MovementEntryResponse",
    "AllocationResponse",
    "CreateMovementResponse",
    "EntryPageResponse",
    "ConversionLineResponse",
    "ConversionRecordResponse",
    "ConversionRecordListResponse",
    "TemplateResponse",
    "RequirementResponse",
    "RequirementsResponse",
    "ProductionResponse",
    "MonthlySummaryResponse",
    "SummaryUnitResponse",
    "BulkSummaryResponse",
    "CurrentValueResponse",
    "RefreshCurrentValueResponse",
    "HealthResponse",
]
