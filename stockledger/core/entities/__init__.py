"""Core domain entities."""

from stockledger.core.entities.conversion import (
    ConversionLine,
    ConversionRecord,
    ConversionStage,
    ConversionStatus,
    ConversionTemplate,
    ProductionPlanItem,
    Requirement,
    RequirementsReport,
    TemplateStatus,
)
from stockledger.core.entities.ledger import (
    Allocation,
    ConsumptionContext,
    ConsumptionResult,
    EntryPage,
    EntryStatus,
    ItemKey,
    ItemType,
    MovementEntry,
    MovementFilter,
    MovementSource,
    MovementType,
)
from stockledger.core.entities.projection import CurrentValue
from stockledger.core.entities.summary import (
    BulkSummaryReport,
    MonthlySummary,
    Period,
    SummaryOutcome,
    SummaryScope,
    SummaryUnitResult,
    iter_periods,
)

__all__ = [
    # Ledger entities
    "ItemType",
    "ItemKey",
    "MovementType",
    "MovementSource",
    "EntryStatus",
    "MovementEntry",
    "MovementFilter",
    "EntryPage",
    "ConsumptionContext",
    "Allocation",
    "ConsumptionResult",
    # Conversion entities
    "TemplateStatus",
    "ConversionStatus",
    "ConversionStage",
    "ConversionLine",
    "ConversionTemplate",
    "ConversionRecord",
    "ProductionPlanItem",
    "Requirement",
    "RequirementsReport",
    # Summary entities
    "Period",
    "iter_periods",
    "SummaryScope",
    "MonthlySummary",
    "SummaryOutcome",
    "SummaryUnitResult",
    "BulkSummaryReport",
    # Projection
    "CurrentValue",
]
