"""Abstract interface for conversion templates and records."""

from abc import ABC, abstractmethod

from stockledger.core.entities.conversion import (
    ConversionRecord,
    ConversionTemplate,
    TemplateStatus,
)


class IConversionStore(ABC):
    """Interface for conversion template and record persistence."""

    @abstractmethod
    async def create_template(self, template: ConversionTemplate) -> ConversionTemplate:
        """Create a new template."""
        pass

    @abstractmethod
    async def get_template(self, template_id: int) -> ConversionTemplate | None:
        """Get template by ID."""
        pass

    @abstractmethod
    async def get_template_by_name(self, name: str) -> ConversionTemplate | None:
        """Get template by its unique name."""
        pass

    @abstractmethod
    async def list_templates(
        self, status: TemplateStatus | None = None, limit: int = 100, offset: int = 0
    ) -> list[ConversionTemplate]:
        """List templates, optionally by status."""
        pass

    @abstractmethod
    async def set_template_status(
        self, template_id: int, status: TemplateStatus
    ) -> ConversionTemplate:
        """Change a template's status."""
        pass

    @abstractmethod
    async def create_record(self, record: ConversionRecord) -> ConversionRecord:
        """Persist a conversion record."""
        pass

    @abstractmethod
    async def get_record(self, reference: str) -> ConversionRecord | None:
        """Get record by reference code."""
        pass

    @abstractmethod
    async def list_records(
        self, limit: int = 50, offset: int = 0
    ) -> tuple[list[ConversionRecord], int]:
        """Records newest first, with the total count."""
        pass

    @abstractmethod
    async def list_records_by_batch(self, batch_number: str) -> list[ConversionRecord]:
        """Records sharing a batch number (one per template of a production run)."""
        pass
