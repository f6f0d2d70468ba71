"""
Conversion and production transaction coordinator.

Layer-pure service: depends only on core entities, interfaces and exceptions.

One execution walks VALIDATE -> CONSUME_INPUTS -> CREDIT_OUTPUTS -> RECORD ->
COMMIT inside a single unit of work. Any failure before COMMIT rolls back
every OUT entry, IN entry and record written by the call, so a conversion
either fully happens or leaves no trace. Projection refreshes are scheduled
only after the commit.
"""

import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from stockledger.config import get_logger
from stockledger.core.clock import Clock, get_clock
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
    ConsumptionContext,
    ConsumptionResult,
    ItemKey,
    MovementEntry,
    MovementSource,
    MovementType,
)
from stockledger.core.exceptions import (
    ConversionInfeasibleError,
    ConversionRecordNotFoundError,
    TemplateInactiveError,
    TemplateNotFoundError,
    ValidationError,
)
from stockledger.core.interfaces import IConversionStore, ILedgerStore, IUnitOfWork
from stockledger.core.numeric import ZERO, cost, line_value, money, qty
from stockledger.core.services.fifo import FIFOConsumptionEngine
from stockledger.core.services.projection import ProjectionRefresher

logger = get_logger(__name__)


@dataclass
class ProductionResult:
    """Outcome of a production plan: one record per template, shared reference."""

    reference: str
    records: list[ConversionRecord] = field(default_factory=list)
    entries: list[MovementEntry] = field(default_factory=list)

    @property
    def total_cost(self) -> Decimal:
        return sum((r.total_input_cost for r in self.records), ZERO)


def validate_lines(lines: list[ConversionLine], field_name: str) -> None:
    """Reject empty line lists, blank SKUs and non-positive quantities."""
    if not lines:
        raise ValidationError(field_name, "at least one line is required")
    for i, line in enumerate(lines):
        if not line.sku or not line.sku.strip():
            raise ValidationError(f"{field_name}[{i}].sku", "must not be empty", line.sku)
        if line.quantity <= ZERO:
            raise ValidationError(f"{field_name}[{i}].quantity", "must be greater than zero", line.quantity)
        if line.fk_id <= 0:
            raise ValidationError(f"{field_name}[{i}].fk_id", "must be a positive id", line.fk_id)
        if line.unit_cost is not None and line.unit_cost < ZERO:
            raise ValidationError(f"{field_name}[{i}].unit_cost", "must not be negative", line.unit_cost)


def aggregate_lines(lines: Iterable[tuple[ConversionLine, Decimal]]) -> list[Requirement]:
    """Sum ``line.quantity * multiplier`` per item, keeping first-seen order."""
    totals: dict[ItemKey, Requirement] = {}
    for line, multiplier in lines:
        needed = qty(line.quantity * multiplier)
        existing = totals.get(line.key)
        if existing is None:
            totals[line.key] = Requirement(
                item_type=line.item_type,
                fk_id=line.fk_id,
                sku=line.sku,
                unit=line.unit,
                variant_id=line.variant_id,
                item_name=line.item_name,
                required=needed,
            )
        else:
            existing.required = qty(existing.required + needed)
    return list(totals.values())


def price_outputs(outputs: list[ConversionLine], input_cost: Decimal) -> list[ConversionLine]:
    """
    Resolve each output's unit cost.

    Outputs with an explicit cost keep it; the input cost they do not carry is
    spread over the remaining outputs in proportion to quantity.
    """
    carried = sum(
        (line_value(o.quantity, o.unit_cost) for o in outputs if o.unit_cost is not None), ZERO
    )
    open_qty = sum((o.quantity for o in outputs if o.unit_cost is None), ZERO)
    residual = max(input_cost - carried, ZERO)
    shared_cost = cost(residual / open_qty) if open_qty > ZERO else ZERO

    priced = []
    for output in outputs:
        unit_cost = output.unit_cost if output.unit_cost is not None else shared_cost
        priced.append(
            output.model_copy(
                update={
                    "unit_cost": unit_cost,
                    "total_cost": line_value(output.quantity, unit_cost),
                }
            )
        )
    return priced


class ConversionCoordinator:
    """
    Atomic multi-input, multi-output stock transformations.

    Required interfaces for DI:
    - ILedgerStore: availability checks and output IN entries
    - IConversionStore: templates and records
    - IUnitOfWork: the atomic boundary
    - FIFOConsumptionEngine: input consumption
    - ProjectionRefresher: optional post-commit refresh
    """

    def __init__(
        self,
        ledger_store: ILedgerStore,
        conversion_store: IConversionStore,
        unit_of_work: IUnitOfWork,
        fifo: FIFOConsumptionEngine,
        refresher: ProjectionRefresher | None = None,
        clock: Clock | None = None,
        conversion_prefix: str = "CONV",
        production_prefix: str = "PROD",
    ):
        self._ledger = ledger_store
        self._conversions = conversion_store
        self._uow = unit_of_work
        self._fifo = fifo
        self._refresher = refresher
        self._clock = clock or get_clock()
        self._conversion_prefix = conversion_prefix
        self._production_prefix = production_prefix

    def new_reference(self, prefix: str) -> str:
        """``PREFIX-YYYYMMDD-XXXXXXXX`` with a random hex suffix."""
        return f"{prefix}-{self._clock.today():%Y%m%d}-{uuid.uuid4().hex[:8].upper()}"

    async def check_availability(self, requirements: list[Requirement]) -> list[Requirement]:
        """Fill in canonical availability for each requirement."""
        for requirement in requirements:
            requirement.available = await self._ledger.available_quantity(requirement.key)
        return requirements

    def _schedule_refresh(self, keys: Iterable[ItemKey]) -> None:
        if self._refresher is None:
            return
        keys = list(dict.fromkeys(keys))
        if keys:
            self._uow.on_commit(lambda: self._refresher.schedule(keys))

    def _stage(self, reference: str, stage: ConversionStage) -> ConversionStage:
        logger.debug("conversion_stage", reference=reference, stage=stage.value)
        return stage

    async def _consume_inputs(
        self,
        requirements: list[Requirement],
        source: MovementSource,
        reference: str,
        effective_date: date,
        notes: str | None,
        user: str | None,
    ) -> dict[ItemKey, ConsumptionResult]:
        consumed: dict[ItemKey, ConsumptionResult] = {}
        for requirement in requirements:
            consumed[requirement.key] = await self._fifo.consume(
                requirement.key,
                requirement.required,
                ConsumptionContext(
                    source=source,
                    effective_date=effective_date,
                    batch_number=reference,
                    notes=notes or f"{source.value.lower()} {reference}",
                    user=user,
                ),
            )
        return consumed

    async def _credit_outputs(
        self,
        outputs: list[ConversionLine],
        source: MovementSource,
        reference: str,
        effective_date: date,
        notes: str | None,
        user: str | None,
    ) -> list[MovementEntry]:
        entries = [
            MovementEntry(
                item_type=output.item_type,
                fk_id=output.fk_id,
                sku=output.sku,
                variant_id=output.variant_id,
                item_name=output.item_name,
                batch_number=reference,
                quantity=output.quantity,
                unit_cost=output.unit_cost or ZERO,
                unit=output.unit,
                movement_type=MovementType.IN,
                source=source,
                effective_date=effective_date,
                notes=notes or f"{source.value.lower()} {reference}",
                created_by=user,
            )
            for output in outputs
        ]
        return await self._ledger.append_many(entries)

    @staticmethod
    def _resolved_input(requirement: Requirement, total_cost: Decimal) -> ConversionLine:
        return ConversionLine(
            sku=requirement.sku,
            quantity=requirement.required,
            item_type=requirement.item_type,
            fk_id=requirement.fk_id,
            unit=requirement.unit,
            variant_id=requirement.variant_id,
            item_name=requirement.item_name,
            unit_cost=cost(total_cost / requirement.required),
            total_cost=total_cost,
        )

    async def execute(
        self,
        inputs: list[ConversionLine],
        outputs: list[ConversionLine],
        template_id: int | None = None,
        notes: str | None = None,
        user: str | None = None,
        effective_date: date | None = None,
    ) -> ConversionRecord:
        """
        Convert inputs into outputs atomically.

        Raises:
            ValidationError: malformed lines or unusable template
            ConversionInfeasibleError: some input is short; nothing was written
            InsufficientStockError, ConcurrencyConflictError, PersistenceError:
                raised mid-flight; everything written so far is rolled back
        """
        reference = self.new_reference(self._conversion_prefix)
        effective_date = effective_date or self._clock.today()
        stage = self._stage(reference, ConversionStage.VALIDATE)

        validate_lines(inputs, "inputs")
        validate_lines(outputs, "outputs")
        if template_id is not None:
            await self._require_usable_template(template_id)

        try:
            async with self._uow.unit_of_work():
                requirements = await self.check_availability(
                    aggregate_lines((line, Decimal(1)) for line in inputs)
                )
                shortages = RequirementsReport(materials=requirements).shortages
                if shortages:
                    raise ConversionInfeasibleError(shortages)

                stage = self._stage(reference, ConversionStage.CONSUME_INPUTS)
                consumed = await self._consume_inputs(
                    requirements, MovementSource.CONVERSION, reference, effective_date, notes, user
                )
                total_input_cost = sum((c.total_cost for c in consumed.values()), ZERO)

                stage = self._stage(reference, ConversionStage.CREDIT_OUTPUTS)
                priced_outputs = price_outputs(outputs, total_input_cost)
                credited = await self._credit_outputs(
                    priced_outputs, MovementSource.CONVERSION, reference, effective_date, notes, user
                )

                stage = self._stage(reference, ConversionStage.RECORD)
                record = await self._conversions.create_record(
                    ConversionRecord(
                        reference=reference,
                        batch_number=reference,
                        template_id=template_id,
                        inputs=[
                            self._resolved_input(r, consumed[r.key].total_cost)
                            for r in requirements
                        ],
                        outputs=priced_outputs,
                        total_input_cost=total_input_cost,
                        status=ConversionStatus.COMPLETED,
                        notes=notes,
                        created_by=user,
                    )
                )

                stage = self._stage(reference, ConversionStage.COMMIT)
                self._schedule_refresh(
                    [r.key for r in requirements] + [e.key for e in credited]
                )
        except Exception as e:
            logger.warning(
                "conversion_rolled_back",
                reference=reference,
                stage=ConversionStage.ROLLBACK.value,
                failed_stage=stage.value,
                error=str(e),
            )
            raise

        logger.info(
            "conversion_committed",
            reference=reference,
            inputs=len(record.inputs),
            outputs=len(record.outputs),
            total_input_cost=str(record.total_input_cost),
        )
        return record

    async def _require_usable_template(self, template_id: int) -> ConversionTemplate:
        template = await self._conversions.get_template(template_id)
        if template is None:
            raise TemplateNotFoundError(template_id)
        if not template.is_usable:
            raise TemplateInactiveError(template_id, template.status.value)
        return template

    async def _load_plan(
        self, plan: list[ProductionPlanItem]
    ) -> list[tuple[ConversionTemplate, Decimal]]:
        """Resolve templates, merging repeated template ids."""
        if not plan:
            raise ValidationError("plan", "at least one template is required")
        quantities: dict[int, Decimal] = {}
        for i, item in enumerate(plan):
            if item.quantity <= ZERO:
                raise ValidationError(f"plan[{i}].quantity", "must be greater than zero", item.quantity)
            quantities[item.template_id] = quantities.get(item.template_id, ZERO) + item.quantity

        resolved = []
        for template_id, quantity in quantities.items():
            template = await self._require_usable_template(template_id)
            resolved.append((template, qty(quantity)))
        return resolved

    async def calculate_requirements(self, plan: list[ProductionPlanItem]) -> RequirementsReport:
        """Dry run: aggregated needs, availability and shortages; no writes."""
        templates = await self._load_plan(plan)
        return await self._requirements_for(templates)

    async def _requirements_for(
        self, templates: list[tuple[ConversionTemplate, Decimal]]
    ) -> RequirementsReport:
        materials = aggregate_lines(
            (line, quantity) for template, quantity in templates for line in template.inputs
        )
        products = aggregate_lines(
            (line, quantity) for template, quantity in templates for line in template.outputs
        )
        await self.check_availability(materials)
        await self.check_availability(products)
        return RequirementsReport(
            materials=materials,
            products=products,
            templates=[template for template, _ in templates],
        )

    async def execute_production(
        self,
        plan: list[ProductionPlanItem],
        notes: str | None = None,
        user: str | None = None,
        effective_date: date | None = None,
    ) -> ProductionResult:
        """
        Run several templates as one atomic conversion.

        Input requirements are summed across templates before consumption, so
        availability is checked once per item. Each template gets its own
        record carrying its share of the actual FIFO cost.
        """
        reference = self.new_reference(self._production_prefix)
        effective_date = effective_date or self._clock.today()
        stage = self._stage(reference, ConversionStage.VALIDATE)

        try:
            async with self._uow.unit_of_work():
                templates = await self._load_plan(plan)
                report = await self._requirements_for(templates)
                if not report.feasible:
                    raise ConversionInfeasibleError(report.shortages)

                stage = self._stage(reference, ConversionStage.CONSUME_INPUTS)
                consumed = await self._consume_inputs(
                    report.materials, MovementSource.PRODUCTION, reference, effective_date, notes, user
                )

                stage = self._stage(reference, ConversionStage.CREDIT_OUTPUTS)
                shares = self._apportion(templates, report.materials, consumed)
                priced: dict[int, list[ConversionLine]] = {}
                all_outputs: list[ConversionLine] = []
                for template, quantity in templates:
                    scaled = [
                        line.model_copy(update={"quantity": qty(line.quantity * quantity)})
                        for line in template.outputs
                    ]
                    template_cost = sum(shares[template.id].values(), ZERO)
                    priced[template.id] = price_outputs(scaled, template_cost)
                    all_outputs.extend(priced[template.id])
                credited = await self._credit_outputs(
                    all_outputs, MovementSource.PRODUCTION, reference, effective_date, notes, user
                )

                stage = self._stage(reference, ConversionStage.RECORD)
                result = ProductionResult(reference=reference)
                result.entries.extend(e for c in consumed.values() for e in c.out_entries)
                result.entries.extend(credited)
                requirement_by_key = {r.key: r for r in report.materials}
                for template, quantity in templates:
                    inputs = []
                    for line in template.inputs:
                        line_cost = shares[template.id][line.key]
                        line_qty = qty(line.quantity * quantity)
                        inputs.append(
                            line.model_copy(
                                update={
                                    "quantity": line_qty,
                                    "unit_cost": cost(line_cost / line_qty),
                                    "total_cost": line_cost,
                                    "unit": line.unit or requirement_by_key[line.key].unit,
                                }
                            )
                        )
                    record = await self._conversions.create_record(
                        ConversionRecord(
                            reference=f"{reference}-T{template.id}",
                            batch_number=reference,
                            template_id=template.id,
                            inputs=inputs,
                            outputs=priced[template.id],
                            total_input_cost=sum(shares[template.id].values(), ZERO),
                            status=ConversionStatus.COMPLETED,
                            notes=notes,
                            created_by=user,
                        )
                    )
                    result.records.append(record)

                stage = self._stage(reference, ConversionStage.COMMIT)
                self._schedule_refresh(
                    [r.key for r in report.materials] + [e.key for e in credited]
                )
        except Exception as e:
            logger.warning(
                "production_rolled_back",
                reference=reference,
                stage=ConversionStage.ROLLBACK.value,
                failed_stage=stage.value,
                error=str(e),
            )
            raise

        logger.info(
            "production_committed",
            reference=reference,
            templates=len(result.records),
            total_cost=str(result.total_cost),
        )
        return result

    @staticmethod
    def _apportion(
        templates: list[tuple[ConversionTemplate, Decimal]],
        materials: list[Requirement],
        consumed: dict[ItemKey, ConsumptionResult],
    ) -> dict[int, dict[ItemKey, Decimal]]:
        """
        Split each input's actual FIFO cost across templates by required quantity.

        The last template using an input takes the rounding remainder, so the
        shares of an input always sum to its consumed cost.
        """
        shares: dict[int, dict[ItemKey, Decimal]] = {t.id: {} for t, _ in templates}
        for requirement in materials:
            actual = consumed[requirement.key].total_cost
            users = [
                (template.id, qty(line.quantity * quantity))
                for template, quantity in templates
                for line in template.inputs
                if line.key == requirement.key
            ]
            allotted = ZERO
            for i, (template_id, needed) in enumerate(users):
                if i == len(users) - 1:
                    share = actual - allotted
                else:
                    share = money(actual * needed / requirement.required)
                allotted += share
                shares[template_id][requirement.key] = (
                    shares[template_id].get(requirement.key, ZERO) + share
                )
        return shares

    # --- Templates ---

    async def create_template(self, template: ConversionTemplate) -> ConversionTemplate:
        """Create a template; names are unique."""
        if not template.name or not template.name.strip():
            raise ValidationError("name", "must not be empty", template.name)
        validate_lines(template.inputs, "inputs")
        validate_lines(template.outputs, "outputs")
        if await self._conversions.get_template_by_name(template.name.strip()) is not None:
            raise ValidationError("name", "a template with this name already exists", template.name)

        created = await self._conversions.create_template(
            template.model_copy(update={"name": template.name.strip(), "status": TemplateStatus.ACTIVE})
        )
        logger.info("template_created", template_id=created.id, name=created.name)
        return created

    async def get_template(self, template_id: int) -> ConversionTemplate:
        template = await self._conversions.get_template(template_id)
        if template is None:
            raise TemplateNotFoundError(template_id)
        return template

    async def list_templates(
        self, status: TemplateStatus | None = None, limit: int = 100, offset: int = 0
    ) -> list[ConversionTemplate]:
        return await self._conversions.list_templates(status, limit, offset)

    async def archive_template(self, template_id: int) -> ConversionTemplate:
        """Archive a template so it can no longer be produced."""
        await self.get_template(template_id)
        archived = await self._conversions.set_template_status(template_id, TemplateStatus.ARCHIVED)
        logger.info("template_archived", template_id=template_id)
        return archived

    # --- Records ---

    async def get_record(self, reference: str) -> ConversionRecord:
        record = await self._conversions.get_record(reference)
        if record is None:
            raise ConversionRecordNotFoundError(reference)
        return record

    async def list_records(
        self, limit: int = 50, offset: int = 0
    ) -> tuple[list[ConversionRecord], int]:
        return await self._conversions.list_records(limit, offset)
