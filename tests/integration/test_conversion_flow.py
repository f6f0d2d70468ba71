"""Integration tests for atomic conversions and production runs."""

import re
from datetime import date
from decimal import Decimal

import pytest

from stockledger.core.entities import (
    ConversionLine,
    ConversionTemplate,
    EntryStatus,
    ItemKey,
    ItemType,
    MovementFilter,
    MovementSource,
    MovementType,
    ProductionPlanItem,
)
from stockledger.core.exceptions import (
    ConversionInfeasibleError,
    InsufficientStockError,
    TemplateInactiveError,
    TemplateNotFoundError,
    ValidationError,
)


def material(sku: str, fk_id: int, quantity: str, **kwargs) -> ConversionLine:
    return ConversionLine(
        sku=sku, quantity=Decimal(quantity), item_type=ItemType.MATERIAL, fk_id=fk_id, **kwargs
    )


def product(sku: str, fk_id: int, quantity: str, **kwargs) -> ConversionLine:
    return ConversionLine(
        sku=sku, quantity=Decimal(quantity), item_type=ItemType.PRODUCT, fk_id=fk_id, **kwargs
    )


async def _entry_count(ledger_store) -> int:
    return (await ledger_store.query(MovementFilter(include_deleted=True))).total


class TestExecuteConversion:
    async def test_inputs_consumed_and_outputs_priced(self, coordinator, ledger_store, receive):
        """Output cost is the actual FIFO cost of the inputs."""
        await receive(fk_id=1, sku="SHEET", quantity="10", unit_cost="20")
        await receive(fk_id=2, sku="BOLT", quantity="100", unit_cost="0.5")

        record = await coordinator.execute(
            inputs=[material("SHEET", 1, "2"), material("BOLT", 2, "8")],
            outputs=[product("PANEL", 9, "4", unit="pcs")],
            user="alice",
        )

        assert re.fullmatch(r"CONV-20240315-[0-9A-F]{8}", record.reference)
        assert record.batch_number == record.reference
        assert record.total_input_cost == Decimal("44.00")
        assert record.outputs[0].unit_cost == Decimal("11.0000")
        assert record.outputs[0].total_cost == Decimal("44.00")
        assert record.inputs[0].total_cost == Decimal("40.00")

        panel = ItemKey(item_type=ItemType.PRODUCT, fk_id=9)
        assert await ledger_store.available_quantity(panel) == Decimal("4")
        batches = await ledger_store.list_active_batches(panel)
        assert batches[0].source == MovementSource.CONVERSION
        assert batches[0].batch_number == record.reference
        assert batches[0].created_by == "alice"

        sheet = ItemKey(item_type=ItemType.MATERIAL, fk_id=1)
        assert await ledger_store.available_quantity(sheet) == Decimal("8")

    async def test_explicit_output_cost_and_residual(self, coordinator, receive):
        """Priced outputs keep their cost; the rest share the remainder by quantity."""
        await receive(fk_id=1, sku="LOG", quantity="1", unit_cost="100")

        record = await coordinator.execute(
            inputs=[material("LOG", 1, "1")],
            outputs=[
                product("PLANK", 2, "4", unit_cost=Decimal("20")),
                product("SAWDUST", 3, "10"),
            ],
        )

        plank, sawdust = record.outputs
        assert plank.unit_cost == Decimal("20.0000")
        assert sawdust.unit_cost == Decimal("2.0000")
        assert sawdust.total_cost == Decimal("20.00")

    async def test_infeasible_writes_nothing(self, coordinator, ledger_store, conversion_store, receive):
        """A, B, C where only B is short: no entry or record is written."""
        await receive(fk_id=1, sku="A", quantity="10")
        await receive(fk_id=2, sku="B", quantity="3")
        await receive(fk_id=3, sku="C", quantity="1")
        before = await _entry_count(ledger_store)

        with pytest.raises(ConversionInfeasibleError) as exc_info:
            await coordinator.execute(
                inputs=[material("A", 1, "10"), material("B", 2, "5"), material("C", 3, "1")],
                outputs=[product("KIT", 10, "1")],
            )

        shortages = exc_info.value.details["shortages"]
        assert [s["sku"] for s in shortages] == ["B"]
        assert shortages[0]["shortage"] == "2.0000"
        assert await _entry_count(ledger_store) == before
        assert (await conversion_store.list_records())[1] == 0
        batch = (await ledger_store.list_active_batches(ItemKey(item_type=ItemType.MATERIAL, fk_id=1)))[0]
        assert batch.remaining_qty == Decimal("10")

    async def test_repeated_input_lines_are_aggregated(self, coordinator, receive):
        """Two lines for the same item are checked against their sum."""
        await receive(fk_id=1, sku="A", quantity="5")

        with pytest.raises(InsufficientStockError):
            await coordinator.execute(
                inputs=[material("A", 1, "3"), material("A", 1, "3")],
                outputs=[product("KIT", 10, "1")],
            )

    async def test_variant_input_draws_its_own_batches(self, coordinator, ledger_store, receive):
        tee = {"sku": "TEE", "fk_id": 7, "item_type": ItemType.PRODUCT, "quantity": "10"}
        await receive(variant_id="RED", unit_cost="3", effective_date=date(2024, 1, 5), **tee)
        await receive(variant_id="BLUE", unit_cost="4", effective_date=date(2024, 1, 6), **tee)

        record = await coordinator.execute(
            inputs=[product("TEE", 7, "4", variant_id="BLUE")],
            outputs=[product("PRINTED-TEE", 8, "4", variant_id="BLUE")],
        )

        assert record.total_input_cost == Decimal("16.00")
        assert record.inputs[0].variant_id == "BLUE"
        red = ItemKey(item_type=ItemType.PRODUCT, fk_id=7, variant_id="RED")
        blue = ItemKey(item_type=ItemType.PRODUCT, fk_id=7, variant_id="BLUE")
        assert await ledger_store.available_quantity(red) == Decimal("10")
        assert await ledger_store.available_quantity(blue) == Decimal("6")

    async def test_mid_flight_failure_rolls_back(self, coordinator, ledger_store, receive, monkeypatch):
        """An error after inputs are consumed undoes the consumption."""
        await receive(fk_id=1, sku="A", quantity="5")
        before = await _entry_count(ledger_store)

        async def fail(*args, **kwargs):
            raise RuntimeError("disk full")

        monkeypatch.setattr(coordinator._conversions, "create_record", fail)

        with pytest.raises(RuntimeError):
            await coordinator.execute(
                inputs=[material("A", 1, "2")],
                outputs=[product("KIT", 10, "1")],
            )

        assert await _entry_count(ledger_store) == before
        batch = await ledger_store.get(1)
        assert batch.remaining_qty == Decimal("5")
        assert batch.status == EntryStatus.ACTIVE

    @pytest.mark.parametrize(
        "inputs,outputs",
        [
            ([], [product("KIT", 10, "1")]),
            ([material("A", 1, "1")], []),
            ([material(" ", 1, "1")], [product("KIT", 10, "1")]),
        ],
    )
    async def test_malformed_lines(self, coordinator, inputs, outputs):
        with pytest.raises(ValidationError):
            await coordinator.execute(inputs=inputs, outputs=outputs)

    async def test_get_record(self, coordinator, receive):
        await receive(fk_id=1, sku="A", quantity="5")
        record = await coordinator.execute(
            inputs=[material("A", 1, "1")], outputs=[product("KIT", 10, "1")]
        )

        loaded = await coordinator.get_record(record.reference)
        records, total = await coordinator.list_records()

        assert loaded.id == record.id
        assert total == 1
        assert records[0].reference == record.reference


@pytest.fixture
async def templates(coordinator):
    """Two templates sharing the SHEET input."""
    panel = await coordinator.create_template(
        ConversionTemplate(
            name="Panel",
            inputs=[material("SHEET", 1, "1"), material("BOLT", 2, "4")],
            outputs=[product("PANEL", 9, "2")],
        )
    )
    shelf = await coordinator.create_template(
        ConversionTemplate(
            name="Shelf",
            inputs=[material("SHEET", 1, "2")],
            outputs=[product("SHELF", 11, "1")],
        )
    )
    return panel, shelf


class TestTemplates:
    async def test_duplicate_name_rejected(self, coordinator, templates):
        with pytest.raises(ValidationError):
            await coordinator.create_template(
                ConversionTemplate(
                    name="Panel",
                    inputs=[material("SHEET", 1, "1")],
                    outputs=[product("PANEL", 9, "1")],
                )
            )

    async def test_missing_template(self, coordinator):
        with pytest.raises(TemplateNotFoundError):
            await coordinator.get_template(404)

    async def test_archived_template_cannot_produce(self, coordinator, templates, receive):
        panel, _ = templates
        await receive(fk_id=1, sku="SHEET", quantity="10")
        await receive(fk_id=2, sku="BOLT", quantity="40")
        await coordinator.archive_template(panel.id)

        with pytest.raises(TemplateInactiveError):
            await coordinator.execute_production([ProductionPlanItem(template_id=panel.id, quantity=Decimal("1"))])

        with pytest.raises(TemplateInactiveError):
            await coordinator.execute(
                inputs=[material("SHEET", 1, "1")],
                outputs=[product("PANEL", 9, "1")],
                template_id=panel.id,
            )


class TestProduction:
    async def test_calculate_requirements_aggregates(self, coordinator, templates, receive):
        panel, shelf = templates
        await receive(fk_id=1, sku="SHEET", quantity="5")

        report = await coordinator.calculate_requirements(
            [
                ProductionPlanItem(template_id=panel.id, quantity=Decimal("3")),
                ProductionPlanItem(template_id=shelf.id, quantity=Decimal("2")),
            ]
        )

        sheet = next(r for r in report.materials if r.sku == "SHEET")
        bolt = next(r for r in report.materials if r.sku == "BOLT")
        assert sheet.required == Decimal("7")
        assert sheet.available == Decimal("5")
        assert sheet.shortage == Decimal("2")
        assert bolt.available == Decimal("0")
        assert not report.feasible
        assert {p.sku for p in report.products} == {"PANEL", "SHELF"}

    async def test_execute_production_apportions_cost(
        self, coordinator, conversion_store, ledger_store, templates, receive
    ):
        """Each template's record carries its share of the actual FIFO cost."""
        panel, shelf = templates
        await receive(fk_id=1, sku="SHEET", quantity="4", unit_cost="10")
        await receive(fk_id=2, sku="BOLT", quantity="20", unit_cost="1")

        result = await coordinator.execute_production(
            [
                ProductionPlanItem(template_id=panel.id, quantity=Decimal("2")),
                ProductionPlanItem(template_id=shelf.id, quantity=Decimal("1")),
            ],
            user="alice",
        )

        assert re.fullmatch(r"PROD-20240315-[0-9A-F]{8}", result.reference)
        references = sorted(r.reference for r in result.records)
        assert references == sorted(
            [f"{result.reference}-T{panel.id}", f"{result.reference}-T{shelf.id}"]
        )
        by_template = {r.template_id: r for r in result.records}
        # panel: 2 sheets (20) + 8 bolts (8); shelf: 2 sheets (20)
        assert by_template[panel.id].total_input_cost == Decimal("28.00")
        assert by_template[shelf.id].total_input_cost == Decimal("20.00")
        assert result.total_cost == Decimal("48.00")

        panel_batch = await ledger_store.list_active_batches(ItemKey(item_type=ItemType.PRODUCT, fk_id=9))
        assert panel_batch[0].quantity == Decimal("4")
        assert panel_batch[0].unit_cost == Decimal("7.0000")
        assert panel_batch[0].source == MovementSource.PRODUCTION

        shared = await conversion_store.list_records_by_batch(result.reference)
        assert len(shared) == 2
        outs = [e for e in result.entries if e.movement_type == MovementType.OUT]
        assert all(e.batch_number == result.reference for e in outs)

    async def test_infeasible_production_writes_nothing(
        self, coordinator, ledger_store, templates, receive
    ):
        panel, _ = templates
        await receive(fk_id=1, sku="SHEET", quantity="10")
        before = await _entry_count(ledger_store)

        with pytest.raises(ConversionInfeasibleError):
            await coordinator.execute_production(
                [ProductionPlanItem(template_id=panel.id, quantity=Decimal("1"))]
            )

        assert await _entry_count(ledger_store) == before
