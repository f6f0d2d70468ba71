"""Integration tests for the current-value projection."""

from datetime import date
from decimal import Decimal

from stockledger.core.entities import ItemKey, ItemType, MovementSource, MovementType

KEY = ItemKey(item_type=ItemType.MATERIAL, fk_id=1)


class TestRefreshAfterCommit:
    async def test_append_refreshes_in_background(self, receive, refresher, projection):
        await receive(quantity="100", unit_cost="5", effective_date=date(2024, 1, 10))
        await receive(quantity="50", unit_cost="6", effective_date=date(2024, 2, 5))
        await refresher.drain()

        value = await projection.get(KEY)

        assert value.current_quantity == Decimal("150")
        assert value.current_value == Decimal("800.00")
        assert value.last_cost == Decimal("6")
        assert value.last_movement_date == date(2024, 2, 5)

    async def test_issue_refreshes(self, receive, ledger_service, refresher, projection, make_entry):
        await receive(quantity="100", unit_cost="5", effective_date=date(2024, 1, 10))
        await receive(quantity="50", unit_cost="6", effective_date=date(2024, 2, 5))

        await ledger_service.issue(
            make_entry(quantity="120", movement_type=MovementType.OUT, source=MovementSource.SALES)
        )
        await refresher.drain()

        value = await projection.get(KEY)
        assert value.current_quantity == Decimal("30")
        assert value.current_value == Decimal("180.00")

    async def test_emptied_item_keeps_identity(self, receive, ledger_service, refresher, projection, make_entry):
        await receive(quantity="10", unit_cost="5", item_name="Steel sheet")
        await refresher.drain()
        await ledger_service.issue(
            make_entry(quantity="10", movement_type=MovementType.OUT, source=MovementSource.SALES)
        )
        await refresher.drain()

        value = await projection.get(KEY)
        assert value.current_quantity == Decimal("0")
        assert value.current_value == Decimal("0.00")
        assert value.sku == "MAT-001"
        assert value.item_name == "Steel sheet"

    async def test_failed_refresh_does_not_reach_writer(self, receive, refresher, projection, monkeypatch):
        async def broken(keys):
            raise RuntimeError("projection down")

        monkeypatch.setattr(projection, "refresh_bulk", broken)

        saved = await receive(quantity="10")
        await refresher.drain()

        assert saved.id is not None
        assert refresher.pending == 0


class TestRebuild:
    async def test_rebuild_all_matches_ledger(self, receive, refresher, projection, projection_store):
        await receive(fk_id=1, quantity="10", unit_cost="2")
        await receive(fk_id=2, sku="MAT-002", quantity="5", unit_cost="3")
        await refresher.drain()
        await projection_store.clear()

        count = await projection.rebuild_all()

        assert count == 2
        values = {v.fk_id: v for v in await projection.list_values()}
        assert values[1].current_value == Decimal("20.00")
        assert values[2].current_value == Decimal("15.00")

    async def test_refresh_bulk_deduplicates(self, receive, refresher, projection):
        await receive(quantity="10")
        await refresher.drain()

        values = await projection.refresh_bulk([KEY, KEY])

        assert len(values) == 1

    async def test_refresh_unknown_item(self, projection):
        value = await projection.refresh(ItemKey(item_type=ItemType.PRODUCT, fk_id=99))

        assert value.current_quantity == Decimal("0")
        assert value.sku is None

    async def test_variants_roll_up_to_the_item(self, receive, refresher, projection):
        tee = {"sku": "TEE", "fk_id": 7, "item_type": ItemType.PRODUCT, "quantity": "10"}
        await receive(variant_id="RED", unit_cost="3", effective_date=date(2024, 1, 5), **tee)
        await receive(variant_id="BLUE", unit_cost="4", effective_date=date(2024, 1, 6), **tee)
        await refresher.drain()

        value = await projection.refresh(
            ItemKey(item_type=ItemType.PRODUCT, fk_id=7, variant_id="RED")
        )

        assert value.current_quantity == Decimal("20")
        assert value.current_value == Decimal("70.00")
        assert value.variant_id is None
        assert value.last_cost == Decimal("4")
