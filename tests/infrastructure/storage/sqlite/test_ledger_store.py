"""Tests for SQLite ledger store."""

from datetime import date
from decimal import Decimal

import pytest

from stockledger.core.entities import (
    EntryStatus,
    ItemKey,
    ItemType,
    MovementFilter,
    MovementSource,
    MovementType,
    SummaryScope,
)
from stockledger.core.exceptions import ConcurrencyConflictError, EntryNotFoundError

KEY = ItemKey(item_type=ItemType.MATERIAL, fk_id=1)


class TestAppend:
    async def test_append_assigns_id_and_keeps_decimals(self, ledger_store, make_entry):
        saved = await ledger_store.append(make_entry(quantity="12.3456", unit_cost="0.3333"))

        assert saved.id is not None
        loaded = await ledger_store.get(saved.id)
        assert loaded.quantity == Decimal("12.3456")
        assert loaded.remaining_qty == Decimal("12.3456")
        assert loaded.unit_cost == Decimal("0.3333")
        assert loaded.version == 0
        assert loaded.effective_date == date(2024, 1, 10)
        assert loaded.created_at is not None

    async def test_append_many_in_order(self, ledger_store, make_entry):
        saved = await ledger_store.append_many(
            [make_entry(quantity="1"), make_entry(quantity="2"), make_entry(quantity="3")]
        )
        assert [e.id for e in saved] == sorted(e.id for e in saved)
        assert [e.quantity for e in saved] == [Decimal("1"), Decimal("2"), Decimal("3")]

    async def test_get_missing(self, ledger_store):
        assert await ledger_store.get(999) is None


class TestBatches:
    async def test_active_batches_oldest_first(self, ledger_store, make_entry):
        late = await ledger_store.append(make_entry(effective_date=date(2024, 2, 1)))
        early = await ledger_store.append(make_entry(effective_date=date(2024, 1, 1)))
        same_day = await ledger_store.append(make_entry(effective_date=date(2024, 1, 1)))
        await ledger_store.append(make_entry(fk_id=2))

        batches = await ledger_store.list_active_batches(KEY)

        assert [b.id for b in batches] == [early.id, same_day.id, late.id]

    async def test_available_quantity(self, ledger_store, make_entry):
        await ledger_store.append(make_entry(quantity="100"))
        await ledger_store.append(make_entry(quantity="50"))
        assert await ledger_store.available_quantity(KEY) == Decimal("150")

    async def test_batches_are_per_variant(self, ledger_store, make_entry):
        await ledger_store.append(make_entry(variant_id="RED", quantity="3"))
        await ledger_store.append(make_entry(variant_id="BLUE", quantity="4"))
        await ledger_store.append(make_entry(quantity="5"))

        red = ItemKey(item_type=ItemType.MATERIAL, fk_id=1, variant_id="RED")
        batches = await ledger_store.list_active_batches(red)

        assert [b.variant_id for b in batches] == ["RED"]
        assert await ledger_store.available_quantity(red) == Decimal("3")
        assert await ledger_store.available_quantity(KEY) == Decimal("5")
        assert len(await ledger_store.list_active_for_keys([KEY])) == 3

    async def test_available_quantity_empty(self, ledger_store):
        assert await ledger_store.available_quantity(KEY) == Decimal("0")

    async def test_decrement_bumps_version(self, ledger_store, make_entry):
        batch = await ledger_store.append(make_entry(quantity="100"))

        await ledger_store.decrement_batch(batch.id, 0, Decimal("40"), updated_by="alice")

        loaded = await ledger_store.get(batch.id)
        assert loaded.remaining_qty == Decimal("40")
        assert loaded.version == 1
        assert loaded.status == EntryStatus.ACTIVE
        assert loaded.updated_by == "alice"

    async def test_decrement_to_zero_deactivates(self, ledger_store, make_entry):
        batch = await ledger_store.append(make_entry(quantity="100"))

        await ledger_store.decrement_batch(batch.id, 0, Decimal("0"))

        loaded = await ledger_store.get(batch.id)
        assert loaded.status == EntryStatus.INACTIVE
        assert await ledger_store.list_active_batches(KEY) == []

    async def test_stale_version_conflicts(self, ledger_store, make_entry):
        batch = await ledger_store.append(make_entry(quantity="100"))
        await ledger_store.decrement_batch(batch.id, 0, Decimal("90"))

        with pytest.raises(ConcurrencyConflictError):
            await ledger_store.decrement_batch(batch.id, 0, Decimal("80"))

        assert (await ledger_store.get(batch.id)).remaining_qty == Decimal("90")


class TestSoftDelete:
    async def test_soft_delete(self, ledger_store, make_entry):
        batch = await ledger_store.append(make_entry())

        deleted = await ledger_store.soft_delete(batch.id, deleted_by="bob")

        assert deleted.status == EntryStatus.DELETED
        assert deleted.deleted_by == "bob"
        assert deleted.deleted_at is not None
        assert await ledger_store.available_quantity(KEY) == Decimal("0")

    async def test_soft_delete_missing(self, ledger_store):
        with pytest.raises(EntryNotFoundError):
            await ledger_store.soft_delete(999)


class TestQuery:
    async def test_filters_and_pagination(self, ledger_store, make_entry):
        for day in (1, 2, 3):
            await ledger_store.append(make_entry(effective_date=date(2024, 1, day)))
        await ledger_store.append(make_entry(fk_id=2, sku="MAT-002"))

        page = await ledger_store.query(MovementFilter(sku="MAT-001"), limit=2, offset=0)

        assert page.total == 3
        assert len(page.items) == 2
        assert page.items[0].effective_date == date(2024, 1, 3)

    async def test_date_range(self, ledger_store, make_entry):
        for day in (1, 15, 31):
            await ledger_store.append(make_entry(effective_date=date(2024, 1, day)))

        page = await ledger_store.query(
            MovementFilter(date_from=date(2024, 1, 10), date_to=date(2024, 1, 20))
        )

        assert [e.effective_date for e in page.items] == [date(2024, 1, 15)]

    async def test_deleted_hidden_unless_requested(self, ledger_store, make_entry):
        batch = await ledger_store.append(make_entry())
        await ledger_store.soft_delete(batch.id)

        assert (await ledger_store.query(MovementFilter())).total == 0
        assert (await ledger_store.query(MovementFilter(include_deleted=True))).total == 1
        assert (await ledger_store.query(MovementFilter(status=EntryStatus.DELETED))).total == 1

    async def test_movement_type_and_source(self, ledger_store, make_entry):
        await ledger_store.append(make_entry())
        await ledger_store.append(
            make_entry(
                movement_type=MovementType.OUT,
                source=MovementSource.SALES,
                quantity="5",
            )
        )

        page = await ledger_store.query(MovementFilter(movement_type=MovementType.OUT))

        assert page.total == 1
        assert page.items[0].source == MovementSource.SALES


class TestScopeReads:
    async def test_list_for_scope_by_variant(self, ledger_store, make_entry):
        await ledger_store.append(make_entry(sku="SHIRT", variant_id="SHIRT-RED"))
        await ledger_store.append(make_entry(sku="SHIRT", variant_id="SHIRT-BLUE"))

        red = await ledger_store.list_for_scope(SummaryScope(sku="SHIRT", variant_id="SHIRT-RED"))
        whole = await ledger_store.list_for_scope(SummaryScope(sku="SHIRT"))

        assert len(red) == 1
        assert len(whole) == 2

    async def test_list_for_scope_without_variant(self, ledger_store, make_entry):
        await ledger_store.append(make_entry(sku="SHIRT"))
        await ledger_store.append(make_entry(sku="SHIRT", variant_id="SHIRT-RED"))

        plain = await ledger_store.list_for_scope(SummaryScope(sku="SHIRT", no_variant=True))

        assert [e.variant_id for e in plain] == [None]

    async def test_skus_for_variant(self, ledger_store, make_entry):
        await ledger_store.append(make_entry(sku="SHIRT", variant_id="RED", fk_id=5))
        await ledger_store.append(make_entry(sku="CAP", variant_id="RED", fk_id=6))
        await ledger_store.append(make_entry(sku="CAP", variant_id="BLUE", fk_id=6))

        assert await ledger_store.skus_for_variant("RED") == ["CAP", "SHIRT"]
        assert await ledger_store.skus_for_variant("GREEN") == []

    async def test_first_entry_date(self, ledger_store, make_entry):
        scope = SummaryScope(sku="MAT-001")
        assert await ledger_store.first_entry_date(scope) is None

        await ledger_store.append(make_entry(effective_date=date(2024, 2, 5)))
        await ledger_store.append(make_entry(effective_date=date(2023, 12, 20)))

        assert await ledger_store.first_entry_date(scope) == date(2023, 12, 20)

    async def test_distinct_sku_variants(self, ledger_store, make_entry):
        await ledger_store.append(make_entry(sku="MAT-001"))
        await ledger_store.append(make_entry(sku="SHIRT", variant_id="SHIRT-RED", fk_id=5))
        await ledger_store.append(make_entry(sku="SHIRT", variant_id="SHIRT-RED", fk_id=5))

        pairs = await ledger_store.distinct_sku_variants()

        assert ("MAT-001", None) in pairs
        assert ("SHIRT", "SHIRT-RED") in pairs
        assert len(pairs) == 2

    async def test_list_active_for_keys(self, ledger_store, make_entry):
        await ledger_store.append(make_entry(fk_id=1))
        await ledger_store.append(make_entry(fk_id=2))
        await ledger_store.append(make_entry(fk_id=3))

        selected = await ledger_store.list_active_for_keys(
            [KEY, ItemKey(item_type=ItemType.MATERIAL, fk_id=3)]
        )

        assert sorted(e.fk_id for e in selected) == [1, 3]
        assert len(await ledger_store.list_active_for_keys(None)) == 3
        assert await ledger_store.list_active_for_keys([]) == []
