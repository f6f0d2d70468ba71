"""Integration tests for FIFO consumption against SQLite."""

import asyncio
from datetime import date
from decimal import Decimal

import pytest

from stockledger.core.entities import (
    ConsumptionContext,
    EntryStatus,
    ItemKey,
    ItemType,
    MovementFilter,
    MovementSource,
    MovementType,
)
from stockledger.core.exceptions import InsufficientStockError, ValidationError

KEY = ItemKey(item_type=ItemType.MATERIAL, fk_id=1)
SALE = ConsumptionContext(source=MovementSource.SALES)


@pytest.fixture
async def two_batches(receive):
    """100 @ 5.00 received Jan 10, 50 @ 6.00 received Feb 5."""
    first = await receive(quantity="100", unit_cost="5", effective_date=date(2024, 1, 10))
    second = await receive(quantity="50", unit_cost="6", effective_date=date(2024, 2, 5))
    return first, second


class TestFIFOConsumption:
    """Oldest batch first, each at its own cost."""

    async def test_spans_batches(self, fifo, ledger_store, two_batches):
        """Consuming 120 drains the January batch and takes 20 from February."""
        first, second = two_batches

        result = await fifo.consume(KEY, Decimal("120"), SALE)

        assert [a.batch.id for a in result.allocations] == [first.id, second.id]
        assert [a.qty_taken for a in result.allocations] == [Decimal("100"), Decimal("20")]
        assert result.total_cost == Decimal("620.00")

        first_after = await ledger_store.get(first.id)
        second_after = await ledger_store.get(second.id)
        assert first_after.remaining_qty == Decimal("0")
        assert first_after.status == EntryStatus.INACTIVE
        assert second_after.remaining_qty == Decimal("30")
        assert second_after.status == EntryStatus.ACTIVE
        assert await fifo.available(KEY) == Decimal("30")

    async def test_writes_one_out_entry_per_batch(self, fifo, ledger_store, two_batches):
        first, second = two_batches

        result = await fifo.consume(KEY, Decimal("120"), SALE)

        outs = result.out_entries
        assert len(outs) == 2
        assert all(e.movement_type == MovementType.OUT for e in outs)
        assert all(e.source == MovementSource.SALES for e in outs)
        assert [e.unit_cost for e in outs] == [Decimal("5"), Decimal("6")]
        assert outs[0].notes == f"FIFO from batch #{first.id}"
        assert outs[0].effective_date == date(2024, 3, 15)

        page = await ledger_store.query(MovementFilter(movement_type=MovementType.OUT))
        assert page.total == 2

    async def test_exact_batch_boundary(self, fifo, ledger_store, two_batches):
        first, second = two_batches

        result = await fifo.consume(KEY, Decimal("100"), SALE)

        assert len(result.allocations) == 1
        assert (await ledger_store.get(first.id)).status == EntryStatus.INACTIVE
        assert (await ledger_store.get(second.id)).remaining_qty == Decimal("50")

    async def test_context_tags_out_entries(self, fifo, two_batches):
        first, _ = two_batches
        context = ConsumptionContext(
            source=MovementSource.CONVERSION,
            effective_date=date(2024, 2, 28),
            batch_number="CONV-20240228-0000ABCD",
            notes="cut",
            user="alice",
        )

        result = await fifo.consume(KEY, Decimal("10"), context)

        out = result.out_entries[0]
        assert out.batch_number == "CONV-20240228-0000ABCD"
        assert out.effective_date == date(2024, 2, 28)
        assert out.notes == f"cut (FIFO from batch #{first.id})"
        assert out.created_by == "alice"


class TestVariants:
    """Batches are drawn per variant of an item."""

    @pytest.fixture
    async def tees(self, receive):
        """RED 10 @ 3 received Jan 5, BLUE 10 @ 4 received Jan 6, both PRODUCT 7."""
        tee = {"sku": "TEE", "fk_id": 7, "item_type": ItemType.PRODUCT, "quantity": "10"}
        red = await receive(variant_id="RED", unit_cost="3", effective_date=date(2024, 1, 5), **tee)
        blue = await receive(variant_id="BLUE", unit_cost="4", effective_date=date(2024, 1, 6), **tee)
        return red, blue

    async def test_issue_draws_only_its_variant(self, ledger_service, ledger_store, make_entry, tees):
        red, blue = tees

        result = await ledger_service.issue(
            make_entry(
                sku="TEE",
                variant_id="BLUE",
                fk_id=7,
                item_type=ItemType.PRODUCT,
                quantity="4",
                movement_type=MovementType.OUT,
                source=MovementSource.SALES,
            )
        )

        assert [e.variant_id for e in result.out_entries] == ["BLUE"]
        assert [a.batch.id for a in result.allocations] == [blue.id]
        assert result.total_cost == Decimal("16.00")
        assert (await ledger_store.get(red.id)).remaining_qty == Decimal("10")
        assert (await ledger_store.get(blue.id)).remaining_qty == Decimal("6")

    async def test_variant_without_stock_is_short(self, fifo, tees):
        green = ItemKey(item_type=ItemType.PRODUCT, fk_id=7, variant_id="GREEN")

        with pytest.raises(InsufficientStockError) as exc_info:
            await fifo.consume(green, Decimal("1"), SALE)

        assert exc_info.value.available == Decimal("0")

    async def test_availability_per_variant(self, fifo, tees):
        red = ItemKey(item_type=ItemType.PRODUCT, fk_id=7, variant_id="RED")
        plain = ItemKey(item_type=ItemType.PRODUCT, fk_id=7)

        assert await fifo.available(red) == Decimal("10")
        assert await fifo.available(plain) == Decimal("0")


class TestShortage:
    async def test_shortage_changes_nothing(self, fifo, ledger_store, two_batches):
        """A shortage raises before any batch is touched."""
        first, second = two_batches

        with pytest.raises(InsufficientStockError) as exc_info:
            await fifo.consume(KEY, Decimal("151"), SALE)

        assert exc_info.value.required == Decimal("151")
        assert exc_info.value.available == Decimal("150")
        assert (await ledger_store.get(first.id)).remaining_qty == Decimal("100")
        assert (await ledger_store.get(second.id)).version == 0
        page = await ledger_store.query(MovementFilter(movement_type=MovementType.OUT))
        assert page.total == 0

    async def test_no_batches(self, fifo):
        with pytest.raises(InsufficientStockError):
            await fifo.consume(KEY, Decimal("1"), SALE)

    async def test_non_positive_quantity(self, fifo, two_batches):
        with pytest.raises(ValidationError):
            await fifo.consume(KEY, Decimal("0"), SALE)


class TestConcurrentConsumers:
    async def test_two_consumers_cannot_overdraw(self, fifo, ledger_store, receive):
        """Two 60-unit consumers against 100 in stock: one wins, one is short."""
        await receive(quantity="100", unit_cost="5")

        results = await asyncio.gather(
            fifo.consume(KEY, Decimal("60"), SALE),
            fifo.consume(KEY, Decimal("60"), SALE),
            return_exceptions=True,
        )

        successes = [r for r in results if not isinstance(r, Exception)]
        failures = [r for r in results if isinstance(r, Exception)]
        assert len(successes) == 1
        assert len(failures) == 1
        assert isinstance(failures[0], InsufficientStockError)
        assert await fifo.available(KEY) == Decimal("40")


class TestLedgerServiceIssue:
    async def test_issue_through_service(self, ledger_service, make_entry, two_batches):
        result = await ledger_service.issue(
            make_entry(
                quantity="120",
                movement_type=MovementType.OUT,
                source=MovementSource.SALES,
                unit_cost="0",
            )
        )
        assert result.total_cost == Decimal("620.00")

    async def test_append_rejects_out(self, ledger_service, make_entry):
        with pytest.raises(ValidationError):
            await ledger_service.append(
                make_entry(movement_type=MovementType.OUT, source=MovementSource.SALES)
            )

    async def test_record_many_is_atomic(self, ledger_service, ledger_store, make_entry):
        """A shortage late in the batch undoes the earlier IN entries."""
        with pytest.raises(InsufficientStockError):
            await ledger_service.record_many(
                [
                    make_entry(quantity="10"),
                    make_entry(
                        quantity="50",
                        movement_type=MovementType.OUT,
                        source=MovementSource.SALES,
                    ),
                ]
            )
        assert (await ledger_store.query(MovementFilter())).total == 0

    async def test_delete_untouched_batch(self, ledger_service, receive):
        batch = await receive(quantity="10")

        deleted = await ledger_service.delete(batch.id, deleted_by="alice")

        assert deleted.status == EntryStatus.DELETED

    async def test_delete_consumed_batch_rejected(self, ledger_service, fifo, receive):
        batch = await receive(quantity="10")
        await fifo.consume(KEY, Decimal("1"), SALE)

        with pytest.raises(ValidationError):
            await ledger_service.delete(batch.id)

    async def test_zero_quantity_receipt_rejected(self, ledger_service, ledger_store, make_entry):
        with pytest.raises(ValidationError):
            await ledger_service.append(make_entry(quantity="0"))
        assert (await ledger_store.query(MovementFilter())).total == 0

    async def test_effective_date_defaults_to_today(self, ledger_service, make_entry):
        saved = await ledger_service.append(make_entry(effective_date=None))
        assert saved.effective_date == date(2024, 3, 15)
