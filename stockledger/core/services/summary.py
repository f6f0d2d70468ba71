"""
Monthly summary reconciler.

Layer-pure service: depends only on core entities, interfaces and exceptions.

Folds ledger history into per-(scope, month) opening / in / out / closing
balances. The opening balance is carried from the previous month's summary
when one exists and recomputed from raw history otherwise; closing is always
exactly ``opening + in - out`` for both quantity and value.
"""

import asyncio
from collections import defaultdict
from datetime import timedelta

from stockledger.config import get_logger
from stockledger.core.clock import Clock, get_clock
from stockledger.core.entities.ledger import MovementEntry, MovementType
from stockledger.core.entities.summary import (
    BulkSummaryReport,
    MonthlySummary,
    Period,
    SummaryOutcome,
    SummaryScope,
    SummaryUnitResult,
    iter_periods,
)
from stockledger.core.exceptions import AlreadyExistsError, NoHistoryError, ValidationError
from stockledger.core.interfaces import ILedgerStore, ISummaryStore, IUnitOfWork
from stockledger.core.numeric import ZERO, line_value

logger = get_logger(__name__)


def _fold(entries: list[MovementEntry]) -> tuple:
    """Return (in_qty, in_value, out_qty, out_value) over ``entries``."""
    in_qty = in_value = out_qty = out_value = ZERO
    for entry in entries:
        value = line_value(entry.quantity, entry.unit_cost)
        if entry.movement_type == MovementType.IN:
            in_qty += entry.quantity
            in_value += value
        else:
            out_qty += entry.quantity
            out_value += value
    return in_qty, in_value, out_qty, out_value


class SummaryReconciler:
    """
    Generate, list and rebuild monthly summaries.

    Required interfaces for DI:
    - ILedgerStore: history reads
    - ISummaryStore: summary rows
    - IUnitOfWork: atomic generate and rebuild
    """

    def __init__(
        self,
        ledger_store: ILedgerStore,
        summary_store: ISummaryStore,
        unit_of_work: IUnitOfWork,
        clock: Clock | None = None,
        max_parallel: int = 4,
    ):
        self._ledger = ledger_store
        self._summaries = summary_store
        self._uow = unit_of_work
        self._clock = clock or get_clock()
        self._max_parallel = max(max_parallel, 1)

    async def resolve_scope(self, scope: SummaryScope) -> SummaryScope:
        """
        Canonical form of a scope.

        A variant given without its SKU is keyed under the SKU that carries it
        in the ledger, so one variant never ends up with two summary rows.

        Raises:
            ValidationError: the variant appears under more than one SKU
        """
        if not scope.variant_id or scope.sku:
            return scope
        skus = await self._ledger.skus_for_variant(scope.variant_id)
        if len(skus) > 1:
            raise ValidationError(
                "sku", f"variant {scope.variant_id} exists under several SKUs: {', '.join(skus)}"
            )
        if not skus:
            return scope
        return SummaryScope(sku=skus[0], variant_id=scope.variant_id)

    def previous_period(self) -> Period:
        """The month before the clock's current month."""
        return Period.of(self._clock.today()).previous()

    async def compute(self, scope: SummaryScope, period: Period) -> MonthlySummary:
        """Compute (without persisting) the summary of ``scope`` for ``period``."""
        first = await self._ledger.first_entry_date(scope)
        if first is None or first > period.last_day:
            raise NoHistoryError(str(scope), str(period))

        previous = await self._summaries.get(scope, period.previous())
        if previous is not None:
            opening_qty = previous.closing_qty
            opening_value = previous.closing_value
        else:
            history = await self._ledger.list_for_scope(
                scope, date_to=period.first_day - timedelta(days=1)
            )
            h_in_qty, h_in_value, h_out_qty, h_out_value = _fold(history)
            opening_qty = max(h_in_qty - h_out_qty, ZERO)
            opening_value = max(h_in_value - h_out_value, ZERO)

        month = await self._ledger.list_for_scope(
            scope, date_from=period.first_day, date_to=period.last_day
        )
        in_qty, in_value, out_qty, out_value = _fold(month)

        return MonthlySummary(
            sku=scope.sku,
            variant_id=scope.variant_id,
            no_variant=scope.no_variant,
            year=period.year,
            month=period.month,
            opening_qty=opening_qty,
            in_qty=in_qty,
            out_qty=out_qty,
            closing_qty=opening_qty + in_qty - out_qty,
            opening_value=opening_value,
            in_value=in_value,
            out_value=out_value,
            closing_value=opening_value + in_value - out_value,
        )

    async def generate(self, scope: SummaryScope, period: Period) -> MonthlySummary:
        """
        Generate and persist one summary.

        Raises:
            AlreadyExistsError: a summary for (scope, period) exists; untouched
            NoHistoryError: no entries for the scope up to the end of period
        """
        scope = await self.resolve_scope(scope)
        async with self._uow.unit_of_work():
            existing = await self._summaries.get(scope, period)
            if existing is not None:
                raise AlreadyExistsError(str(scope), str(period), existing.id)
            summary = await self.compute(scope, period)
            summary = await self._summaries.upsert(summary)

        logger.info(
            "summary_generated",
            scope=str(scope),
            period=str(period),
            opening_qty=str(summary.opening_qty),
            closing_qty=str(summary.closing_qty),
            closing_value=str(summary.closing_value),
        )
        return summary

    async def discover_scopes(self) -> list[SummaryScope]:
        """
        Summary scopes present in the ledger.

        A SKU without variants is summarized as a whole. A SKU with variants is
        summarized per variant, plus one no-variant scope when some of its
        entries carry no variant.
        """
        variants_by_sku: dict[str, list[str | None]] = defaultdict(list)
        for sku, variant_id in await self._ledger.distinct_sku_variants():
            variants_by_sku[sku].append(variant_id)

        scopes = []
        for sku, variants in variants_by_sku.items():
            named = [v for v in variants if v]
            if not named:
                scopes.append(SummaryScope(sku=sku))
                continue
            if len(named) != len(variants):
                scopes.append(SummaryScope(sku=sku, no_variant=True))
            scopes.extend(SummaryScope(sku=sku, variant_id=v) for v in named)
        return scopes

    async def _walk(self, scope: SummaryScope, target: Period) -> list[SummaryUnitResult]:
        """Generate every month of one scope up to ``target``, in order."""

        def unit(period: Period, outcome: SummaryOutcome, **kwargs) -> SummaryUnitResult:
            return SummaryUnitResult(
                sku=scope.sku,
                variant_id=scope.variant_id,
                no_variant=scope.no_variant,
                period=period,
                outcome=outcome,
                **kwargs,
            )

        first = await self._ledger.first_entry_date(scope)
        if first is None or Period.of(first) > target:
            return [unit(target, SummaryOutcome.SKIPPED_NO_HISTORY)]

        results = []
        for period in iter_periods(Period.of(first), target):
            try:
                summary = await self.generate(scope, period)
                results.append(unit(period, SummaryOutcome.CREATED, summary_id=summary.id))
            except AlreadyExistsError as e:
                results.append(
                    unit(period, SummaryOutcome.SKIPPED_EXISTS, summary_id=e.details.get("summary_id"))
                )
            except NoHistoryError:
                results.append(unit(period, SummaryOutcome.SKIPPED_NO_HISTORY))
            except Exception as e:
                logger.error(
                    "summary_generation_failed",
                    scope=str(scope),
                    period=str(period),
                    error=str(e),
                    exc_info=True,
                )
                results.append(unit(period, SummaryOutcome.FAILED, message=str(e)))
        return results

    async def generate_all(self, target: Period | None = None) -> BulkSummaryReport:
        """
        Generate summaries for every scope up to ``target`` (default: last month).

        Scopes run concurrently, bounded by ``max_parallel``; months of one scope
        run strictly in order. A failing unit is reported, never raised. Must not
        be called inside an open unit of work.
        """
        target = target or self.previous_period()
        scopes = await self.discover_scopes()
        semaphore = asyncio.Semaphore(self._max_parallel)

        async def run(scope: SummaryScope) -> list[SummaryUnitResult]:
            async with semaphore:
                return await self._walk(scope, target)

        logger.info("bulk_summary_started", period=str(target), scopes=len(scopes))
        per_scope = await asyncio.gather(*(run(scope) for scope in scopes))

        report = BulkSummaryReport(target=target)
        for results in per_scope:
            report.results.extend(results)

        logger.info(
            "bulk_summary_complete",
            period=str(target),
            created=report.created,
            skipped=report.skipped,
            failed=report.failed,
        )
        return report

    async def rebuild(
        self,
        scope: SummaryScope,
        from_period: Period,
        to_period: Period | None = None,
    ) -> list[MonthlySummary]:
        """
        Regenerate a scope's summaries from ``from_period`` onward.

        Used after back-dated ledger entries. ``to_period`` defaults to the
        latest period already summarized (or ``from_period``).
        """
        scope = await self.resolve_scope(scope)
        async with self._uow.unit_of_work():
            if to_period is None:
                latest = await self._summaries.latest_period(scope)
                to_period = latest if latest and latest >= from_period else from_period
            if to_period < from_period:
                raise ValidationError("to_period", "must not precede from_period", str(to_period))

            await self._summaries.delete_from(scope, from_period)
            rebuilt = []
            for period in iter_periods(from_period, to_period):
                try:
                    rebuilt.append(await self.generate(scope, period))
                except NoHistoryError:
                    continue

        logger.info(
            "summaries_rebuilt",
            scope=str(scope),
            from_period=str(from_period),
            to_period=str(to_period),
            count=len(rebuilt),
        )
        return rebuilt

    async def list_summaries(
        self,
        sku: str | None = None,
        variant_id: str | None = None,
        year: int | None = None,
        month: int | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[MonthlySummary]:
        return await self._summaries.list_summaries(sku, variant_id, year, month, limit, offset)
