"""Monthly summary entities."""

import calendar
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, field_validator

from stockledger.core.numeric import ZERO, money, qty

_PERIOD_RE = re.compile(r"^(\d{4})-(\d{1,2})$")


@dataclass(frozen=True, order=True)
class Period:
    """A calendar month."""

    year: int
    month: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValueError(f"Month must be 1-12, got {self.month}")
        if not 1 <= self.year <= 9999:
            raise ValueError(f"Year out of range: {self.year}")

    @classmethod
    def parse(cls, value: str) -> "Period":
        """Parse ``YYYY-MM``."""
        match = _PERIOD_RE.match(value.strip())
        if not match:
            raise ValueError(f"Period must be YYYY-MM, got {value!r}")
        return cls(int(match.group(1)), int(match.group(2)))

    @classmethod
    def of(cls, day: date) -> "Period":
        return cls(day.year, day.month)

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def last_day(self) -> date:
        return date(self.year, self.month, calendar.monthrange(self.year, self.month)[1])

    def next(self) -> "Period":
        if self.month == 12:
            return Period(self.year + 1, 1)
        return Period(self.year, self.month + 1)

    def previous(self) -> "Period":
        if self.month == 1:
            return Period(self.year - 1, 12)
        return Period(self.year, self.month - 1)

    def contains(self, day: date) -> bool:
        return day.year == self.year and day.month == self.month

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


def iter_periods(start: Period, end: Period):
    """Yield every period from ``start`` to ``end`` inclusive."""
    current = start
    while current <= end:
        yield current
        current = current.next()


@dataclass(frozen=True)
class SummaryScope:
    """
    Identity of a summarized item.

    A variant scope matches entries with that ``variant_id`` (and ``sku`` when
    given); a SKU-only scope matches every entry of the SKU, whatever its
    variant. ``no_variant`` narrows a SKU scope to the entries that carry no
    variant, for SKUs that mix variant and plain stock.
    """

    sku: str | None = None
    variant_id: str | None = None
    no_variant: bool = False

    def __post_init__(self) -> None:
        if not self.sku and not self.variant_id:
            raise ValueError("SummaryScope needs a sku or a variant_id")
        if self.no_variant and (self.variant_id or not self.sku):
            raise ValueError("a no-variant scope needs a sku and no variant_id")

    @property
    def is_variant(self) -> bool:
        return bool(self.variant_id)

    def __str__(self) -> str:
        if self.variant_id:
            return f"{self.sku or '*'}/{self.variant_id}"
        if self.no_variant:
            return f"{self.sku}/-"
        return f"{self.sku}"


class MonthlySummary(BaseModel):
    """Opening, movement and closing balances of one item for one month."""

    id: int | None = None
    sku: str | None = None
    variant_id: str | None = None
    no_variant: bool = False
    year: int
    month: int

    opening_qty: Decimal = ZERO
    in_qty: Decimal = ZERO
    out_qty: Decimal = ZERO
    closing_qty: Decimal = ZERO

    opening_value: Decimal = ZERO
    in_value: Decimal = ZERO
    out_value: Decimal = ZERO
    closing_value: Decimal = ZERO

    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("opening_qty", "in_qty", "out_qty", "closing_qty")
    @classmethod
    def quantize_qty(cls, v: Decimal) -> Decimal:
        return qty(v)

    @field_validator("opening_value", "in_value", "out_value", "closing_value")
    @classmethod
    def quantize_value(cls, v: Decimal) -> Decimal:
        return money(v)

    @property
    def period(self) -> Period:
        return Period(self.year, self.month)

    @property
    def scope(self) -> SummaryScope:
        return SummaryScope(sku=self.sku, variant_id=self.variant_id, no_variant=self.no_variant)

    @property
    def is_balanced(self) -> bool:
        """Closing equals opening plus in minus out, for quantity and value."""
        return (
            self.closing_qty == self.opening_qty + self.in_qty - self.out_qty
            and self.closing_value == self.opening_value + self.in_value - self.out_value
        )


class SummaryOutcome(str, Enum):
    """Result of one (scope, month) unit in bulk generation."""

    CREATED = "CREATED"
    SKIPPED_EXISTS = "SKIPPED_EXISTS"
    SKIPPED_NO_HISTORY = "SKIPPED_NO_HISTORY"
    FAILED = "FAILED"


@dataclass
class SummaryUnitResult:
    sku: str | None
    variant_id: str | None
    period: Period
    outcome: SummaryOutcome
    message: str | None = None
    summary_id: int | None = None
    no_variant: bool = False


@dataclass
class BulkSummaryReport:
    """Per-unit results of a bulk generation run."""

    target: Period
    results: list[SummaryUnitResult] = field(default_factory=list)

    def count(self, outcome: SummaryOutcome) -> int:
        return sum(1 for r in self.results if r.outcome == outcome)

    @property
    def created(self) -> int:
        return self.count(SummaryOutcome.CREATED)

    @property
    def skipped(self) -> int:
        return self.count(SummaryOutcome.SKIPPED_EXISTS) + self.count(
            SummaryOutcome.SKIPPED_NO_HISTORY
        )

    @property
    def failed(self) -> int:
        return self.count(SummaryOutcome.FAILED)
