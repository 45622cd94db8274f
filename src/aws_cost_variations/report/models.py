"""Report data model, error taxonomy and collaborator interfaces."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, Protocol, Tuple


class CostVariationError(Exception):
    """Base class for report-generation failures."""

    pass


class DataSourceError(CostVariationError):
    """Raised when the cost-diff source fails for an account."""

    pass


class TimestampParseError(CostVariationError):
    """Raised when a raw price point carries an unparseable date."""

    pass


class LayoutError(CostVariationError):
    """Raised when a cell is addressed outside the sheet's bounds."""

    pass


class Frequency(Enum):
    DAILY = "daily"
    MONTHLY = "monthly"

    @property
    def granularity(self) -> str:
        """Aggregation label passed to cost-diff sources."""
        return "day" if self is Frequency.DAILY else "month"

    @property
    def title(self) -> str:
        return "Daily Cost" if self is Frequency.DAILY else "Monthly Cost"

    @property
    def date_format(self) -> str:
        return "%Y-%m-%d" if self is Frequency.DAILY else "%Y-%m"


class DailyBucketPolicy(Enum):
    """How many daily buckets a last-month report spans.

    END_DAY reproduces the historical behaviour: the bucket count is the
    day-of-month of the range end, counted from the range start. RANGE
    emits one bucket per day actually inside the range.
    """

    END_DAY = "end-day"
    RANGE = "range"


@dataclass(frozen=True)
class Account:
    id: str
    label: str = ""

    @property
    def display_name(self) -> str:
        if self.label:
            return f"{self.label} ({self.id})"
        return self.id


@dataclass(frozen=True)
class PricePoint:
    date: datetime
    cost: float


@dataclass(frozen=True)
class DateRange:
    """Inclusive reporting window; end is the last instant of its day."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(
                f"start ({self.start}) must be <= end ({self.end})"
            )


BucketList = Tuple[datetime, ...]
BucketSeries = Dict[datetime, PricePoint]
AccountReport = Dict[str, BucketSeries]
ReportData = Dict[Account, AccountReport]

# product -> [{"date": "2025-01-01T00:00:00.000Z", "cost": 12.5}, ...]
RawCostDiff = Dict[str, list]


@dataclass
class ReportContext:
    """Per-invocation context handed to cost-diff sources.

    Sources that support cancellation should poll ``cancelled``; it is set
    as soon as any account fails during a parallel aggregation.
    """

    request_id: str = ""
    cancelled: threading.Event = field(default_factory=threading.Event)


class CostDiffSource(Protocol):
    def fetch(
        self,
        context: ReportContext,
        account: Account,
        date_range: DateRange,
        granularity: str,
    ) -> RawCostDiff: ...


HistoryWindowProvider = Callable[[], Tuple[datetime, datetime]]


# --- Sheet descriptions ---


@dataclass(frozen=True)
class HighlightRule:
    """Conditional format applied to a formula cell's result."""

    predicate: str  # "negative", "positive" or "zero"
    color: str  # "green" or "red"
    effect: str = "bordered"


@dataclass(frozen=True)
class CellIntent:
    address: str
    value: object = None
    formula: str | None = None
    styles: frozenset = frozenset()
    highlights: tuple = ()

    @property
    def is_empty(self) -> bool:
        return self.value is None and self.formula is None


@dataclass(frozen=True)
class MergeRange:
    start: str
    end: str


@dataclass(frozen=True)
class ColumnWidth:
    first: str
    last: str
    width: float


@dataclass(frozen=True)
class SheetLayout:
    """Everything the rendering engine needs to draw one sheet."""

    sheet_name: str
    frequency: Frequency
    date_range: DateRange
    buckets: BucketList
    header: tuple
    body: tuple
    merges: tuple
    widths: tuple
    row_count: int
    bucket_totals: tuple = ()  # summed literal cost per bucket

    @property
    def total_cost(self) -> float:
        return sum(self.bucket_totals)

    @property
    def cells(self) -> tuple:
        return self.header + self.body


class SheetSink(Protocol):
    def create_sheet(self, name: str) -> None: ...

    def set_value(self, address: str, value: object) -> None: ...

    def set_formula(self, address: str, formula: str) -> None: ...

    def merge(self, start: str, end: str) -> None: ...

    def tag_style(self, address: str, style: str) -> None: ...

    def add_highlight(self, address: str, rule: HighlightRule) -> None: ...

    def set_column_width(
        self, first: str, last: str, width: float
    ) -> None: ...
