"""Cost variation report descriptors and the generation entry point."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable

from aws_cost_variations.report.aggregator import aggregate_cost_data
from aws_cost_variations.report.date_range import resolve
from aws_cost_variations.report.layout import build_sheet_layout
from aws_cost_variations.report.models import (
    Account,
    CostDiffSource,
    CostVariationError,
    DailyBucketPolicy,
    Frequency,
    HistoryWindowProvider,
    ReportContext,
    SheetLayout,
    SheetSink,
)
from aws_cost_variations.utils.dates import default_history_window

logger = logging.getLogger(__name__)

LAST_MONTH_SHEET_NAME = "Cost Variations (Last Month)"
LAST_6_MONTHS_SHEET_NAME = "Cost Variations (Last 6 Months)"


@dataclass
class ReportOptions:
    """Knobs shared by every sheet of one generation request."""

    anchor: date | None = None
    history_window: HistoryWindowProvider = default_history_window
    daily_bucket_policy: DailyBucketPolicy = DailyBucketPolicy.END_DAY
    max_workers: int = 1
    context: ReportContext | None = None


SheetGenerator = Callable[
    [str, CostDiffSource, list[Account], ReportOptions], SheetLayout
]


@dataclass(frozen=True)
class ReportDescriptor:
    name: str
    sheet_name: str
    generate: SheetGenerator


def generate_cost_variation_sheet(
    sheet_name: str,
    frequency: Frequency,
    source: CostDiffSource,
    accounts: list[Account],
    options: ReportOptions,
) -> SheetLayout:
    """Resolve dates, aggregate cost diffs and lay out one sheet."""
    date_range, buckets = resolve(
        frequency,
        options.anchor,
        options.history_window,
        options.daily_bucket_policy,
    )
    data = aggregate_cost_data(
        source,
        accounts,
        date_range,
        frequency.granularity,
        context=options.context,
        max_workers=options.max_workers,
    )
    layout = build_sheet_layout(
        sheet_name, frequency, date_range, buckets, data
    )
    logger.info(
        "Built '%s': %d row(s), %d bucket(s), %s to %s",
        sheet_name,
        layout.row_count,
        len(buckets),
        date_range.start.date(),
        date_range.end.date(),
    )
    return layout


def generate_last_month(
    sheet_name: str,
    source: CostDiffSource,
    accounts: list[Account],
    options: ReportOptions,
) -> SheetLayout:
    return generate_cost_variation_sheet(
        sheet_name, Frequency.DAILY, source, accounts, options
    )


def generate_last_6_months(
    sheet_name: str,
    source: CostDiffSource,
    accounts: list[Account],
    options: ReportOptions,
) -> SheetLayout:
    return generate_cost_variation_sheet(
        sheet_name, Frequency.MONTHLY, source, accounts, options
    )


def cost_variation_reports() -> list[ReportDescriptor]:
    """The two sheets of a cost variation workbook, in sheet order."""
    return [
        ReportDescriptor(
            name="Cost Variations (Last Month)",
            sheet_name=LAST_MONTH_SHEET_NAME,
            generate=generate_last_month,
        ),
        ReportDescriptor(
            name="Cost Variations (Last 6 Months)",
            sheet_name=LAST_6_MONTHS_SHEET_NAME,
            generate=generate_last_6_months,
        ),
    ]


def generate_report(
    descriptors: list[ReportDescriptor],
    accounts: list[Account],
    source: CostDiffSource,
    options: ReportOptions | None = None,
) -> list[SheetLayout]:
    """Build every sheet before anything is rendered.

    Any failure aborts the whole report so callers never see a workbook
    with only some of its sheets.
    """
    options = options or ReportOptions()
    layouts: list[SheetLayout] = []
    for descriptor in descriptors:
        try:
            layouts.append(
                descriptor.generate(
                    descriptor.sheet_name, source, accounts, options
                )
            )
        except CostVariationError:
            logger.error(
                "Failed to generate '%s' for %d account(s)",
                descriptor.name,
                len(accounts),
            )
            raise
    return layouts


def render_sheet(layout: SheetLayout, sink: SheetSink) -> None:
    """Apply one SheetLayout to a rendering engine."""
    sink.create_sheet(layout.sheet_name)
    for cell in layout.cells:
        if cell.formula is not None:
            sink.set_formula(cell.address, cell.formula)
        elif cell.value is not None:
            sink.set_value(cell.address, cell.value)
        for style in sorted(cell.styles):
            sink.tag_style(cell.address, style)
        for rule in cell.highlights:
            sink.add_highlight(cell.address, rule)
    for merge in layout.merges:
        sink.merge(merge.start, merge.end)
    for width in layout.widths:
        sink.set_column_width(width.first, width.last, width.width)


def render_report(layouts: list[SheetLayout], sink: SheetSink) -> None:
    for layout in layouts:
        render_sheet(layout, sink)
