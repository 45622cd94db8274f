"""Header structure, column widths and body-row ordering of a sheet."""

from __future__ import annotations

from datetime import datetime

from aws_cost_variations.report.formulas import (
    FIRST_BODY_ROW,
    build_row_cells,
    cell_address,
    column_letter,
    cost_column,
    total_column,
    variation_column,
)
from aws_cost_variations.report.models import (
    Account,
    BucketList,
    BucketSeries,
    CellIntent,
    ColumnWidth,
    DateRange,
    Frequency,
    LayoutError,
    MergeRange,
    ReportData,
    SheetLayout,
)

HEADER_STYLES = frozenset({"bordered", "bold", "centered"})

ACCOUNT_COLUMN_WIDTH = 30
USAGE_TYPE_COLUMN_WIDTH = 35
BUCKET_COLUMN_WIDTH = 12.5
TOTAL_COLUMN_WIDTH = 15


def format_bucket_label(bucket: datetime, frequency: Frequency) -> str:
    return bucket.strftime(frequency.date_format)


def build_header(
    frequency: Frequency, buckets: BucketList
) -> tuple[tuple[CellIntent, ...], tuple[MergeRange, ...]]:
    """Return the three header rows and their merged ranges."""
    if not buckets:
        raise LayoutError("A cost variation sheet needs at least one bucket")

    last_data = column_letter(cost_column(len(buckets) - 1))
    total = column_letter(total_column(len(buckets)))

    def header_cell(address: str, value: str) -> CellIntent:
        return CellIntent(address=address, value=value, styles=HEADER_STYLES)

    cells = [
        header_cell("A1", "Account"),
        header_cell("B1", "Usage type"),
        header_cell("C1", frequency.title),
        header_cell(f"{total}1", "Total"),
    ]
    merges = [
        MergeRange("A1", "A3"),
        MergeRange("B1", "B3"),
        MergeRange(f"{total}1", f"{total}3"),
    ]
    if last_data != "C":
        merges.append(MergeRange("C1", f"{last_data}1"))

    for index, bucket in enumerate(buckets):
        label = format_bucket_label(bucket, frequency)
        cost = cell_address(cost_column(index), 2)
        if index == 0:
            cells.append(header_cell(cost, label))
            cells.append(header_cell(cell_address(cost_column(index), 3), "Cost"))
            continue
        variation = cell_address(variation_column(index), 2)
        cells.append(header_cell(variation, label))
        merges.append(MergeRange(variation, cost))
        cells.append(
            header_cell(cell_address(variation_column(index), 3), "Variation")
        )
        cells.append(header_cell(cell_address(cost_column(index), 3), "Cost"))

    return tuple(cells), tuple(merges)


def column_widths(bucket_count: int) -> tuple[ColumnWidth, ...]:
    last_data = column_letter(cost_column(bucket_count - 1))
    total = column_letter(total_column(bucket_count))
    return (
        ColumnWidth("A", "A", ACCOUNT_COLUMN_WIDTH),
        ColumnWidth("B", "B", USAGE_TYPE_COLUMN_WIDTH),
        ColumnWidth("C", last_data, BUCKET_COLUMN_WIDTH),
        ColumnWidth(total, total, TOTAL_COLUMN_WIDTH),
    )


def ordered_rows(
    data: ReportData,
) -> list[tuple[Account, str, BucketSeries]]:
    """Flatten ReportData into rows sorted by account id, then product."""
    rows = [
        (account, product, series)
        for account, report in data.items()
        for product, series in report.items()
    ]
    rows.sort(key=lambda row: (row[0].id, row[1]))
    return rows


def build_sheet_layout(
    sheet_name: str,
    frequency: Frequency,
    date_range: DateRange,
    buckets: BucketList,
    data: ReportData,
) -> SheetLayout:
    """Describe a complete cost variation sheet."""
    header, merges = build_header(frequency, buckets)
    body: list[CellIntent] = []
    bucket_totals = [0.0] * len(buckets)
    rows = ordered_rows(data)
    for offset, (account, product, series) in enumerate(rows):
        body.extend(
            build_row_cells(
                FIRST_BODY_ROW + offset, account, product, series, buckets
            )
        )
        for index, bucket in enumerate(buckets):
            if bucket in series:
                bucket_totals[index] += series[bucket].cost

    return SheetLayout(
        sheet_name=sheet_name,
        frequency=frequency,
        date_range=date_range,
        buckets=buckets,
        header=header,
        body=tuple(body),
        merges=merges,
        widths=column_widths(len(buckets)),
        row_count=len(rows),
        bucket_totals=tuple(bucket_totals),
    )
