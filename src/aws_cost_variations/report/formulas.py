"""Cost, variation and total cells for one body row."""

from __future__ import annotations

from aws_cost_variations.report.models import (
    Account,
    BucketList,
    BucketSeries,
    CellIntent,
    HighlightRule,
    LayoutError,
)

BODY_STYLES = frozenset({"bordered", "centered"})
COST_STYLES = BODY_STYLES | {"currency"}
VARIATION_STYLES = BODY_STYLES | {"percentage"}

# A decrease is favourable; an increase or a flat period is not.
VARIATION_HIGHLIGHTS = (
    HighlightRule(predicate="negative", color="green"),
    HighlightRule(predicate="positive", color="red"),
    HighlightRule(predicate="zero", color="red"),
)

FIRST_BODY_ROW = 4
MAX_COLUMN = 16384
MAX_ROW = 1048576


def column_letter(index: int) -> str:
    """1-based column index to its spreadsheet letters (1 -> A)."""
    if not 1 <= index <= MAX_COLUMN:
        raise LayoutError(
            f"Column {index} is outside the sheet (1..{MAX_COLUMN})"
        )
    letters = ""
    while index:
        index, remainder = divmod(index - 1, 26)
        letters = chr(ord("A") + remainder) + letters
    return letters


def cell_address(column: int, row: int) -> str:
    if not 1 <= row <= MAX_ROW:
        raise LayoutError(f"Row {row} is outside the sheet (1..{MAX_ROW})")
    return f"{column_letter(column)}{row}"


def cost_column(bucket_index: int) -> int:
    """Column holding a bucket's cost; bucket 0 sits in column C."""
    if bucket_index < 0:
        raise LayoutError(f"Negative bucket index {bucket_index}")
    return 2 * bucket_index + 3


def variation_column(bucket_index: int) -> int:
    """Column holding a bucket's variation, left of its cost."""
    if bucket_index < 1:
        raise LayoutError("The first bucket has no variation column")
    return 2 * bucket_index + 2


def total_column(bucket_count: int) -> int:
    return 2 * bucket_count + 2


def variation_formula(previous_cell: str, current_cell: str) -> str:
    return (
        f'IF({previous_cell}=0,"",{current_cell}/{previous_cell}-1)'
    )


def total_formula(cost_cells: list[str]) -> str:
    return f"SUM({','.join(cost_cells)})"


def evaluate_variation(
    previous: float | None, current: float | None
) -> float | None:
    """Evaluate the variation formula the way a spreadsheet would.

    Blank cells count as zero; a zero previous cost yields a blank.
    """
    previous = previous or 0.0
    current = current or 0.0
    if previous == 0:
        return None
    return current / previous - 1


def build_row_cells(
    row: int,
    account: Account,
    product: str,
    series: BucketSeries,
    buckets: BucketList,
) -> tuple[CellIntent, ...]:
    """Describe every cell of one (account, product) body row."""
    if row < FIRST_BODY_ROW:
        raise LayoutError(
            f"Body rows start at row {FIRST_BODY_ROW}, got {row}"
        )
    if not buckets:
        raise LayoutError("A cost variation row needs at least one bucket")

    cells = [
        CellIntent(
            address=cell_address(1, row),
            value=account.display_name,
            styles=BODY_STYLES,
        ),
        CellIntent(
            address=cell_address(2, row), value=product, styles=BODY_STYLES
        ),
    ]
    cost_cells: list[str] = []
    for index, bucket in enumerate(buckets):
        point = series.get(bucket)
        cost_cell = cell_address(cost_column(index), row)
        cells.append(
            CellIntent(
                address=cost_cell,
                value=point.cost if point is not None else None,
                styles=COST_STYLES,
            )
        )
        if index > 0:
            cells.append(
                CellIntent(
                    address=cell_address(variation_column(index), row),
                    formula=variation_formula(cost_cells[-1], cost_cell),
                    styles=VARIATION_STYLES,
                    highlights=VARIATION_HIGHLIGHTS,
                )
            )
        cost_cells.append(cost_cell)

    cells.append(
        CellIntent(
            address=cell_address(total_column(len(buckets)), row),
            formula=total_formula(cost_cells),
            styles=COST_STYLES,
        )
    )
    return tuple(cells)
