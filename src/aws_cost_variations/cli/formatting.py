"""Rich tables and output formatting."""

from __future__ import annotations

from rich.console import Console
from rich.table import Table

from aws_cost_variations.report.formulas import evaluate_variation
from aws_cost_variations.report.models import SheetLayout

console = Console()


def format_currency(value: float | None) -> str:
    """Format a cost value as currency."""
    if value is None:
        return "—"
    return f"${value:,.2f}"


def format_pct(value: float | None) -> str:
    """Format a fractional variation (0.1 -> +10.0%)."""
    if value is None:
        return "—"
    pct = value * 100
    sign = "+" if pct > 0 else ""
    return f"{sign}{pct:.1f}%"


def last_change(layout: SheetLayout) -> float | None:
    """Variation of the last bucket's total against the one before it."""
    if len(layout.bucket_totals) < 2:
        return None
    return evaluate_variation(
        layout.bucket_totals[-2], layout.bucket_totals[-1]
    )


def print_report_summary(layouts: list[SheetLayout]) -> None:
    """Print one row per generated sheet."""
    table = Table(title="Cost Variation Sheets", show_lines=False)
    table.add_column("Sheet")
    table.add_column("Period", style="dim")
    table.add_column("Buckets", justify="right")
    table.add_column("Rows", justify="right")
    table.add_column("Total Cost", justify="right")
    table.add_column("Last Change", justify="right")

    for layout in layouts:
        change = last_change(layout)
        change_style = ""
        if change is not None:
            change_style = "green" if change < 0 else "red"

        table.add_row(
            layout.sheet_name,
            f"{layout.date_range.start.date()} to "
            f"{layout.date_range.end.date()}",
            str(len(layout.buckets)),
            str(layout.row_count),
            format_currency(layout.total_cost),
            f"[{change_style}]{format_pct(change)}[/{change_style}]"
            if change_style
            else format_pct(change),
        )

    console.print(table)
