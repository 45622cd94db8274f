"""Cost variation report generation: date buckets, aggregation, sheet layout."""

from aws_cost_variations.report.models import (
    Account,
    CostVariationError,
    DataSourceError,
    LayoutError,
    ReportContext,
    SheetLayout,
    TimestampParseError,
)
from aws_cost_variations.report.pipeline import (
    ReportDescriptor,
    ReportOptions,
    cost_variation_reports,
    generate_report,
    render_report,
)

__all__ = [
    "Account",
    "CostVariationError",
    "DataSourceError",
    "LayoutError",
    "ReportContext",
    "ReportDescriptor",
    "ReportOptions",
    "SheetLayout",
    "TimestampParseError",
    "cost_variation_reports",
    "generate_report",
    "render_report",
]
