"""openpyxl rendering of cost variation sheets into an .xlsx workbook."""

from __future__ import annotations

import logging
from pathlib import Path

from openpyxl import Workbook
from openpyxl.formatting.rule import FormulaRule
from openpyxl.styles import Alignment, Border, Font, Side
from openpyxl.utils import column_index_from_string, get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from aws_cost_variations.report.models import (
    HighlightRule,
    LayoutError,
    SheetLayout,
)
from aws_cost_variations.report.pipeline import render_report

logger = logging.getLogger(__name__)

CURRENCY_FORMAT = "$#,##0.00"
PERCENTAGE_FORMAT = "0.00%"

HIGHLIGHT_COLORS = {
    "green": "FF008000",
    "red": "FFC00000",
}

_THIN = Side(style="thin")
_BORDERED = Border(left=_THIN, right=_THIN, top=_THIN, bottom=_THIN)
_CENTERED = Alignment(horizontal="center", vertical="center")

_PREDICATES = {
    "negative": "<0",
    "positive": ">0",
    "zero": "=0",
}


def _highlight_rule(address: str, rule: HighlightRule) -> FormulaRule:
    """Conditional format matching a numeric result only.

    Blank variations ("") never match, whatever the predicate.
    """
    if rule.predicate not in _PREDICATES:
        raise LayoutError(f"Unknown highlight predicate '{rule.predicate}'")
    if rule.color not in HIGHLIGHT_COLORS:
        raise LayoutError(f"Unknown highlight color '{rule.color}'")
    color = HIGHLIGHT_COLORS[rule.color]
    border = None
    if rule.effect == "bordered":
        side = Side(style="medium", color=color)
        border = Border(left=side, right=side, top=side, bottom=side)
    return FormulaRule(
        formula=[
            f"AND(ISNUMBER({address}),{address}{_PREDICATES[rule.predicate]})"
        ],
        font=Font(color=color, bold=True),
        border=border,
        stopIfTrue=True,
    )


class OpenpyxlSheetSink:
    """SheetSink writing into an in-memory openpyxl Workbook."""

    def __init__(self, workbook: Workbook | None = None):
        self.workbook = workbook or Workbook()
        self._fresh = workbook is None
        self.sheet: Worksheet | None = None

    def _active(self) -> Worksheet:
        if self.sheet is None:
            raise LayoutError("create_sheet must be called before writing")
        return self.sheet

    def create_sheet(self, name: str) -> None:
        if self._fresh:
            # Drop the placeholder sheet every new Workbook starts with.
            self.workbook.remove(self.workbook.active)
            self._fresh = False
        if name in self.workbook.sheetnames:
            raise LayoutError(f"Sheet '{name}' already exists")
        self.sheet = self.workbook.create_sheet(title=name)

    def set_value(self, address: str, value: object) -> None:
        self._active()[address] = value

    def set_formula(self, address: str, formula: str) -> None:
        self._active()[address] = f"={formula}"

    def merge(self, start: str, end: str) -> None:
        self._active().merge_cells(f"{start}:{end}")

    def tag_style(self, address: str, style: str) -> None:
        cell = self._active()[address]
        if style == "currency":
            cell.number_format = CURRENCY_FORMAT
        elif style == "percentage":
            cell.number_format = PERCENTAGE_FORMAT
        elif style == "bold":
            cell.font = Font(bold=True)
        elif style == "bordered":
            cell.border = _BORDERED
        elif style == "centered":
            cell.alignment = _CENTERED
        else:
            raise LayoutError(f"Unknown style '{style}'")

    def add_highlight(self, address: str, rule: HighlightRule) -> None:
        self._active().conditional_formatting.add(
            address, _highlight_rule(address, rule)
        )

    def set_column_width(self, first: str, last: str, width: float) -> None:
        sheet = self._active()
        for index in range(
            column_index_from_string(first),
            column_index_from_string(last) + 1,
        ):
            sheet.column_dimensions[get_column_letter(index)].width = width

    def save(self, path: str | Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.workbook.save(path)
        return path


def write_workbook(layouts: list[SheetLayout], path: str | Path) -> Path:
    """Render every sheet, then save the workbook in one step."""
    sink = OpenpyxlSheetSink()
    render_report(layouts, sink)
    saved = sink.save(path)
    logger.info("Cost variation workbook saved to %s", saved)
    return saved
