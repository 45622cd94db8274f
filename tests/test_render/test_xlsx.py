"""Tests for the openpyxl workbook renderer."""

from __future__ import annotations

from datetime import date

import pytest
from openpyxl import load_workbook

from aws_cost_variations.render.xlsx import (
    CURRENCY_FORMAT,
    PERCENTAGE_FORMAT,
    OpenpyxlSheetSink,
    write_workbook,
)
from aws_cost_variations.report.models import HighlightRule, LayoutError
from aws_cost_variations.report.pipeline import (
    LAST_6_MONTHS_SHEET_NAME,
    LAST_MONTH_SHEET_NAME,
    ReportOptions,
    cost_variation_reports,
    generate_report,
    render_report,
)


@pytest.fixture
def layouts(fake_source, make_points, prod, staging):
    source = fake_source(
        responses={
            prod.id: {"AmazonEC2": make_points(date(2025, 1, 1), [100, 110, 90])},
            staging.id: {"AmazonS3": make_points(date(2025, 1, 1), [5, 0, 7])},
        }
    )
    return generate_report(
        cost_variation_reports(),
        [prod, staging],
        source,
        ReportOptions(anchor=date(2025, 1, 1)),
    )


@pytest.fixture
def sink(layouts):
    sink = OpenpyxlSheetSink()
    render_report(layouts, sink)
    return sink


class TestOpenpyxlSheetSink:
    def test_sheet_names_replace_default(self, sink):
        assert sink.workbook.sheetnames == [
            LAST_MONTH_SHEET_NAME,
            LAST_6_MONTHS_SHEET_NAME,
        ]

    def test_cells(self, sink):
        ws = sink.workbook[LAST_MONTH_SHEET_NAME]
        assert ws["A1"].value == "Account"
        assert ws["C1"].value == "Daily Cost"
        assert ws["C2"].value == "2025-01-01"
        assert ws["A4"].value == "Production (111111111111)"
        assert ws["C4"].value == 100
        assert ws["D4"].value == '=IF(C4=0,"",E4/C4-1)'
        assert ws["A5"].value == "Staging (222222222222)"
        # Only three of 31 daily buckets have a price point.
        assert ws["I4"].value is None

    def test_total_column(self, sink):
        daily = sink.workbook[LAST_MONTH_SHEET_NAME]
        assert daily["BL1"].value == "Total"
        assert daily["BL4"].value.startswith("=SUM(C4,E4,G4,")
        monthly = sink.workbook[LAST_6_MONTHS_SHEET_NAME]
        assert monthly["N1"].value == "Total"
        assert monthly["N4"].value == "=SUM(C4,E4,G4,I4,K4,M4)"

    def test_number_formats(self, sink):
        ws = sink.workbook[LAST_MONTH_SHEET_NAME]
        assert ws["C4"].number_format == CURRENCY_FORMAT
        assert ws["BL4"].number_format == CURRENCY_FORMAT
        assert ws["D4"].number_format == PERCENTAGE_FORMAT
        assert ws["A1"].font.b is True
        assert ws["C4"].alignment.horizontal == "center"
        assert ws["C4"].border.left.style == "thin"

    def test_merges(self, sink):
        ws = sink.workbook[LAST_6_MONTHS_SHEET_NAME]
        merged = {str(r) for r in ws.merged_cells.ranges}
        assert {"A1:A3", "B1:B3", "N1:N3", "C1:M1", "D2:E2", "L2:M2"} <= merged
        assert len(merged) == 9

    def test_column_widths(self, sink):
        ws = sink.workbook[LAST_6_MONTHS_SHEET_NAME]
        assert ws.column_dimensions["A"].width == 30
        assert ws.column_dimensions["B"].width == 35
        for letter in "CDEFGHIJKLM":
            assert ws.column_dimensions[letter].width == 12.5
        assert ws.column_dimensions["N"].width == 15

    def test_highlights_ignore_blank_results(self, sink):
        ws = sink.workbook[LAST_MONTH_SHEET_NAME]
        rules = {}
        for cf in ws.conditional_formatting:
            for rule in cf.rules:
                rules.setdefault(str(cf.sqref), []).append(rule)
        d4 = rules["D4"]
        assert [list(r.formula) for r in d4] == [
            ["AND(ISNUMBER(D4),D4<0)"],
            ["AND(ISNUMBER(D4),D4>0)"],
            ["AND(ISNUMBER(D4),D4=0)"],
        ]
        assert all(r.stopIfTrue for r in d4)
        assert "C4" not in rules

    def test_write_before_create_sheet(self):
        with pytest.raises(LayoutError, match="create_sheet"):
            OpenpyxlSheetSink().set_value("A1", "x")

    def test_duplicate_sheet(self):
        sink = OpenpyxlSheetSink()
        sink.create_sheet("Costs")
        with pytest.raises(LayoutError, match="already exists"):
            sink.create_sheet("Costs")

    def test_unknown_style(self):
        sink = OpenpyxlSheetSink()
        sink.create_sheet("Costs")
        with pytest.raises(LayoutError, match="Unknown style"):
            sink.tag_style("A1", "italic")

    def test_unknown_highlight(self):
        sink = OpenpyxlSheetSink()
        sink.create_sheet("Costs")
        with pytest.raises(LayoutError, match="predicate"):
            sink.add_highlight("D4", HighlightRule("huge", "red"))
        with pytest.raises(LayoutError, match="color"):
            sink.add_highlight("D4", HighlightRule("zero", "blue"))


class TestWriteWorkbook:
    def test_round_trip(self, layouts, tmp_path):
        path = write_workbook(layouts, tmp_path / "out" / "costs.xlsx")
        assert path.exists()

        wb = load_workbook(path)
        assert wb.sheetnames == [LAST_MONTH_SHEET_NAME, LAST_6_MONTHS_SHEET_NAME]
        ws = wb[LAST_MONTH_SHEET_NAME]
        assert ws["E4"].value == 110
        assert ws["F4"].value == '=IF(E4=0,"",G4/E4-1)'
        assert ws["E5"].value == 0
        assert ws["C4"].number_format == CURRENCY_FORMAT
        assert "A1:A3" in {str(r) for r in ws.merged_cells.ranges}

    def test_accepts_str_path(self, layouts, tmp_path):
        path = write_workbook(layouts, str(tmp_path / "costs.xlsx"))
        assert path == tmp_path / "costs.xlsx"
