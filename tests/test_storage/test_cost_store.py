"""Tests for the DuckDB-backed cost-diff source."""

from __future__ import annotations

from datetime import date
from unittest.mock import MagicMock

import duckdb
import pytest

from aws_cost_variations.report.aggregator import build_account_report
from aws_cost_variations.report.models import (
    Account,
    DataSourceError,
    DateRange,
    ReportContext,
)
from aws_cost_variations.storage.cost_store import DuckDBCostDiffSource
from aws_cost_variations.utils.dates import end_of_day, start_of_day

PROD = Account(id="111111111111", label="Production")


def _range(start: date, end: date) -> DateRange:
    return DateRange(start=start_of_day(start), end=end_of_day(end))


class CursorTrackingConnection:
    """Hands out spy-wrapped cursors of a real connection."""

    def __init__(self, conn):
        self.conn = conn
        self.cursors = []

    def cursor(self):
        cursor = MagicMock(wraps=self.conn.cursor())
        self.cursors.append(cursor)
        return cursor


class TestDuckDBCostDiffSource:
    def test_monthly_sums(self, db_with_data):
        source = DuckDBCostDiffSource(db_with_data)
        raw = source.fetch(
            ReportContext(),
            PROD,
            _range(date(2025, 1, 1), date(2025, 6, 30)),
            "month",
        )
        assert set(raw) == {"AmazonEC2", "AmazonS3", "AmazonRDS"}
        ec2 = raw["AmazonEC2"]
        assert [p["date"] for p in ec2] == [
            "2025-01-01T00:00:00.000Z",
            "2025-02-01T00:00:00.000Z",
            "2025-03-01T00:00:00.000Z",
            "2025-04-01T00:00:00.000Z",
            "2025-05-01T00:00:00.000Z",
            "2025-06-01T00:00:00.000Z",
        ]
        assert ec2[0]["cost"] == pytest.approx(310.0)
        assert ec2[1]["cost"] == pytest.approx(280.0)

    def test_daily_points(self, db_with_data):
        source = DuckDBCostDiffSource(db_with_data)
        raw = source.fetch(
            ReportContext(),
            PROD,
            _range(date(2025, 3, 1), date(2025, 3, 3)),
            "day",
        )
        assert raw["AmazonEC2"] == [
            {"date": "2025-03-01T00:00:00.000Z", "cost": 10.0},
            {"date": "2025-03-02T00:00:00.000Z", "cost": 10.0},
            {"date": "2025-03-03T00:00:00.000Z", "cost": 10.0},
        ]

    def test_output_parses(self, db_with_data):
        source = DuckDBCostDiffSource(db_with_data)
        raw = source.fetch(
            ReportContext(),
            PROD,
            _range(date(2025, 1, 1), date(2025, 1, 31)),
            "day",
        )
        report = build_account_report(raw)
        assert len(report["AmazonS3"]) == 31

    def test_other_accounts_excluded(self, db_with_data):
        source = DuckDBCostDiffSource(db_with_data)
        raw = source.fetch(
            ReportContext(),
            Account(id="999999999999"),
            _range(date(2025, 1, 1), date(2025, 6, 30)),
            "month",
        )
        assert raw == {}

    def test_invalid_granularity(self, db):
        with pytest.raises(DataSourceError, match="granularity"):
            DuckDBCostDiffSource(db).fetch(
                ReportContext(),
                PROD,
                _range(date(2025, 1, 1), date(2025, 1, 31)),
                "week",
            )

    def test_cancelled(self, db):
        context = ReportContext()
        context.cancelled.set()
        with pytest.raises(DataSourceError, match="cancelled"):
            DuckDBCostDiffSource(db).fetch(
                context,
                PROD,
                _range(date(2025, 1, 1), date(2025, 1, 31)),
                "day",
            )

    def test_query_error_is_wrapped(self):
        # No schema, so the query fails.
        conn = duckdb.connect(":memory:")
        with pytest.raises(DataSourceError, match="Cost store query failed"):
            DuckDBCostDiffSource(conn).fetch(
                ReportContext(),
                PROD,
                _range(date(2025, 1, 1), date(2025, 1, 31)),
                "day",
            )

    def test_cursor_closed_after_fetch(self, db_with_data):
        conn = CursorTrackingConnection(db_with_data)
        raw = DuckDBCostDiffSource(conn).fetch(
            ReportContext(),
            PROD,
            _range(date(2025, 3, 1), date(2025, 3, 3)),
            "day",
        )
        assert len(raw["AmazonEC2"]) == 3
        [cursor] = conn.cursors
        cursor.close.assert_called_once_with()

    def test_cursor_closed_after_query_error(self):
        conn = CursorTrackingConnection(duckdb.connect(":memory:"))
        with pytest.raises(DataSourceError):
            DuckDBCostDiffSource(conn).fetch(
                ReportContext(),
                PROD,
                _range(date(2025, 1, 1), date(2025, 1, 31)),
                "day",
            )
        [cursor] = conn.cursors
        cursor.close.assert_called_once_with()
