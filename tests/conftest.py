"""Shared fixtures: in-memory DuckDB, synthetic cost data, fake sources."""

from __future__ import annotations

import math
from datetime import date, timedelta

import duckdb
import pytest

from aws_cost_variations.report.models import Account
from aws_cost_variations.storage.database import get_connection
from aws_cost_variations.storage.schema import (
    create_tables,
    insert_cost_explorer_summary,
)
from aws_cost_variations.utils.dates import format_cost_diff_timestamp

PROD = Account(id="111111111111", label="Production")
STAGING = Account(id="222222222222", label="Staging")


class FakeCostDiffSource:
    """Serves canned cost diffs and records every fetch."""

    def __init__(self, responses: dict | None = None, errors: dict | None = None):
        self.responses = responses or {}
        self.errors = errors or {}
        self.calls: list[tuple] = []

    def fetch(self, context, account, date_range, granularity):
        self.calls.append((account, date_range, granularity))
        if account.id in self.errors:
            raise self.errors[account.id]
        return self.responses.get(account.id, {})


def points(start: date, costs: list, step_days: int = 1) -> list[dict]:
    """Raw price points, one per day starting at *start*."""
    return [
        {
            "date": format_cost_diff_timestamp(
                start + timedelta(days=i * step_days)
            ),
            "cost": cost,
        }
        for i, cost in enumerate(costs)
    ]


@pytest.fixture
def fake_source():
    return FakeCostDiffSource


@pytest.fixture
def make_points():
    return points


@pytest.fixture
def prod() -> Account:
    return PROD


@pytest.fixture
def staging() -> Account:
    return STAGING


@pytest.fixture
def db() -> duckdb.DuckDBPyConnection:
    """In-memory DuckDB with schema created."""
    conn = get_connection(":memory:")
    create_tables(conn)
    return conn


def _cost(base: float, day: int, *, noise_amp: float = 2.0) -> float:
    """Deterministic daily cost with small sinusoidal noise."""
    return base + noise_amp * math.sin(day * 0.8)


@pytest.fixture
def db_with_data(db: duckdb.DuckDBPyConnection) -> duckdb.DuckDBPyConnection:
    """DuckDB with Jan 1 - Jun 30 2025 of synthetic daily costs.

    2 accounts x 3 services. EC2 / 111111111111 costs a flat $10/day so
    monthly sums are easy to check; everything else is noisy.
    """
    base_date = date(2025, 1, 1)
    base_costs = {
        ("111111111111", "AmazonEC2"): 10.0,
        ("111111111111", "AmazonS3"): 20.0,
        ("111111111111", "AmazonRDS"): 50.0,
        ("222222222222", "AmazonEC2"): 100.0,
        ("222222222222", "AmazonS3"): 25.0,
        ("222222222222", "AmazonRDS"): 45.0,
    }

    rows = []
    for day_offset in range(181):
        usage_date = base_date + timedelta(days=day_offset)
        for (acct, service), base in base_costs.items():
            if (acct, service) == ("111111111111", "AmazonEC2"):
                cost = base
            else:
                cost = _cost(base, day_offset)
            rows.append((usage_date, acct, service, cost, cost * 0.95))

    insert_cost_explorer_summary(db, rows)
    return db
