#!/usr/bin/env python3
"""Seed the local DuckDB cost store with synthetic daily costs.

Creates ~200 days of per-account, per-service costs with a few visible
trend changes, so ``aws-cost-variations report --source local`` has
something to render without AWS credentials.

Usage:
    python scripts/generate_sample_data.py [--db-path ./data/costs.duckdb]
"""

from __future__ import annotations

import argparse
import math
import random
from dataclasses import dataclass
from datetime import date, timedelta

from aws_cost_variations.storage.database import get_connection
from aws_cost_variations.storage.schema import (
    create_tables,
    insert_cost_explorer_summary,
)

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

LINKED_ACCOUNTS = {
    "111111111111": "Production",
    "222222222222": "Staging",
    "333333333333": "Development",
}

# (product_code, typical daily cost range per account)
SERVICES = [
    ("AmazonEC2", (300, 1200)),
    ("AmazonRDS", (150, 500)),
    ("AmazonS3", (40, 200)),
    ("AWSLambda", (10, 80)),
    ("AmazonCloudFront", (30, 150)),
    ("AmazonDynamoDB", (20, 120)),
]


@dataclass
class TrendPattern:
    account: str
    service: str
    start_days_ago: int
    daily_growth: float  # fractional change per day once active
    label: str


DEFAULT_PATTERNS = [
    TrendPattern(
        account="111111111111",
        service="AmazonEC2",
        start_days_ago=90,
        daily_growth=0.006,
        label="Production EC2 grows ~0.6%/day for the last 90 days",
    ),
    TrendPattern(
        account="222222222222",
        service="AmazonRDS",
        start_days_ago=45,
        daily_growth=-0.01,
        label="Staging RDS shrinks ~1%/day for the last 45 days",
    ),
]


def generate_rows(
    start_date: date,
    end_date: date,
    patterns: list[TrendPattern],
    seed: int = 42,
) -> list[tuple]:
    """Return daily_cost_summary tuples for every account and service."""
    rng = random.Random(seed)
    rows: list[tuple] = []
    total_days = (end_date - start_date).days + 1

    for account in LINKED_ACCOUNTS:
        for service, (low, high) in SERVICES:
            base = rng.uniform(low, high)
            active = [
                p for p in patterns
                if p.account == account and p.service == service
            ]
            for offset in range(total_days):
                usage_date = start_date + timedelta(days=offset)
                days_ago = (end_date - usage_date).days
                cost = base * (1 + 0.05 * math.sin(offset * 0.9))
                cost *= rng.uniform(0.97, 1.03)
                for p in active:
                    if days_ago < p.start_days_ago:
                        cost *= (1 + p.daily_growth) ** (
                            p.start_days_ago - days_ago
                        )
                rows.append(
                    (
                        usage_date,
                        account,
                        service,
                        round(cost, 4),
                        round(cost * 0.97, 4),
                    )
                )
    return rows


def main():
    parser = argparse.ArgumentParser(
        description="Seed the local cost store with synthetic data."
    )
    parser.add_argument(
        "--db-path",
        default="./data/costs.duckdb",
        help="DuckDB database path (default: ./data/costs.duckdb)",
    )
    parser.add_argument(
        "--days",
        type=int,
        default=200,
        help="Number of days of data to generate (default: 200)",
    )
    parser.add_argument(
        "--no-trends",
        action="store_true",
        help="Generate flat baseline data with no trend patterns",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Random seed (default: 42)",
    )

    args = parser.parse_args()

    end_date = date.today() - timedelta(days=1)  # yesterday
    start_date = end_date - timedelta(days=args.days - 1)
    patterns = [] if args.no_trends else DEFAULT_PATTERNS

    print(f"Generating {args.days} days of cost data...")
    print(f"  Date range: {start_date} to {end_date}")
    print(f"  Accounts:   {len(LINKED_ACCOUNTS)}")
    print(f"  Services:   {len(SERVICES)}")
    for i, p in enumerate(patterns, 1):
        print(f"    {i}. {p.label}")
    print()

    rows = generate_rows(start_date, end_date, patterns, seed=args.seed)

    conn = get_connection(args.db_path)
    try:
        create_tables(conn)
        inserted = insert_cost_explorer_summary(conn, rows)
    finally:
        conn.close()
    print(f"Loaded {inserted:,} rows into {args.db_path}")

    print("\nAdd these accounts to config.yaml:")
    print("accounts:")
    for account_id, label in LINKED_ACCOUNTS.items():
        print(f'  - id: "{account_id}"')
        print(f"    label: {label}")

    print("\nDone!")


if __name__ == "__main__":
    main()
