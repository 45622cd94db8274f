"""DDL for the local daily cost store."""

from __future__ import annotations

import logging

import duckdb

logger = logging.getLogger(__name__)

DAILY_COST_SUMMARY_DDL = """
CREATE TABLE IF NOT EXISTS daily_cost_summary (
    usage_date DATE,
    usage_account_id VARCHAR,
    product_code VARCHAR,
    total_unblended_cost DOUBLE,
    total_blended_cost DOUBLE,
    data_source VARCHAR DEFAULT 'cost_explorer',
    _ingested_at TIMESTAMP DEFAULT current_timestamp
)
"""

_INDEXES = [
    ("idx_dcs_date", "daily_cost_summary(usage_date)"),
    ("idx_dcs_account", "daily_cost_summary(usage_account_id)"),
    ("idx_dcs_product", "daily_cost_summary(product_code)"),
]


def create_tables(conn: duckdb.DuckDBPyConnection) -> None:
    """Create the summary table and its indexes if they don't exist."""
    conn.execute(DAILY_COST_SUMMARY_DDL)
    for idx_name, idx_def in _INDEXES:
        conn.execute(
            f"CREATE INDEX IF NOT EXISTS {idx_name} "
            f"ON {idx_def}"
        )


def has_cost_data(conn: duckdb.DuckDBPyConnection) -> bool:
    result = conn.execute(
        "SELECT COUNT(*) FROM daily_cost_summary"
    ).fetchone()
    return result[0] > 0 if result else False


def insert_cost_explorer_summary(
    conn: duckdb.DuckDBPyConnection,
    rows: list[tuple],
) -> int:
    """Replace Cost Explorer rows for the date span covered by *rows*.

    Existing rows whose usage_date falls inside the min..max date of the
    new rows are deleted first, so re-ingesting a window is idempotent.
    Rows outside that window are preserved.

    Each tuple: (usage_date, usage_account_id, product_code,
                 total_unblended_cost, total_blended_cost)

    Returns the number of rows inserted.
    """
    if not rows:
        return 0

    dates = [r[0] for r in rows]
    min_date = min(dates)
    max_date = max(dates)

    conn.execute("BEGIN TRANSACTION")
    try:
        conn.execute(
            "DELETE FROM daily_cost_summary "
            "WHERE data_source = 'cost_explorer' "
            "AND usage_date >= ? AND usage_date <= ?",
            [min_date, max_date],
        )
        conn.executemany(
            "INSERT INTO daily_cost_summary "
            "(usage_date, usage_account_id, product_code, "
            "total_unblended_cost, total_blended_cost, data_source) "
            "VALUES (?, ?, ?, ?, ?, 'cost_explorer')",
            rows,
        )
        conn.execute("COMMIT")
    except Exception:
        try:
            conn.execute("ROLLBACK")
        except duckdb.Error:
            logger.warning("Rollback failed", exc_info=True)
        raise
    return len(rows)
