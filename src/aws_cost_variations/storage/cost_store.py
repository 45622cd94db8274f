"""Cost-diff source backed by the local DuckDB daily cost summary."""

from __future__ import annotations

import duckdb

from aws_cost_variations.report.models import (
    Account,
    DataSourceError,
    DateRange,
    RawCostDiff,
    ReportContext,
)
from aws_cost_variations.utils.dates import format_cost_diff_timestamp

_VALID_GRANULARITIES = frozenset({"day", "month"})


class DuckDBCostDiffSource:
    """Serve cost diffs from ``daily_cost_summary`` rows.

    Daily rows are truncated to the requested granularity and summed per
    product, so a monthly request returns one point per calendar month.
    """

    def __init__(self, conn: duckdb.DuckDBPyConnection):
        self.conn = conn

    def fetch(
        self,
        context: ReportContext,
        account: Account,
        date_range: DateRange,
        granularity: str,
    ) -> RawCostDiff:
        if granularity not in _VALID_GRANULARITIES:
            raise DataSourceError(
                f"granularity must be one of {sorted(_VALID_GRANULARITIES)}, "
                f"got '{granularity}'"
            )
        if context.cancelled.is_set():
            raise DataSourceError(
                f"Report cancelled before fetching account {account.id}"
            )

        sql = f"""
        SELECT DATE_TRUNC('{granularity}', usage_date) AS bucket,
               product_code,
               SUM(total_unblended_cost) AS cost
        FROM daily_cost_summary
        WHERE usage_account_id = ?
          AND usage_date >= ? AND usage_date <= ?
        GROUP BY bucket, product_code
        ORDER BY product_code, bucket
        """  # noqa: S608

        cursor = self.conn.cursor()
        try:
            rows = cursor.execute(
                sql,
                [
                    account.id,
                    date_range.start.date(),
                    date_range.end.date(),
                ],
            ).fetchall()
        except duckdb.Error as e:
            raise DataSourceError(
                f"Cost store query failed for account {account.id}: {e}"
            ) from e
        finally:
            cursor.close()

        result: RawCostDiff = {}
        for bucket, product, cost in rows:
            result.setdefault(product or "unknown", []).append(
                {"date": format_cost_diff_timestamp(bucket), "cost": cost}
            )
        return result
