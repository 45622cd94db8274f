"""Fetch per-account cost diffs and reshape them into bucket series."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from datetime import datetime, timezone

from aws_cost_variations.report.models import (
    Account,
    AccountReport,
    CostDiffSource,
    DataSourceError,
    DateRange,
    PricePoint,
    RawCostDiff,
    ReportContext,
    ReportData,
    TimestampParseError,
)
from aws_cost_variations.utils.dates import COST_DIFF_TIMESTAMP_FORMAT

logger = logging.getLogger(__name__)

_TIMESTAMP_RE = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$"
)

VALID_GRANULARITIES = frozenset({"day", "month"})


def parse_timestamp(raw: object) -> datetime:
    """Parse a cost-diff date string into a UTC bucket start.

    Raises TimestampParseError unless the value is exactly
    ``YYYY-MM-DDTHH:MM:SS.mmmZ``.
    """
    if not isinstance(raw, str) or not _TIMESTAMP_RE.match(raw):
        raise TimestampParseError(
            f"Invalid timestamp {raw!r}, "
            "expected YYYY-MM-DDTHH:MM:SS.mmmZ"
        )
    try:
        parsed = datetime.strptime(raw, COST_DIFF_TIMESTAMP_FORMAT)
    except ValueError as e:
        raise TimestampParseError(f"Invalid timestamp {raw!r}: {e}") from e
    return parsed.replace(tzinfo=timezone.utc)


def build_account_report(raw: RawCostDiff) -> AccountReport:
    """Key every product's price points by parsed bucket start."""
    if not isinstance(raw, Mapping):
        raise DataSourceError(
            f"Cost diff must map products to price points, got {type(raw).__name__}"
        )
    report: AccountReport = {}
    for product, values in raw.items():
        if not isinstance(values, list):
            raise DataSourceError(
                f"Price points for {product} must be a list, "
                f"got {type(values).__name__}"
            )
        series = {}
        for value in values:
            if not isinstance(value, Mapping):
                raise DataSourceError(
                    f"Invalid price point for {product}: {value!r}"
                )
            bucket = parse_timestamp(value.get("date"))
            try:
                cost = float(value["cost"])
            except (KeyError, TypeError, ValueError) as e:
                raise DataSourceError(
                    f"Invalid cost for {product} at {value.get('date')}: "
                    f"{value.get('cost')!r}"
                ) from e
            series[bucket] = PricePoint(date=bucket, cost=cost)
        report[product] = series
    return report


def _fetch_account_report(
    source: CostDiffSource,
    context: ReportContext,
    account: Account,
    date_range: DateRange,
    granularity: str,
) -> AccountReport:
    try:
        raw = source.fetch(context, account, date_range, granularity)
    except DataSourceError:
        logger.error(
            "Cost diff fetch failed for account %s (%s to %s)",
            account.id,
            date_range.start,
            date_range.end,
            exc_info=True,
        )
        raise
    except Exception as e:
        logger.error(
            "Cost diff fetch failed for account %s (%s to %s)",
            account.id,
            date_range.start,
            date_range.end,
            exc_info=True,
        )
        raise DataSourceError(
            f"Cost data fetch failed for account {account.id}: {e}"
        ) from e

    try:
        return build_account_report(raw)
    except (TimestampParseError, DataSourceError):
        logger.error(
            "Could not parse cost diff for account %s (%s to %s): %r",
            account.id,
            date_range.start,
            date_range.end,
            raw,
        )
        raise


def aggregate_cost_data(
    source: CostDiffSource,
    accounts: list[Account],
    date_range: DateRange,
    granularity: str,
    context: ReportContext | None = None,
    max_workers: int = 1,
) -> ReportData:
    """Build ReportData for every account.

    Accounts are fetched one at a time unless ``max_workers > 1``, in
    which case fetches run on a thread pool. Either way the first failure
    is raised and no further results are used.

    Raises:
        DataSourceError: The source failed or returned malformed costs.
        TimestampParseError: A price point date could not be parsed.
    """
    if granularity not in VALID_GRANULARITIES:
        raise ValueError(
            f"granularity must be one of {sorted(VALID_GRANULARITIES)}, "
            f"got '{granularity}'"
        )
    if max_workers < 1:
        raise ValueError(f"max_workers must be >= 1, got {max_workers}")
    context = context or ReportContext()

    logger.debug(
        "Getting cost variation data for %d account(s), %s to %s by %s",
        len(accounts),
        date_range.start,
        date_range.end,
        granularity,
    )

    data: ReportData = {}
    if max_workers == 1 or len(accounts) < 2:
        for account in accounts:
            data[account] = _fetch_account_report(
                source, context, account, date_range, granularity
            )
        return data

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures = {
            pool.submit(
                _fetch_account_report,
                source,
                context,
                account,
                date_range,
                granularity,
            ): account
            for account in accounts
        }
        done, pending = wait(futures, return_when=FIRST_EXCEPTION)
        # Report the failure of the earliest account, not the first to finish.
        failed = [
            f for f in futures if f in done and f.exception() is not None
        ]
        if failed:
            context.cancelled.set()
            for future in pending:
                future.cancel()
            raise failed[0].exception()

    for future, account in futures.items():
        data[account] = future.result()
    return data
