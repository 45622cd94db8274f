"""Reporting window and bucket boundaries for each frequency."""

from __future__ import annotations

from datetime import date, timedelta

from aws_cost_variations.report.models import (
    BucketList,
    DailyBucketPolicy,
    DateRange,
    Frequency,
    HistoryWindowProvider,
)
from aws_cost_variations.utils.dates import (
    add_months,
    default_history_window,
    end_of_day,
    month_end,
    month_start,
    start_of_day,
)

MONTHLY_BUCKETS = 6


def resolve_date_range(
    frequency: Frequency,
    anchor: date | None = None,
    history_window: HistoryWindowProvider = default_history_window,
) -> DateRange:
    """Turn a frequency and optional anchor into an inclusive DateRange.

    Daily ("last month"): the anchor day through the end of its month.
    Monthly ("last 6 months"): the six calendar months ending with the
    anchor's month. Without an anchor the history window supplies the
    bounds (daily) or the end month (monthly).
    """
    if frequency is Frequency.DAILY:
        if anchor is None:
            start, end = history_window()
            return DateRange(start=start, end=end)
        return DateRange(
            start=start_of_day(anchor),
            end=end_of_day(month_end(anchor)),
        )

    if frequency is Frequency.MONTHLY:
        if anchor is None:
            _, window_end = history_window()
            end_day = month_end(window_end.date())
        else:
            end_day = month_end(anchor)
        first_month = add_months(
            month_start(end_day), -(MONTHLY_BUCKETS - 1)
        )
        return DateRange(
            start=start_of_day(first_month),
            end=end_of_day(end_day),
        )

    raise ValueError(f"Unsupported frequency: {frequency!r}")


def enumerate_buckets(
    frequency: Frequency,
    date_range: DateRange,
    policy: DailyBucketPolicy = DailyBucketPolicy.END_DAY,
) -> BucketList:
    """Return the ordered bucket start instants for a DateRange."""
    start = date_range.start
    if frequency is Frequency.MONTHLY:
        first = month_start(start.date())
        return tuple(
            start_of_day(add_months(first, i))
            for i in range(MONTHLY_BUCKETS)
        )

    if frequency is Frequency.DAILY:
        first = start_of_day(start.date())
        if policy is DailyBucketPolicy.RANGE:
            count = (date_range.end.date() - start.date()).days + 1
        else:
            count = date_range.end.day
        return tuple(first + timedelta(days=i) for i in range(count))

    raise ValueError(f"Unsupported frequency: {frequency!r}")


def resolve(
    frequency: Frequency,
    anchor: date | None = None,
    history_window: HistoryWindowProvider = default_history_window,
    policy: DailyBucketPolicy = DailyBucketPolicy.END_DAY,
) -> tuple[DateRange, BucketList]:
    """Resolve both the DateRange and its BucketList."""
    date_range = resolve_date_range(frequency, anchor, history_window)
    return date_range, enumerate_buckets(frequency, date_range, policy)
