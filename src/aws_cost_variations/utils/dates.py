"""Calendar helpers and the default reporting window."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone


def month_start(d: date) -> date:
    """Return the first day of the month for the given date."""
    return d.replace(day=1)


def add_months(d: date, months: int) -> date:
    """Shift a first-of-month date by a number of calendar months."""
    index = d.year * 12 + (d.month - 1) + months
    return d.replace(year=index // 12, month=index % 12 + 1, day=1)


def month_end(d: date) -> date:
    """Return the last day of the month for the given date."""
    return add_months(month_start(d), 1) - timedelta(days=1)


def start_of_day(d: date) -> datetime:
    """First instant of a day, in UTC."""
    return datetime.combine(d, time.min, tzinfo=timezone.utc)


def end_of_day(d: date) -> datetime:
    """Last instant of a day, in UTC."""
    return datetime.combine(d, time.max, tzinfo=timezone.utc)


def default_history_window(
    now: datetime | None = None,
) -> tuple[datetime, datetime]:
    """Return the previous full calendar month as (start, end), UTC.

    Used when a report is requested without an anchor date.
    """
    today = (now or datetime.now(timezone.utc)).date()
    last_month = add_months(month_start(today), -1)
    return start_of_day(last_month), end_of_day(month_end(last_month))


# Cost-diff sources exchange bucket starts as ISO-8601 with milliseconds.
COST_DIFF_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def format_cost_diff_timestamp(value: date | datetime) -> str:
    """Format a bucket start as ``YYYY-MM-DDTHH:MM:SS.mmmZ``.

    Plain dates and naive datetimes are taken to be UTC.
    """
    if not isinstance(value, datetime):
        value = start_of_day(value)
    elif value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    return (
        value.strftime("%Y-%m-%dT%H:%M:%S.")
        + f"{value.microsecond // 1000:03d}Z"
    )
