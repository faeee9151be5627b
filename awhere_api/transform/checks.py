"""Completeness checks on normalized tables.

These never raise. Each logs a warning per problem found and returns the
problems so callers (and tests) can inspect them.
"""

import calendar
import logging
from datetime import date
from typing import Iterable, Optional, Union

from awhere_api.endpoints.validation import parse_date, parse_month_day, parse_year_list
from awhere_api.transform.normalize import Table

logger = logging.getLogger(__name__)

# Always empty when forecasts are requested in one-hour blocks.
HOURLY_EMPTY_COLUMNS = (
    "relativeHumidity.max",
    "relativeHumidity.min",
    "wind.max",
    "wind.min",
)
HOURLY_EMPTY_SOIL_COLUMNS = (
    "soilTemperatures.max",
    "soilTemperatures.min",
    "soilMoisture.max",
    "soilMoisture.min",
)

DateLike = Union[str, date]


def _check_rows(
    table: Table,
    expected_rows: Optional[int],
    ignore: Iterable[str] = (),
    context: Optional[dict] = None,
) -> list[str]:
    issues = []
    context = context or {}

    if expected_rows is not None and len(table) != expected_rows:
        issue = (
            f"Incorrect number of rows returned: expected {expected_rows}, "
            f"got {len(table)}; check returned data to determine issue"
        )
        logger.warning(
            issue,
            extra={**context, "expected_rows": expected_rows, "row_count": len(table)},
        )
        issues.append(issue)

    incomplete = table.incomplete_rows(ignore=ignore)
    if incomplete:
        # Reported 1-based, as row numbers
        row_numbers = ", ".join(str(i + 1) for i in incomplete)
        issue = f"Missing data from rows {row_numbers}; check data before continuing"
        logger.warning(issue, extra={**context, "incomplete_rows": len(incomplete)})
        issues.append(issue)

    return issues


def _day_count(start: DateLike, end: Optional[DateLike]) -> int:
    first = parse_date(start, "start")
    last = parse_date(end, "end") if end else first
    return (last - first).days + 1


def check_daily_return(
    table: Table,
    start: Optional[DateLike],
    end: Optional[DateLike] = None,
    ignore: Iterable[str] = (),
) -> list[str]:
    """Expect one complete row per day of ``start..end``.

    The row count is not checked when no start date was requested.
    """
    expected = _day_count(start, end) if start else None
    return _check_rows(table, expected, ignore=ignore, context={"check": "daily"})


def check_forecast_return(
    table: Table,
    start: Optional[DateLike],
    end: Optional[DateLike] = None,
    block_size: int = 1,
    ignore: Iterable[str] = (),
) -> list[str]:
    """Expect ``24 / block_size`` complete rows per requested day."""
    expected = None
    if start:
        expected = _day_count(start, end) * (24 // int(block_size))

    ignored = list(ignore)
    if int(block_size) == 1:
        ignored.extend(HOURLY_EMPTY_COLUMNS)
    return _check_rows(table, expected, ignore=ignored, context={"check": "forecast"})


def expected_norm_days(
    month_day_start: str,
    month_day_end: Optional[str],
    year_start: Optional[Union[int, str]] = None,
    year_end: Optional[Union[int, str]] = None,
    exclude_years: Optional[object] = None,
    include_feb29: bool = True,
) -> int:
    """Number of distinct month-days a norms table should hold.

    Counted over the requested years (a leap year is assumed when none are
    given); the longest year wins.
    """
    start_month, start_day = parse_month_day(month_day_start, "month_day_start")
    end_month, end_day = parse_month_day(month_day_end or month_day_start, "month_day_end")

    if year_start is not None and year_end is not None:
        excluded = set(parse_year_list(exclude_years)) if exclude_years else set()
        years = [y for y in range(int(year_start), int(year_end) + 1) if y not in excluded]
    else:
        years = [2000]

    longest = 0
    for year in years:
        first = _month_day(year, start_month, start_day)
        last = _month_day(year, end_month, end_day)
        if last < first:
            # Range wraps into the next year (e.g. 12-01 to 01-31)
            last = _month_day(year + 1, end_month, end_day)
        days = (last - first).days + 1
        if not include_feb29:
            days -= sum(
                1
                for y in range(first.year, last.year + 1)
                if calendar.isleap(y) and first <= date(y, 2, 29) <= last
            )
        longest = max(longest, days)
    return longest


def _month_day(year: int, month: int, day: int) -> date:
    if (month, day) == (2, 29) and not calendar.isleap(year):
        return date(year, 2, 28)
    return date(year, month, day)


def check_norms_return(
    table: Table,
    month_day_start: str,
    month_day_end: Optional[str] = None,
    year_start: Optional[Union[int, str]] = None,
    year_end: Optional[Union[int, str]] = None,
    exclude_years: Optional[object] = None,
    include_feb29: bool = True,
) -> list[str]:
    """Expect one complete row per month-day of the requested range."""
    expected = expected_norm_days(
        month_day_start,
        month_day_end,
        year_start,
        year_end,
        exclude_years,
        include_feb29,
    )
    return _check_rows(table, expected, context={"check": "norms"})


def check_soils_return(
    table: Table,
    start: Optional[DateLike],
    end: Optional[DateLike] = None,
    block_size: int = 1,
) -> list[str]:
    """Expect ``24 / block_size`` forecast blocks per day, each with soil data.

    Blocks carry one row per depth, so blocks are counted, not rows.
    """
    issues = []
    if start:
        expected = _day_count(start, end) * (24 // int(block_size))
        blocks = len({(row.get("date"), row.get("startTime")) for row in table})
        if blocks != expected:
            issue = (
                f"Incorrect number of forecast blocks returned: expected {expected}, "
                f"got {blocks}; check returned data to determine issue"
            )
            logger.warning(
                issue,
                extra={"check": "soils", "expected_blocks": expected, "block_count": blocks},
            )
            issues.append(issue)

    ignored = HOURLY_EMPTY_SOIL_COLUMNS if int(block_size) == 1 else ()
    return issues + _check_rows(table, None, ignore=ignored, context={"check": "soils"})
