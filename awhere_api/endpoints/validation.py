"""Parameter validation shared by every endpoint.

Each resource family maps to a tuple of checks in ``VALIDATION_RULES``. A
check receives the descriptor and a ``ValidationContext`` and raises
``ValidationError`` naming the offending parameter.
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Callable, Optional, Union

from awhere_api.config import Settings
from awhere_api.endpoints.descriptor import EndpointDescriptor, ResourceFamily
from awhere_api.exceptions import ValidationError

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
MONTH_DAY_PATTERN = re.compile(r"^\d{2}-\d{2}$")

GDD_METHODS = ("standard", "modifiedstandard", "min-temp-cap", "min-temp-constant")
CONDITION_SOURCES = ("metar", "mesonet", "metar-mesonet", "pws", "all")
VALID_BLOCK_SIZES = tuple(n for n in range(1, 25) if 24 % n == 0)

WEATHER_PROPERTIES = ("temperatures", "precipitation", "solar", "relativeHumidity", "wind")
WEATHER_NORMS_PROPERTIES = (
    "meanTemp",
    "maxTemp",
    "minTemp",
    "precipitation",
    "solar",
    "maxHumidity",
    "minHumidity",
    "dailyMaxWind",
)
AGRONOMIC_PROPERTIES = (
    "gdd",
    "pet",
    "ppet",
    "accumulatedGdd",
    "accumulatedPrecipitation",
    "accumulatedPet",
    "accumulatedPpet",
    "accumulations",
)

PROPERTIES_BY_FAMILY = {
    ResourceFamily.WEATHER_OBSERVATIONS: WEATHER_PROPERTIES,
    ResourceFamily.WEATHER_NORMS: WEATHER_NORMS_PROPERTIES,
    ResourceFamily.AGRONOMIC_VALUES: AGRONOMIC_PROPERTIES,
}


@dataclass
class ValidationContext:
    """Reference date and policy bounds for one validation run."""

    today: date = field(default_factory=date.today)
    settings: Settings = field(default_factory=Settings)


def is_given(value: Any) -> bool:
    """True unless the value is None or an empty string."""
    return value is not None and value != ""


# ============================================
# Parsing
# ============================================

def parse_date(value: Union[str, date], parameter: str) -> date:
    """Parse a ``YYYY-MM-DD`` string (or pass a date through).

    A ``datetime`` is reduced to its calendar date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        raise ValidationError(
            f"{parameter} must be a date in YYYY-MM-DD format, got {value!r}",
            parameter,
        )
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"{parameter} is not a valid calendar date: {value!r}", parameter)


def parse_month_day(value: str, parameter: str) -> tuple[int, int]:
    """Parse an ``MM-DD`` string into (month, day). February 29th is accepted."""
    if not isinstance(value, str) or not MONTH_DAY_PATTERN.match(value):
        raise ValidationError(
            f"{parameter} must be a month-day in MM-DD format, got {value!r}",
            parameter,
        )
    month, day = (int(part) for part in value.split("-"))
    try:
        # 2000 is a leap year, so 02-29 passes
        date(2000, month, day)
    except ValueError:
        raise ValidationError(f"{parameter} is not a valid month-day: {value!r}", parameter)
    return month, day


def parse_year(value: Union[int, str], parameter: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{parameter} must be a year, got {value!r}", parameter)


def parse_year_list(value: Any, parameter: str = "excludeYears") -> list[int]:
    """Parse ``"2009,2013"``, ``[2009, 2013]`` or a single year."""
    if isinstance(value, (list, tuple, set)):
        items = list(value)
    elif isinstance(value, int):
        items = [value]
    else:
        items = [item.strip() for item in str(value).split(",") if item.strip()]
    return [parse_year(item, parameter) for item in items]


def _month_day_in_year(year: int, month: int, day: int) -> date:
    try:
        return date(year, month, day)
    except ValueError:
        # 02-29 in a non-leap year
        return date(year, month, day - 1)


# ============================================
# Checks
# ============================================

def check_location(descriptor: EndpointDescriptor, ctx: ValidationContext) -> None:
    """A field id, or a valid latitude/longitude pair, must address the request."""
    if descriptor.addressed_by_field:
        return

    if not is_given(descriptor.latitude) or not is_given(descriptor.longitude):
        raise ValidationError(
            "Either field_id or both latitude and longitude must be given",
            "field_id",
        )
    check_coordinates(descriptor.latitude, descriptor.longitude)


def check_coordinates(latitude: Any, longitude: Any) -> None:
    """Latitude in [-90, 90] and longitude in [-180, 180], in decimal degrees."""
    for name, value, bound in (
        ("latitude", latitude, 90),
        ("longitude", longitude, 180),
    ):
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise ValidationError(f"The entered {name} value {value!r} is not valid", name)
        if not -bound <= number <= bound:
            raise ValidationError(
                f"The entered {name} value {value!r} must be between {-bound} and {bound}",
                name,
            )


def check_date_range(descriptor: EndpointDescriptor, ctx: ValidationContext) -> None:
    """Dates must parse; an end date needs a start date and may not precede it."""
    if is_given(descriptor.end) and not is_given(descriptor.start):
        raise ValidationError("end date is given, so the start date must be too", "start")

    if is_given(descriptor.start):
        start = parse_date(descriptor.start, "start")
        if is_given(descriptor.end):
            end = parse_date(descriptor.end, "end")
            if end < start:
                raise ValidationError("The end date must come after the start date", "end")


def check_forecast_window(descriptor: EndpointDescriptor, ctx: ValidationContext) -> None:
    """Forecast dates must lie in [today, today + horizon]."""
    first = ctx.today
    last = ctx.today + timedelta(days=ctx.settings.forecast_horizon_days)

    for name in ("start", "end"):
        value = getattr(descriptor, name)
        if not is_given(value):
            continue
        day = parse_date(value, name)
        if day < first:
            raise ValidationError(
                f"Forecasts can only be requested from today onward; {name}={day} is in the past",
                name,
            )
        if day > last:
            raise ValidationError(
                f"Forecasts are only available {ctx.settings.forecast_horizon_days} days "
                f"into the future (until {last}); {name}={day}",
                name,
            )


def check_observation_window(descriptor: EndpointDescriptor, ctx: ValidationContext) -> None:
    """Observed data is only available for days before today."""
    last = ctx.today - timedelta(days=ctx.settings.observation_lag_days)

    for name in ("start", "end"):
        value = getattr(descriptor, name)
        if not is_given(value):
            continue
        day = parse_date(value, name)
        if day > last:
            raise ValidationError(
                f"Observations are only available up to {last}; use forecasts for "
                f"later dates ({name}={day})",
                name,
            )


def check_agronomic_window(descriptor: EndpointDescriptor, ctx: ValidationContext) -> None:
    """Agronomic values may reach into the forecast horizon but not beyond."""
    last = ctx.today + timedelta(days=ctx.settings.forecast_horizon_days)

    for name in ("start", "end"):
        value = getattr(descriptor, name)
        if is_given(value) and parse_date(value, name) > last:
            raise ValidationError(
                f"Agronomic values are only available until {last}; {name}={value}",
                name,
            )

    accumulation_start = descriptor.options.get("accumulationStartDate")
    if is_given(accumulation_start):
        accumulation_day = parse_date(accumulation_start, "accumulationStartDate")
        if is_given(descriptor.start) and accumulation_day > parse_date(descriptor.start, "start"):
            raise ValidationError(
                "accumulationStartDate must come before the start date",
                "accumulationStartDate",
            )


def check_block_size(descriptor: EndpointDescriptor, ctx: ValidationContext) -> None:
    """blockSize must be a whole number of hours dividing 24."""
    block_size = descriptor.options.get("blockSize")
    if not is_given(block_size):
        return
    if isinstance(block_size, bool) or not isinstance(block_size, (int, str)):
        raise ValidationError(f"blockSize must be an integer, got {block_size!r}", "blockSize")
    try:
        hours = int(block_size)
    except ValueError:
        raise ValidationError(f"blockSize must be an integer, got {block_size!r}", "blockSize")
    if hours not in VALID_BLOCK_SIZES:
        raise ValidationError(
            f"blockSize must divide evenly into 24 (one of {list(VALID_BLOCK_SIZES)}), got {hours}",
            "blockSize",
        )


def check_month_day_range(descriptor: EndpointDescriptor, ctx: ValidationContext) -> None:
    """Norms need a start month-day; both month-days must parse."""
    if not is_given(descriptor.month_day_start):
        raise ValidationError(
            "month_day_start is required for norms (MM-DD)",
            "month_day_start",
        )
    parse_month_day(descriptor.month_day_start, "month_day_start")
    if is_given(descriptor.month_day_end):
        parse_month_day(descriptor.month_day_end, "month_day_end")


def check_norm_years(descriptor: EndpointDescriptor, ctx: ValidationContext) -> None:
    """Year ranges for norms: both bounds or neither, enough years left after exclusions."""
    settings = ctx.settings
    earliest, latest = settings.earliest_norm_year, ctx.today.year
    has_start = is_given(descriptor.year_start)
    has_end = is_given(descriptor.year_end)

    if has_start != has_end:
        raise ValidationError(
            "Both year_start and year_end must be given when using years",
            "year_end" if has_start else "year_start",
        )

    exclude = descriptor.options.get("excludeYears")
    excluded = parse_year_list(exclude) if is_given(exclude) else []
    for year in excluded:
        if not earliest <= year <= latest:
            raise ValidationError(
                f"excludeYears contains {year}, outside {earliest}-{latest}",
                "excludeYears",
            )

    if not has_start:
        return

    year_start = parse_year(descriptor.year_start, "year_start")
    year_end = parse_year(descriptor.year_end, "year_end")
    for name, year in (("year_start", year_start), ("year_end", year_end)):
        if not earliest <= year <= latest:
            raise ValidationError(
                f"{name} must be between {earliest} and the current year, got {year}",
                name,
            )
    if year_end < year_start:
        raise ValidationError("year_end must not come before year_start", "year_end")

    for name, year, month_day in (
        ("year_start", year_start, descriptor.month_day_start),
        ("year_end", year_end, descriptor.month_day_end),
    ):
        if is_given(month_day):
            month, day = parse_month_day(month_day, name.replace("year", "month_day"))
            if _month_day_in_year(year, month, day) > ctx.today:
                raise ValidationError(
                    f"{name}={year} with month-day {month_day} lies in the future",
                    name,
                )

    remaining = set(range(year_start, year_end + 1)) - set(excluded)
    if len(remaining) < settings.min_norm_years:
        raise ValidationError(
            f"At least {settings.min_norm_years} years must remain after exclusions; "
            f"{year_start}-{year_end} leaves {len(remaining)}",
            "excludeYears" if excluded else "year_start",
        )


def check_gdd(descriptor: EndpointDescriptor, ctx: ValidationContext) -> None:
    """GDD method must be known; GDD temperatures must be numeric."""
    options = descriptor.options
    method = options.get("gddMethod")
    if is_given(method) and method not in GDD_METHODS:
        raise ValidationError(
            f"gddMethod must be one of {', '.join(GDD_METHODS)}; got {method!r}",
            "gddMethod",
        )
    for name in ("gddBaseTemp", "gddMinBoundary", "gddMaxBoundary"):
        value = options.get(name)
        if not is_given(value):
            continue
        try:
            if isinstance(value, bool):
                raise ValueError(value)
            float(value)
        except (TypeError, ValueError):
            raise ValidationError(f"{name} must be numeric, got {value!r}", name)


def check_accumulation_month_day(descriptor: EndpointDescriptor, ctx: ValidationContext) -> None:
    """For norms, accumulationStartDate is an MM-DD not after month_day_start."""
    value = descriptor.options.get("accumulationStartDate")
    if not is_given(value):
        return
    accumulation = parse_month_day(value, "accumulationStartDate")
    if is_given(descriptor.month_day_start):
        if accumulation > parse_month_day(descriptor.month_day_start, "month_day_start"):
            raise ValidationError(
                "accumulationStartDate must come before month_day_start",
                "accumulationStartDate",
            )


def check_properties(descriptor: EndpointDescriptor, ctx: ValidationContext) -> None:
    """Requested properties must be valid for the family."""
    value = descriptor.options.get("properties")
    if not is_given(value):
        return
    valid = PROPERTIES_BY_FAMILY.get(descriptor.family, ())
    requested = value if isinstance(value, (list, tuple)) else str(value).split(",")
    invalid = [item for item in requested if item not in valid]
    if invalid:
        raise ValidationError(
            f"Invalid properties {invalid}; valid values are {', '.join(valid)}",
            "properties",
        )


def check_sources(descriptor: EndpointDescriptor, ctx: ValidationContext) -> None:
    sources = descriptor.options.get("sources")
    if is_given(sources) and sources not in CONDITION_SOURCES:
        raise ValidationError(
            f"sources must be one of {', '.join(CONDITION_SOURCES)}; got {sources!r}",
            "sources",
        )


def check_paging(descriptor: EndpointDescriptor, ctx: ValidationContext) -> None:
    for name, minimum in (("offset", 0), ("limit", 1)):
        value = descriptor.options.get(name)
        if not is_given(value):
            continue
        try:
            if isinstance(value, bool) or int(value) < minimum:
                raise ValueError(value)
        except (TypeError, ValueError):
            raise ValidationError(f"{name} must be an integer >= {minimum}, got {value!r}", name)


def check_planting_target(descriptor: EndpointDescriptor, ctx: ValidationContext) -> None:
    if descriptor.current and not descriptor.addressed_by_field:
        raise ValidationError("The current planting can only be looked up by field_id", "field_id")
    if descriptor.current and is_given(descriptor.planting_id):
        raise ValidationError("Give either planting_id or current, not both", "planting_id")


def check_model_id(descriptor: EndpointDescriptor, ctx: ValidationContext) -> None:
    if not is_given(descriptor.model_id):
        raise ValidationError("model_id is required", "model_id")


def check_model_results_target(descriptor: EndpointDescriptor, ctx: ValidationContext) -> None:
    if not descriptor.addressed_by_field:
        raise ValidationError("Model results are looked up by field_id", "field_id")
    check_model_id(descriptor, ctx)


def check_job_id(descriptor: EndpointDescriptor, ctx: ValidationContext) -> None:
    if not is_given(descriptor.job_id):
        raise ValidationError("must specify job_id", "job_id")


Check = Callable[[EndpointDescriptor, ValidationContext], None]

VALIDATION_RULES: dict[ResourceFamily, tuple[Check, ...]] = {
    ResourceFamily.FIELDS: (check_paging,),
    ResourceFamily.PLANTINGS: (check_planting_target, check_paging),
    ResourceFamily.CROPS: (check_paging,),
    ResourceFamily.WEATHER_OBSERVATIONS: (
        check_location,
        check_date_range,
        check_observation_window,
        check_properties,
        check_paging,
    ),
    ResourceFamily.WEATHER_FORECASTS: (
        check_location,
        check_date_range,
        check_forecast_window,
        check_block_size,
        check_paging,
    ),
    ResourceFamily.WEATHER_NORMS: (
        check_location,
        check_month_day_range,
        check_norm_years,
        check_properties,
        check_paging,
    ),
    ResourceFamily.CURRENT_CONDITIONS: (check_location, check_sources),
    ResourceFamily.AGRONOMIC_VALUES: (
        check_location,
        check_date_range,
        check_agronomic_window,
        check_gdd,
        check_properties,
        check_paging,
    ),
    ResourceFamily.AGRONOMIC_NORMS: (
        check_location,
        check_month_day_range,
        check_norm_years,
        check_gdd,
        check_accumulation_month_day,
        check_paging,
    ),
    ResourceFamily.SOILS: (
        check_location,
        check_date_range,
        check_forecast_window,
        check_block_size,
        check_paging,
    ),
    ResourceFamily.MODELS: (check_paging,),
    ResourceFamily.MODEL_DETAILS: (check_model_id,),
    ResourceFamily.MODEL_RESULTS: (check_model_results_target,),
    ResourceFamily.JOBS: (check_job_id,),
}


def validate(
    descriptor: EndpointDescriptor,
    context: Optional[ValidationContext] = None,
) -> None:
    """Run every check registered for the descriptor's family.

    Raises:
        ValidationError: On the first failing check
    """
    context = context or ValidationContext()
    for check in VALIDATION_RULES[descriptor.family]:
        check(descriptor, context)
