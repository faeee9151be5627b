"""Agronomic values (GDD, PET, P/PET) and their long-term norms."""

from datetime import date
from typing import Optional, Sequence, Union

from awhere_api.endpoints.descriptor import EndpointDescriptor, ResourceFamily
from awhere_api.operations.common import compact, tag_rows
from awhere_api.operations.weather import drop_feb29
from awhere_api.session import AWhereSession
from awhere_api.transform.checks import check_daily_return, check_norms_return
from awhere_api.transform.normalize import Table

DateLike = Union[str, date]
Number = Union[int, float, str]

DEFAULT_GDD_METHOD = "standard"
DEFAULT_GDD_BASE_TEMP = 10
DEFAULT_GDD_MIN_BOUNDARY = 10
DEFAULT_GDD_MAX_BOUNDARY = 30


def _gdd_options(
    gdd_method: Optional[str],
    gdd_base_temp: Optional[Number],
    gdd_min_boundary: Optional[Number],
    gdd_max_boundary: Optional[Number],
    accumulation_start_date: Optional[Union[str, date]],
) -> dict:
    return compact(
        {
            "gddMethod": gdd_method,
            "gddBaseTemp": gdd_base_temp,
            "gddMinBoundary": gdd_min_boundary,
            "gddMaxBoundary": gdd_max_boundary,
            "accumulationStartDate": accumulation_start_date,
        }
    )


def _agronomic_values(
    session: AWhereSession,
    location: dict,
    start: Optional[DateLike],
    end: Optional[DateLike],
    properties: Optional[Union[str, Sequence[str]]],
    gdd: dict,
) -> Table:
    descriptor = EndpointDescriptor(
        ResourceFamily.AGRONOMIC_VALUES,
        start=start,
        end=end,
        options={**gdd, **compact({"properties": properties})},
        **location,
    )
    table = tag_rows(session.fetch_table(descriptor), **location)
    check_daily_return(table, start, end)
    return table


def agronomic_values_fields(
    session: AWhereSession,
    field_id: str,
    start: Optional[DateLike] = None,
    end: Optional[DateLike] = None,
    properties: Optional[Union[str, Sequence[str]]] = None,
    accumulation_start_date: Optional[DateLike] = None,
    gdd_method: Optional[str] = DEFAULT_GDD_METHOD,
    gdd_base_temp: Optional[Number] = DEFAULT_GDD_BASE_TEMP,
    gdd_min_boundary: Optional[Number] = DEFAULT_GDD_MIN_BOUNDARY,
    gdd_max_boundary: Optional[Number] = DEFAULT_GDD_MAX_BOUNDARY,
) -> Table:
    """Daily agronomic values for a field, with accumulations.

    Args:
        session: Authenticated session
        field_id: Field registered with the account
        start: First day, ``YYYY-MM-DD``
        end: Last day; may reach into the forecast horizon
        properties: Subset of gdd, pet, ppet, accumulatedGdd,
            accumulatedPrecipitation, accumulatedPet, accumulatedPpet
        accumulation_start_date: Start accumulating before ``start``
        gdd_method: standard, modifiedstandard, min-temp-cap or
            min-temp-constant
        gdd_base_temp: Base temperature for GDD
        gdd_min_boundary: Lower temperature bound
        gdd_max_boundary: Upper temperature bound

    Returns:
        One row per day, led by a ``field_id`` column
    """
    gdd = _gdd_options(
        gdd_method,
        gdd_base_temp,
        gdd_min_boundary,
        gdd_max_boundary,
        accumulation_start_date,
    )
    return _agronomic_values(session, {"field_id": field_id}, start, end, properties, gdd)


def agronomic_values_latlng(
    session: AWhereSession,
    latitude: Union[float, str],
    longitude: Union[float, str],
    start: Optional[DateLike] = None,
    end: Optional[DateLike] = None,
    properties: Optional[Union[str, Sequence[str]]] = None,
    accumulation_start_date: Optional[DateLike] = None,
    gdd_method: Optional[str] = DEFAULT_GDD_METHOD,
    gdd_base_temp: Optional[Number] = DEFAULT_GDD_BASE_TEMP,
    gdd_min_boundary: Optional[Number] = DEFAULT_GDD_MIN_BOUNDARY,
    gdd_max_boundary: Optional[Number] = DEFAULT_GDD_MAX_BOUNDARY,
) -> Table:
    """Daily agronomic values for a latitude/longitude pair."""
    gdd = _gdd_options(
        gdd_method,
        gdd_base_temp,
        gdd_min_boundary,
        gdd_max_boundary,
        accumulation_start_date,
    )
    location = {"latitude": latitude, "longitude": longitude}
    return _agronomic_values(session, location, start, end, properties, gdd)


def _agronomic_norms(
    session: AWhereSession,
    location: dict,
    month_day_start: str,
    month_day_end: Optional[str],
    year_start: Optional[Union[int, str]],
    year_end: Optional[Union[int, str]],
    exclude_years: Optional[Union[str, int, Sequence[int]]],
    include_feb29: bool,
    gdd: dict,
) -> Table:
    descriptor = EndpointDescriptor(
        ResourceFamily.AGRONOMIC_NORMS,
        month_day_start=month_day_start,
        month_day_end=month_day_end,
        year_start=year_start,
        year_end=year_end,
        options={**gdd, **compact({"excludeYears": exclude_years})},
        **location,
    )
    table = session.fetch_table(descriptor)
    if not include_feb29:
        table = drop_feb29(table)

    table = tag_rows(table, **location)
    check_norms_return(
        table,
        month_day_start,
        month_day_end,
        year_start,
        year_end,
        exclude_years,
        include_feb29,
    )
    return table


def agronomic_norms_fields(
    session: AWhereSession,
    field_id: str,
    month_day_start: str,
    month_day_end: Optional[str] = None,
    year_start: Optional[Union[int, str]] = None,
    year_end: Optional[Union[int, str]] = None,
    exclude_years: Optional[Union[str, int, Sequence[int]]] = None,
    accumulation_start_date: Optional[str] = None,
    gdd_method: Optional[str] = DEFAULT_GDD_METHOD,
    gdd_base_temp: Optional[Number] = DEFAULT_GDD_BASE_TEMP,
    gdd_min_boundary: Optional[Number] = DEFAULT_GDD_MIN_BOUNDARY,
    gdd_max_boundary: Optional[Number] = DEFAULT_GDD_MAX_BOUNDARY,
    include_feb29: bool = True,
) -> Table:
    """Long-term agronomic norms for a field.

    ``accumulation_start_date`` is a month-day (``MM-DD``) here, not a date.
    At least three years must remain once ``exclude_years`` are removed.

    Returns:
        One row per month-day, led by a ``field_id`` column
    """
    gdd = _gdd_options(
        gdd_method,
        gdd_base_temp,
        gdd_min_boundary,
        gdd_max_boundary,
        accumulation_start_date,
    )
    return _agronomic_norms(
        session,
        {"field_id": field_id},
        month_day_start,
        month_day_end,
        year_start,
        year_end,
        exclude_years,
        include_feb29,
        gdd,
    )


def agronomic_norms_latlng(
    session: AWhereSession,
    latitude: Union[float, str],
    longitude: Union[float, str],
    month_day_start: str,
    month_day_end: Optional[str] = None,
    year_start: Optional[Union[int, str]] = None,
    year_end: Optional[Union[int, str]] = None,
    exclude_years: Optional[Union[str, int, Sequence[int]]] = None,
    accumulation_start_date: Optional[str] = None,
    gdd_method: Optional[str] = DEFAULT_GDD_METHOD,
    gdd_base_temp: Optional[Number] = DEFAULT_GDD_BASE_TEMP,
    gdd_min_boundary: Optional[Number] = DEFAULT_GDD_MIN_BOUNDARY,
    gdd_max_boundary: Optional[Number] = DEFAULT_GDD_MAX_BOUNDARY,
    include_feb29: bool = True,
) -> Table:
    """Long-term agronomic norms for a latitude/longitude pair."""
    gdd = _gdd_options(
        gdd_method,
        gdd_base_temp,
        gdd_min_boundary,
        gdd_max_boundary,
        accumulation_start_date,
    )
    return _agronomic_norms(
        session,
        {"latitude": latitude, "longitude": longitude},
        month_day_start,
        month_day_end,
        year_start,
        year_end,
        exclude_years,
        include_feb29,
        gdd,
    )
