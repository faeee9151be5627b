"""Weather data: observed, forecast, soil forecast, long-term norms and current conditions.

Every operation comes in two flavours: ``*_fields`` addresses a field
registered with the account, ``*_latlng`` a latitude/longitude pair.
"""

import logging
from dataclasses import replace
from datetime import date
from typing import Optional, Sequence, Union

from awhere_api.endpoints.builder import plan_date_chunks
from awhere_api.endpoints.descriptor import EndpointDescriptor, ResourceFamily
from awhere_api.endpoints.validation import is_given
from awhere_api.operations.common import compact, tag_rows
from awhere_api.session import AWhereSession
from awhere_api.transform.checks import (
    HOURLY_EMPTY_COLUMNS,
    HOURLY_EMPTY_SOIL_COLUMNS,
    check_daily_return,
    check_forecast_return,
    check_norms_return,
    check_soils_return,
)
from awhere_api.transform.normalize import Table

logger = logging.getLogger(__name__)

DateLike = Union[str, date]
Properties = Optional[Union[str, Sequence[str]]]
Years = Optional[Union[str, int, Sequence[int]]]


def drop_feb29(table: Table) -> Table:
    """Remove the leap-day row from a norms table."""
    if "day" not in table.columns:
        return table
    return table.filter(lambda row: row["day"] != "02-29")


# ============================================
# Observations
# ============================================

def _daily_observed(
    session: AWhereSession,
    location: dict,
    start: Optional[DateLike],
    end: Optional[DateLike],
    properties: Properties,
) -> Table:
    descriptor = EndpointDescriptor(
        ResourceFamily.WEATHER_OBSERVATIONS,
        start=start,
        end=end,
        options=compact({"properties": properties}),
        **location,
    )
    # Validate the whole range and look the field up once, not per chunk
    session.build(descriptor)

    chunk_days = session.settings.observation_chunk_days
    if is_given(start):
        chunks = plan_date_chunks(start, end if is_given(end) else start, chunk_days)
    else:
        chunks = [(None, None)]

    tables = []
    for chunk_start, chunk_end in chunks:
        limit = (chunk_end - chunk_start).days + 1 if chunk_start else chunk_days
        chunk = replace(
            descriptor,
            start=chunk_start,
            end=chunk_end,
            options={**descriptor.options, "limit": limit},
        )
        tables.append(session.fetch_table(chunk, verify_field=False))

    logger.debug(
        f"Fetched observations in {len(chunks)} chunk(s)",
        extra={"chunks": len(chunks), **location},
    )
    table = tag_rows(Table.concat(tables), **location)
    check_daily_return(table, start, end)
    return table


def daily_observed_fields(
    session: AWhereSession,
    field_id: str,
    start: Optional[DateLike] = None,
    end: Optional[DateLike] = None,
    properties: Properties = None,
) -> Table:
    """Observed daily weather for a field.

    Long ranges are fetched in chunks and stitched together.

    Args:
        session: Authenticated session
        field_id: Field registered with the account
        start: First day, ``YYYY-MM-DD``; must be before today
        end: Last day (defaults to ``start``)
        properties: Subset of temperatures, precipitation, solar,
            relativeHumidity, wind

    Returns:
        One row per day, led by a ``field_id`` column
    """
    return _daily_observed(session, {"field_id": field_id}, start, end, properties)


def daily_observed_latlng(
    session: AWhereSession,
    latitude: Union[float, str],
    longitude: Union[float, str],
    start: Optional[DateLike] = None,
    end: Optional[DateLike] = None,
    properties: Properties = None,
) -> Table:
    """Observed daily weather for a latitude/longitude pair."""
    location = {"latitude": latitude, "longitude": longitude}
    return _daily_observed(session, location, start, end, properties)


# ============================================
# Forecasts
# ============================================

def _forecasts(
    session: AWhereSession,
    location: dict,
    start: Optional[DateLike],
    end: Optional[DateLike],
    block_size: Optional[Union[int, str]],
    use_local_time: Optional[bool],
) -> Table:
    if block_size is None:
        block_size = 1
    descriptor = EndpointDescriptor(
        ResourceFamily.WEATHER_FORECASTS,
        start=start,
        end=end,
        options=compact({"blockSize": block_size, "useLocalTime": use_local_time}),
        **location,
    )
    table = session.fetch_table(descriptor)

    if int(block_size) == 1:
        table = table.drop_columns(HOURLY_EMPTY_COLUMNS)

    table = tag_rows(table, **location)
    check_forecast_return(table, start, end, block_size=int(block_size))
    return table


def forecasts_fields(
    session: AWhereSession,
    field_id: str,
    start: Optional[DateLike] = None,
    end: Optional[DateLike] = None,
    block_size: Optional[Union[int, str]] = 1,
    use_local_time: Optional[bool] = None,
) -> Table:
    """Forecast weather for a field.

    Without dates the service returns its whole forecast horizon. With a
    one-hour block size the min/max humidity and wind columns, which the
    service leaves empty, are dropped.

    Args:
        session: Authenticated session
        field_id: Field registered with the account
        start: First day, today or later
        end: Last day, at most the forecast horizon ahead
        block_size: Hours per forecast block; must divide 24 (None means 1)
        use_local_time: Interpret dates at the location rather than UTC

    Returns:
        One row per forecast block, led by a ``field_id`` column
    """
    return _forecasts(session, {"field_id": field_id}, start, end, block_size, use_local_time)


def forecasts_latlng(
    session: AWhereSession,
    latitude: Union[float, str],
    longitude: Union[float, str],
    start: Optional[DateLike] = None,
    end: Optional[DateLike] = None,
    block_size: Optional[Union[int, str]] = 1,
    use_local_time: Optional[bool] = None,
) -> Table:
    """Forecast weather for a latitude/longitude pair."""
    location = {"latitude": latitude, "longitude": longitude}
    return _forecasts(session, location, start, end, block_size, use_local_time)


# ============================================
# Soils
# ============================================

def _soils(
    session: AWhereSession,
    location: dict,
    start: Optional[DateLike],
    end: Optional[DateLike],
    block_size: Optional[Union[int, str]],
    use_local_time: Optional[bool],
) -> Table:
    if block_size is None:
        block_size = 1
    descriptor = EndpointDescriptor(
        ResourceFamily.SOILS,
        start=start,
        end=end,
        options=compact({"blockSize": block_size, "useLocalTime": use_local_time}),
        **location,
    )
    table = session.fetch_table(descriptor)

    if int(block_size) == 1:
        table = table.drop_columns(HOURLY_EMPTY_SOIL_COLUMNS)

    table = tag_rows(table, **location)
    check_soils_return(table, start, end, block_size=int(block_size))
    return table


def soils_fields(
    session: AWhereSession,
    field_id: str,
    start: Optional[DateLike] = None,
    end: Optional[DateLike] = None,
    block_size: Optional[Union[int, str]] = 1,
    use_local_time: Optional[bool] = None,
) -> Table:
    """Forecast soil temperature and moisture for a field.

    The soil lists of the forecast are kept and expanded into one row per
    forecast block and depth; the atmospheric variables are left out.

    Args:
        session: Authenticated session
        field_id: Field registered with the account
        start: First day, today or later
        end: Last day, at most the forecast horizon ahead
        block_size: Hours per forecast block; must divide 24
        use_local_time: Interpret dates at the location rather than UTC

    Returns:
        One row per block and depth, led by a ``field_id`` column
    """
    return _soils(session, {"field_id": field_id}, start, end, block_size, use_local_time)


def soils_latlng(
    session: AWhereSession,
    latitude: Union[float, str],
    longitude: Union[float, str],
    start: Optional[DateLike] = None,
    end: Optional[DateLike] = None,
    block_size: Optional[Union[int, str]] = 1,
    use_local_time: Optional[bool] = None,
) -> Table:
    """Forecast soil temperature and moisture for a latitude/longitude pair."""
    location = {"latitude": latitude, "longitude": longitude}
    return _soils(session, location, start, end, block_size, use_local_time)


# ============================================
# Norms
# ============================================

def _weather_norms(
    session: AWhereSession,
    location: dict,
    month_day_start: str,
    month_day_end: Optional[str],
    year_start: Optional[Union[int, str]],
    year_end: Optional[Union[int, str]],
    exclude_years: Years,
    properties: Properties,
    include_feb29: bool,
) -> Table:
    descriptor = EndpointDescriptor(
        ResourceFamily.WEATHER_NORMS,
        month_day_start=month_day_start,
        month_day_end=month_day_end,
        year_start=year_start,
        year_end=year_end,
        options=compact({"excludeYears": exclude_years, "properties": properties}),
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


def weather_norms_fields(
    session: AWhereSession,
    field_id: str,
    month_day_start: str,
    month_day_end: Optional[str] = None,
    year_start: Optional[Union[int, str]] = None,
    year_end: Optional[Union[int, str]] = None,
    exclude_years: Years = None,
    properties: Properties = None,
    include_feb29: bool = True,
) -> Table:
    """Long-term weather norms for a field.

    Args:
        session: Authenticated session
        field_id: Field registered with the account
        month_day_start: First month-day, ``MM-DD``
        month_day_end: Last month-day (defaults to ``month_day_start``)
        year_start: First year of the averaging window
        year_end: Last year of the averaging window
        exclude_years: Years left out of the averages, e.g. ``"2009,2013"``
        properties: Subset of the norms properties to return
        include_feb29: Keep the leap-day row

    Returns:
        One row per month-day, led by a ``field_id`` column
    """
    return _weather_norms(
        session,
        {"field_id": field_id},
        month_day_start,
        month_day_end,
        year_start,
        year_end,
        exclude_years,
        properties,
        include_feb29,
    )


def weather_norms_latlng(
    session: AWhereSession,
    latitude: Union[float, str],
    longitude: Union[float, str],
    month_day_start: str,
    month_day_end: Optional[str] = None,
    year_start: Optional[Union[int, str]] = None,
    year_end: Optional[Union[int, str]] = None,
    exclude_years: Years = None,
    properties: Properties = None,
    include_feb29: bool = True,
) -> Table:
    """Long-term weather norms for a latitude/longitude pair."""
    return _weather_norms(
        session,
        {"latitude": latitude, "longitude": longitude},
        month_day_start,
        month_day_end,
        year_start,
        year_end,
        exclude_years,
        properties,
        include_feb29,
    )


# ============================================
# Current conditions
# ============================================

def _current_conditions(
    session: AWhereSession,
    location: dict,
    sources: Optional[str],
) -> Table:
    descriptor = EndpointDescriptor(
        ResourceFamily.CURRENT_CONDITIONS,
        options=compact({"sources": sources}),
        **location,
    )
    return tag_rows(session.fetch_table(descriptor), **location)


def current_conditions_fields(
    session: AWhereSession,
    field_id: str,
    sources: Optional[str] = None,
) -> Table:
    """Latest station observation near a field.

    Args:
        sources: One of metar, mesonet, metar-mesonet, pws, all
    """
    return _current_conditions(session, {"field_id": field_id}, sources)


def current_conditions_latlng(
    session: AWhereSession,
    latitude: Union[float, str],
    longitude: Union[float, str],
    sources: Optional[str] = None,
) -> Table:
    """Latest station observation near a latitude/longitude pair."""
    return _current_conditions(session, {"latitude": latitude, "longitude": longitude}, sources)
