"""Endpoint construction: validated descriptor -> path and query string."""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Callable, Optional, Union
from urllib.parse import quote, urlencode

from awhere_api.config import DEFAULT_BASE_URL
from awhere_api.endpoints.descriptor import (
    LOCATION_FAMILIES,
    EndpointDescriptor,
    ResourceFamily,
)
from awhere_api.endpoints.validation import (
    ValidationContext,
    is_given,
    parse_date,
    validate,
)
from awhere_api.exceptions import ValidationError

logger = logging.getLogger(__name__)

PAGING_KEYS = ("offset", "limit")
GDD_KEYS = ("gddMethod", "gddBaseTemp", "gddMinBoundary", "gddMaxBoundary")

# Query options emitted per family, in emission order.
QUERY_KEYS: dict[ResourceFamily, tuple[str, ...]] = {
    ResourceFamily.FIELDS: PAGING_KEYS,
    ResourceFamily.PLANTINGS: PAGING_KEYS,
    ResourceFamily.CROPS: PAGING_KEYS,
    ResourceFamily.WEATHER_OBSERVATIONS: ("limit", "offset", "properties"),
    ResourceFamily.WEATHER_FORECASTS: ("blockSize", "useLocalTime", "limit", "offset"),
    ResourceFamily.WEATHER_NORMS: ("excludeYears", "properties", "limit", "offset"),
    ResourceFamily.CURRENT_CONDITIONS: ("sources",),
    ResourceFamily.AGRONOMIC_VALUES: GDD_KEYS
    + ("accumulationStartDate", "properties", "limit", "offset"),
    ResourceFamily.AGRONOMIC_NORMS: GDD_KEYS
    + ("accumulationStartDate", "excludeYears", "limit", "offset"),
    ResourceFamily.SOILS: ("blockSize", "useLocalTime", "limit", "offset"),
    ResourceFamily.MODELS: PAGING_KEYS,
    ResourceFamily.MODEL_DETAILS: (),
    ResourceFamily.MODEL_RESULTS: (),
    ResourceFamily.JOBS: (),
}

# Sub-resource segment per location-addressed family.
_LOCATION_RESOURCES = {
    ResourceFamily.WEATHER_OBSERVATIONS: ("weather", "observations"),
    ResourceFamily.WEATHER_FORECASTS: ("weather", "forecasts"),
    ResourceFamily.WEATHER_NORMS: ("weather", "norms"),
    ResourceFamily.CURRENT_CONDITIONS: ("weather", "currentconditions"),
    ResourceFamily.AGRONOMIC_VALUES: ("agronomics", "agronomicvalues"),
    ResourceFamily.AGRONOMIC_NORMS: ("agronomics", "agronomicnorms"),
    # Soil data is served by the forecasts resource
    ResourceFamily.SOILS: ("weather", "forecasts"),
}

FieldLookup = Callable[[str], bool]


@dataclass
class Endpoint:
    """A built request target."""

    path: str
    query: list[tuple[str, str]] = field(default_factory=list)
    base_url: str = DEFAULT_BASE_URL

    @property
    def query_string(self) -> str:
        return urlencode(self.query, safe=",")

    @property
    def url(self) -> str:
        url = f"{self.base_url.rstrip('/')}{self.path}"
        if self.query:
            url = f"{url}?{self.query_string}"
        return url

    def __str__(self) -> str:
        return self.url


def render_value(value: Any) -> str:
    """Render an option value as it appears on the wire."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(render_value(item) for item in value)
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def _render_date(value: Union[str, date]) -> str:
    return render_value(value) if isinstance(value, date) else value


def path_segment(value: Any) -> str:
    """Percent-encode one path segment, slashes included."""
    return quote(str(value), safe="")


def range_segment(start: Any, end: Any) -> str:
    """``""`` without start, ``/start,start`` with start only, else ``/start,end``."""
    if not is_given(start):
        return ""
    first = _render_date(start)
    last = _render_date(end) if is_given(end) else first
    return f"/{first},{last}"


def build_query(descriptor: EndpointDescriptor) -> list[tuple[str, str]]:
    """Recognized options only, in the family's declared order."""
    recognized = QUERY_KEYS[descriptor.family]
    ignored = [key for key in descriptor.options if key not in recognized]
    if ignored:
        logger.debug(
            "Dropping unrecognized query options",
            extra={"family": descriptor.family.value, "ignored": ignored},
        )
    return [
        (key, render_value(descriptor.options[key]))
        for key in recognized
        if is_given(descriptor.options.get(key))
    ]


def build_path(descriptor: EndpointDescriptor) -> str:
    family = descriptor.family
    field_id = path_segment(descriptor.field_id) if is_given(descriptor.field_id) else None

    if family is ResourceFamily.FIELDS:
        path = "/fields"
        if field_id:
            path += f"/{field_id}"
        return path

    if family is ResourceFamily.PLANTINGS:
        if field_id:
            path = f"/agronomics/fields/{field_id}/plantings"
        else:
            path = "/agronomics/plantings"
        if descriptor.current:
            path += "/current"
        elif is_given(descriptor.planting_id):
            path += f"/{path_segment(descriptor.planting_id)}"
        return path

    if family is ResourceFamily.CROPS:
        path = "/agronomics/crops"
        if is_given(descriptor.crop_id):
            path += f"/{path_segment(descriptor.crop_id)}"
        return path

    if family in (ResourceFamily.MODELS, ResourceFamily.MODEL_DETAILS):
        path = "/agronomics/models"
        if is_given(descriptor.model_id):
            path += f"/{path_segment(descriptor.model_id)}"
        if family is ResourceFamily.MODEL_DETAILS:
            path += "/details"
        return path

    if family is ResourceFamily.MODEL_RESULTS:
        return f"/agronomics/fields/{field_id}/models/{path_segment(descriptor.model_id)}/results"

    if family is ResourceFamily.JOBS:
        return f"/jobs/{path_segment(descriptor.job_id)}"

    group, resource = _LOCATION_RESOURCES[family]
    if field_id:
        location = f"fields/{field_id}"
    else:
        location = (
            f"locations/{path_segment(descriptor.latitude)},{path_segment(descriptor.longitude)}"
        )
    path = f"/{group}/{location}/{resource}"

    if family in (ResourceFamily.WEATHER_NORMS, ResourceFamily.AGRONOMIC_NORMS):
        path += range_segment(descriptor.month_day_start, descriptor.month_day_end)
        if is_given(descriptor.year_start):
            path += f"/years/{descriptor.year_start},{descriptor.year_end}"
    elif family is not ResourceFamily.CURRENT_CONDITIONS:
        path += range_segment(descriptor.start, descriptor.end)

    return path


def requires_existing_field(descriptor: EndpointDescriptor) -> bool:
    if not descriptor.addressed_by_field:
        return False
    return descriptor.family in LOCATION_FAMILIES or descriptor.family in (
        ResourceFamily.PLANTINGS,
        ResourceFamily.MODEL_RESULTS,
    )


def build_endpoint(
    descriptor: EndpointDescriptor,
    base_url: str = DEFAULT_BASE_URL,
    context: Optional[ValidationContext] = None,
    field_exists: Optional[FieldLookup] = None,
) -> Endpoint:
    """Validate a descriptor and build its endpoint.

    Parameter checks run first; the field lookup (a network call) runs only
    once they pass.

    Args:
        descriptor: Request parameters
        base_url: API base URL
        context: Reference date and policy bounds
        field_exists: Lookup confirming a field id belongs to the account

    Raises:
        ValidationError: If a parameter is invalid or the field is unknown
    """
    validate(descriptor, context)

    if field_exists is not None and requires_existing_field(descriptor):
        if not field_exists(descriptor.field_id):
            raise ValidationError(
                f"Field {descriptor.field_id!r} is not associated with your account; "
                "create the field before requesting its data",
                "field_id",
            )

    endpoint = Endpoint(
        path=build_path(descriptor),
        query=build_query(descriptor),
        base_url=base_url,
    )
    logger.debug("Built endpoint", extra={"family": descriptor.family.value, "url": endpoint.url})
    return endpoint


def plan_date_chunks(
    start: Union[str, date],
    end: Union[str, date],
    chunk_days: int,
) -> list[tuple[date, date]]:
    """Split an inclusive date range into consecutive chunks of ``chunk_days``.

    Example:
        plan_date_chunks("2020-01-01", "2020-01-05", 2) gives
        Jan 1-2, Jan 3-4 and Jan 5-5.
    """
    if chunk_days < 1:
        raise ValueError("chunk_days must be at least 1")
    first = parse_date(start, "start")
    last = parse_date(end, "end")

    chunks = []
    chunk_start = first
    while chunk_start <= last:
        chunk_end = min(chunk_start + timedelta(days=chunk_days - 1), last)
        chunks.append((chunk_start, chunk_end))
        chunk_start = chunk_end + timedelta(days=1)
    return chunks
