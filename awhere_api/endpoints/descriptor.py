"""Typed description of one API request before it is built."""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Optional, Union


class ResourceFamily(Enum):
    """Groups of endpoints sharing a path template and validation rules."""

    FIELDS = "fields"
    PLANTINGS = "plantings"
    CROPS = "crops"
    WEATHER_OBSERVATIONS = "weather-observations"
    WEATHER_FORECASTS = "weather-forecasts"
    WEATHER_NORMS = "weather-norms"
    CURRENT_CONDITIONS = "current-conditions"
    AGRONOMIC_VALUES = "agronomic-values"
    AGRONOMIC_NORMS = "agronomic-norms"
    SOILS = "soils"
    MODELS = "models"
    MODEL_DETAILS = "model-details"
    MODEL_RESULTS = "model-results"
    JOBS = "jobs"


# Families addressed by a field id or a latitude/longitude pair.
LOCATION_FAMILIES = frozenset(
    {
        ResourceFamily.WEATHER_OBSERVATIONS,
        ResourceFamily.WEATHER_FORECASTS,
        ResourceFamily.WEATHER_NORMS,
        ResourceFamily.CURRENT_CONDITIONS,
        ResourceFamily.AGRONOMIC_VALUES,
        ResourceFamily.AGRONOMIC_NORMS,
        ResourceFamily.SOILS,
    }
)

DateLike = Union[str, date]


@dataclass
class EndpointDescriptor:
    """Parameters of one request, validated and turned into an Endpoint.

    Dates are ``YYYY-MM-DD`` strings or ``date`` objects; month-days are
    ``MM-DD`` strings. ``options`` holds query options keyed by their wire
    name (``blockSize``, ``gddMethod``, ...); keys not recognized for the
    family are dropped when the query is built.
    """

    family: ResourceFamily
    field_id: Optional[str] = None
    planting_id: Optional[str] = None
    crop_id: Optional[str] = None
    model_id: Optional[str] = None
    job_id: Optional[Union[int, str]] = None
    current: bool = False
    latitude: Optional[Union[float, str]] = None
    longitude: Optional[Union[float, str]] = None
    start: Optional[DateLike] = None
    end: Optional[DateLike] = None
    month_day_start: Optional[str] = None
    month_day_end: Optional[str] = None
    year_start: Optional[Union[int, str]] = None
    year_end: Optional[Union[int, str]] = None
    options: dict[str, Any] = field(default_factory=dict)

    @property
    def addressed_by_field(self) -> bool:
        return self.field_id is not None and self.field_id != ""
