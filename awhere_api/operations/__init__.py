"""Public operations. Each takes an AWhereSession first and returns a Table.

Deletes return None and ``get_job`` returns the job document.
"""

from .agronomics import (
    agronomic_norms_fields,
    agronomic_norms_latlng,
    agronomic_values_fields,
    agronomic_values_latlng,
)
from .crops import get_crops
from .fields import create_field, delete_field, get_fields, update_field
from .jobs import get_job
from .models import get_model_details, get_model_results, get_models
from .plantings import create_planting, delete_planting, get_plantings, update_planting
from .weather import (
    current_conditions_fields,
    current_conditions_latlng,
    daily_observed_fields,
    daily_observed_latlng,
    forecasts_fields,
    forecasts_latlng,
    soils_fields,
    soils_latlng,
    weather_norms_fields,
    weather_norms_latlng,
)

__all__ = [
    "agronomic_norms_fields",
    "agronomic_norms_latlng",
    "agronomic_values_fields",
    "agronomic_values_latlng",
    "create_field",
    "create_planting",
    "current_conditions_fields",
    "current_conditions_latlng",
    "daily_observed_fields",
    "daily_observed_latlng",
    "delete_field",
    "delete_planting",
    "forecasts_fields",
    "forecasts_latlng",
    "get_crops",
    "get_fields",
    "get_job",
    "get_model_details",
    "get_model_results",
    "get_models",
    "get_plantings",
    "soils_fields",
    "soils_latlng",
    "update_field",
    "update_planting",
    "weather_norms_fields",
    "weather_norms_latlng",
]
