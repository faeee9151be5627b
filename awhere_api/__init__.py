"""Client for the aWhere agricultural weather and agronomics API.

Example:
    from awhere_api import AWhereSession, forecasts_fields

    session = AWhereSession.from_env()
    table = forecasts_fields(session, "field123", block_size=24)
"""

from .auth import Credentials, TokenState
from .config import Settings
from .exceptions import (
    AuthExhaustedError,
    AuthExpiredError,
    AWhereError,
    CredentialError,
    HttpError,
    JobTimeoutError,
    ParseError,
    ValidationError,
)
from .grid import get_grid_x, get_grid_y, get_latitude, get_longitude
from .operations import (
    agronomic_norms_fields,
    agronomic_norms_latlng,
    agronomic_values_fields,
    agronomic_values_latlng,
    create_field,
    create_planting,
    current_conditions_fields,
    current_conditions_latlng,
    daily_observed_fields,
    daily_observed_latlng,
    delete_field,
    delete_planting,
    forecasts_fields,
    forecasts_latlng,
    get_crops,
    get_fields,
    get_job,
    get_model_details,
    get_model_results,
    get_models,
    get_plantings,
    soils_fields,
    soils_latlng,
    update_field,
    update_planting,
    weather_norms_fields,
    weather_norms_latlng,
)
from .session import AWhereSession
from .transform import Table

__version__ = "0.1.0"
