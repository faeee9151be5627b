"""Response normalization into flat tables."""

from .checks import (
    check_daily_return,
    check_forecast_return,
    check_norms_return,
    check_soils_return,
)
from .flatten import flatten_json
from .normalize import SCHEMAS, RecordSchema, Table, normalize_response

__all__ = [
    "RecordSchema",
    "SCHEMAS",
    "Table",
    "check_daily_return",
    "check_forecast_return",
    "check_norms_return",
    "check_soils_return",
    "flatten_json",
    "normalize_response",
]
