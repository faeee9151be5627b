"""Conversions between coordinates and aWhere grid cells.

The grid divides the globe into 5 arc-minute cells, numbered outward from
the equator and the prime meridian. Cell numbers are never 0: cell 1 spans
(0, 1/12] degrees and cell -1 spans [-1/12, 0).
"""

import math
from typing import Union

from awhere_api.exceptions import ValidationError

Number = Union[int, float]

MAX_LONGITUDE = 180
MAX_LATITUDE = 90
MAX_GRID_X = 2160
MAX_GRID_Y = 1080


def _to_cell(value: Number, max_degrees: int, max_cell: int, name: str) -> int:
    if not -max_degrees <= value <= max_degrees:
        raise ValidationError(
            f"{name} must be between {-max_degrees} and {max_degrees}, got {value}",
            name,
        )
    scaled = value / max_degrees * max_cell
    if scaled > 0:
        return math.ceil(scaled)
    if scaled < 0:
        return math.floor(scaled)
    return 0


def _to_degrees(cell: int, max_degrees: int, max_cell: int, name: str) -> float:
    if not -max_cell <= cell <= max_cell:
        raise ValidationError(f"{name} must be between {-max_cell} and {max_cell}, got {cell}", name)
    size = max_degrees / max_cell
    # Cell centre
    if cell > 0:
        return size * cell - size / 2
    if cell < 0:
        return size * cell + size / 2
    return 0.0


def get_grid_x(longitude: Number) -> int:
    """Grid column holding a longitude, e.g. ``get_grid_x(-90) == -1080``."""
    return _to_cell(longitude, MAX_LONGITUDE, MAX_GRID_X, "longitude")


def get_grid_y(latitude: Number) -> int:
    """Grid row holding a latitude, e.g. ``get_grid_y(45) == 540``."""
    return _to_cell(latitude, MAX_LATITUDE, MAX_GRID_Y, "latitude")


def get_longitude(grid_x: int) -> float:
    """Longitude at the centre of a grid column."""
    return _to_degrees(grid_x, MAX_LONGITUDE, MAX_GRID_X, "grid_x")


def get_latitude(grid_y: int) -> float:
    """Latitude at the centre of a grid row."""
    return _to_degrees(grid_y, MAX_LATITUDE, MAX_GRID_Y, "grid_y")
