"""Tests for grid cell conversions."""

import pytest

from awhere_api.exceptions import ValidationError
from awhere_api.grid import get_grid_x, get_grid_y, get_latitude, get_longitude


class TestGridCells:
    """Tests for coordinate to cell conversion."""

    def test_known_cells(self):
        assert get_grid_x(-90) == -1080
        assert get_grid_y(45) == 540
        assert get_grid_x(180) == 2160
        assert get_grid_y(-90) == -1080

    def test_cells_skip_zero(self):
        """Test cells are numbered away from the origin on both sides."""
        assert get_grid_x(0.01) == 1
        assert get_grid_x(-0.01) == -1
        assert get_grid_y(0.05) == 1
        assert get_grid_x(0) == 0

    @pytest.mark.parametrize("longitude", [-180.5, 181, 500])
    def test_longitude_out_of_range(self, longitude):
        with pytest.raises(ValidationError) as exc_info:
            get_grid_x(longitude)

        assert exc_info.value.parameter == "longitude"

    def test_latitude_out_of_range(self):
        with pytest.raises(ValidationError):
            get_grid_y(90.5)


class TestGridCoordinates:
    """Tests for cell to coordinate conversion."""

    def test_cell_centres(self):
        assert get_longitude(1) == pytest.approx(1 / 24)
        assert get_longitude(-1) == pytest.approx(-1 / 24)
        assert get_latitude(540) == pytest.approx(45 - 1 / 24)

    @pytest.mark.parametrize("longitude", [-98.5795, -0.3, 12.3, 179.99])
    def test_centre_stays_in_cell(self, longitude):
        cell = get_grid_x(longitude)

        assert get_grid_x(get_longitude(cell)) == cell
        assert abs(get_longitude(cell) - longitude) <= 1 / 24

    def test_cell_out_of_range(self):
        with pytest.raises(ValidationError) as exc_info:
            get_latitude(1081)

        assert exc_info.value.parameter == "grid_y"
