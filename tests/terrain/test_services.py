"""Tests for terrain domain services: great-circle sizing and color mapping."""

from __future__ import annotations

import math

import numpy as np
import pytest

from domain.terrain.errors import DegenerateGridError
from domain.terrain.services import (
    EARTH_RADIUS_M,
    elevation_to_color,
    elevations_to_colors,
    geodesic_cell_size,
    haversine,
    header_cell_size,
)
from domain.terrain.value_objects import RGBColor
from tests.conftest_utils import make_header

BLUE = RGBColor(red=0.0, green=0.0, blue=1.0)
RED = RGBColor(red=1.0, green=0.0, blue=0.0)

ONE_DEGREE_M = EARTH_RADIUS_M * math.pi / 180.0


# ---------------------------------------------------------------------------
# Haversine
# ---------------------------------------------------------------------------
class TestHaversine:
    def test_same_point_is_zero(self):
        assert haversine(40.0, -106.0, 40.0, -106.0) == 0.0

    def test_one_degree_of_latitude(self):
        assert math.isclose(haversine(0.0, 0.0, 1.0, 0.0), ONE_DEGREE_M, rel_tol=1e-9)

    def test_symmetric(self):
        forward = haversine(40.0, -106.0, 41.0, -105.0)
        backward = haversine(41.0, -105.0, 40.0, -106.0)
        assert math.isclose(forward, backward, rel_tol=1e-12)

    def test_parallel_shrinks_with_latitude(self):
        at_equator = haversine(0.0, 0.0, 0.0, 1.0)
        at_sixty = haversine(60.0, 0.0, 60.0, 1.0)
        assert math.isclose(at_sixty / at_equator, 0.5, rel_tol=1e-3)


# ---------------------------------------------------------------------------
# Geodesic Cell Sizer
# ---------------------------------------------------------------------------
class TestGeodesicCellSize:
    def test_square_cells_at_equator(self):
        size = geodesic_cell_size(0.0, 0.0, 1.0, 1.0, 10, 10)

        assert math.isclose(size.cell_size_x, ONE_DEGREE_M / 10, rel_tol=1e-9)
        assert math.isclose(size.cell_size_y, ONE_DEGREE_M / 10, rel_tol=1e-9)
        assert math.isclose(size.ratio, 1.0, rel_tol=1e-9)

    def test_cells_stretch_toward_pole(self):
        size = geodesic_cell_size(80.0, 0.0, 81.0, 1.0, 10, 10)

        # The bottom edge runs along latitude 80, where a degree of
        # longitude is roughly cos(80) of a degree of latitude.
        assert size.ratio == pytest.approx(1 / math.cos(math.radians(80.0)), rel=1e-2)

    def test_divides_by_cell_counts(self):
        size = geodesic_cell_size(0.0, 0.0, 1.0, 2.0, 4, 8)

        assert math.isclose(size.cell_size_x, 2 * ONE_DEGREE_M / 8, rel_tol=1e-9)
        assert math.isclose(size.cell_size_y, ONE_DEGREE_M / 4, rel_tol=1e-9)

    def test_zero_length_edge_is_degenerate(self):
        with pytest.raises(DegenerateGridError):
            geodesic_cell_size(10.0, 0.0, 10.0, 1.0, 1, 10)

    def test_wgs84_ellipsoid(self):
        size = geodesic_cell_size(0.0, 0.0, 1.0, 1.0, 1, 1, ellipsoid="WGS84")

        # One degree along the WGS84 equator, and along the meridian from 0 to 1
        assert size.cell_size_x == pytest.approx(111319.49, rel=1e-6)
        assert size.cell_size_y == pytest.approx(110574.39, rel=1e-5)

    def test_header_cell_size_uses_header_extent(self):
        header = make_header(4, 3, xll=-106.0, yll=40.0, cellsize=0.5)
        expected = geodesic_cell_size(40.0, -106.0, 41.5, -104.0, 3, 4)

        assert header_cell_size(header) == expected


# ---------------------------------------------------------------------------
# Elevation-to-Color Mapper
# ---------------------------------------------------------------------------
class TestElevationToColor:
    def test_endpoints_exact(self):
        assert elevation_to_color(0.0, 0.0, 10.0, BLUE, RED) == BLUE
        assert elevation_to_color(10.0, 0.0, 10.0, BLUE, RED) == RED

    def test_out_of_range_clamped(self):
        assert elevation_to_color(-5.0, 0.0, 10.0, BLUE, RED) == BLUE
        assert elevation_to_color(15.0, 0.0, 10.0, BLUE, RED) == RED

    def test_midpoint_blends(self):
        color = elevation_to_color(5.0, 0.0, 10.0, BLUE, RED)
        assert color.as_tuple() == pytest.approx((0.5, 0.0, 0.5))

    def test_flat_grid_maps_to_low_color(self):
        assert elevation_to_color(5.0, 5.0, 5.0, BLUE, RED) == BLUE

    def test_vectorized_matches_scalar(self):
        values = np.array([-1.0, 0.0, 2.5, 7.0, 10.0, 11.0])
        colors = elevations_to_colors(values, 0.0, 10.0, BLUE, RED)

        assert colors.shape == (6, 3)
        for value, row in zip(values, colors):
            expected = elevation_to_color(float(value), 0.0, 10.0, BLUE, RED)
            assert tuple(row) == pytest.approx(expected.as_tuple())

    def test_vectorized_endpoints_exact(self):
        colors = elevations_to_colors([0.0, 10.0], 0.0, 10.0, BLUE, RED)
        assert tuple(colors[0]) == BLUE.as_tuple()
        assert tuple(colors[1]) == RED.as_tuple()

    def test_vectorized_flat_grid(self):
        colors = elevations_to_colors([4.0, 5.0, 6.0], 5.0, 5.0, BLUE, RED)
        assert [tuple(row) for row in colors] == [
            BLUE.as_tuple(),
            BLUE.as_tuple(),
            RED.as_tuple(),
        ]

    def test_empty_cell_maps_to_low_color(self):
        assert elevation_to_color(math.nan, 0.0, 10.0, BLUE, RED) == BLUE

    def test_vectorized_empty_cells_map_to_low_color(self):
        colors = elevations_to_colors([np.nan, 5.0, np.nan], 0.0, 10.0, BLUE, RED)

        assert tuple(colors[0]) == BLUE.as_tuple()
        assert tuple(colors[2]) == BLUE.as_tuple()
        assert tuple(colors[1]) == pytest.approx((0.5, 0.0, 0.5))
