"""Tests for terrain value objects.

Value objects are constructed directly with numpy arrays; no files are read.
"""

from __future__ import annotations

import math

import numpy as np
import pytest

from domain.terrain.value_objects import (
    ByteOrder,
    ContourLevel,
    ContourRequest,
    DisplayLayout,
    ElevationGrid,
    GeodesicCellSize,
    MeshStrip,
    ProjectionMetadata,
    RasterHeader,
    RGBColor,
)
from tests.conftest_utils import make_grid, make_header


# ---------------------------------------------------------------------------
# ByteOrder
# ---------------------------------------------------------------------------
class TestByteOrder:
    def test_msbfirst_is_big_endian(self):
        assert ByteOrder.from_token("MSBFIRST") is ByteOrder.BIG_ENDIAN
        assert ByteOrder.BIG_ENDIAN.dtype == ">f4"

    @pytest.mark.parametrize("token", ["LSBFIRST", "msbfirst", "VMS_FFLOAT", ""])
    def test_any_other_token_is_little_endian(self, token):
        assert ByteOrder.from_token(token) is ByteOrder.LITTLE_ENDIAN
        assert ByteOrder.from_token(token).dtype == "<f4"

    def test_native_matches_interpreter(self):
        expected = "<f4" if np.little_endian else ">f4"
        assert ByteOrder.native().dtype == expected


# ---------------------------------------------------------------------------
# RasterHeader
# ---------------------------------------------------------------------------
class TestRasterHeader:
    def test_derived_extent(self):
        header = make_header(4, 3, xll=-106.0, yll=40.0, cellsize=0.5)

        assert header.min_long == -106.0
        assert header.min_lat == 40.0
        assert header.max_long == -104.0
        assert header.max_lat == 41.5
        assert header.x_upper_left == header.max_long
        assert header.y_upper_left == header.max_lat

    def test_expected_bytes(self):
        header = make_header(4, 3)
        assert header.num_records == 12
        assert header.expected_bytes == 48

    def test_transform_maps_origin_to_northwest_corner(self):
        header = make_header(4, 3, xll=-106.0, yll=40.0, cellsize=0.5)

        assert header.transform * (0, 0) == pytest.approx((-106.0, 41.5))
        assert header.transform * (4, 3) == pytest.approx((-104.0, 40.0))

    def test_bounds(self):
        bounds = make_header(4, 3, xll=-106.0, yll=40.0, cellsize=0.5).bounds
        assert (bounds.min_x, bounds.min_y, bounds.max_x, bounds.max_y) == (
            -106.0,
            40.0,
            -104.0,
            41.5,
        )

    def test_extent_beyond_pole_rejected_by_bounds(self):
        header = make_header(2, 10, yll=89.0, cellsize=0.5)
        with pytest.raises(ValueError):
            _ = header.bounds

    @pytest.mark.parametrize("field", ["num_columns", "num_rows", "cell_size"])
    def test_non_positive_dimension_rejected(self, field):
        kwargs = make_header(4, 3).model_dump()
        kwargs[field] = 0
        with pytest.raises(ValueError):
            RasterHeader(**kwargs)


# ---------------------------------------------------------------------------
# ElevationGrid
# ---------------------------------------------------------------------------
class TestElevationGridInvariants:
    def test_data_is_read_only_copy(self):
        source = np.arange(6, dtype=np.float32).reshape(2, 3)
        grid = make_grid(source)

        assert not grid.data.flags.writeable
        source[0, 0] = 100.0
        assert grid.data[0, 0] == 0.0

    def test_shape_must_match_header(self):
        grid = make_grid(np.arange(6, dtype=np.float32).reshape(2, 3))
        with pytest.raises(ValueError, match="does not match header"):
            ElevationGrid(
                **{
                    **dict(grid),
                    "data": np.zeros((3, 2), dtype=np.float32),
                }
            )

    def test_stale_extremum_index_rejected(self):
        grid = make_grid(np.arange(6, dtype=np.float32).reshape(2, 3))
        with pytest.raises(ValueError, match="max_height_index"):
            ElevationGrid(**{**dict(grid), "max_height_index": (0, 0)})

    def test_counts_must_cover_grid(self):
        grid = make_grid(np.arange(6, dtype=np.float32).reshape(2, 3))
        with pytest.raises(ValueError, match="Cell counts"):
            ElevationGrid(**{**dict(grid), "num_empty_cells": 1})

    def test_float64_data_rejected(self):
        grid = make_grid(np.arange(6, dtype=np.float32).reshape(2, 3))
        with pytest.raises(ValueError, match="float32"):
            ElevationGrid(
                **{**dict(grid), "data": np.arange(6, dtype=np.float64).reshape(2, 3)}
            )

    def test_empty_ratio(self):
        grid = make_grid([[1.0, -9999.0], [-9999.0, -9999.0]])
        assert grid.empty_ratio == 0.75


# ---------------------------------------------------------------------------
# Smaller value objects
# ---------------------------------------------------------------------------
def test_cell_size_ratio():
    assert GeodesicCellSize(cell_size_x=20.0, cell_size_y=30.0).ratio == 1.5


def test_projection_as_dict_uses_file_keys():
    metadata = ProjectionMetadata(projection="GEOGRAPHIC", datum="NAD83")
    as_dict = metadata.as_dict()

    assert list(as_dict) == [
        "Projection",
        "Datum",
        "Zunits",
        "Units",
        "Spheroid",
        "Xshift",
        "Yshift",
        "Parameters",
    ]
    assert as_dict["Projection"] == "GEOGRAPHIC"
    assert as_dict["Units"] is None


def test_rgb_channel_out_of_range_rejected():
    with pytest.raises(ValueError):
        RGBColor(red=1.5, green=0.0, blue=0.0)


class TestContourRequest:
    def test_levels_exclude_high_value(self):
        request = ContourRequest(level_count=4, low_value=0.0, high_value=8.0)
        assert request.step_size == 2.0
        assert request.levels() == (0.0, 2.0, 4.0, 6.0)

    def test_zero_levels_has_undefined_step(self):
        request = ContourRequest(level_count=0, low_value=0.0, high_value=8.0)
        assert math.isnan(request.step_size)
        assert request.levels() == ()

    def test_stride_must_be_positive(self):
        with pytest.raises(ValueError):
            ContourRequest(level_count=1, low_value=0.0, high_value=1.0, stride=0)


def test_contour_level_shape_checked():
    with pytest.raises(ValueError, match="shape"):
        ContourLevel(value=1.0, starts=np.zeros((2, 2)), ends=np.zeros((2, 2)))


def test_mesh_strip_shapes_must_agree():
    with pytest.raises(ValueError, match="differ"):
        MeshStrip(column=0, positions=np.zeros((4, 3)), colors=np.zeros((2, 3)))


class TestDisplayLayout:
    def test_centred_on_origin(self):
        layout = DisplayLayout(
            num_rows=3, num_columns=4, cell_size_x=2.0, cell_size_y=1.0, depth_scale=1
        )
        assert layout.origin_x == -4.0
        assert layout.origin_y == -1.5

    def test_row_zero_is_north(self):
        layout = DisplayLayout(
            num_rows=3, num_columns=4, cell_size_x=2.0, cell_size_y=1.0, depth_scale=1
        )
        assert layout.y_at(0) == 1.5
        assert layout.y_at(3) == -1.5
        assert layout.y_at(0) > layout.y_at(1)

    def test_z_relative_to_datum(self):
        layout = DisplayLayout(
            num_rows=1, num_columns=1, cell_size_x=1.0, cell_size_y=1.0, depth_scale=0.5
        )
        assert layout.z_at(120.0, 100.0) == 10.0
        assert np.allclose(layout.z_at(np.array([80.0, 100.0]), 100.0), [-10.0, 0.0])
