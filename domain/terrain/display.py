"""Terrain Bounded Context - Display Geometry.

Scene-space layout of a loaded grid and the mesh vertex stream handed to
the renderer. Drawing itself (display lists, camera, windowing) lives
outside this package.
"""

from __future__ import annotations

import math

import numpy as np

from domain.terrain.errors import GridUnavailableError
from domain.terrain.services import elevations_to_colors
from domain.terrain.value_objects import (
    DisplayLayout,
    ElevationGrid,
    GeoPoint,
    MeshStrip,
    Point3D,
    RGBColor,
)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
GRID_SCALE = 20.0  # Scene units spanned by the constraining grid dimension
MAX_DISPLAY_ROWS_COLUMNS = 1000  # Rows/columns drawn before stride kicks in
CONTOUR_RANGE_INSET = 10.0  # Default contour range sits this far inside min/max


def compute_layout(
    grid: ElevationGrid, *, scale: float = GRID_SCALE, depth_scale: float | None = None
) -> DisplayLayout:
    """Fit the grid into a ``scale``-sized scene square.

    Cells keep their geodesic aspect ratio. Whichever dimension would
    overflow the square first (rows, after stretching by the ratio, or
    columns) is the constraining one.

    Note:
        The choice is only validated for near-square cells; extreme
        latitude spans can make the ratio, and hence the choice, dubious.

    Args:
        grid: Loaded elevation grid
        scale: Scene extent of the constraining dimension
        depth_scale: Override for the vertical scale. By default elevations
            use the same scene-units-per-meter as the x axis.
    """
    ratio = grid.cell_size.ratio
    if grid.num_rows * ratio > grid.num_columns:
        cell_size_y = scale / grid.num_rows
        cell_size_x = cell_size_y / ratio
    else:
        cell_size_x = scale / grid.num_columns
        cell_size_y = cell_size_x * ratio

    if depth_scale is None:
        depth_scale = cell_size_x / grid.cell_size.cell_size_x

    return DisplayLayout(
        num_rows=grid.num_rows,
        num_columns=grid.num_columns,
        cell_size_x=cell_size_x,
        cell_size_y=cell_size_y,
        depth_scale=depth_scale,
    )


def default_stride(num_rows: int, num_columns: int) -> int:
    """Sampling stride that keeps large grids near MAX_DISPLAY_ROWS_COLUMNS."""
    return max(1, max(num_rows, num_columns) // MAX_DISPLAY_ROWS_COLUMNS)


def max_stride(num_rows: int, num_columns: int) -> int:
    """Largest stride that still leaves one full cell."""
    return max(1, min(num_rows, num_columns) - 1)


def default_contour_range(grid: ElevationGrid) -> tuple[float, float]:
    """Initial (low, high) contour values, inset from the grid extremes."""
    return (
        math.floor(grid.min_height) + CONTOUR_RANGE_INSET,
        math.ceil(grid.max_height) - CONTOUR_RANGE_INSET,
    )


def build_mesh(
    grid: ElevationGrid | None,
    layout: DisplayLayout,
    low_color: RGBColor,
    high_color: RGBColor,
    stride: int = 1,
) -> tuple[MeshStrip, ...]:
    """Build one triangle strip per sampled column.

    Each strip alternates vertices at ``(row, column)`` and
    ``(row, column + stride)`` for every ``stride``-th row, top to bottom.
    Vertex colors come from the elevation-to-color mapper.

    Raises:
        GridUnavailableError: If grid is None
        ValueError: If stride < 1
    """
    if grid is None:
        raise GridUnavailableError("No elevation grid loaded")
    if stride < 1:
        raise ValueError("stride must be >= 1")

    heights = grid.data.astype(np.float64)
    rows = np.arange(0, grid.num_rows, stride)
    ys = layout.y_at(rows.astype(np.float64))

    strips: list[MeshStrip] = []
    for column in range(0, grid.num_columns - stride, stride):
        left = heights[rows, column]
        right = heights[rows, column + stride]

        positions = np.empty((2 * rows.size, 3), dtype=np.float64)
        positions[0::2, 0] = layout.x_at(column)
        positions[1::2, 0] = layout.x_at(column + stride)
        positions[0::2, 1] = ys
        positions[1::2, 1] = ys
        positions[0::2, 2] = layout.z_at(left, grid.avg_height)
        positions[1::2, 2] = layout.z_at(right, grid.avg_height)

        elevations = np.empty(2 * rows.size, dtype=np.float64)
        elevations[0::2] = left
        elevations[1::2] = right
        colors = elevations_to_colors(
            elevations, grid.min_height, grid.max_height, low_color, high_color
        )

        strips.append(MeshStrip(column=column, positions=positions, colors=colors))

    return tuple(strips)


def peak_marker(grid: ElevationGrid, layout: DisplayLayout) -> Point3D:
    """Scene position of the highest cell, on the mesh vertex grid."""
    row, column = grid.max_height_index
    return (
        float(layout.x_at(column)),
        float(layout.y_at(row)),
        float(layout.z_at(grid.max_height, grid.avg_height)),
    )


def peak_location(grid: ElevationGrid) -> GeoPoint:
    """Geographic centre of the highest cell."""
    row, column = grid.max_height_index
    longitude, latitude = grid.header.transform * (column + 0.5, row + 0.5)
    return GeoPoint(latitude=latitude, longitude=longitude)
