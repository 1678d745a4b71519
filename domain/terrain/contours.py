"""Terrain Bounded Context - Contour Extraction.

Marching-squares tracing of iso-elevation lines over an ElevationGrid.

Cell corner numbering (row index grows downward, i.e. southward)::

    [0]------------[1]
     |              |
     |              |
    [2]------------[3]

Edges are named by the corners they join: top (0-1), left (0-2),
right (1-3), bottom (2-3). A corner is "above" a level when its elevation is
strictly greater than the level.

Every cell is classified independently, so each level is evaluated for all
cells at once with numpy. The order segments are emitted in carries no meaning.
"""

from __future__ import annotations

from collections.abc import Iterator

import numpy as np
from numpy.typing import NDArray

from domain.terrain.errors import DegenerateGridError, GridUnavailableError
from domain.terrain.value_objects import (
    ContourLevel,
    ContourRequest,
    DisplayLayout,
    ElevationGrid,
    RGBColor,
    Segment,
)

# Corner bits of the 4-bit case index
TOP_LEFT, TOP_RIGHT, BOTTOM_LEFT, BOTTOM_RIGHT = 1, 2, 4, 8

TOP, LEFT, RIGHT, BOTTOM = "top", "left", "right", "bottom"

# Case index -> edge pairs to connect. Complementary cases share a line.
# The saddles (cases 9 and 6) always join top-right and left-bottom; this
# choice is fixed so neighbouring cells agree across the whole grid.
SEGMENT_TABLE: dict[int, tuple[tuple[str, str], ...]] = {
    TOP_LEFT: ((LEFT, TOP),),
    0b1111 ^ TOP_LEFT: ((LEFT, TOP),),
    TOP_RIGHT: ((TOP, RIGHT),),
    0b1111 ^ TOP_RIGHT: ((TOP, RIGHT),),
    BOTTOM_LEFT: ((LEFT, BOTTOM),),
    0b1111 ^ BOTTOM_LEFT: ((LEFT, BOTTOM),),
    BOTTOM_RIGHT: ((BOTTOM, RIGHT),),
    0b1111 ^ BOTTOM_RIGHT: ((BOTTOM, RIGHT),),
    TOP_LEFT | TOP_RIGHT: ((LEFT, RIGHT),),
    BOTTOM_LEFT | BOTTOM_RIGHT: ((LEFT, RIGHT),),
    TOP_LEFT | BOTTOM_LEFT: ((TOP, BOTTOM),),
    TOP_RIGHT | BOTTOM_RIGHT: ((TOP, BOTTOM),),
    TOP_LEFT | BOTTOM_RIGHT: ((TOP, RIGHT), (LEFT, BOTTOM)),
    TOP_RIGHT | BOTTOM_LEFT: ((TOP, RIGHT), (LEFT, BOTTOM)),
}


def _check_grid(grid: ElevationGrid | None) -> ElevationGrid:
    if grid is None:
        raise GridUnavailableError("No elevation grid loaded")
    if grid.num_rows < 2 or grid.num_columns < 2:
        raise DegenerateGridError(
            f"Contouring needs at least 2x2 cells, got "
            f"{grid.num_rows}x{grid.num_columns}"
        )
    return grid


def _crossing(a: NDArray[np.float64], b: NDArray[np.float64], level: float):
    """Fraction along edge a->b where the level is crossed, measured from a."""
    with np.errstate(divide="ignore", invalid="ignore"):
        return (a - level) / (a - b)


def _trace_level(
    corners: tuple[NDArray[np.float64], ...],
    rows: NDArray[np.float64],
    columns: NDArray[np.float64],
    level: float,
    stride: int,
    layout: DisplayLayout,
    datum: float,
) -> ContourLevel:
    top_left, top_right, bottom_left, bottom_right = corners

    case = (
        (top_left > level) * TOP_LEFT
        + (top_right > level) * TOP_RIGHT
        + (bottom_left > level) * BOTTOM_LEFT
        + (bottom_right > level) * BOTTOM_RIGHT
    )
    # Cells touching an empty (NaN) corner carry no contour.
    touches_empty = np.isnan(top_left) | np.isnan(top_right)
    touches_empty |= np.isnan(bottom_left) | np.isnan(bottom_right)
    case = np.where(touches_empty, 0, case)

    span_x = layout.cell_size_x * stride
    span_y = layout.cell_size_y * stride
    cell_x = layout.x_at(columns)
    cell_y = layout.y_at(rows)
    z = layout.z_at(level, datum)

    # Edge crossing points, (x, y) per cell.
    edges = {
        TOP: (cell_x + span_x * _crossing(top_left, top_right, level), cell_y),
        LEFT: (cell_x, cell_y - span_y * _crossing(top_left, bottom_left, level)),
        RIGHT: (
            cell_x + span_x,
            cell_y - span_y * _crossing(top_right, bottom_right, level),
        ),
        BOTTOM: (
            cell_x + span_x * _crossing(bottom_left, bottom_right, level),
            cell_y - span_y,
        ),
    }

    starts: list[NDArray[np.float64]] = []
    ends: list[NDArray[np.float64]] = []
    for case_index, pairs in SEGMENT_TABLE.items():
        mask = case == case_index
        if not mask.any():
            continue
        for first, second in pairs:
            for edge, out in ((first, starts), (second, ends)):
                ex, ey = edges[edge]
                xs = np.broadcast_to(ex, case.shape)[mask]
                ys = np.broadcast_to(ey, case.shape)[mask]
                out.append(np.column_stack((xs, ys, np.full(xs.shape, z))))

    if starts:
        return ContourLevel(
            value=level, starts=np.concatenate(starts), ends=np.concatenate(ends)
        )
    empty = np.empty((0, 3), dtype=np.float64)
    return ContourLevel(value=level, starts=empty, ends=empty.copy())


def iter_contour_levels(
    grid: ElevationGrid | None, request: ContourRequest, layout: DisplayLayout
) -> Iterator[ContourLevel]:
    """Trace the requested levels one at a time.

    Cells have origins at every ``stride``-th row and column and must lie
    fully inside the grid; a partial cell at the far edge is skipped.
    The grid is checked immediately, before the first level is traced.

    Args:
        grid: Loaded elevation grid
        request: Levels to trace and sampling stride
        layout: Scene placement; z values are ``depth_scale * (level - mean)``

    Returns:
        Iterator of ContourLevel, in ascending level order

    Raises:
        GridUnavailableError: If grid is None
        DegenerateGridError: If the grid has fewer than 2 rows or columns
    """
    grid = _check_grid(grid)
    return _generate_levels(grid, request, layout)


def _generate_levels(
    grid: ElevationGrid, request: ContourRequest, layout: DisplayLayout
) -> Iterator[ContourLevel]:
    levels = request.levels()
    if not levels:
        return

    stride = request.stride
    row_idx = np.arange(0, grid.num_rows - stride, stride)
    col_idx = np.arange(0, grid.num_columns - stride, stride)

    heights = grid.data.astype(np.float64)
    corners = (
        heights[np.ix_(row_idx, col_idx)],
        heights[np.ix_(row_idx, col_idx + stride)],
        heights[np.ix_(row_idx + stride, col_idx)],
        heights[np.ix_(row_idx + stride, col_idx + stride)],
    )
    rows = row_idx[:, None].astype(np.float64)
    columns = col_idx[None, :].astype(np.float64)

    for level in levels:
        yield _trace_level(
            corners, rows, columns, level, stride, layout, grid.avg_height
        )


def extract_contours(
    grid: ElevationGrid | None, request: ContourRequest, layout: DisplayLayout
) -> tuple[ContourLevel, ...]:
    """Trace every requested level over the grid in one batch."""
    return tuple(iter_contour_levels(grid, request, layout))


def iter_segments(
    grid: ElevationGrid | None,
    request: ContourRequest,
    layout: DisplayLayout,
    color: RGBColor,
) -> Iterator[Segment]:
    """Yield contour segments level by level, all in a single color."""
    levels = iter_contour_levels(grid, request, layout)
    return (segment for contour in levels for segment in contour.segments(color))
