"""GridFloat .flt decoder.

The body is exactly ``rows * columns`` IEEE-754 float32 records, row-major,
northernmost row first, in the byte order declared by the header. There is
no header, padding, or footer. Records are decoded bit-exactly.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import numpy as np
from numpy.typing import NDArray

from domain.terrain.errors import (
    DegenerateGridError,
    MissingFileError,
    TruncatedDataError,
)
from domain.terrain.value_objects import (
    ElevationGrid,
    GeodesicCellSize,
    RasterHeader,
)

logger = logging.getLogger(__name__)


def decode_body(
    header: RasterHeader, raw: bytes, *, source: str = "<body>"
) -> NDArray[np.float32]:
    """Decode raw body bytes into a native-order (rows, columns) float32 array.

    Bytes beyond the expected record count are ignored.

    Raises:
        TruncatedDataError: If fewer than rows * columns * 4 bytes are given
    """
    expected = header.expected_bytes
    if len(raw) < expected:
        raise TruncatedDataError(source, expected, len(raw))

    records = np.frombuffer(
        raw, dtype=header.byte_order.dtype, count=header.num_records
    )
    # Byte-swapping cast; bit patterns are preserved.
    return records.astype(np.float32).reshape(header.num_rows, header.num_columns)


def read_body(header: RasterHeader, path: Path | str) -> NDArray[np.float32]:
    """Read and decode a .flt file.

    Raises:
        MissingFileError: If the file is absent or unreadable
        TruncatedDataError: If the file is too short for the header
    """
    path = Path(path)
    try:
        raw = path.read_bytes()
    except OSError as e:
        logger.error(
            "Failed to read %s (errno=%s, strerror=%s)",
            path.name,
            getattr(e, "errno", "unknown"),
            getattr(e, "strerror", "unknown"),
        )
        raise MissingFileError(path.name, getattr(e, "strerror", None)) from e
    return decode_body(header, raw, source=path.name)


def summarize_elevations(
    data: NDArray[np.float32], no_data_value: int
) -> dict[str, Any]:
    """Compute the ElevationGrid statistics for a decoded array.

    A cell is empty when it equals the sentinel (compared as float64) or is
    NaN. Empty cells are excluded from the mean. Sentinel cells still take
    part in min/max; NaN cells never do. Ties resolve to the first cell in
    row-major order.

    Returns:
        Keyword arguments for ElevationGrid: min_height, max_height,
        avg_height, num_cells, num_empty_cells, min_height_index,
        max_height_index

    Raises:
        DegenerateGridError: If every cell is empty
    """
    values = data.astype(np.float64).ravel()
    nan_mask = np.isnan(values)
    empty = nan_mask | (values == float(no_data_value))

    num_empty_cells = int(np.count_nonzero(empty))
    num_cells = int(values.size - num_empty_cells)
    if num_cells == 0:
        raise DegenerateGridError("Grid contains no valid cells")

    # argmin/argmax return the first occurrence of the extremum.
    max_flat = int(np.argmax(np.where(nan_mask, -np.inf, values)))
    min_flat = int(np.argmin(np.where(nan_mask, np.inf, values)))
    min_height = float(values[min_flat])
    max_height = float(values[max_flat])

    avg_height = float(values[~empty].sum()) / num_cells
    # Summation error can push the mean of a flat grid a ulp past the extrema.
    avg_height = min(max(avg_height, min_height), max_height)

    columns = data.shape[1]
    return {
        "min_height": min_height,
        "max_height": max_height,
        "avg_height": avg_height,
        "num_cells": num_cells,
        "num_empty_cells": num_empty_cells,
        "min_height_index": divmod(min_flat, columns),
        "max_height_index": divmod(max_flat, columns),
    }


def build_grid(
    header: RasterHeader, data: NDArray[np.float32], cell_size: GeodesicCellSize
) -> ElevationGrid:
    """Assemble an immutable ElevationGrid from decoded samples."""
    stats = summarize_elevations(data, header.no_data_value)
    return ElevationGrid(data=data, header=header, cell_size=cell_size, **stats)
