"""GridFloat adapter for TerrainRepository.

Loads a GridFloat triple sharing one path prefix (``<prefix>.prj``,
``<prefix>.hdr``, ``<prefix>.flt``) into a domain TerrainDataset.

Lifecycle:
1) Read .prj (non-fatal: a failure is logged and projection is left unset)
2) Parse .hdr into a RasterHeader
3) Reject single-row or single-column grids
4) Compute the geodesic cell size from the header extent
5) Decode .flt and compute statistics
6) Return TerrainDataset
"""

from __future__ import annotations

import logging
from pathlib import Path

from domain.terrain.errors import DegenerateGridError, TerrainError
from domain.terrain.services import header_cell_size
from domain.terrain.value_objects import (
    ElevationGrid,
    ProjectionMetadata,
    RasterHeader,
    TerrainDataset,
)
from infrastructure.gridfloat.body import build_grid, read_body
from infrastructure.gridfloat.header import parse_header
from infrastructure.gridfloat.projection import load_projection

logger = logging.getLogger(__name__)

GRIDFLOAT_SUFFIXES = (".hdr", ".flt", ".prj")
HIGH_EMPTY_RATIO = 0.8  # Warn when more of the grid than this is no-data


def split_prefix(path: Path | str) -> Path:
    """Strip a GridFloat extension, if present, to get the shared prefix.

    Any other suffix is part of the prefix (``n40w106.v2`` stays intact).
    """
    path = Path(path)
    if path.suffix.lower() in GRIDFLOAT_SUFFIXES:
        return path.with_suffix("")
    return path


def sibling(prefix: Path, suffix: str) -> Path:
    """Path of one member of the triple, e.g. ``sibling(prefix, ".hdr")``."""
    return prefix.parent / (prefix.name + suffix)


def check_dimensions(header: RasterHeader) -> None:
    """Reject grids that cannot form a single contour cell.

    Raises:
        DegenerateGridError: If the header has fewer than 2 rows or columns
    """
    if header.num_rows < 2 or header.num_columns < 2:
        raise DegenerateGridError(
            f"Grid must have at least 2 rows and 2 columns, got "
            f"{header.num_rows}x{header.num_columns}"
        )


def warn_if_mostly_empty(grid: ElevationGrid, name: str) -> None:
    if grid.empty_ratio > HIGH_EMPTY_RATIO:
        logger.warning(
            "%s: %.1f%% no-data cells detected", name, grid.empty_ratio * 100.0
        )


class GridFloatTerrainAdapter:
    """Infrastructure adapter for loading GridFloat elevation data.

    Parameters
    ----------
    keyed_header: bool
        Identify header fields by label instead of by line position.
    ellipsoid: str | None
        None sizes cells with the spherical haversine formula; a pyproj
        ellipsoid name (e.g. "WGS84") uses ellipsoidal geodesics instead.
    """

    def __init__(
        self, keyed_header: bool = False, ellipsoid: str | None = None
    ) -> None:
        self.keyed_header = keyed_header
        self.ellipsoid = ellipsoid

    def load_projection(self, prefix: Path | str) -> ProjectionMetadata:
        """Read ``<prefix>.prj``.

        Raises:
            MissingFileError: If the file is absent or unreadable
        """
        return load_projection(sibling(split_prefix(prefix), ".prj"))

    def load_header(self, prefix: Path | str) -> RasterHeader:
        """Read ``<prefix>.hdr``.

        Raises:
            MissingFileError: If the file is absent or unreadable
            MalformedHeaderError: If the contents are invalid
        """
        return parse_header(
            sibling(split_prefix(prefix), ".hdr"), keyed=self.keyed_header
        )

    def load_body(self, header: RasterHeader, prefix: Path | str) -> ElevationGrid:
        """Read ``<prefix>.flt`` as described by ``header``.

        Raises:
            DegenerateGridError: If the grid has fewer than 2 rows or columns,
                a zero-length edge, or no valid cells
            MissingFileError: If the file is absent or unreadable
            TruncatedDataError: If the file is too short for the header
        """
        check_dimensions(header)
        cell_size = header_cell_size(header, ellipsoid=self.ellipsoid)

        path = sibling(split_prefix(prefix), ".flt")
        data = read_body(header, path)
        grid = build_grid(header, data, cell_size)

        warn_if_mostly_empty(grid, path.name)
        logger.debug(
            "%s: min %s at %s, max %s at %s, mean %s, %d empty cells",
            path.name,
            grid.min_height,
            grid.min_height_index,
            grid.max_height,
            grid.max_height_index,
            grid.avg_height,
            grid.num_empty_cells,
        )
        return grid

    def load(self, prefix: Path | str) -> TerrainDataset:
        """Load the full triple.

        The projection file is optional in practice: if it cannot be read a
        warning is logged and loading continues. Header and body failures
        propagate; no partial dataset is ever returned.
        """
        prefix = split_prefix(prefix)

        projection: ProjectionMetadata | None
        try:
            projection = self.load_projection(prefix)
        except TerrainError as e:
            logger.warning("%s: projection unavailable (%s)", prefix.name, e)
            projection = None

        header = self.load_header(prefix)
        grid = self.load_body(header, prefix)

        logger.info(
            "%s: loaded %dx%d grid, %.1f to %.1f",
            prefix.name,
            grid.num_columns,
            grid.num_rows,
            grid.min_height,
            grid.max_height,
        )
        return TerrainDataset(source=str(prefix), grid=grid, projection=projection)
