"""GridFloat adapter backed by GDAL's EHdr driver (via rasterio).

Produces the same TerrainDataset as GridFloatTerrainAdapter, but lets GDAL
parse the header and decode the body. Useful as a cross-check, and for
EHdr variants (extra header keys, ULXMAP-style corners) that the native
reader rejects.

Lifecycle (to avoid resource leaks):
1) Open the .flt with rasterio.open inside rasterio.Env
2) Validate band count and the geotransform (north-up, square cells)
3) Rebuild a RasterHeader from the dataset metadata (byte order from the .hdr)
4) Read band 1 as float32 and exit contexts to release GDAL handles
5) Compute cell size and statistics, then read .prj (non-fatal)
"""

from __future__ import annotations

import logging
import math
from pathlib import Path

import rasterio
from affine import Affine

from domain.terrain.errors import MalformedHeaderError, MissingFileError, TerrainError
from domain.terrain.services import header_cell_size
from domain.terrain.value_objects import (
    ByteOrder,
    ProjectionMetadata,
    RasterHeader,
    TerrainDataset,
)
from infrastructure.gridfloat.adapter import (
    check_dimensions,
    sibling,
    split_prefix,
    warn_if_mostly_empty,
)
from infrastructure.gridfloat.body import build_grid
from infrastructure.gridfloat.projection import load_projection

logger = logging.getLogger(__name__)

DEFAULT_NO_DATA_VALUE = -9999  # Used when the dataset declares no sentinel


def _no_data_value(nodata: float | None, source: str) -> int:
    if nodata is None or not math.isfinite(nodata):
        return DEFAULT_NO_DATA_VALUE
    if not float(nodata).is_integer():
        raise MalformedHeaderError(
            source, 5, f"no-data value must be an integer, got {nodata}"
        )
    return int(nodata)


def _declared_byte_order(path: Path) -> ByteOrder:
    """Byte order named by the .hdr ``byteorder`` line; native when absent.

    GDAL hands samples back already swapped, so this only keeps the header
    faithful to the file on disk.
    """
    try:
        text = path.read_text(encoding="latin-1")
    except OSError as e:
        raise MissingFileError(path.name, getattr(e, "strerror", None)) from e
    for line in text.splitlines():
        parts = line.split()
        if len(parts) >= 2 and parts[0].lower() == "byteorder":
            return ByteOrder.from_token(parts[1])
    return ByteOrder.native()


def _header_from_dataset(src, source: str, byte_order: ByteOrder) -> RasterHeader:
    transform: Affine = src.transform
    if transform.b != 0 or transform.d != 0:
        raise MalformedHeaderError(source, None, "rotated grids are not supported")
    if transform.e >= 0:
        raise MalformedHeaderError(source, None, "grid is not north-up")
    if not math.isclose(transform.a, -transform.e, rel_tol=1e-9):
        raise MalformedHeaderError(
            source,
            4,
            f"cells must be square, got {transform.a} x {-transform.e}",
        )

    try:
        header = RasterHeader(
            num_columns=src.width,
            num_rows=src.height,
            x_lower_left=transform.c,
            y_lower_left=transform.f + transform.e * src.height,
            cell_size=transform.a,
            no_data_value=_no_data_value(src.nodata, source),
            byte_order=byte_order,
        )
        _ = header.bounds
    except ValueError as e:
        raise MalformedHeaderError(source, None, str(e)) from e
    return header


class RasterioGridFloatAdapter:
    """Infrastructure adapter for GridFloat data read through rasterio.

    Parameters
    ----------
    ellipsoid: str | None
        None sizes cells with the spherical haversine formula; a pyproj
        ellipsoid name (e.g. "WGS84") uses ellipsoidal geodesics instead.
    """

    def __init__(self, ellipsoid: str | None = None) -> None:
        self.ellipsoid = ellipsoid

    def load(self, prefix: Path | str) -> TerrainDataset:
        """Load ``<prefix>.flt`` (and its .hdr) through GDAL.

        Raises:
            MissingFileError: If the .flt or .hdr file does not exist
            MalformedHeaderError: If GDAL cannot open the dataset or its
                geotransform cannot be expressed as a GridFloat header
            DegenerateGridError: If the grid cannot be contoured
        """
        prefix = split_prefix(prefix)
        path = sibling(prefix, ".flt")
        if not path.exists():
            raise MissingFileError(path.name, "No such file or directory")
        byte_order = _declared_byte_order(sibling(prefix, ".hdr"))

        try:
            with rasterio.Env():
                with rasterio.open(path) as src:
                    if src.count != 1:
                        raise MalformedHeaderError(
                            path.name, None, f"expected 1 band, got {src.count}"
                        )
                    header = _header_from_dataset(src, path.name, byte_order)
                    check_dimensions(header)
                    data = src.read(1, out_dtype="float32")
        except rasterio.errors.RasterioError as e:
            raise MalformedHeaderError(path.name, None, str(e)) from e

        cell_size = header_cell_size(header, ellipsoid=self.ellipsoid)
        grid = build_grid(header, data, cell_size)
        warn_if_mostly_empty(grid, path.name)

        projection: ProjectionMetadata | None
        try:
            projection = load_projection(sibling(prefix, ".prj"))
        except TerrainError as e:
            logger.warning("%s: projection unavailable (%s)", prefix.name, e)
            projection = None

        logger.info(
            "%s: loaded %dx%d grid via GDAL",
            prefix.name,
            grid.num_columns,
            grid.num_rows,
        )
        return TerrainDataset(source=str(prefix), grid=grid, projection=projection)
