"""Terrain Bounded Context - Domain Services.

Pure domain logic for terrain calculations.
NO I/O operations - file loading is implemented by infrastructure adapters
under `src/infrastructure/gridfloat/` via domain ports.
"""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import ArrayLike, NDArray
from pyproj import Geod

from domain.terrain.errors import DegenerateGridError
from domain.terrain.value_objects import GeodesicCellSize, RasterHeader, RGBColor

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
EARTH_RADIUS_M = 6371000.0  # Mean Earth radius used by the haversine formula


# ---------------------------------------------------------------------------
# Great-circle Distance
# ---------------------------------------------------------------------------
def haversine(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points on a spherical Earth.

    Args:
        lat1: Latitude of the first point, degrees
        lon1: Longitude of the first point, degrees
        lat2: Latitude of the second point, degrees
        lon2: Longitude of the second point, degrees

    Returns:
        Distance in meters
    """
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2.0) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(d_lon / 2.0) ** 2
    )
    c = 2.0 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))
    return EARTH_RADIUS_M * c


def geodesic_distance(
    lat1: float, lon1: float, lat2: float, lon2: float, ellipsoid: str = "WGS84"
) -> float:
    """Ellipsoidal geodesic distance in meters (pyproj.Geod)."""
    _, _, distance = Geod(ellps=ellipsoid).inv(lon1, lat1, lon2, lat2)
    return float(abs(distance))


# ---------------------------------------------------------------------------
# Geodesic Cell Sizer
# ---------------------------------------------------------------------------
def geodesic_cell_size(
    min_lat: float,
    min_long: float,
    max_lat: float,
    max_long: float,
    num_rows: int,
    num_columns: int,
    *,
    ellipsoid: str | None = None,
) -> GeodesicCellSize:
    """Convert a grid's angular extent into metric cell dimensions.

    The x size is measured along the bottom edge, the y size along the left
    edge, each divided by the matching cell count.

    Args:
        min_lat, min_long, max_lat, max_long: Grid extent in degrees
        num_rows: Number of rows in the grid
        num_columns: Number of columns in the grid
        ellipsoid: None for the spherical haversine formula, or a pyproj
            ellipsoid name (e.g. "WGS84") for ellipsoidal geodesics

    Raises:
        DegenerateGridError: If either edge has zero length
    """
    if ellipsoid is None:
        bottom = haversine(min_lat, min_long, min_lat, max_long)
        left = haversine(min_lat, min_long, max_lat, min_long)
    else:
        bottom = geodesic_distance(min_lat, min_long, min_lat, max_long, ellipsoid)
        left = geodesic_distance(min_lat, min_long, max_lat, min_long, ellipsoid)

    if bottom <= 0 or left <= 0:
        raise DegenerateGridError(
            f"Zero-length grid edge (bottom={bottom:.3f}m, left={left:.3f}m)"
        )

    return GeodesicCellSize(
        cell_size_x=bottom / num_columns, cell_size_y=left / num_rows
    )


def header_cell_size(
    header: RasterHeader, *, ellipsoid: str | None = None
) -> GeodesicCellSize:
    """Geodesic cell size for the extent described by a header."""
    return geodesic_cell_size(
        header.min_lat,
        header.min_long,
        header.max_lat,
        header.max_long,
        header.num_rows,
        header.num_columns,
        ellipsoid=ellipsoid,
    )


# ---------------------------------------------------------------------------
# Elevation-to-Color Mapper
# ---------------------------------------------------------------------------
def elevation_to_color(
    elevation: float,
    min_height: float,
    max_height: float,
    low_color: RGBColor,
    high_color: RGBColor,
) -> RGBColor:
    """Linearly interpolate between two colors by normalized elevation.

    Elevations at or beyond the extremes return the endpoint colors exactly;
    a flat grid (min == max) and empty (NaN) cells map to ``low_color``.
    """
    if math.isnan(elevation) or elevation <= min_height:
        return low_color
    if elevation >= max_height:
        return high_color
    if min_height == max_height:
        return low_color

    fraction = (elevation - min_height) / (max_height - min_height)
    return RGBColor(
        red=low_color.red + (high_color.red - low_color.red) * fraction,
        green=low_color.green + (high_color.green - low_color.green) * fraction,
        blue=low_color.blue + (high_color.blue - low_color.blue) * fraction,
    )


def elevations_to_colors(
    elevations: ArrayLike,
    min_height: float,
    max_height: float,
    low_color: RGBColor,
    high_color: RGBColor,
) -> NDArray[np.float64]:
    """Vectorized elevation_to_color: returns an (N, 3) array of channels."""
    values = np.asarray(elevations, dtype=np.float64).reshape(-1)
    low = np.asarray(low_color.as_tuple(), dtype=np.float64)
    high = np.asarray(high_color.as_tuple(), dtype=np.float64)

    if min_height == max_height:
        # Only values above the (single) height take the high color.
        return np.where((values > max_height)[:, None], high, low)

    fraction = (values - min_height) / (max_height - min_height)
    colors = low + (high - low) * fraction[:, None]
    # Endpoints are returned exactly, not via the interpolation formula.
    colors = np.where((values <= min_height)[:, None], low, colors)
    colors = np.where((values >= max_height)[:, None], high, colors)
    return np.where(np.isnan(values)[:, None], low, colors)
