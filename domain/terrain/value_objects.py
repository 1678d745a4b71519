"""Terrain Bounded Context - Value Objects.

Immutable data structures describing a GridFloat raster, its decoded
elevation grid, and the geometry derived from it.
All validation occurs at construction time via Pydantic.

Grid orientation: row 0 of every elevation array is the NORTHERNMOST row, as
stored in the .flt file. All display geometry depends on this ordering.
"""

from __future__ import annotations

import math
from collections.abc import Iterator
from enum import Enum

import numpy as np
from affine import Affine
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, Field, model_validator

# ---------------------------------------------------------------------------
# Numeric Constants
# ---------------------------------------------------------------------------
FLOAT32_BYTES = 4  # Width of one GridFloat record


class ByteOrder(str, Enum):
    """Byte order of the binary body, as declared by the header."""

    BIG_ENDIAN = "MSBFIRST"
    LITTLE_ENDIAN = "LSBFIRST"

    @classmethod
    def from_token(cls, token: str) -> "ByteOrder":
        """Map a header token to a byte order.

        Exactly ``MSBFIRST`` selects big-endian. Every other token, including
        unrecognized ones, falls back to little-endian without error.
        """
        if token == cls.BIG_ENDIAN.value:
            return cls.BIG_ENDIAN
        return cls.LITTLE_ENDIAN

    @classmethod
    def native(cls) -> "ByteOrder":
        """Byte order of the running interpreter."""
        return cls.LITTLE_ENDIAN if np.little_endian else cls.BIG_ENDIAN

    @property
    def dtype(self) -> str:
        """numpy dtype string for one float32 record in this order."""
        return ">f4" if self is ByteOrder.BIG_ENDIAN else "<f4"


class BoundingBox(BaseModel):
    """Geographic extent in degrees (Value Object).

    Invariants are enforced at construction time - invalid BoundingBox
    cannot be instantiated.
    """

    min_x: float  # Western boundary (longitude)
    min_y: float  # Southern boundary (latitude)
    max_x: float  # Eastern boundary (longitude)
    max_y: float  # Northern boundary (latitude)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_bounds(self) -> "BoundingBox":
        # Longitude range
        if not (-180 <= self.min_x <= 180):
            raise ValueError(f"min_x longitude out of range: {self.min_x}")
        if not (-180 <= self.max_x <= 180):
            raise ValueError(f"max_x longitude out of range: {self.max_x}")
        # Latitude range
        if not (-90 <= self.min_y <= 90):
            raise ValueError(f"min_y latitude out of range: {self.min_y}")
        if not (-90 <= self.max_y <= 90):
            raise ValueError(f"max_y latitude out of range: {self.max_y}")
        # Ordering
        if not (self.min_x < self.max_x):
            raise ValueError(
                f"Invalid x ordering: min_x={self.min_x} >= max_x={self.max_x}"
            )
        if not (self.min_y < self.max_y):
            raise ValueError(
                f"Invalid y ordering: min_y={self.min_y} >= max_y={self.max_y}"
            )
        return self


class GeoPoint(BaseModel):
    """Geographic coordinate in degrees (Value Object)."""

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)

    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# RasterHeader
# ---------------------------------------------------------------------------
class RasterHeader(BaseModel):
    """Parsed contents of a GridFloat .hdr file (Value Object).

    Cells are square in source units (degrees). The upper/max corners are
    derived from the lower-left corner and the cell count, never read.
    """

    num_columns: int = Field(gt=0)
    num_rows: int = Field(gt=0)
    x_lower_left: float  # Longitude of the lower-left corner
    y_lower_left: float  # Latitude of the lower-left corner
    cell_size: float = Field(gt=0)  # Degrees per cell
    no_data_value: int  # Sentinel marking empty cells
    byte_order: ByteOrder

    model_config = ConfigDict(frozen=True)

    @property
    def x_upper_left(self) -> float:
        return self.x_lower_left + self.cell_size * self.num_columns

    @property
    def y_upper_left(self) -> float:
        return self.y_lower_left + self.cell_size * self.num_rows

    @property
    def min_lat(self) -> float:
        return self.y_lower_left

    @property
    def min_long(self) -> float:
        return self.x_lower_left

    @property
    def max_lat(self) -> float:
        return self.min_lat + self.cell_size * self.num_rows

    @property
    def max_long(self) -> float:
        return self.min_long + self.cell_size * self.num_columns

    @property
    def bounds(self) -> BoundingBox:
        """Geographic bounding box of the whole grid."""
        return BoundingBox(
            min_x=self.min_long,
            min_y=self.min_lat,
            max_x=self.max_long,
            max_y=self.max_lat,
        )

    @property
    def transform(self) -> Affine:
        """North-up affine transform mapping (col, row) to (lon, lat)."""
        return Affine.translation(self.x_lower_left, self.max_lat) * Affine.scale(
            self.cell_size, -self.cell_size
        )

    @property
    def num_records(self) -> int:
        return self.num_rows * self.num_columns

    @property
    def expected_bytes(self) -> int:
        """Exact size of the binary body described by this header."""
        return self.num_records * FLOAT32_BYTES


# ---------------------------------------------------------------------------
# GeodesicCellSize
# ---------------------------------------------------------------------------
class GeodesicCellSize(BaseModel):
    """Real-world size of one grid cell in meters (Value Object)."""

    cell_size_x: float = Field(gt=0)  # East-west extent
    cell_size_y: float = Field(gt=0)  # North-south extent

    model_config = ConfigDict(frozen=True)

    @property
    def ratio(self) -> float:
        """Anisotropy of a cell: cell_size_y / cell_size_x."""
        return self.cell_size_y / self.cell_size_x


# ---------------------------------------------------------------------------
# ElevationGrid
# ---------------------------------------------------------------------------
class ElevationGrid(BaseModel):
    """Decoded elevation samples plus summary statistics (Value Object).

    Cells equal to the header's no-data sentinel are counted as empty and
    excluded from the mean, but they are stored unmodified and still take
    part in min/max. The data array is made read-only at construction time.

    Invariants:
        EG-1: data is a 2D float32 array of shape (num_rows, num_columns)
        EG-2: num_cells + num_empty_cells == num_rows * num_columns
        EG-3: num_cells > 0
        EG-4: data[min_height_index] == min_height, data[max_height_index] == max_height
    """

    data: NDArray[np.float32]  # 2D float32 array (rows x columns), read-only
    header: RasterHeader
    cell_size: GeodesicCellSize
    min_height: float
    max_height: float
    avg_height: float  # Mean over non-empty cells only
    num_cells: int = Field(ge=0)
    num_empty_cells: int = Field(ge=0)
    min_height_index: tuple[int, int]  # (row, column), first occurrence
    max_height_index: tuple[int, int]  # (row, column), first occurrence

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @model_validator(mode="after")
    def validate_grid(self) -> "ElevationGrid":
        if self.data.ndim != 2:
            raise ValueError(f"Data must be 2D, got {self.data.ndim}D")
        if self.data.dtype != np.float32:
            raise ValueError(f"Data must be float32, got {self.data.dtype}")
        expected_shape = (self.header.num_rows, self.header.num_columns)
        if self.data.shape != expected_shape:
            raise ValueError(
                f"Data shape {self.data.shape} does not match header {expected_shape}"
            )
        if self.num_cells + self.num_empty_cells != self.data.size:
            raise ValueError(
                f"Cell counts {self.num_cells} + {self.num_empty_cells} "
                f"!= {self.data.size}"
            )
        if self.num_cells == 0:
            raise ValueError("Grid contains no valid cells")
        for index in (self.min_height_index, self.max_height_index):
            if not all(0 <= i < n for i, n in zip(index, self.data.shape)):
                raise ValueError(f"Extremum index {index} outside {self.data.shape}")
        if float(self.data[self.min_height_index]) != self.min_height:
            raise ValueError(f"min_height_index {self.min_height_index} is stale")
        if float(self.data[self.max_height_index]) != self.max_height:
            raise ValueError(f"max_height_index {self.max_height_index} is stale")

        # Own a contiguous copy so callers can never mutate the grid.
        immutable = np.array(self.data, dtype=np.float32, copy=True, order="C")
        immutable.flags.writeable = False
        object.__setattr__(self, "data", immutable)

        return self

    @property
    def num_rows(self) -> int:
        return self.header.num_rows

    @property
    def num_columns(self) -> int:
        return self.header.num_columns

    @property
    def empty_ratio(self) -> float:
        """Fraction of cells holding the no-data sentinel (0.0 to 1.0)."""
        return self.num_empty_cells / self.data.size


# ---------------------------------------------------------------------------
# ProjectionMetadata
# ---------------------------------------------------------------------------
# Key names as written in .prj files, mapped to field names.
PROJECTION_KEYS: dict[str, str] = {
    "Projection": "projection",
    "Datum": "datum",
    "Zunits": "zunits",
    "Units": "units",
    "Spheroid": "spheroid",
    "Xshift": "xshift",
    "Yshift": "yshift",
    "Parameters": "parameters",
}


class ProjectionMetadata(BaseModel):
    """Opaque projection description from a .prj file (Value Object).

    Display-only. Values are never validated or used in computation.
    """

    projection: str | None = None
    datum: str | None = None
    zunits: str | None = None
    units: str | None = None
    spheroid: str | None = None
    xshift: str | None = None
    yshift: str | None = None
    parameters: str | None = None

    model_config = ConfigDict(frozen=True)

    def as_dict(self) -> dict[str, str | None]:
        """Return values keyed by their .prj key names."""
        return {key: getattr(self, field) for key, field in PROJECTION_KEYS.items()}


class TerrainDataset(BaseModel):
    """Result of loading one GridFloat triple (.prj, .hdr, .flt)."""

    source: str  # Path prefix without extension
    grid: ElevationGrid
    projection: ProjectionMetadata | None = None  # None when .prj failed

    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Color
# ---------------------------------------------------------------------------
class RGBColor(BaseModel):
    """Color with channels in [0, 1] (Value Object)."""

    red: float = Field(ge=0, le=1)
    green: float = Field(ge=0, le=1)
    blue: float = Field(ge=0, le=1)

    model_config = ConfigDict(frozen=True)

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.red, self.green, self.blue)


# ---------------------------------------------------------------------------
# Contours
# ---------------------------------------------------------------------------
Point3D = tuple[float, float, float]


class ContourRequest(BaseModel):
    """Which elevation levels to trace and at what sampling stride.

    Levels are ``low_value + i * step_size`` for ``i in range(level_count)``;
    ``high_value`` itself is never traced.
    """

    level_count: int = Field(ge=0)
    low_value: float
    high_value: float
    # Only every stride-th row/column is a cell edge
    stride: int = Field(default=1, ge=1)

    model_config = ConfigDict(frozen=True)

    @property
    def step_size(self) -> float:
        """Spacing between levels; NaN when no levels are requested."""
        if self.level_count == 0:
            return math.nan
        return (self.high_value - self.low_value) / self.level_count

    def levels(self) -> tuple[float, ...]:
        step = self.step_size
        return tuple(self.low_value + i * step for i in range(self.level_count))


class Segment(BaseModel):
    """One contour line segment in display space."""

    start: Point3D
    end: Point3D
    color: RGBColor

    model_config = ConfigDict(frozen=True)


class ContourLevel(BaseModel):
    """All segments traced for a single elevation level.

    Segment endpoints are stored as two parallel (N, 3) float64 arrays.
    """

    value: float  # Elevation of the level
    starts: NDArray[np.float64]
    ends: NDArray[np.float64]

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @model_validator(mode="after")
    def validate_endpoints(self) -> "ContourLevel":
        if self.starts.ndim != 2 or self.starts.shape[1] != 3:
            raise ValueError(f"starts must have shape (N, 3), got {self.starts.shape}")
        if self.starts.shape != self.ends.shape:
            raise ValueError(
                f"starts {self.starts.shape} and ends {self.ends.shape} differ"
            )
        return self

    @property
    def segment_count(self) -> int:
        return int(self.starts.shape[0])

    def segments(self, color: RGBColor) -> Iterator[Segment]:
        """Yield the level's segments one at a time."""
        for start, end in zip(self.starts.tolist(), self.ends.tolist()):
            yield Segment(start=tuple(start), end=tuple(end), color=color)


# ---------------------------------------------------------------------------
# Display geometry
# ---------------------------------------------------------------------------
class DisplayLayout(BaseModel):
    """Scene-space placement of a grid, centred on the origin.

    Rows run north to south, so row ``r`` sits at
    ``origin_y + (num_rows - r) * cell_size_y``. Elevations are placed
    relative to a datum (the grid mean) and scaled by ``depth_scale``.
    """

    num_rows: int = Field(gt=0)
    num_columns: int = Field(gt=0)
    cell_size_x: float = Field(gt=0)
    cell_size_y: float = Field(gt=0)
    depth_scale: float

    model_config = ConfigDict(frozen=True)

    @property
    def width(self) -> float:
        return self.num_columns * self.cell_size_x

    @property
    def height(self) -> float:
        return self.num_rows * self.cell_size_y

    @property
    def origin_x(self) -> float:
        return -self.width / 2

    @property
    def origin_y(self) -> float:
        return -self.height / 2

    def x_at(self, column):
        """Scene x of a column index (scalar or numpy array)."""
        return self.origin_x + column * self.cell_size_x

    def y_at(self, row):
        """Scene y of a row index (scalar or numpy array)."""
        return self.origin_y + (self.num_rows - row) * self.cell_size_y

    def z_at(self, elevation, datum: float):
        """Scene z of an elevation relative to ``datum``."""
        return self.depth_scale * (elevation - datum)


class MeshStrip(BaseModel):
    """Vertices of one triangle strip (one sampled grid column)."""

    column: int = Field(ge=0)  # Grid column of the strip's left edge
    positions: NDArray[np.float64]  # (N, 3)
    colors: NDArray[np.float64]  # (N, 3), channels in [0, 1]

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @model_validator(mode="after")
    def validate_vertices(self) -> "MeshStrip":
        if self.positions.shape != self.colors.shape:
            raise ValueError(
                f"positions {self.positions.shape} and "
                f"colors {self.colors.shape} differ"
            )
        return self
