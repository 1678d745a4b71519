"""Terrain Bounded Context - View State.

User-selected display settings and the state object that decides when
contours and mesh must be regenerated.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from domain.terrain.contours import extract_contours
from domain.terrain.display import (
    build_mesh,
    compute_layout,
    default_contour_range,
    default_stride,
    max_stride,
    peak_marker,
)
from domain.terrain.errors import GridUnavailableError
from domain.terrain.value_objects import (
    ContourLevel,
    ContourRequest,
    DisplayLayout,
    ElevationGrid,
    MeshStrip,
    Point3D,
    RGBColor,
    Segment,
    TerrainDataset,
)

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------
DEFAULT_LEVEL_COUNT = 10
MAX_LEVEL_COUNT = 100
DEFAULT_LOW_COLOR = RGBColor(red=0.0, green=0.0, blue=1.0)
DEFAULT_HIGH_COLOR = RGBColor(red=1.0, green=0.0, blue=0.0)
DEFAULT_MARKER_COLOR = RGBColor(red=1.0, green=1.0, blue=1.0)
DEFAULT_CONTOUR_COLOR = RGBColor(red=0.0, green=0.0, blue=0.0)

# Settings whose change invalidates each generated artifact
_CONTOUR_FIELDS = frozenset(
    {"level_count", "low_value", "high_value", "stride", "depth_scale"}
)
_MESH_FIELDS = frozenset({"stride", "low_color", "high_color", "depth_scale"})


class ViewSettings(BaseModel):
    """Configuration supplied by the user interface."""

    level_count: int = Field(default=DEFAULT_LEVEL_COUNT, ge=0, le=MAX_LEVEL_COUNT)
    low_value: float = 0.0
    high_value: float = 0.0
    stride: int = Field(default=1, ge=1)
    low_color: RGBColor = DEFAULT_LOW_COLOR
    high_color: RGBColor = DEFAULT_HIGH_COLOR
    marker_color: RGBColor = DEFAULT_MARKER_COLOR
    contour_color: RGBColor = DEFAULT_CONTOUR_COLOR
    depth_scale: float | None = None  # None: derive from the grid

    model_config = ConfigDict(frozen=True, extra="forbid")

    def contour_request(self) -> ContourRequest:
        return ContourRequest(
            level_count=self.level_count,
            low_value=self.low_value,
            high_value=self.high_value,
            stride=self.stride,
        )


class ViewState:
    """Current dataset, settings, and cached geometry.

    Loading replaces the dataset wholesale; the last load wins. Setting
    changes only flag the artifacts they affect (``contours_dirty``,
    ``mesh_dirty``); regeneration happens lazily on the next access.
    """

    def __init__(self, settings: ViewSettings | None = None) -> None:
        self.settings = settings or ViewSettings()
        self.dataset: TerrainDataset | None = None
        self.layout: DisplayLayout | None = None
        self.contours_dirty = True
        self.mesh_dirty = True
        self._contours: tuple[ContourLevel, ...] = ()
        self._mesh: tuple[MeshStrip, ...] = ()

    @property
    def grid(self) -> ElevationGrid | None:
        return self.dataset.grid if self.dataset is not None else None

    def load(self, dataset: TerrainDataset) -> bool:
        """Adopt a freshly loaded dataset.

        Resets the contour range and stride to defaults for the new grid.
        Loading the same source again is ignored.

        Returns:
            True if the dataset was adopted, False if it was already current
        """
        if self.dataset is not None and self.dataset.source == dataset.source:
            return False

        grid = dataset.grid
        low_value, high_value = default_contour_range(grid)
        stride = min(
            default_stride(grid.num_rows, grid.num_columns),
            max_stride(grid.num_rows, grid.num_columns),
        )
        self.settings = self._validated(
            low_value=low_value, high_value=high_value, stride=stride
        )
        self.dataset = dataset
        self.layout = compute_layout(grid, depth_scale=self.settings.depth_scale)
        self.contours_dirty = True
        self.mesh_dirty = True
        return True

    def update(self, **changes: Any) -> None:
        """Apply setting changes and flag what needs regenerating.

        Raises:
            pydantic.ValidationError: If a value is out of range
        """
        updated = self._validated(**changes)
        changed = {
            name
            for name in changes
            if getattr(updated, name) != getattr(self.settings, name)
        }
        self.settings = updated

        if "depth_scale" in changed and self.grid is not None:
            self.layout = compute_layout(self.grid, depth_scale=updated.depth_scale)
        if changed & _CONTOUR_FIELDS:
            self.contours_dirty = True
        if changed & _MESH_FIELDS:
            self.mesh_dirty = True

    def contours(self) -> tuple[ContourLevel, ...]:
        """Current contour levels, regenerated only when flagged dirty."""
        grid, layout = self._require_grid()
        if self.contours_dirty:
            self._contours = extract_contours(
                grid, self.settings.contour_request(), layout
            )
            self.contours_dirty = False
        return self._contours

    def segments(self) -> Iterator[Segment]:
        color = self.settings.contour_color
        return (s for contour in self.contours() for s in contour.segments(color))

    def mesh(self) -> tuple[MeshStrip, ...]:
        """Current mesh strips, regenerated only when flagged dirty."""
        grid, layout = self._require_grid()
        if self.mesh_dirty:
            self._mesh = build_mesh(
                grid,
                layout,
                self.settings.low_color,
                self.settings.high_color,
                self.settings.stride,
            )
            self.mesh_dirty = False
        return self._mesh

    def marker(self) -> Point3D:
        grid, layout = self._require_grid()
        return peak_marker(grid, layout)

    def _require_grid(self) -> tuple[ElevationGrid, DisplayLayout]:
        if self.grid is None or self.layout is None:
            raise GridUnavailableError("No elevation grid loaded")
        return self.grid, self.layout

    def _validated(self, **changes: Any) -> ViewSettings:
        return ViewSettings.model_validate({**self.settings.model_dump(), **changes})
