"""Root pytest configuration for all tests.

Fixtures here build small grids in memory (domain tests) or write GridFloat
triples under tmp_path (infrastructure tests). Import paths follow
``pythonpath = [".", "src"]`` from pyproject.toml, so adapters are imported
as ``infrastructure.*`` and helpers as ``tests.conftest_utils``.
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from domain.terrain.value_objects import (
    DisplayLayout,
    ElevationGrid,
    TerrainDataset,
)
from tests.conftest_utils import make_grid, write_gridfloat


@pytest.fixture
def ramp_data() -> np.ndarray:
    """3 rows x 4 columns; elevation rises 10 m per column, west to east."""
    return np.tile(np.array([0.0, 10.0, 20.0, 30.0], dtype=np.float32), (3, 1))


@pytest.fixture
def ramp_grid(ramp_data) -> ElevationGrid:
    return make_grid(ramp_data)


@pytest.fixture
def unit_layout() -> DisplayLayout:
    """Layout for a 2x2 grid with unit cells and unit depth scale."""
    return DisplayLayout(
        num_rows=2, num_columns=2, cell_size_x=1.0, cell_size_y=1.0, depth_scale=1.0
    )


@pytest.fixture
def ramp_dataset(ramp_grid) -> TerrainDataset:
    return TerrainDataset(source="ramp", grid=ramp_grid)


@pytest.fixture
def gridfloat_prefix(tmp_path, ramp_data) -> Path:
    """A complete little-endian .prj/.hdr/.flt triple on disk."""
    return write_gridfloat(tmp_path, "n40w106", ramp_data)
