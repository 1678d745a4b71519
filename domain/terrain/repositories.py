"""Domain Port for elevation dataset loading.

The domain never opens files itself. Adapters under
``src/infrastructure/gridfloat/`` satisfy this Protocol structurally.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from .value_objects import TerrainDataset


class TerrainRepository(Protocol):
    """Source of complete, validated TerrainDatasets.

    A load either returns a dataset whose grid is fully populated or raises a
    TerrainError; partial grids are never handed to the contour engine.
    """

    def load(self, prefix: Path | str) -> TerrainDataset:
        """Load the dataset stored under ``prefix`` (extension optional)."""
        ...
