"""Terrain Visualization Domain Layer.

This package contains the core logic organized by bounded context:
- terrain: GridFloat rasters, elevation statistics, contours, display geometry
"""

from domain import terrain

__all__ = ["terrain"]
