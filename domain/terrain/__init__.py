"""Terrain Bounded Context.

Responsible for elevation grids and the geometry derived from them:
- Value Objects: RasterHeader, ElevationGrid, ContourRequest, Segment
- Services: geodesic cell sizing, elevation-to-color mapping
- Contours: marching-squares extraction
- Display: scene layout, mesh strips, view state
"""
