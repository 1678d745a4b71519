"""Infrastructure adapters for GridFloat rasters.

A GridFloat dataset is three files sharing a prefix:
- <prefix>.hdr: seven-line text header (dimensions, corner, cell size,
  no-data sentinel, byte order)
- <prefix>.flt: raw float32 records, row-major, north row first
- <prefix>.prj: optional key/value projection description
"""

from .adapter import GridFloatTerrainAdapter
from .rasterio_adapter import RasterioGridFloatAdapter

__all__ = ["GridFloatTerrainAdapter", "RasterioGridFloatAdapter"]
