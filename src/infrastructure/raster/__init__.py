"""Infrastructure adapters for the resistance bounded context.

This module provides the infrastructure layer implementations for raster
I/O: loading DEMs from ASCII grids and writing cost rasters as GeoTIFF.
"""

from .ascii_grid_adapter import AsciiGridElevationAdapter
from .geotiff_writer import COST_NODATA, GeoTiffCostWriter

__all__ = ["AsciiGridElevationAdapter", "COST_NODATA", "GeoTiffCostWriter"]
