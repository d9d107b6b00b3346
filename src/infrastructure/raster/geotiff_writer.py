"""GeoTIFF writer for CostRasterSink.

Writes one `RC_<lower>_<upper>.tif` per elevation range, carrying the source
grid's georeferencing unchanged. Existing files of the same name are
overwritten. Each write is a single attempt; failures surface as
RasterWriteError so the caller can move on to the next range.
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import rasterio
from rasterio.crs import CRS
from rasterio.transform import from_origin

from domain.resistance.errors import RasterWriteError
from domain.resistance.ranges import cost_raster_name
from domain.resistance.value_objects import CostGrid

logger = logging.getLogger(__name__)

# NaN cells are written with this marker
COST_NODATA = -9999.0


class GeoTiffCostWriter:
    """Infrastructure adapter writing cost grids as single-band GeoTIFFs.

    Parameters
    ----------
    output_dir: Path | str
        Directory receiving the rasters; created on first write if missing.
    """

    def __init__(self, output_dir: Path | str) -> None:
        self.output_dir = Path(output_dir)

    def path_for(self, cost_grid: CostGrid) -> Path:
        return self.output_dir / cost_raster_name(cost_grid.elevation_range)

    def write(self, cost_grid: CostGrid) -> Path:
        """Write ``cost_grid`` and return the file path.

        Raises:
            RasterWriteError: If the directory or file cannot be written
        """
        path = self.path_for(cost_grid)
        height, width = cost_grid.shape
        bounds = cost_grid.bounds
        transform = from_origin(
            bounds.min_x, bounds.max_y, cost_grid.resolution[0], cost_grid.resolution[1]
        )
        data = np.where(np.isnan(cost_grid.data), np.float32(COST_NODATA), cost_grid.data)

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            with rasterio.Env():
                with rasterio.open(
                    path,
                    "w",
                    driver="GTiff",
                    height=height,
                    width=width,
                    count=1,
                    dtype="float32",
                    crs=CRS.from_user_input(cost_grid.crs),
                    transform=transform,
                    nodata=COST_NODATA,
                    compress="lzw",
                ) as dst:
                    dst.write(data.astype(np.float32), 1)
        except (rasterio.errors.RasterioError, rasterio.errors.CRSError, OSError) as e:
            logger.error("Cost raster %s: write failed (%s)", path.name, e)
            raise RasterWriteError(cost_grid.elevation_range, str(e)) from e

        logger.info("Cost raster %s: wrote %dx%d grid", path.name, width, height)
        return path
