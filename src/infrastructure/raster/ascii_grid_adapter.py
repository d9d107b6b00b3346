"""ASCII grid adapter for ElevationRepository.

Implements loading of DEM rasters (ESRI ASCII grid, `.asc`) using rasterio
and returning a domain ElevationGrid Value Object. ASCII grids carry no CRS,
so the configured CRS definition is assigned after load.

Lifecycle (to avoid resource leaks):
1) Pre-flight file checks (existence, extension, symlink, size)
2) Enter rasterio.Env for GDAL/PROJ configuration
3) Open dataset with context manager (rasterio.open)
4) Read metadata and validate preconditions
5) Convert nodata -> np.nan; cast to float64
6) Build BoundingBox and positive resolution tuple
7) Exit contexts to release GDAL handles
8) Return ElevationGrid with the assigned CRS
"""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Any

import numpy as np
import rasterio
from affine import Affine
from pyproj import CRS
from pyproj.exceptions import CRSError
from rasterio.transform import array_bounds

from domain.resistance.errors import (
    InsufficientMemoryError,
    InvalidGeotransformError,
    InvalidRasterError,
    MissingCRSError,
)
from domain.resistance.ranges import WGS84_LONGLAT
from domain.resistance.value_objects import BoundingBox, ElevationGrid

# Module-level logger (reused across all calls)
logger = logging.getLogger(__name__)

# GDAL reads GeoTIFF DEMs the same way, so they are accepted too
SUPPORTED_SUFFIXES = (".asc", ".tif", ".tiff")

_BYTES_PER_CELL = 8  # float64

HIGH_NODATA_PCT = 80.0


def _crs_string(crs: Any) -> str | None:
    """Return a CRS as a string, or None when absent or empty."""
    if crs is None:
        return None
    try:
        text = crs.to_string()
    except AttributeError:
        text = str(crs)
    return text or None


def _same_crs(a: str, b: str) -> bool:
    """Check if two CRS strings name the same reference system.

    Compares parsed pyproj CRS objects (so EPSG:4326 matches a WGS84
    longlat proj string), then falls back to string comparison when
    either side does not parse.
    """
    if a == b:
        return True
    try:
        crs_a = CRS.from_user_input(a)
        crs_b = CRS.from_user_input(b)
    except CRSError:
        return False
    if crs_a.equals(crs_b, ignore_axis_order=True):
        return True
    epsg = crs_a.to_epsg()
    return epsg is not None and epsg == crs_b.to_epsg()


def _validate_transform(transform: Any) -> Affine:
    if not isinstance(transform, Affine):
        raise InvalidGeotransformError("Missing affine transform")
    if any(
        math.isnan(v) or math.isinf(v)
        for v in (
            transform.a,
            transform.b,
            transform.c,
            transform.d,
            transform.e,
            transform.f,
        )
    ):
        raise InvalidGeotransformError("Invalid (NaN/Inf) transform values")
    if transform.a == 0 or transform.e == 0:
        raise InvalidGeotransformError("Invalid transform scale (zero)")
    # Bounds and resolution are derived from a and e only
    if transform.b != 0 or transform.d != 0:
        raise InvalidGeotransformError("Rotated transforms are not supported")
    return transform


class AsciiGridElevationAdapter:
    """Infrastructure adapter for loading DEMs from ASCII grid files.

    Parameters
    ----------
    assign_crs: str | None
        CRS definition stamped on the loaded grid. Replaces any CRS the file
        carries. With None, the file's own CRS is required.
    max_bytes: int | None
        Optional memory budget for the resulting float64 grid (height*width*8).
        Exceeding it raises InsufficientMemoryError before any pixel is read.
    """

    def __init__(
        self, assign_crs: str | None = WGS84_LONGLAT, max_bytes: int | None = None
    ) -> None:
        self.assign_crs = assign_crs
        self.max_bytes = max_bytes

    def load_dem(self, file_path: Path | str) -> ElevationGrid:
        """Load DEM and return an ElevationGrid carrying the assigned CRS.

        A grid that is entirely NoData is returned (with a warning), not
        rejected: the batch driver turns it into NoData cost rasters.

        Raises:
            FileNotFoundError: If the file does not exist
            InvalidRasterError: Wrong extension, empty, symlink, multi-band
                or unreadable file
            InsufficientMemoryError: If the grid would exceed max_bytes
            InvalidGeotransformError: If the geotransform is missing or invalid
            MissingCRSError: If no CRS is available from file or configuration
        """
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(str(path))

        if path.suffix.lower() not in SUPPORTED_SUFFIXES:
            raise InvalidRasterError(f"Unsupported file extension: {path.suffix}")

        try:
            if path.is_symlink():
                raise InvalidRasterError("Symlinks are not permitted")
            st = path.stat()
            if st.st_size == 0:
                raise InvalidRasterError("Empty file")
        except OSError as e:
            # Log only filename, errno and strerror to avoid leaking absolute paths
            logger.error(
                "Failed to stat %s (errno=%s, strerror=%s)",
                path.name,
                getattr(e, "errno", "unknown"),
                getattr(e, "strerror", "unknown"),
            )
            raise

        try:
            with rasterio.Env():
                with rasterio.open(path) as src:
                    if src.count == 0:
                        raise InvalidRasterError("Empty or bandless file")
                    if src.count != 1:
                        raise InvalidRasterError(f"Expected 1 band, got {src.count}")

                    file_crs = _crs_string(src.crs)
                    if self.assign_crs is not None:
                        crs = self.assign_crs
                        if file_crs is not None and not _same_crs(file_crs, crs):
                            logger.warning(
                                "DEM %s: replacing file CRS %s with %s",
                                path.name,
                                file_crs,
                                crs,
                            )
                    elif file_crs is not None:
                        crs = file_crs
                    else:
                        raise MissingCRSError("Raster has no CRS defined")

                    transform = _validate_transform(src.transform)

                    if self.max_bytes is not None:
                        est_bytes = src.width * src.height * _BYTES_PER_CELL
                        if est_bytes > self.max_bytes:
                            raise InsufficientMemoryError(
                                f"Estimated grid size {est_bytes}B exceeds budget {self.max_bytes}B"
                            )

                    data = src.read(1, masked=True, out_dtype="float64")

                    # masked=True: NoData cells arrive masked, convert them to NaN
                    data = np.where(
                        np.ma.getmaskarray(data), np.nan, np.ma.getdata(data)
                    )

                    height, width = data.shape
                    minx, miny, maxx, maxy = array_bounds(height, width, transform)
                    try:
                        bounds = BoundingBox(
                            min_x=minx, min_y=miny, max_x=maxx, max_y=maxy
                        )
                    except ValueError as e:
                        raise InvalidGeotransformError(str(e)) from e
                    resolution: tuple[float, float] = (
                        abs(transform.a),
                        abs(transform.e),
                    )

                    try:
                        grid = ElevationGrid(
                            data=data,
                            bounds=bounds,
                            crs=crs,
                            resolution=resolution,
                            source_nodata=src.nodata,
                        )
                    except ValueError as e:
                        raise InvalidRasterError(str(e)) from e

        except PermissionError as e:
            # Re-raise with filename only to avoid leaking full path in logs
            raise PermissionError(path.name) from e
        except (rasterio.errors.RasterioIOError, rasterio.errors.RasterioError) as e:
            raise InvalidRasterError(f"Corrupted or invalid raster: {e}") from e
        except MemoryError as e:
            raise InsufficientMemoryError("Insufficient memory to load raster") from e

        nodata_pct = grid.nodata_ratio() * 100.0
        if grid.is_all_nodata():
            logger.warning("DEM %s: every cell is NoData", path.name)
        elif nodata_pct > HIGH_NODATA_PCT:
            logger.warning(
                "DEM %s: %.1f%% NoData pixels detected", path.name, nodata_pct
            )
        logger.info(
            "DEM %s: Loaded %dx%d grid (elevation %.1f to %.1f)",
            path.name,
            grid.shape[1],
            grid.shape[0],
            grid.valid_min(),
            grid.valid_max(),
        )
        return grid
