"""Resistance Bounded Context - Error Hierarchy.

Custom exceptions for loading elevation rasters and writing cost rasters.
Grids that are entirely NoData are NOT an error here: the batch driver
short-circuits them to NoData cost rasters.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from domain.resistance.value_objects import ElevationRange


class ResistanceError(Exception):
    """Base error for resistance (cost raster) operations."""


class InvalidRasterError(ResistanceError):
    """File is not a valid raster, wrong format, or corrupted."""


class MissingCRSError(ResistanceError):
    """Raster has no CRS and none was configured for assignment."""


class InvalidGeotransformError(ResistanceError):
    """Raster has invalid or missing geotransform."""


class InsufficientMemoryError(ResistanceError):
    """Operation requires more memory than allowed or available."""


class RasterWriteError(ResistanceError):
    """A cost raster could not be written.

    Attributes:
        elevation_range: The range whose output failed
    """

    def __init__(self, elevation_range: "ElevationRange", reason: str) -> None:
        self.elevation_range = elevation_range
        self.reason = reason
        super().__init__(
            f"Failed to write cost raster for range {elevation_range.label}: {reason}"
        )
