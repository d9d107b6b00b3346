"""Domain Port(s) for Resistance I/O.

Defines interfaces (Protocols) that infrastructure adapters must implement.
No concrete I/O here.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from .value_objects import CostGrid, ElevationGrid


class ElevationRepository(Protocol):
    """Port for obtaining elevation grids from external sources.

    Implementations live in infrastructure (e.g., ASCII grid adapter).
    """

    def load_dem(self, file_path: Path | str) -> ElevationGrid:
        """Load a DEM and return an ElevationGrid with its CRS assigned."""
        ...


class CostRasterSink(Protocol):
    """Port for persisting one cost grid per elevation range."""

    def write(self, cost_grid: CostGrid) -> Path:
        """Write ``cost_grid`` and return where it landed.

        Raises:
            RasterWriteError: If the output cannot be written
        """
        ...
