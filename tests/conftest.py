"""Root pytest configuration for all tests.

Provides grid builders and raster file factories shared by the domain,
infrastructure and application test packages.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from domain.resistance.value_objects import ElevationGrid, ElevationRange
from tests.conftest_utils import elevation_grid, write_ascii_grid


@pytest.fixture
def make_grid() -> Callable[..., ElevationGrid]:
    """Factory fixture: ``make_grid([[2050, 2699]])``."""
    return elevation_grid


@pytest.fixture
def scenario_range() -> ElevationRange:
    return ElevationRange.of(2000, 2700)


@pytest.fixture
def scenario_grid() -> ElevationGrid:
    """Two rows covering every band type for range (2000, 2700)."""
    return elevation_grid([[2050, 2699, 2701], [2850, 3950, 1200]])


@pytest.fixture
def ascii_dem(tmp_path: Path) -> Path:
    """Small ESRI ASCII DEM with one NoData cell."""
    return write_ascii_grid(
        tmp_path / "dem.asc",
        [
            [2050, 2699, 2701, None],
            [2850, 3950, 1200, 3000],
            [2400, 2600, 4500, 1800],
        ],
    )
