"""Fixed elevation bands and output naming.

The 22 ranges span the Andean forest line to the superpáramo: each band is
700 m wide and starts 100 m above its predecessor, so neighbours overlap.
"""

from __future__ import annotations

from domain.resistance.value_objects import ElevationRange

# CRS assigned to the ASCII-grid DEM after loading (the .asc carries none)
WGS84_LONGLAT = "+proj=longlat +datum=WGS84 +no_defs"

COST_RASTER_PREFIX = "RC_"
COST_RASTER_SUFFIX = ".tif"

PARAMO_RANGES: tuple[ElevationRange, ...] = (
    ElevationRange.of(2000, 2700),
    ElevationRange.of(2100, 2800),
    ElevationRange.of(2200, 2900),
    ElevationRange.of(2300, 3000),
    ElevationRange.of(2400, 3100),
    ElevationRange.of(2500, 3200),
    ElevationRange.of(2600, 3300),
    ElevationRange.of(2700, 3400),
    ElevationRange.of(2800, 3500),
    ElevationRange.of(2900, 3600),
    ElevationRange.of(3000, 3700),
    ElevationRange.of(3100, 3800),
    ElevationRange.of(3200, 3900),
    ElevationRange.of(3300, 4000),
    ElevationRange.of(3400, 4100),
    ElevationRange.of(3500, 4200),
    ElevationRange.of(3600, 4300),
    ElevationRange.of(3700, 4400),
    ElevationRange.of(3800, 4500),
    ElevationRange.of(3900, 4600),
    ElevationRange.of(4000, 4700),
    ElevationRange.of(4100, 4800),
)


def cost_raster_name(elevation_range: ElevationRange) -> str:
    """File name for a range's cost raster, e.g. ``RC_2100_2800.tif``."""
    return f"{COST_RASTER_PREFIX}{elevation_range.label}{COST_RASTER_SUFFIX}"
