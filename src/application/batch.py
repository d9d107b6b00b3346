"""Batch driver: one cost raster per elevation range.

Ranges are independent: each is reclassified from the same read-only
elevation grid into a fresh CostGrid and handed to the sink. A write failure
is recorded for its range and does not stop the remaining ranges.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from domain.resistance.errors import RasterWriteError
from domain.resistance.repositories import CostRasterSink, ElevationRepository
from domain.resistance.services import reclassify
from domain.resistance.value_objects import CostGrid, ElevationGrid, ElevationRange
from infrastructure.raster import AsciiGridElevationAdapter, GeoTiffCostWriter

from .config import BatchSettings

logger = logging.getLogger(__name__)


class RangeOutcome(BaseModel):
    """Result of writing one range's cost raster."""

    elevation_range: ElevationRange
    path: Path | None = None
    error: str | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def ok(self) -> bool:
        return self.error is None


class BatchReport(BaseModel):
    """Per-range outcomes, in input order."""

    outcomes: tuple[RangeOutcome, ...]

    model_config = ConfigDict(frozen=True)

    @property
    def succeeded(self) -> tuple[RangeOutcome, ...]:
        return tuple(o for o in self.outcomes if o.ok)

    @property
    def failed(self) -> tuple[RangeOutcome, ...]:
        return tuple(o for o in self.outcomes if not o.ok)

    @property
    def ok(self) -> bool:
        return not self.failed


def reclassify_ranges(
    grid: ElevationGrid,
    ranges: Iterable[ElevationRange],
    sink: CostRasterSink,
) -> BatchReport:
    """Reclassify ``grid`` once per range and forward each result to ``sink``.

    If the grid holds no valid elevation at all, every range gets an
    all-NoData cost grid and the reclassifier is not called.

    Args:
        grid: Elevation grid shared (read-only) by every range
        ranges: Elevation ranges, processed in order
        sink: Output port receiving each CostGrid

    Returns:
        BatchReport with one outcome per range
    """
    all_nodata = grid.is_all_nodata()
    if all_nodata:
        logger.warning("Elevation grid is all NoData; writing NoData cost rasters")

    outcomes: list[RangeOutcome] = []
    for elevation_range in ranges:
        if all_nodata:
            cost_grid = CostGrid.nodata_like(grid, elevation_range)
        else:
            cost_grid = reclassify(grid, elevation_range)

        try:
            path = sink.write(cost_grid)
        except RasterWriteError as e:
            logger.error("Range %s: %s", elevation_range.label, e.reason)
            outcomes.append(RangeOutcome(elevation_range=elevation_range, error=str(e)))
            continue

        outcomes.append(RangeOutcome(elevation_range=elevation_range, path=path))

    report = BatchReport(outcomes=tuple(outcomes))
    logger.info(
        "Batch finished: %d written, %d failed",
        len(report.succeeded),
        len(report.failed),
    )
    return report


def run_batch(
    settings: BatchSettings,
    loader: ElevationRepository | None = None,
    sink: CostRasterSink | None = None,
) -> BatchReport:
    """Load the DEM named by ``settings`` and write every range's cost raster.

    Loader errors (missing file, invalid raster) propagate: without a grid
    there is nothing to reclassify.
    """
    if loader is None:
        loader = AsciiGridElevationAdapter(
            assign_crs=settings.crs, max_bytes=settings.max_bytes
        )
    if sink is None:
        sink = GeoTiffCostWriter(settings.output_dir)

    grid = loader.load_dem(settings.dem_path)
    return reclassify_ranges(grid, settings.ranges, sink)
