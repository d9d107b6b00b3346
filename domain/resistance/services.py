"""Resistance Bounded Context - Domain Services.

Pure domain logic for turning elevation into cost for one elevation range.
NO I/O operations - rasters are read and written by infrastructure adapters
under `src/infrastructure/raster/` via domain ports.

Cost scheme for a range [lower, upper] (transition width 100):

    in range                              1
    above: (upper, +100], (+100, +200]    2, 4
    above: beyond +200, per 100 m step    7, 10, 13, ...
    below: [-100, lower), [-200, -100),
           [-300, -200)                   2, 4, 6
    below: beyond -300, per 100 m step    9, 12, 15, ...

The near bands are produced by a moving boundary that advances one
transition width at a time until it would pass the cutoff (+200 above,
-300 below). The tail continues from wherever that boundary stopped, in
fixed 100 m steps, up to the highest (down to the lowest) elevation present.
Tail boundaries are generated with the same loop conditions and arithmetic
as a cell-by-cell overwrite would use, and each cell is then placed on that
ladder with a single ``searchsorted`` pass.
"""

from __future__ import annotations

import logging
from typing import NamedTuple

import numpy as np
from numpy.typing import NDArray

from domain.resistance.value_objects import CostGrid, ElevationGrid, ElevationRange

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
TRANSITION_WIDTH = 100.0  # Width of each near band
TAIL_STEP = 100.0  # Width of each tail step, independent of TRANSITION_WIDTH
MAX_TAIL_STEPS = 100_000  # 10 000 km of relief at the default step

ABOVE_NEAR_CUTOFF = 200.0  # Near bands above stop at upper + 200
BELOW_NEAR_CUTOFF = 300.0  # Near bands below stop at lower - 300 (asymmetric)

IN_RANGE_COST = 1
NEAR_START_COST = 2
NEAR_COST_INCREMENT = 2
ABOVE_TAIL_START_COST = 7
BELOW_TAIL_START_COST = 9
TAIL_COST_INCREMENT = 3


class NearBand(NamedTuple):
    """One near band. Above the range it is (lower, upper]; below, [lower, upper)."""

    lower: float
    upper: float
    cost: int


# ---------------------------------------------------------------------------
# Near bands
# ---------------------------------------------------------------------------
def above_near_bands(
    upper_limit: float, transition_width: float = TRANSITION_WIDTH
) -> tuple[tuple[NearBand, ...], float]:
    """Near bands above the range and the boundary where the tail starts.

    Args:
        upper_limit: Top of the elevation range
        transition_width: Width of each band

    Returns:
        (bands ordered upward, tail start boundary)
    """
    cutoff = upper_limit + ABOVE_NEAR_CUTOFF
    boundary = upper_limit
    cost = NEAR_START_COST
    bands: list[NearBand] = []
    while boundary + transition_width <= cutoff:
        bands.append(NearBand(boundary, boundary + transition_width, cost))
        cost += NEAR_COST_INCREMENT
        boundary += transition_width
    return tuple(bands), boundary


def below_near_bands(
    lower_limit: float, transition_width: float = TRANSITION_WIDTH
) -> tuple[tuple[NearBand, ...], float]:
    """Near bands below the range and the boundary where the tail starts.

    Returns:
        (bands ordered downward, tail start boundary)
    """
    cutoff = lower_limit - BELOW_NEAR_CUTOFF
    boundary = lower_limit
    cost = NEAR_START_COST
    bands: list[NearBand] = []
    while boundary - transition_width >= cutoff:
        bands.append(NearBand(boundary - transition_width, boundary, cost))
        cost += NEAR_COST_INCREMENT
        boundary -= transition_width
    return tuple(bands), boundary


# ---------------------------------------------------------------------------
# Tail ladders
# ---------------------------------------------------------------------------
def _check_ladder(
    thresholds: list[float], boundary: float, following: float, limit: float
) -> None:
    if following == boundary:
        raise ValueError(
            f"Tail step does not move boundary {boundary!r} towards {limit!r}"
        )
    if len(thresholds) > MAX_TAIL_STEPS:
        raise ValueError(
            f"Tail from {thresholds[0]!r} to {limit!r} exceeds {MAX_TAIL_STEPS} steps"
        )


def above_tail_thresholds(
    start: float, max_elevation: float, step: float = TAIL_STEP
) -> NDArray[np.float64]:
    """Ascending tail boundaries from ``start`` while they stay <= max_elevation.

    Raises:
        ValueError: If the ladder would exceed MAX_TAIL_STEPS or the step no
            longer moves the boundary (elevations too large for the step)
    """
    thresholds: list[float] = []
    boundary = start
    while boundary <= max_elevation:
        thresholds.append(boundary)
        _check_ladder(thresholds, boundary, boundary + step, max_elevation)
        boundary += step
    return np.asarray(thresholds, dtype=np.float64)


def below_tail_thresholds(
    start: float, min_elevation: float, step: float = TAIL_STEP
) -> NDArray[np.float64]:
    """Descending tail boundaries from ``start`` while they stay >= min_elevation.

    Raises:
        ValueError: Same conditions as above_tail_thresholds
    """
    thresholds: list[float] = []
    boundary = start
    while boundary >= min_elevation:
        thresholds.append(boundary)
        _check_ladder(thresholds, boundary, boundary - step, min_elevation)
        boundary -= step
    return np.asarray(thresholds, dtype=np.float64)


def _above_tail_cost(
    elevation: NDArray[np.float64], thresholds: NDArray[np.float64]
) -> tuple[NDArray[np.bool_], NDArray[np.float64]]:
    # Thresholds strictly below each cell; a cell above k of them keeps the
    # cost of the k-th step.
    exceeded = np.searchsorted(thresholds, elevation, side="left")
    mask = exceeded > 0
    cost = ABOVE_TAIL_START_COST + TAIL_COST_INCREMENT * (exceeded - 1)
    return mask, cost


def _below_tail_cost(
    elevation: NDArray[np.float64], thresholds: NDArray[np.float64]
) -> tuple[NDArray[np.bool_], NDArray[np.float64]]:
    ascending = thresholds[::-1]
    # Thresholds strictly above each cell
    undercut = len(ascending) - np.searchsorted(ascending, elevation, side="right")
    mask = undercut > 0
    cost = BELOW_TAIL_START_COST + TAIL_COST_INCREMENT * (undercut - 1)
    return mask, cost


# ---------------------------------------------------------------------------
# Main Service: reclassify
# ---------------------------------------------------------------------------
def reclassify(
    grid: ElevationGrid,
    elevation_range: ElevationRange,
    transition_width: float = TRANSITION_WIDTH,
) -> CostGrid:
    """Reclassify elevation into resistance cost for one elevation range.

    Every cell's cost depends only on its own elevation and the range.
    NoData cells stay NoData. A grid that is entirely NoData yields an
    entirely NoData cost grid instead of an error.

    Args:
        grid: Elevation grid (read-only)
        elevation_range: The band that costs 1
        transition_width: Width of each near band (default 100)

    Returns:
        CostGrid with the grid's shape and georeferencing

    Raises:
        ValueError: If transition_width is not positive, or the elevation
            span needs more than MAX_TAIL_STEPS tail steps

    Example:
        >>> cost = reclassify(grid, ElevationRange.of(2000, 2700))
        >>> cost.value_counts()
        {1: 5120, 2: 830, 4: 790, 7: 402, ...}
    """
    if not transition_width > 0:
        raise ValueError("transition_width must be positive")

    if grid.is_all_nodata():
        logger.debug("Range %s: grid is all NoData, skipping", elevation_range.label)
        return CostGrid.nodata_like(grid, elevation_range)

    elevation = grid.data
    lower = elevation_range.lower_limit
    upper = elevation_range.upper_limit
    valid = ~np.isnan(elevation)
    cost = np.full(elevation.shape, np.nan, dtype=np.float32)

    # In-range first; everything after touches strictly greater or lesser cells
    cost[valid & (elevation >= lower) & (elevation <= upper)] = IN_RANGE_COST

    # --- above ---
    bands, tail_start = above_near_bands(upper, transition_width)
    for band in bands:
        cost[valid & (elevation > band.lower) & (elevation <= band.upper)] = band.cost

    thresholds = above_tail_thresholds(tail_start, grid.valid_max())
    if thresholds.size:
        above = valid & (elevation > tail_start)
        mask, tail_cost = _above_tail_cost(elevation[above], thresholds)
        cells = cost[above]
        cells[mask] = tail_cost[mask]
        cost[above] = cells

    # --- below ---
    bands, tail_start = below_near_bands(lower, transition_width)
    for band in bands:
        cost[valid & (elevation >= band.lower) & (elevation < band.upper)] = band.cost

    thresholds = below_tail_thresholds(tail_start, grid.valid_min())
    if thresholds.size:
        below = valid & (elevation < tail_start)
        mask, tail_cost = _below_tail_cost(elevation[below], thresholds)
        cells = cost[below]
        cells[mask] = tail_cost[mask]
        cost[below] = cells

    result = CostGrid.from_elevation(grid, elevation_range, cost)
    logger.debug("Range %s: cost counts %s", elevation_range.label, result.value_counts())
    return result
