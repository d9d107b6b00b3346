"""Resistance Bounded Context - Value Objects.

Immutable data structures for elevation inputs and cost outputs.
All validation occurs at construction time via Pydantic.

NoData is represented as NaN in every grid. The CRS is carried as opaque
metadata: it is validated as parseable but never interpreted, so bounds are
not restricted to longitude/latitude ranges.
"""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, model_validator
from pyproj import CRS
from pyproj.exceptions import CRSError


def _format_limit(value: float) -> str:
    """Render an elevation limit the way it appears in output names.

    Integral values drop the decimal point (2100.0 -> "2100").
    """
    if math.isfinite(value) and float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def _freeze(data: NDArray, dtype: type) -> NDArray:
    # Owned, contiguous copy so the caller's array is never flagged read-only
    frozen = np.array(data, dtype=dtype, copy=True, order="C")
    frozen.flags.writeable = False
    return frozen


def validate_crs(crs: str) -> str:
    """Check that ``crs`` is a CRS definition PROJ understands.

    Returns the string unchanged; the grid keeps the user's spelling.

    Raises:
        ValueError: If PROJ cannot parse the definition
    """
    if not crs or not crs.strip():
        raise ValueError("CRS must be a non-empty string")
    try:
        CRS.from_user_input(crs)
    except CRSError as e:
        raise ValueError(f"Invalid CRS definition {crs!r}: {e}") from e
    return crs


class BoundingBox(BaseModel):
    """Grid extent in the grid's own CRS (Value Object)."""

    min_x: float  # Western edge
    min_y: float  # Southern edge
    max_x: float  # Eastern edge
    max_y: float  # Northern edge

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_bounds(self) -> "BoundingBox":
        for name in ("min_x", "min_y", "max_x", "max_y"):
            if not math.isfinite(getattr(self, name)):
                raise ValueError(f"{name} must be finite, got {getattr(self, name)}")
        if not (self.min_x < self.max_x):
            raise ValueError(
                f"Invalid x ordering: min_x={self.min_x} >= max_x={self.max_x}"
            )
        if not (self.min_y < self.max_y):
            raise ValueError(
                f"Invalid y ordering: min_y={self.min_y} >= max_y={self.max_y}"
            )
        return self


class ElevationRange(BaseModel):
    """Closed elevation interval [lower_limit, upper_limit] (Value Object).

    Invariants:
        ER-1: both limits finite
        ER-2: lower_limit < upper_limit
    """

    lower_limit: float
    upper_limit: float

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_limits(self) -> "ElevationRange":
        if not (math.isfinite(self.lower_limit) and math.isfinite(self.upper_limit)):
            raise ValueError(
                f"Limits must be finite: ({self.lower_limit}, {self.upper_limit})"
            )
        if not (self.lower_limit < self.upper_limit):
            raise ValueError(
                f"lower_limit ({self.lower_limit}) must be below "
                f"upper_limit ({self.upper_limit})"
            )
        return self

    @classmethod
    def of(cls, lower_limit: float, upper_limit: float) -> "ElevationRange":
        """Positional shorthand: ``ElevationRange.of(2000, 2700)``."""
        return cls(lower_limit=lower_limit, upper_limit=upper_limit)

    @property
    def label(self) -> str:
        """``"<lower>_<upper>"``, e.g. ``"2100_2800"``."""
        return f"{_format_limit(self.lower_limit)}_{_format_limit(self.upper_limit)}"


class ElevationGrid(BaseModel):
    """Immutable elevation grid with georeferencing metadata (Value Object).

    The data array is copied and made read-only at construction time.
    Unlike most rasters consumed downstream, a grid that is 100% NoData is
    valid here; callers check ``is_all_nodata()`` and short-circuit.
    """

    data: NDArray[np.float64]  # 2D float64 array (height x width), NaN = NoData
    bounds: BoundingBox
    crs: str  # Opaque CRS definition, propagated to outputs
    resolution: tuple[float, float]  # (x_res, y_res) absolute values
    source_nodata: float | None = None  # NoData marker found in the source file

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @model_validator(mode="after")
    def validate_grid(self) -> "ElevationGrid":
        if self.data.ndim != 2:
            raise ValueError(f"Data must be 2D, got {self.data.ndim}D")
        if self.data.shape[0] == 0 or self.data.shape[1] == 0:
            raise ValueError(f"Data cannot be empty: {self.data.shape}")
        if not np.issubdtype(self.data.dtype, np.number):
            raise ValueError(f"Data must be numeric, got {self.data.dtype}")
        if np.isinf(self.data).any():
            raise ValueError("Data must not contain infinite elevations")
        if self.resolution[0] <= 0 or self.resolution[1] <= 0:
            raise ValueError(f"Resolution must be positive: {self.resolution}")
        validate_crs(self.crs)

        object.__setattr__(self, "data", _freeze(self.data, np.float64))
        return self

    @property
    def shape(self) -> tuple[int, int]:
        return self.data.shape

    def is_all_nodata(self) -> bool:
        return bool(np.isnan(self.data).all())

    def valid_min(self) -> float:
        """Lowest valid elevation (NaN if the grid is all NoData)."""
        if self.is_all_nodata():
            return float("nan")
        return float(np.nanmin(self.data))

    def valid_max(self) -> float:
        """Highest valid elevation (NaN if the grid is all NoData)."""
        if self.is_all_nodata():
            return float("nan")
        return float(np.nanmax(self.data))

    def nodata_ratio(self) -> float:
        """Return fraction of cells that are NoData (0.0 to 1.0)."""
        return float(np.isnan(self.data).mean())


class CostGrid(BaseModel):
    """Resistance values for one elevation range (Value Object).

    Shares shape and georeferencing with the ElevationGrid it was derived
    from. Created once per range and read-only afterwards.
    """

    data: NDArray[np.float32]  # 2D float32 array, NaN = NoData
    bounds: BoundingBox
    crs: str
    resolution: tuple[float, float]
    elevation_range: ElevationRange

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @model_validator(mode="after")
    def validate_grid(self) -> "CostGrid":
        if self.data.ndim != 2:
            raise ValueError(f"Data must be 2D, got {self.data.ndim}D")
        if self.resolution[0] <= 0 or self.resolution[1] <= 0:
            raise ValueError(f"Resolution must be positive: {self.resolution}")

        object.__setattr__(self, "data", _freeze(self.data, np.float32))
        return self

    @classmethod
    def from_elevation(
        cls, grid: ElevationGrid, elevation_range: ElevationRange, data: NDArray
    ) -> "CostGrid":
        """Wrap ``data`` with the georeferencing of ``grid``."""
        if data.shape != grid.shape:
            raise ValueError(
                f"Cost shape {data.shape} does not match elevation shape {grid.shape}"
            )
        return cls(
            data=data,
            bounds=grid.bounds,
            crs=grid.crs,
            resolution=grid.resolution,
            elevation_range=elevation_range,
        )

    @classmethod
    def nodata_like(
        cls, grid: ElevationGrid, elevation_range: ElevationRange
    ) -> "CostGrid":
        """All-NoData cost grid matching ``grid``."""
        return cls.from_elevation(
            grid, elevation_range, np.full(grid.shape, np.nan, dtype=np.float32)
        )

    @property
    def shape(self) -> tuple[int, int]:
        return self.data.shape

    def is_all_nodata(self) -> bool:
        return bool(np.isnan(self.data).all())

    def value_counts(self) -> dict[int, int]:
        """Return ``{cost: cell_count}`` over valid cells, sorted by cost."""
        valid = self.data[~np.isnan(self.data)]
        values, counts = np.unique(valid, return_counts=True)
        return {int(v): int(c) for v, c in zip(values, counts)}
