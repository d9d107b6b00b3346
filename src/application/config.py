"""Settings for a batch run.

Validated once at construction so a bad path or CRS fails before any raster
is opened.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from domain.resistance.ranges import PARAMO_RANGES, WGS84_LONGLAT
from domain.resistance.value_objects import ElevationRange, validate_crs
from infrastructure.raster.ascii_grid_adapter import SUPPORTED_SUFFIXES


class BatchSettings(BaseModel):
    """Inputs of one DEM -> cost rasters run."""

    dem_path: Path
    output_dir: Path
    crs: str = WGS84_LONGLAT  # Assigned to the DEM after load
    ranges: tuple[ElevationRange, ...] = PARAMO_RANGES
    max_bytes: int | None = Field(default=None, gt=0)

    model_config = ConfigDict(frozen=True)

    @field_validator("dem_path")
    @classmethod
    def check_suffix(cls, value: Path) -> Path:
        if value.suffix.lower() not in SUPPORTED_SUFFIXES:
            raise ValueError(
                f"DEM must be one of {', '.join(SUPPORTED_SUFFIXES)}, got {value.name}"
            )
        return value

    @field_validator("crs")
    @classmethod
    def check_crs(cls, value: str) -> str:
        return validate_crs(value)

    @field_validator("ranges")
    @classmethod
    def check_ranges(
        cls, value: tuple[ElevationRange, ...]
    ) -> tuple[ElevationRange, ...]:
        if not value:
            raise ValueError("At least one elevation range is required")
        return value
