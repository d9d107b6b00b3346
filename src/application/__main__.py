"""Command line: reclassify a DEM into one cost raster per páramo range.

    python -m application dem.asc -o cost_rasters/
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence

from pydantic import ValidationError

from domain.resistance.errors import ResistanceError
from domain.resistance.ranges import WGS84_LONGLAT

from .batch import run_batch
from .config import BatchSettings

log = logging.getLogger("paramo_cost.cli")

EXIT_OK = 0
EXIT_RANGE_FAILED = 1
EXIT_BAD_INPUT = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="paramo-cost",
        description="Write RC_<lower>_<upper>.tif cost rasters from an elevation grid",
    )
    parser.add_argument("dem", help="Elevation grid (.asc)")
    parser.add_argument(
        "-o", "--output-dir", default="cost_rasters", help="Directory for the rasters"
    )
    parser.add_argument(
        "--crs", default=WGS84_LONGLAT, help="CRS assigned to the DEM after loading"
    )
    parser.add_argument(
        "--max-bytes", type=int, default=None, help="Memory budget for the DEM grid"
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level, format="%(levelname)s │ %(name)s │ %(message)s"
    )

    try:
        settings = BatchSettings(
            dem_path=args.dem,
            output_dir=args.output_dir,
            crs=args.crs,
            max_bytes=args.max_bytes,
        )
    except ValidationError as e:
        log.error("Invalid settings: %s", e)
        return EXIT_BAD_INPUT

    try:
        report = run_batch(settings)
    except FileNotFoundError as e:
        log.error("DEM not found: %s", e)
        return EXIT_BAD_INPUT
    except ResistanceError as e:
        log.error("Cannot read DEM: %s", e)
        return EXIT_BAD_INPUT

    for outcome in report.failed:
        log.error("Range %s not written", outcome.elevation_range.label)
    return EXIT_OK if report.ok else EXIT_RANGE_FAILED


if __name__ == "__main__":
    sys.exit(main())
