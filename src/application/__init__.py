"""Application Layer.

Wires infrastructure adapters to the reclassification service:
- BatchSettings: validated run configuration
- reclassify_ranges / run_batch: one cost raster per elevation range
"""

from .batch import BatchReport, RangeOutcome, reclassify_ranges, run_batch
from .config import BatchSettings

__all__ = [
    "BatchReport",
    "BatchSettings",
    "RangeOutcome",
    "reclassify_ranges",
    "run_batch",
]
