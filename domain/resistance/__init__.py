"""Resistance Bounded Context.

Turns elevation into resistance to movement for high-Andean species:
- Value Objects: ElevationGrid, ElevationRange, CostGrid
- Services: reclassify (elevation -> cost for one range)
- Catalogue: PARAMO_RANGES, cost_raster_name
"""
