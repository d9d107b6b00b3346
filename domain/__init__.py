"""Páramo Resistance Domain Layer.

This package contains the core logic organized by bounded contexts:
- resistance: elevation bands, cost reclassification, raster ports
"""

from domain import resistance

__all__ = ["resistance"]
