"""Application and Infrastructure Layers.

Infrastructure adapters and application services that orchestrate domain logic.
These layers handle raster I/O, settings and the command line.
"""
