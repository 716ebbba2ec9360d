"""
Geometry module.

Canonical geometry extraction (centre, bounding box, radius, 2D path) and
the slicing / offset / tessellation helpers used by the toolpath
generators.
"""

from cam_core.geometry.extractor import BoundingBox, Geometry, extract

__all__ = ["BoundingBox", "Geometry", "extract"]
