"""Parameter resolver -- fill unset machining parameters from geometry.

Settings coming from the shop defaults or a job file may leave ``depth``,
``stepdown``, ``plungerate`` and ``operation_type`` unset.  :func:`resolve`
derives them from the element before any toolpath is generated:

==================  ======================================================
``depth``           bounding-box depth of the element when positive
                    (sphere diameter, solid height, 2D shape depth), else 5
``stepdown``        2.0 when the largest dimension exceeds 100, 1.0 above
                    50, else 0.5
``plungerate``      ``round(feedrate * 0.4)``
``operation_type``  contour for circles and spheres, pocket for
                    rectangles, boxes and polygons, profile for lines,
                    else contour
==================  ======================================================

Values already present in the settings are never overwritten.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any

from cam_core.configs.loader import MachiningSettings, OperationType
from cam_core.elements.model import (
    Box,
    Circle,
    Element,
    Line,
    Polygon,
    Rectangle,
    Sphere,
)
from cam_core.geometry.extractor import extract

logger = logging.getLogger(__name__)

DEFAULT_DEPTH = 5.0
PLUNGE_FACTOR = 0.4
SMALL_PART_FACTOR = 2.0


def default_stepdown(max_dimension: float) -> float:
    """Stepdown for a part of the given size."""
    if max_dimension > 100:
        return 2.0
    if max_dimension > 50:
        return 1.0
    return 0.5


def recommended_plunge_rate(feedrate: float) -> float:
    """Plunge feed as a fixed fraction of the cutting feed."""
    return float(round(feedrate * PLUNGE_FACTOR))


def operation_type(element: Element) -> OperationType:
    """Suggested machining strategy for *element*."""
    if isinstance(element, (Circle, Sphere)):
        return OperationType.CONTOUR
    if isinstance(element, (Rectangle, Box, Polygon)):
        return OperationType.POCKET
    if isinstance(element, Line):
        return OperationType.PROFILE
    return OperationType.CONTOUR


def needs_smaller_tool(element: Element, settings: MachiningSettings) -> bool:
    """True when the element's footprint is under twice the tool diameter."""
    geo = extract(element)
    size = max(geo.bbox.width, geo.bbox.height, 2.0 * (geo.radius or 0.0))
    return size < SMALL_PART_FACTOR * settings.tool_diameter


def resolve(element: Element, settings: MachiningSettings) -> MachiningSettings:
    """Return *settings* with depth, stepdown, plunge rate and strategy filled in.

    Parameters
    ----------
    element : Element
        Element about to be machined.
    settings : MachiningSettings
        Job settings, possibly unresolved.

    Returns
    -------
    MachiningSettings
        Settings with :attr:`~MachiningSettings.is_resolved` true and an
        operation type.  The input is returned unchanged when nothing was
        missing.
    """
    if settings.is_resolved and settings.operation_type is not None:
        return settings

    geo = extract(element)
    updates: dict[str, Any] = {}
    if settings.depth is None:
        updates["depth"] = geo.bbox.depth if geo.bbox.depth > 0 else DEFAULT_DEPTH
    if settings.stepdown is None:
        updates["stepdown"] = default_stepdown(geo.bbox.max_dimension)
    if settings.plungerate is None:
        updates["plungerate"] = recommended_plunge_rate(settings.feedrate)
    if settings.operation_type is None:
        updates["operation_type"] = operation_type(element)

    logger.debug("Resolved %s for %s", updates, element.label)
    return settings.with_overrides(**updates)


# ---------------------------------------------------------------------------
# Cutting statistics
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CuttingStatistics:
    """Derived cutting figures for one set of settings.

    Attributes
    ----------
    chip_load : float
        Feed per tooth, mm/tooth.
    cutting_speed : float
        Surface speed, m/min.
    effective_stepover : float
        Radial engagement, mm.
    material_removal_rate : float
        mm³/min.
    """

    chip_load: float
    cutting_speed: float
    effective_stepover: float
    material_removal_rate: float

    def to_dict(self) -> dict[str, float]:
        return {
            "chipLoad": round(self.chip_load, 4),
            "cuttingSpeed": round(self.cutting_speed, 1),
            "effectiveStepover": round(self.effective_stepover, 3),
            "materialRemovalRate": round(self.material_removal_rate, 1),
        }


def cutting_statistics(settings: MachiningSettings) -> CuttingStatistics:
    """Chip load, surface speed, stepover and removal rate for *settings*."""
    d = settings.tool_diameter
    stepover = d * settings.stepover
    return CuttingStatistics(
        chip_load=settings.feedrate / (settings.spindle_speed * settings.flutes),
        cutting_speed=math.pi * d * settings.spindle_speed / 1000.0,
        effective_stepover=stepover,
        material_removal_rate=stepover * (settings.stepdown or 0.0) * settings.feedrate,
    )
