"""Z-level slicing, tool offset and tessellation helpers.

These are the numeric building blocks shared by every primitive
generator and by the component assembler.  Point lists are ``(N, 2)``
float arrays; closed paths repeat their first point as the last row.

Z-levels
--------
For a solid whose top is at ``top`` and whose vertical extent is
``extent``, the cut depth is ``cut = min(depth, extent)`` and the levels
are::

    top - min(k * stepdown, cut)        k = 1 .. ceil(cut / stepdown)

so the last step is clipped to the remaining material and the final
level sits exactly at ``top - cut``, never below the solid.

Offset
------
``outside`` grows the section by the tool radius, ``inside`` shrinks it,
``center`` leaves it alone.  Callers skip the level when the result is
not positive.
"""

from __future__ import annotations

import logging
import math

import numpy as np
from shapely.geometry import Polygon as ShapelyPolygon
from shapely.geometry.polygon import orient as shapely_orient

from cam_core.configs.loader import MillingDirection, OffsetMode

logger = logging.getLogger(__name__)

MIN_SEGMENTS = 12
_EPS = 1e-9


# ---------------------------------------------------------------------------
# Z-levels
# ---------------------------------------------------------------------------


def cut_depth(depth: float, extent: float) -> float:
    """Vertical distance actually machined: ``min(depth, extent)``."""
    return max(0.0, min(depth, extent))


def z_levels(top: float, extent: float, depth: float, stepdown: float) -> list[float]:
    """Cutting heights from just below *top* down to ``top - cut``.

    Parameters
    ----------
    top : float
        Highest Z of the material being cut.
    extent : float
        Vertical size of the solid (height, diameter ...).
    depth : float
        Requested cut depth.
    stepdown : float
        Depth per level (> 0).

    Returns
    -------
    list[float]
        Strictly decreasing Z values; empty when nothing is cut.

    Raises
    ------
    ValueError
        If *stepdown* is not positive.
    """
    if stepdown <= 0:
        raise ValueError(f"stepdown must be > 0, got {stepdown}")
    cut = cut_depth(depth, extent)
    if cut <= 0:
        return []
    # Tolerate float noise so that 10/5 is 2 levels, not 3.
    count = math.ceil(cut / stepdown - _EPS)
    return [top - min(k * stepdown, cut) for k in range(1, count + 1)]


# ---------------------------------------------------------------------------
# Offset
# ---------------------------------------------------------------------------


def offset_distance(tool_diameter: float, mode: OffsetMode) -> float:
    """Signed distance to grow a section by (negative shrinks)."""
    if mode is OffsetMode.OUTSIDE:
        return tool_diameter / 2.0
    if mode is OffsetMode.INSIDE:
        return -tool_diameter / 2.0
    return 0.0


def effective_size(nominal: float, tool_diameter: float, mode: OffsetMode) -> float:
    """Nominal radius (or half-width) after applying the tool offset."""
    return nominal + offset_distance(tool_diameter, mode)


def sphere_section_radius(radius: float, h: float) -> float:
    """Radius of a sphere's cross-section at distance *h* from its centre.

    ``r(h) = sqrt(R**2 - h**2)``; 0 at or beyond the poles.
    """
    if abs(h) >= radius:
        return 0.0
    return math.sqrt(radius * radius - h * h)


def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


# ---------------------------------------------------------------------------
# Tessellation
# ---------------------------------------------------------------------------


def segment_count(rx: float, ry: float | None = None) -> int:
    """Segments for a curve of the given radii: ``max(12, ceil(pi*(rx+ry)))``."""
    ry = rx if ry is None else ry
    return max(MIN_SEGMENTS, math.ceil(math.pi * (abs(rx) + abs(ry))))


def ellipse_points(
    cx: float,
    cy: float,
    rx: float,
    ry: float,
    start: float = 0.0,
    sweep: float = 2.0 * math.pi,
) -> np.ndarray:
    """Points along an ellipse, counter-clockwise from angle *start*.

    A full sweep returns a closed path (last row == first row); a
    partial sweep returns an open path including both end points.
    """
    n = segment_count(rx, ry)
    angles = start + np.linspace(0.0, sweep, n + 1)
    pts = np.column_stack((cx + rx * np.cos(angles), cy + ry * np.sin(angles)))
    if math.isclose(abs(sweep), 2.0 * math.pi):
        pts[-1] = pts[0]
    return pts


def circle_points(cx: float, cy: float, r: float) -> np.ndarray:
    return ellipse_points(cx, cy, r, r)


def regular_polygon(
    cx: float,
    cy: float,
    radius: float,
    sides: int,
    rotation: float = 0.0,
) -> np.ndarray:
    """Closed regular polygon (``sides + 1`` rows), first vertex at *rotation*."""
    angles = rotation + np.arange(sides + 1) * (2.0 * math.pi / sides)
    pts = np.column_stack((cx + radius * np.cos(angles), cy + radius * np.sin(angles)))
    pts[-1] = pts[0]
    return pts


def rectangle_points(cx: float, cy: float, width: float, height: float) -> np.ndarray:
    """Closed counter-clockwise rectangle starting at the lower-left corner."""
    hw, hh = width / 2.0, height / 2.0
    return np.array([
        [cx - hw, cy - hh],
        [cx + hw, cy - hh],
        [cx + hw, cy + hh],
        [cx - hw, cy + hh],
        [cx - hw, cy - hh],
    ])


def stadium_points(
    cx: float,
    cy: float,
    half_length: float,
    radius: float,
    axis: str = "x",
) -> np.ndarray:
    """Closed stadium (slot) outline: straight sides joined by half circles.

    *half_length* is half the distance between the two arc centres,
    measured along *axis* (``"x"`` or ``"y"``).
    """
    n = max(MIN_SEGMENTS // 2, segment_count(radius) // 2)
    right = np.linspace(-math.pi / 2, math.pi / 2, n + 1)
    left = np.linspace(math.pi / 2, 3 * math.pi / 2, n + 1)
    arc_r = np.column_stack((half_length + radius * np.cos(right), radius * np.sin(right)))
    arc_l = np.column_stack((-half_length + radius * np.cos(left), radius * np.sin(left)))
    pts = drop_repeats(np.vstack((arc_r, arc_l, arc_r[:1])))
    if axis == "y":
        pts = np.column_stack((-pts[:, 1], pts[:, 0]))
    return pts + np.array([cx, cy])


def drop_repeats(points: np.ndarray) -> np.ndarray:
    """Remove consecutive duplicate points."""
    points = np.asarray(points, dtype=float)
    if len(points) < 2:
        return points
    keep = np.any(np.abs(np.diff(points, axis=0)) > _EPS, axis=1)
    return np.vstack((points[:1], points[1:][keep]))


def close_path(points: np.ndarray) -> np.ndarray:
    """Append the first point when the path is not already closed."""
    points = np.asarray(points, dtype=float)
    if len(points) and not np.allclose(points[0], points[-1]):
        points = np.vstack((points, points[:1]))
    return points


def orient_path(points: np.ndarray, direction: MillingDirection) -> np.ndarray:
    """Apply milling direction by reversing the point order for conventional."""
    if direction is MillingDirection.CONVENTIONAL:
        return points[::-1].copy()
    return points


# ---------------------------------------------------------------------------
# Polygon offset
# ---------------------------------------------------------------------------


def offset_polygon(points: np.ndarray, distance: float) -> np.ndarray | None:
    """Offset a closed polygon outline by *distance* (negative shrinks).

    Uses a mitred shapely buffer so straight edges stay straight and
    corners stay sharp.  The result is counter-clockwise and closed.

    Returns
    -------
    np.ndarray | None
        Offset outline, or ``None`` when the polygon is degenerate or
        collapses (inside offset larger than its inradius).
    """
    pts = np.asarray(points, dtype=float)
    if len(pts) < 3:
        return None
    poly = ShapelyPolygon(pts)
    if not poly.is_valid or poly.area <= _EPS:
        logger.debug("Polygon offset skipped: degenerate outline")
        return None
    if distance == 0:
        return close_path(np.asarray(shapely_orient(poly, 1.0).exterior.coords))

    grown = poly.buffer(distance, join_style="mitre", mitre_limit=10.0)
    if grown.is_empty or grown.area <= _EPS:
        return None
    if grown.geom_type == "MultiPolygon":
        # A shrink that splits the outline: keep the largest piece.
        grown = max(grown.geoms, key=lambda g: g.area)
    return close_path(np.asarray(shapely_orient(grown, 1.0).exterior.coords))
