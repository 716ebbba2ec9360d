"""Geometry extractor -- any element to a canonical geometry view.

:func:`extract` is pure and total: every element kind, including
:class:`~cam_core.elements.model.UnknownElement`, yields a
:class:`Geometry`.  Nothing is cached; call it again after an element
changes.

Axis conventions
----------------
``width`` is the X size, ``height`` the Y size and ``depth`` the Z size of
the bounding box.  For solids the element ``z`` is the centre of the solid
(hemispheres: centre of the flat face).  Flat 2D shapes occupy
``[z - depth, z]``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable

import numpy as np

from cam_core.elements.model import (
    Arc,
    Box,
    Capsule,
    Circle,
    Component,
    Cone,
    Cylinder,
    Element,
    ElementModel,
    Ellipse,
    Ellipsoid,
    Hemisphere,
    Line,
    Mesh,
    Polygon,
    Prism,
    Pyramid,
    Rectangle,
    Sphere,
    Text,
    Torus,
    Triangle,
    UnknownElement,
)
from cam_core.geometry import slicing

FALLBACK_SIZE = 10.0

Point2D = tuple[float, float]


# ---------------------------------------------------------------------------
# Value types
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class BoundingBox:
    """Axis-aligned box in document millimetres."""

    min_x: float
    min_y: float
    min_z: float
    max_x: float
    max_y: float
    max_z: float

    @classmethod
    def around(
        cls, cx: float, cy: float, cz: float, width: float, height: float, depth: float,
    ) -> "BoundingBox":
        """Box of the given size centred on ``(cx, cy, cz)``."""
        return cls(
            cx - width / 2, cy - height / 2, cz - depth / 2,
            cx + width / 2, cy + height / 2, cz + depth / 2,
        )

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def depth(self) -> float:
        return self.max_z - self.min_z

    @property
    def center(self) -> tuple[float, float, float]:
        return (
            (self.min_x + self.max_x) / 2,
            (self.min_y + self.max_y) / 2,
            (self.min_z + self.max_z) / 2,
        )

    @property
    def max_dimension(self) -> float:
        return max(self.width, self.height, self.depth)

    def union(self, other: "BoundingBox") -> "BoundingBox":
        return BoundingBox(
            min(self.min_x, other.min_x), min(self.min_y, other.min_y),
            min(self.min_z, other.min_z), max(self.max_x, other.max_x),
            max(self.max_y, other.max_y), max(self.max_z, other.max_z),
        )


@dataclass(frozen=True, slots=True)
class Geometry:
    """Derived, read-only view of an element.

    Attributes
    ----------
    center : tuple[float, float, float]
        Element centre (document coordinates).
    bbox : BoundingBox
        Axis-aligned bounds.
    radius : float | None
        Nominal radius for round kinds.
    path : tuple[Point2D, ...] | None
        2D outline in the XY plane; closed paths repeat the first point.
    closed : bool
        Whether *path* is a closed outline.
    """

    center: tuple[float, float, float]
    bbox: BoundingBox
    radius: float | None = None
    path: tuple[Point2D, ...] | None = None
    closed: bool = False

    @property
    def top(self) -> float:
        return self.bbox.max_z

    @property
    def bottom(self) -> float:
        return self.bbox.min_z


def _as_path(points: np.ndarray) -> tuple[Point2D, ...]:
    return tuple((float(x), float(y)) for x, y in points)


# ---------------------------------------------------------------------------
# Per-kind extractors
# ---------------------------------------------------------------------------


def _flat(e: ElementModel, width: float, height: float, depth: float) -> BoundingBox:
    return BoundingBox(
        e.x - width / 2, e.y - height / 2, e.z - depth,
        e.x + width / 2, e.y + height / 2, e.z,
    )


def _rectangle(e: Rectangle) -> Geometry:
    return Geometry(
        center=(e.x, e.y, e.z),
        bbox=_flat(e, e.width, e.height, e.depth),
        path=_as_path(slicing.rectangle_points(e.x, e.y, e.width, e.height)),
        closed=True,
    )


def _circle(e: Circle) -> Geometry:
    return Geometry(
        center=(e.x, e.y, e.z),
        bbox=_flat(e, 2 * e.radius, 2 * e.radius, e.depth),
        radius=e.radius,
        path=_as_path(slicing.circle_points(e.x, e.y, e.radius)),
        closed=True,
    )


def _polygon(e: Polygon) -> Geometry:
    pts = slicing.regular_polygon(e.x, e.y, e.radius, e.sides)
    return Geometry(
        center=(e.x, e.y, e.z),
        bbox=_bbox_of_points(pts, e.z - e.depth, e.z),
        radius=e.radius,
        path=_as_path(pts),
        closed=True,
    )


def _line(e: Line) -> Geometry:
    bbox = BoundingBox(
        min(e.x1, e.x2), min(e.y1, e.y2), min(e.z1, e.z2) - e.depth,
        max(e.x1, e.x2), max(e.y1, e.y2), max(e.z1, e.z2),
    )
    return Geometry(
        center=((e.x1 + e.x2) / 2, (e.y1 + e.y2) / 2, (e.z1 + e.z2) / 2),
        bbox=bbox,
        path=((e.x1, e.y1), (e.x2, e.y2)),
        closed=False,
    )


def _arc(e: Arc) -> Geometry:
    start, sweep = sweep_radians(e.start_angle, e.end_angle)
    pts = slicing.ellipse_points(e.x, e.y, e.radius, e.radius, start, sweep)
    full = e.start_angle is None or e.end_angle is None
    return Geometry(
        center=(e.x, e.y, e.z),
        bbox=_flat(e, 2 * e.radius, 2 * e.radius, e.depth),
        radius=e.radius,
        path=_as_path(pts),
        closed=full,
    )


def _ellipse(e: Ellipse) -> Geometry:
    start, sweep = sweep_radians(e.start_angle, e.end_angle)
    pts = slicing.ellipse_points(e.x, e.y, e.rx, e.ry, start, sweep)
    full = e.start_angle is None or e.end_angle is None
    return Geometry(
        center=(e.x, e.y, e.z),
        bbox=_flat(e, 2 * e.rx, 2 * e.ry, e.depth),
        radius=max(e.rx, e.ry),
        path=_as_path(pts),
        closed=full,
    )


def _triangle(e: Triangle) -> Geometry:
    pts = triangle_points(e)
    return Geometry(
        center=(e.x, e.y, e.z),
        bbox=_bbox_of_points(pts, e.z - e.depth, e.z),
        path=_as_path(pts),
        closed=True,
    )


def _text(e: Text) -> Geometry:
    w, h = e.text_width, e.font_size
    return Geometry(
        center=(e.x, e.y, e.z),
        bbox=_flat(e, w, h, e.depth),
        path=_as_path(slicing.rectangle_points(e.x, e.y, w, h)),
        closed=True,
    )


def _box(e: Box) -> Geometry:
    w, h, d = e.dims
    return Geometry(
        center=(e.x, e.y, e.z),
        bbox=BoundingBox.around(e.x, e.y, e.z, w, h, d),
        path=_as_path(slicing.rectangle_points(e.x, e.y, w, h)),
        closed=True,
    )


def _sphere(e: Sphere) -> Geometry:
    d = 2 * e.radius
    return Geometry(
        center=(e.x, e.y, e.z),
        bbox=BoundingBox.around(e.x, e.y, e.z, d, d, d),
        radius=e.radius,
        path=_as_path(slicing.circle_points(e.x, e.y, e.radius)),
        closed=True,
    )


def _cylinder(e: Cylinder) -> Geometry:
    d = 2 * e.radius
    return Geometry(
        center=(e.x, e.y, e.z),
        bbox=BoundingBox.around(e.x, e.y, e.z, d, d, e.height),
        radius=e.radius,
        path=_as_path(slicing.circle_points(e.x, e.y, e.radius)),
        closed=True,
    )


def _cone(e: Cone) -> Geometry:
    d = 2 * e.r_base
    return Geometry(
        center=(e.x, e.y, e.z),
        bbox=BoundingBox.around(e.x, e.y, e.z, d, d, e.height),
        radius=e.r_base,
        path=_as_path(slicing.circle_points(e.x, e.y, e.r_base)),
        closed=True,
    )


def _torus(e: Torus) -> Geometry:
    outer = e.radius + e.tube
    return Geometry(
        center=(e.x, e.y, e.z),
        bbox=BoundingBox.around(e.x, e.y, e.z, 2 * outer, 2 * outer, 2 * e.tube),
        radius=e.radius,
        path=_as_path(slicing.circle_points(e.x, e.y, outer)),
        closed=True,
    )


def _pyramid(e: Pyramid) -> Geometry:
    bw, bd = e.base
    return Geometry(
        center=(e.x, e.y, e.z),
        bbox=BoundingBox.around(e.x, e.y, e.z, bw, bd, e.height),
        path=_as_path(slicing.rectangle_points(e.x, e.y, bw, bd)),
        closed=True,
    )


def _prism(e: Prism) -> Geometry:
    pts = slicing.regular_polygon(e.x, e.y, e.radius, e.sides)
    return Geometry(
        center=(e.x, e.y, e.z),
        bbox=_bbox_of_points(pts, e.z - e.height / 2, e.z + e.height / 2),
        radius=e.radius,
        path=_as_path(pts),
        closed=True,
    )


def _hemisphere(e: Hemisphere) -> Geometry:
    r = e.radius
    lo, hi = (e.z, e.z + r) if e.direction == "up" else (e.z - r, e.z)
    return Geometry(
        center=(e.x, e.y, e.z),
        bbox=BoundingBox(e.x - r, e.y - r, lo, e.x + r, e.y + r, hi),
        radius=r,
        path=_as_path(slicing.circle_points(e.x, e.y, r)),
        closed=True,
    )


def _ellipsoid(e: Ellipsoid) -> Geometry:
    return Geometry(
        center=(e.x, e.y, e.z),
        bbox=BoundingBox.around(
            e.x, e.y, e.z, 2 * e.radius_x, 2 * e.radius_y, 2 * e.radius_z,
        ),
        radius=max(e.radius_x, e.radius_y, e.radius_z),
        path=_as_path(slicing.ellipse_points(e.x, e.y, e.radius_x, e.radius_y)),
        closed=True,
    )


def _capsule(e: Capsule) -> Geometry:
    r = e.radius
    length = max(e.height, 2 * r)
    size = {"x": (length, 2 * r, 2 * r), "y": (2 * r, length, 2 * r), "z": (2 * r, 2 * r, length)}
    w, h, d = size[e.orientation]
    if e.orientation == "z":
        outline = slicing.circle_points(e.x, e.y, r)
    else:
        outline = slicing.stadium_points(e.x, e.y, e.half_body, r, axis=e.orientation)
    return Geometry(
        center=(e.x, e.y, e.z),
        bbox=BoundingBox.around(e.x, e.y, e.z, w, h, d),
        radius=r,
        path=_as_path(outline),
        closed=True,
    )


def _mesh(e: Mesh) -> Geometry:
    if not e.vertices:
        return _fallback(e, 0.0, 0.0, 0.0, 0.0)
    verts = np.asarray(e.vertices, dtype=float) + np.array([e.x, e.y, e.z])
    lo, hi = verts.min(axis=0), verts.max(axis=0)
    bbox = BoundingBox(*(float(v) for v in lo), *(float(v) for v in hi))
    return Geometry(center=(e.x, e.y, e.z), bbox=bbox)


def _component(e: Component) -> Geometry:
    if e.children:
        bbox = None
        for child in e.children:
            child_box = extract(child.moved(e.x, e.y, e.z)).bbox
            bbox = child_box if bbox is None else bbox.union(child_box)
    else:
        bbox = BoundingBox(e.x, e.y, e.z, e.x, e.y, e.z)

    # Explicit dimensions win, axis by axis.
    lo = [bbox.min_x, bbox.min_y, bbox.min_z]
    hi = [bbox.max_x, bbox.max_y, bbox.max_z]
    for axis, (centre, size) in enumerate(zip((e.x, e.y, e.z), (e.width, e.height, e.depth))):
        if size:
            lo[axis], hi[axis] = centre - size / 2, centre + size / 2
    bbox = BoundingBox(*lo, *hi)
    if not e.children and not (bbox.width or bbox.height or bbox.depth):
        return _fallback(e, 0.0, 0.0, 0.0, 0.0)
    return Geometry(center=(e.x, e.y, e.z), bbox=bbox)


def _unknown(e: UnknownElement) -> Geometry:
    width = e.number("width", "size")
    height = e.number("height") or width
    depth = e.number("depth", "thickness")
    radius = e.number("radius") or e.number("diameter") / 2
    return _fallback(e, width, height, depth, radius)


def _fallback(
    e: ElementModel, width: float, height: float, depth: float, radius: float,
) -> Geometry:
    if radius and not width:
        width = height = 2 * radius
    if not (width or height or depth):
        width = height = depth = FALLBACK_SIZE
    return Geometry(
        center=(e.x, e.y, e.z),
        bbox=BoundingBox.around(e.x, e.y, e.z, width, height, depth),
        radius=radius or None,
    )


def _bbox_of_points(pts: np.ndarray, z_lo: float, z_hi: float) -> BoundingBox:
    lo, hi = pts.min(axis=0), pts.max(axis=0)
    return BoundingBox(float(lo[0]), float(lo[1]), z_lo, float(hi[0]), float(hi[1]), z_hi)


_EXTRACTORS: dict[type, Callable[..., Geometry]] = {
    Rectangle: _rectangle,
    Circle: _circle,
    Polygon: _polygon,
    Line: _line,
    Arc: _arc,
    Ellipse: _ellipse,
    Triangle: _triangle,
    Text: _text,
    Box: _box,
    Sphere: _sphere,
    Cylinder: _cylinder,
    Cone: _cone,
    Torus: _torus,
    Pyramid: _pyramid,
    Prism: _prism,
    Hemisphere: _hemisphere,
    Ellipsoid: _ellipsoid,
    Capsule: _capsule,
    Mesh: _mesh,
    Component: _component,
    UnknownElement: _unknown,
}


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------


def sweep_radians(start_deg: float | None, end_deg: float | None) -> tuple[float, float]:
    """Start angle and CCW sweep (radians) for an arc given in degrees.

    Missing angles mean a full turn.  ``end < start`` wraps by +360°.
    """
    if start_deg is None or end_deg is None:
        return 0.0, 2.0 * math.pi
    if end_deg < start_deg:
        end_deg += 360.0
    return math.radians(start_deg), math.radians(end_deg - start_deg)


def triangle_points(e: Triangle) -> np.ndarray:
    """Closed triangle outline: explicit points, else equilateral of ``size``.

    The equilateral triangle is centred on the element with its apex at
    ``+Y``; ``size`` is the circumscribed diameter.
    """
    if e.points and len(e.points) >= 3:
        pts = np.asarray(e.points[:3], dtype=float)
    else:
        half = e.size / 2
        c, s = math.cos(math.pi / 6), math.sin(math.pi / 6)
        pts = np.array([
            [e.x, e.y + half],
            [e.x - half * c, e.y - half * s],
            [e.x + half * c, e.y - half * s],
        ])
    return slicing.close_path(pts)


def extract(element: Element) -> Geometry:
    """Canonical geometry for *element*.

    Parameters
    ----------
    element : Element
        Any element model.

    Returns
    -------
    Geometry
        Centre, bounding box and (where meaningful) radius and 2D path.
        Component bounding boxes are the union of their repositioned
        children unless all of ``width``/``height``/``depth`` are given.
    """
    return _EXTRACTORS[type(element)](element)
