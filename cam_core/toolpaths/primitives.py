"""Primitive toolpath generators -- one element to one Z-level operation.

Every generator follows the same recipe:

1. Find the top Z of the material and its vertical extent.
2. Slice it into Z-levels (:func:`cam_core.geometry.slicing.z_levels`);
   the last level sits exactly at ``top - min(depth, extent)``.
3. Compute the analytic cross-section at each level:

   * sphere, hemisphere, capsule caps -- ``r(h) = sqrt(R**2 - h**2)``
   * ellipsoid -- both radii scaled by ``sqrt(1 - (dz / rz)**2)``
   * cone, pyramid -- linear from the apex (0) to the base
   * torus -- outer and inner circle at ``R +/- sqrt(r**2 - dz**2)``
   * box, cylinder, prism, flat 2D shapes -- constant section

4. Apply the tool offset (``outside`` grows by D/2, ``inside`` shrinks).
   A section that collapses is kept as a skipped level with a comment.
5. Emit: rapid above the first point, plunge at the plunge rate, cut at
   the feed rate, retract clear of the level.  Round sections are one
   full-circle arc starting at ``(cx + r, cy)``; everything else is a
   polyline.  Conventional milling reverses the path (and flips arcs).

Flat 2D shapes are cut from their ``z`` down by their own ``depth``
(falling back to the job depth when they have none).  Components are
handed to :mod:`cam_core.toolpaths.assembler`.  Meshes and unknown kinds
are cut around their bounding box.
"""

from __future__ import annotations

import logging
import math
from typing import Callable

import numpy as np

from cam_core.configs.loader import MachiningSettings, MillingDirection
from cam_core.elements.model import (
    Arc,
    Box,
    Capsule,
    Circle,
    Component,
    Cone,
    Cylinder,
    Element,
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
from cam_core.gcode.dialects import GCodeError
from cam_core.gcode.generator import render_operations
from cam_core.geometry import slicing
from cam_core.geometry.extractor import Geometry, extract, sweep_radians, triangle_points
from cam_core.job_ir.operations import (
    ArcMove,
    Comment,
    Linear,
    Move,
    Rapid,
    ToolpathOperation,
    ZLevel,
)

logger = logging.getLogger(__name__)

CLEARANCE = 5.0
"""Height above the current level for approach rapids and retracts."""

Section = Callable[[float], ZLevel]


# ---------------------------------------------------------------------------
# Move builders
# ---------------------------------------------------------------------------


def _level_comment(z: float, **sizes: float) -> Comment:
    parts = [f"Z level {z:.3f}"]
    parts += [f"{name.replace('_', ' ')} {value:.3f}" for name, value in sizes.items()]
    return Comment(", ".join(parts))


def _skipped(z: float, reason: str) -> ZLevel:
    return ZLevel(
        z=z, moves=(Comment(f"Z level {z:.3f}: {reason}, skipping"),), skipped=True,
    )


def _retract(z: float) -> Rapid:
    return Rapid(z=z + CLEARANCE, comment="Retract")


def _approach(x: float, y: float, z: float, s: MachiningSettings) -> list[Move]:
    return [
        Rapid(x, y, z + CLEARANCE, comment="Move above start position"),
        Linear(z=z, feed=s.plungerate, comment="Plunge to cutting depth"),
    ]


def _circle_moves(cx: float, cy: float, r: float, z: float, s: MachiningSettings) -> list[Move]:
    sx = cx + r
    clockwise = s.direction is MillingDirection.CONVENTIONAL
    return _approach(sx, cy, z, s) + [
        ArcMove(sx, cy, -r, 0.0, clockwise=clockwise, feed=s.feedrate, comment="Full circle"),
    ]


def _path_moves(points: np.ndarray, z: float, s: MachiningSettings) -> list[Move]:
    pts = slicing.orient_path(np.asarray(points, dtype=float), s.direction)
    moves = _approach(float(pts[0, 0]), float(pts[0, 1]), z, s)
    moves += [Linear(float(x), float(y), feed=s.feedrate) for x, y in pts[1:]]
    return moves


# ---------------------------------------------------------------------------
# Section builders  (one ZLevel at height z)
# ---------------------------------------------------------------------------


def round_level(
    cx: float, cy: float, nominal: float, z: float, s: MachiningSettings,
) -> ZLevel:
    """One full-circle level of nominal radius *nominal* after tool offset."""
    r = slicing.effective_size(nominal, s.tool_diameter, s.offset)
    if r <= 0:
        return _skipped(z, "radius too small after offset")
    return ZLevel(
        z=z,
        moves=(_level_comment(z, radius=r), *_circle_moves(cx, cy, r, z, s), _retract(z)),
        size=r,
    )


def _outline_level(outline: np.ndarray, z: float, s: MachiningSettings) -> ZLevel:
    distance = slicing.offset_distance(s.tool_diameter, s.offset)
    pts = slicing.offset_polygon(outline, distance)
    if pts is None:
        return _skipped(z, "section too small after offset")
    return ZLevel(
        z=z, moves=(_level_comment(z), *_path_moves(pts, z, s), _retract(z)),
    )


def _ellipse_level(
    cx: float,
    cy: float,
    rx: float,
    ry: float,
    z: float,
    s: MachiningSettings,
    start: float = 0.0,
    sweep: float = 2.0 * math.pi,
) -> ZLevel:
    rx = slicing.effective_size(rx, s.tool_diameter, s.offset)
    ry = slicing.effective_size(ry, s.tool_diameter, s.offset)
    if rx <= 0 or ry <= 0:
        return _skipped(z, "radius too small after offset")
    pts = slicing.ellipse_points(cx, cy, rx, ry, start, sweep)
    return ZLevel(
        z=z,
        moves=(
            _level_comment(z, radius_x=rx, radius_y=ry),
            *_path_moves(pts, z, s),
            _retract(z),
        ),
        size=max(rx, ry),
    )


def sliced(
    label: str,
    top: float,
    extent: float,
    s: MachiningSettings,
    section: Section,
    notes: tuple[str, ...] = (),
) -> ToolpathOperation:
    """Operation whose levels are ``section(z)`` for every slicing height."""
    zs = slicing.z_levels(top, extent, s.depth, s.stepdown)
    if not zs:
        notes = notes + ("Nothing to cut: zero vertical extent",)
    levels = tuple(section(z) for z in zs)
    skipped = sum(lvl.skipped for lvl in levels)
    logger.debug("%s: %d level(s), %d skipped", label, len(levels), skipped)
    return ToolpathOperation(label=label, levels=levels, notes=notes)


def _flat_extent(depth: float, s: MachiningSettings) -> float:
    return depth if depth > 0 else s.depth


def describe(e: Element) -> str:
    """Operation label used as the block comment."""
    return f"{e.kind.capitalize()}: {e.label}, center ({e.x:.3f}, {e.y:.3f}, {e.z:.3f})"


# ---------------------------------------------------------------------------
# 2D shapes
# ---------------------------------------------------------------------------


def _rectangle(e: Rectangle, s: MachiningSettings, geo: Geometry) -> ToolpathOperation:
    outline = slicing.rectangle_points(e.x, e.y, e.width, e.height)
    return sliced(
        describe(e), e.z, _flat_extent(e.depth, s), s,
        lambda z: _outline_level(outline, z, s),
    )


def _circle(e: Circle, s: MachiningSettings, geo: Geometry) -> ToolpathOperation:
    return sliced(
        describe(e), e.z, _flat_extent(e.depth, s), s,
        lambda z: round_level(e.x, e.y, e.radius, z, s),
    )


def _polygon(e: Polygon, s: MachiningSettings, geo: Geometry) -> ToolpathOperation:
    outline = slicing.regular_polygon(e.x, e.y, e.radius, e.sides)
    return sliced(
        describe(e), e.z, _flat_extent(e.depth, s), s,
        lambda z: _outline_level(outline, z, s),
    )


def _line(e: Line, s: MachiningSettings, geo: Geometry) -> ToolpathOperation:
    path = np.array([[e.x1, e.y1], [e.x2, e.y2]])

    def section(z: float) -> ZLevel:
        return ZLevel(z=z, moves=(_level_comment(z), *_path_moves(path, z, s), _retract(z)))

    # Open path: the tool runs on the line itself, whatever the offset mode.
    return sliced(describe(e), geo.top, _flat_extent(e.depth, s), s, section)


def _arc(e: Arc, s: MachiningSettings, geo: Geometry) -> ToolpathOperation:
    if e.start_angle is None or e.end_angle is None:
        return sliced(
            describe(e), e.z, _flat_extent(e.depth, s), s,
            lambda z: round_level(e.x, e.y, e.radius, z, s),
        )

    start, sweep = sweep_radians(e.start_angle, e.end_angle)

    def section(z: float) -> ZLevel:
        r = slicing.effective_size(e.radius, s.tool_diameter, s.offset)
        if r <= 0:
            return _skipped(z, "radius too small after offset")
        p0 = (e.x + r * math.cos(start), e.y + r * math.sin(start))
        p1 = (e.x + r * math.cos(start + sweep), e.y + r * math.sin(start + sweep))
        clockwise = False
        if s.direction is MillingDirection.CONVENTIONAL:
            p0, p1, clockwise = p1, p0, True
        moves = _approach(p0[0], p0[1], z, s) + [
            ArcMove(
                p1[0], p1[1], e.x - p0[0], e.y - p0[1],
                clockwise=clockwise, feed=s.feedrate, comment="Arc",
            ),
        ]
        return ZLevel(
            z=z, moves=(_level_comment(z, radius=r), *moves, _retract(z)), size=r,
        )

    return sliced(describe(e), e.z, _flat_extent(e.depth, s), s, section)


def _ellipse(e: Ellipse, s: MachiningSettings, geo: Geometry) -> ToolpathOperation:
    start, sweep = sweep_radians(e.start_angle, e.end_angle)
    return sliced(
        describe(e), e.z, _flat_extent(e.depth, s), s,
        lambda z: _ellipse_level(e.x, e.y, e.rx, e.ry, z, s, start, sweep),
    )


def _triangle(e: Triangle, s: MachiningSettings, geo: Geometry) -> ToolpathOperation:
    outline = triangle_points(e)
    return sliced(
        describe(e), e.z, _flat_extent(e.depth, s), s,
        lambda z: _outline_level(outline, z, s),
    )


def _zigzag(
    cx: float, cy: float, width: float, height: float, s: MachiningSettings,
) -> list[Move]:
    """Serpentine fill rows inside a ``width`` x ``height`` rectangle."""
    spacing = min(s.tool_diameter, height / 3.0)
    x0 = cx - width / 2 + s.tool_radius
    x1 = cx + width / 2 - s.tool_radius
    if spacing <= 0 or x1 <= x0:
        return []
    y_top = cy + height / 2
    moves: list[Move] = []
    y = cy - height / 2 + spacing
    row = 0
    while y < y_top - 1e-9:
        a, b = (x0, x1) if row % 2 == 0 else (x1, x0)
        moves.append(Linear(a, y, feed=s.feedrate))
        moves.append(Linear(b, y, feed=s.feedrate))
        y += spacing
        row += 1
    return moves


def _text(e: Text, s: MachiningSettings, geo: Geometry) -> ToolpathOperation:
    w, h = e.text_width, e.font_size
    outline = slicing.rectangle_points(e.x, e.y, w, h)
    fill = _zigzag(e.x, e.y, w, h, s)

    def section(z: float) -> ZLevel:
        level = _outline_level(outline, z, s)
        if level.skipped:
            return level
        cut = level.moves[:-1]
        return ZLevel(z=z, moves=(*cut, Comment("Fill"), *fill, _retract(z)))

    return sliced(
        describe(e), e.z, _flat_extent(e.depth, s), s, section,
        notes=(f"Text {e.text!r} approximated by its bounding box",),
    )


# ---------------------------------------------------------------------------
# Solids
# ---------------------------------------------------------------------------


def _box(e: Box, s: MachiningSettings, geo: Geometry) -> ToolpathOperation:
    w, h, d = e.dims
    outline = slicing.rectangle_points(e.x, e.y, w, h)
    return sliced(
        describe(e), e.z + d / 2, d, s, lambda z: _outline_level(outline, z, s),
    )


def _sphere(e: Sphere, s: MachiningSettings, geo: Geometry) -> ToolpathOperation:
    r = e.radius

    def section(z: float) -> ZLevel:
        return round_level(e.x, e.y, slicing.sphere_section_radius(r, z - e.z), z, s)

    return sliced(describe(e), e.z + r, 2 * r, s, section)


def _cylinder(e: Cylinder, s: MachiningSettings, geo: Geometry) -> ToolpathOperation:
    return sliced(
        describe(e), e.z + e.height / 2, e.height, s,
        lambda z: round_level(e.x, e.y, e.radius, z, s),
    )


def _cone(e: Cone, s: MachiningSettings, geo: Geometry) -> ToolpathOperation:
    top = e.z + e.height / 2

    def section(z: float) -> ZLevel:
        # Apex at the top, base radius at the bottom.
        r = slicing.lerp(0.0, e.r_base, (top - z) / e.height)
        return round_level(e.x, e.y, r, z, s)

    return sliced(describe(e), top, e.height, s, section)


def _torus(e: Torus, s: MachiningSettings, geo: Geometry) -> ToolpathOperation:
    tube = e.tube
    d = slicing.offset_distance(s.tool_diameter, s.offset)

    def section(z: float) -> ZLevel:
        half = slicing.sphere_section_radius(tube, z - e.z)
        outer = e.radius + half + d
        inner = e.radius - half - d
        if outer <= 0:
            return _skipped(z, "radius too small after offset")
        moves: list[Move] = [_level_comment(z, outer_radius=outer, inner_radius=inner)]
        moves += _circle_moves(e.x, e.y, outer, z, s)
        moves.append(_retract(z))
        if inner > 0:
            moves += _circle_moves(e.x, e.y, inner, z, s)
            moves.append(_retract(z))
        else:
            moves.append(Comment("Inner radius too small after offset, skipping"))
        return ZLevel(z=z, moves=tuple(moves), size=outer)

    return sliced(describe(e), e.z + tube, 2 * tube, s, section)


def _pyramid(e: Pyramid, s: MachiningSettings, geo: Geometry) -> ToolpathOperation:
    bw, bd = e.base
    top = e.z + e.height / 2

    def section(z: float) -> ZLevel:
        t = (top - z) / e.height
        outline = slicing.rectangle_points(e.x, e.y, bw * t, bd * t)
        return _outline_level(outline, z, s)

    return sliced(describe(e), top, e.height, s, section)


def _prism(e: Prism, s: MachiningSettings, geo: Geometry) -> ToolpathOperation:
    outline = slicing.regular_polygon(e.x, e.y, e.radius, e.sides)
    return sliced(
        describe(e), e.z + e.height / 2, e.height, s,
        lambda z: _outline_level(outline, z, s),
    )


def _hemisphere(e: Hemisphere, s: MachiningSettings, geo: Geometry) -> ToolpathOperation:
    r = e.radius

    def section(z: float) -> ZLevel:
        return round_level(e.x, e.y, slicing.sphere_section_radius(r, z - e.z), z, s)

    return sliced(describe(e), geo.top, r, s, section)


def _ellipsoid(e: Ellipsoid, s: MachiningSettings, geo: Geometry) -> ToolpathOperation:
    rz = e.radius_z

    def section(z: float) -> ZLevel:
        ratio = (z - e.z) / rz
        scale = math.sqrt(max(0.0, 1.0 - ratio * ratio))
        return _ellipse_level(e.x, e.y, e.radius_x * scale, e.radius_y * scale, z, s)

    return sliced(describe(e), e.z + rz, 2 * rz, s, section)


def _capsule(e: Capsule, s: MachiningSettings, geo: Geometry) -> ToolpathOperation:
    r, half_body = e.radius, e.half_body

    if e.orientation == "z":
        def section(z: float) -> ZLevel:
            dz = abs(z - e.z)
            nominal = r if dz <= half_body else slicing.sphere_section_radius(r, dz - half_body)
            return round_level(e.x, e.y, nominal, z, s)

        return sliced(describe(e), geo.top, geo.bbox.depth, s, section)

    d = slicing.offset_distance(s.tool_diameter, s.offset)

    def lying(z: float) -> ZLevel:
        w = slicing.sphere_section_radius(r, z - e.z) + d
        if w <= 0:
            return _skipped(z, "radius too small after offset")
        outline = slicing.stadium_points(e.x, e.y, half_body, w, axis=e.orientation)
        return ZLevel(
            z=z,
            moves=(_level_comment(z, radius=w), *_path_moves(outline, z, s), _retract(z)),
            size=w,
        )

    return sliced(describe(e), e.z + r, 2 * r, s, lying)


# ---------------------------------------------------------------------------
# Fallbacks
# ---------------------------------------------------------------------------


def _bounding_box(e: Element, s: MachiningSettings, geo: Geometry, reason: str) -> ToolpathOperation:
    bbox = geo.bbox
    if bbox.width <= 0 or bbox.height <= 0:
        logger.warning("%s: no usable section, emitting comment only", e.label)
        return ToolpathOperation(
            label=describe(e), notes=(f"{reason}: no usable section, nothing cut",),
        )
    cx, cy, _ = bbox.center
    outline = slicing.rectangle_points(cx, cy, bbox.width, bbox.height)
    extent = bbox.depth if bbox.depth > 0 else s.depth
    return sliced(
        describe(e), bbox.max_z, extent, s,
        lambda z: _outline_level(outline, z, s),
        notes=(reason,),
    )


def _mesh(e: Mesh, s: MachiningSettings, geo: Geometry) -> ToolpathOperation:
    return _bounding_box(e, s, geo, "Mesh machined as its bounding box")


def _unknown(e: UnknownElement, s: MachiningSettings, geo: Geometry) -> ToolpathOperation:
    return _bounding_box(e, s, geo, f"Unknown element kind {e.kind!r} machined as its bounding box")


_GENERATORS: dict[type, Callable[..., ToolpathOperation]] = {
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
    UnknownElement: _unknown,
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def _check_resolved(settings: MachiningSettings) -> None:
    if not settings.is_resolved:
        raise GCodeError(
            "Machining settings are not resolved (depth, stepdown and plungerate"
            " are required); run cam_core.toolpaths.resolver.resolve first"
        )


def generate_operation(element: Element, settings: MachiningSettings) -> ToolpathOperation:
    """Toolpath IR for one non-component element.

    Parameters
    ----------
    element : Element
        Any element except :class:`~cam_core.elements.model.Component`.
    settings : MachiningSettings
        Resolved settings.

    Returns
    -------
    ToolpathOperation
        Z-levels top to bottom; skipped levels carry a comment.

    Raises
    ------
    GCodeError
        If *settings* are not resolved.
    TypeError
        If *element* is a component (use :func:`generate_operations`).
    """
    if isinstance(element, Component):
        raise TypeError("Components are machined by the assembler; use generate_operations")
    _check_resolved(settings)
    return _GENERATORS[type(element)](element, settings, extract(element))


def generate_operations(element: Element, settings: MachiningSettings) -> list[ToolpathOperation]:
    """Toolpath IR for any element; components go through the assembler."""
    if isinstance(element, Component):
        # Imported here: the assembler falls back on this module.
        from cam_core.toolpaths.assembler import assemble_operations

        _check_resolved(settings)
        return assemble_operations(element, settings)
    return [generate_operation(element, settings)]


def generate(element: Element, settings: MachiningSettings) -> str:
    """G-code body (no header/footer) for *element* in ``settings.dialect``."""
    return render_operations(generate_operations(element, settings), settings)
