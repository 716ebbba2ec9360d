"""Component assembler -- machine a group of elements as one solid.

Preferred path
--------------
1. Flatten the component tree; child positions are offsets from their
   parent, so each child is moved into document coordinates.
2. Build a closed triangle mesh for every child with :mod:`trimesh`.
3. Fold the meshes into one solid with pairwise boolean unions
   (``trimesh.boolean.union``, manifold engine).
4. Slice the union top to bottom like any primitive.  The cross-section
   at every level is taken as a **circle** of radius
   ``min(width, height) / 2`` around the centre of the union's bounding
   box.  This is a known approximation of the real section and is noted
   in the program.

Fallback
--------
If any child has no solid representation, or the union fails, each
child is generated on its own instead.  Children are ordered by
descending top Z, then by ascending distance from the component centre
(inner to outer), and the reason is written as a comment.
"""

from __future__ import annotations

import logging
import math
from functools import reduce
from typing import Callable

import numpy as np
import trimesh

from cam_core.configs.loader import MachiningSettings
from cam_core.elements.model import (
    Box,
    Capsule,
    Circle,
    Component,
    Cone,
    Cylinder,
    Element,
    Ellipsoid,
    Hemisphere,
    Mesh,
    Polygon,
    Prism,
    Pyramid,
    Rectangle,
    Sphere,
    Torus,
)
from cam_core.gcode.generator import render_operations
from cam_core.geometry import slicing
from cam_core.geometry.extractor import extract
from cam_core.job_ir.operations import ToolpathOperation
from cam_core.toolpaths.primitives import describe, generate_operation, round_level, sliced

logger = logging.getLogger(__name__)

UNION_ENGINE = "manifold"
SPHERE_SUBDIVISIONS = 3


class AssemblyError(Exception):
    """Raised when a component cannot be turned into a single solid."""

    pass


# ---------------------------------------------------------------------------
# Flattening
# ---------------------------------------------------------------------------


def flatten(component: Component) -> list[Element]:
    """Leaf children of *component* in document coordinates, in order."""
    leaves: list[Element] = []
    for child in component.children:
        placed = child.moved(component.x, component.y, component.z)
        if isinstance(placed, Component):
            leaves.extend(flatten(placed))
        else:
            leaves.append(placed)
    return leaves


# ---------------------------------------------------------------------------
# Element -> trimesh
# ---------------------------------------------------------------------------


def _placed(mesh: trimesh.Trimesh, x: float, y: float, z: float) -> trimesh.Trimesh:
    """Centre *mesh* on its bounding box, then move it to ``(x, y, z)``."""
    mesh.apply_translation(-mesh.bounds.mean(axis=0))
    mesh.apply_translation((x, y, z))
    return mesh


def _box_mesh(e: Box) -> trimesh.Trimesh:
    return _placed(trimesh.creation.box(extents=e.dims), e.x, e.y, e.z)


def _sphere_mesh(e: Sphere) -> trimesh.Trimesh:
    mesh = trimesh.creation.icosphere(subdivisions=SPHERE_SUBDIVISIONS, radius=e.radius)
    return _placed(mesh, e.x, e.y, e.z)


def _cylinder_mesh(e: Cylinder) -> trimesh.Trimesh:
    mesh = trimesh.creation.cylinder(
        radius=e.radius, height=e.height, sections=slicing.segment_count(e.radius),
    )
    return _placed(mesh, e.x, e.y, e.z)


def _cone_mesh(e: Cone) -> trimesh.Trimesh:
    mesh = trimesh.creation.cone(
        radius=e.r_base, height=e.height, sections=slicing.segment_count(e.r_base),
    )
    return _placed(mesh, e.x, e.y, e.z)


def _torus_mesh(e: Torus) -> trimesh.Trimesh:
    mesh = trimesh.creation.torus(major_radius=e.radius, minor_radius=e.tube)
    return _placed(mesh, e.x, e.y, e.z)


def _prism_mesh(e: Prism) -> trimesh.Trimesh:
    mesh = trimesh.creation.cylinder(radius=e.radius, height=e.height, sections=e.sides)
    return _placed(mesh, e.x, e.y, e.z)


def _pyramid_mesh(e: Pyramid) -> trimesh.Trimesh:
    bw, bd = e.base
    h = e.height / 2
    pts = np.array([
        [-bw / 2, -bd / 2, -h], [bw / 2, -bd / 2, -h],
        [bw / 2, bd / 2, -h], [-bw / 2, bd / 2, -h],
        [0.0, 0.0, h],
    ])
    mesh = trimesh.convex.convex_hull(pts)
    mesh.apply_translation((e.x, e.y, e.z))
    return mesh


def _hemisphere_mesh(e: Hemisphere) -> trimesh.Trimesh:
    sphere = trimesh.creation.icosphere(subdivisions=SPHERE_SUBDIVISIONS, radius=e.radius)
    sign = 1.0 if e.direction == "up" else -1.0
    cap = sphere.vertices[sphere.vertices[:, 2] * sign >= 0]
    rim = slicing.circle_points(0.0, 0.0, e.radius)[:-1]
    rim = np.column_stack((rim, np.zeros(len(rim))))
    mesh = trimesh.convex.convex_hull(np.vstack((cap, rim)))
    # z is the flat face, not the bounding-box centre.
    mesh.apply_translation((e.x, e.y, e.z))
    return mesh


def _ellipsoid_mesh(e: Ellipsoid) -> trimesh.Trimesh:
    mesh = trimesh.creation.icosphere(subdivisions=SPHERE_SUBDIVISIONS, radius=1.0)
    mesh.apply_scale((e.radius_x, e.radius_y, e.radius_z))
    return _placed(mesh, e.x, e.y, e.z)


def _capsule_mesh(e: Capsule) -> trimesh.Trimesh:
    mesh = trimesh.creation.capsule(height=2 * e.half_body, radius=e.radius)
    if e.orientation == "x":
        mesh.apply_transform(trimesh.transformations.rotation_matrix(math.pi / 2, (0, 1, 0)))
    elif e.orientation == "y":
        mesh.apply_transform(trimesh.transformations.rotation_matrix(math.pi / 2, (1, 0, 0)))
    return _placed(mesh, e.x, e.y, e.z)


def _rectangle_mesh(e: Rectangle) -> trimesh.Trimesh:
    if e.depth <= 0:
        raise AssemblyError(f"{e.label}: rectangle has no depth")
    return _placed(
        trimesh.creation.box(extents=(e.width, e.height, e.depth)),
        e.x, e.y, e.z - e.depth / 2,
    )


def _circle_mesh(e: Circle) -> trimesh.Trimesh:
    if e.depth <= 0:
        raise AssemblyError(f"{e.label}: circle has no depth")
    mesh = trimesh.creation.cylinder(
        radius=e.radius, height=e.depth, sections=slicing.segment_count(e.radius),
    )
    return _placed(mesh, e.x, e.y, e.z - e.depth / 2)


def _polygon_mesh(e: Polygon) -> trimesh.Trimesh:
    if e.depth <= 0:
        raise AssemblyError(f"{e.label}: polygon has no depth")
    mesh = trimesh.creation.cylinder(radius=e.radius, height=e.depth, sections=e.sides)
    return _placed(mesh, e.x, e.y, e.z - e.depth / 2)


def _mesh_mesh(e: Mesh) -> trimesh.Trimesh:
    if not e.vertices or not e.faces:
        raise AssemblyError(f"{e.label}: mesh has no faces")
    mesh = trimesh.Trimesh(vertices=np.asarray(e.vertices), faces=np.asarray(e.faces))
    mesh.apply_translation((e.x, e.y, e.z))
    return mesh


_MESHERS: dict[type, Callable[..., trimesh.Trimesh]] = {
    Box: _box_mesh,
    Sphere: _sphere_mesh,
    Cylinder: _cylinder_mesh,
    Cone: _cone_mesh,
    Torus: _torus_mesh,
    Prism: _prism_mesh,
    Pyramid: _pyramid_mesh,
    Hemisphere: _hemisphere_mesh,
    Ellipsoid: _ellipsoid_mesh,
    Capsule: _capsule_mesh,
    Rectangle: _rectangle_mesh,
    Circle: _circle_mesh,
    Polygon: _polygon_mesh,
    Mesh: _mesh_mesh,
}


def to_mesh(element: Element) -> trimesh.Trimesh:
    """Closed triangle mesh for *element* in document coordinates.

    Raises
    ------
    AssemblyError
        If the element kind has no solid representation (lines, arcs,
        text, unknown kinds ...) or is degenerate.
    """
    mesher = _MESHERS.get(type(element))
    if mesher is None:
        raise AssemblyError(f"{element.label}: {element.kind} has no solid representation")
    return mesher(element)


def union(meshes: list[trimesh.Trimesh]) -> trimesh.Trimesh:
    """Fold *meshes* into one solid with pairwise boolean unions.

    Raises
    ------
    AssemblyError
        If there is nothing to union or the result is empty.
    """
    if not meshes:
        raise AssemblyError("Component has no children")
    solid = reduce(
        lambda a, b: trimesh.boolean.union([a, b], engine=UNION_ENGINE), meshes,
    )
    if solid.is_empty:
        raise AssemblyError("Boolean union produced an empty solid")
    return solid


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


def _union_operation(
    component: Component, solid: trimesh.Trimesh, count: int, settings: MachiningSettings,
) -> ToolpathOperation:
    (x0, y0, z0), (x1, y1, z1) = solid.bounds
    cx, cy = (x0 + x1) / 2, (y0 + y1) / 2
    radius = min(x1 - x0, y1 - y0) / 2
    notes = (
        f"Boolean union of {count} child element(s)",
        f"Cross-section approximated as a circle of radius {radius:.3f}",
    )
    return sliced(
        describe(component), float(z1), float(z1 - z0), settings,
        lambda z: round_level(float(cx), float(cy), float(radius), z, settings),
        notes=notes,
    )


def _fallback_order(component: Component, leaves: list[Element]) -> list[Element]:
    def key(e: Element) -> tuple[float, float]:
        geo = extract(e)
        cx, cy, _ = geo.bbox.center
        return (-geo.top, math.hypot(cx - component.x, cy - component.y))

    return sorted(leaves, key=key)


def assemble_operations(
    component: Component, settings: MachiningSettings,
) -> list[ToolpathOperation]:
    """Toolpath IR for *component*.

    Parameters
    ----------
    component : Component
        Component or group element.
    settings : MachiningSettings
        Resolved settings.

    Returns
    -------
    list[ToolpathOperation]
        One sliced union operation, or on failure a header operation
        carrying the reason followed by one operation per child.
    """
    leaves = flatten(component)
    try:
        solid = union([to_mesh(leaf) for leaf in leaves])
        op = _union_operation(component, solid, len(leaves), settings)
        logger.info("%s: machined as union of %d child(ren)", component.label, len(leaves))
        return [op]
    except Exception as exc:  # any mesh or boolean failure selects the fallback
        reason = str(exc) or type(exc).__name__
        logger.warning("%s: union failed (%s), using per-child toolpaths", component.label, reason)

    header = ToolpathOperation(
        label=describe(component),
        notes=(f"Union failed: {reason}", "Machining children individually"),
    )
    ops = [header]
    for leaf in _fallback_order(component, leaves):
        ops.append(generate_operation(leaf, settings))
    return ops


def assemble(component: Component, settings: MachiningSettings) -> str:
    """G-code body for *component* in ``settings.dialect``."""
    return render_operations(assemble_operations(component, settings), settings)
