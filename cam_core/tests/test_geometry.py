"""Tests for geometry extraction and the slicing helpers.

Covers Z-level scheduling, tool offset, tessellation, polygon offset and
the per-kind bounding boxes (including component unions and the
unknown-kind fallback).
"""

from __future__ import annotations

import math

import numpy as np
import pytest

from cam_core.configs.loader import MillingDirection, OffsetMode
from cam_core.elements import parse_element
from cam_core.geometry import extract
from cam_core.geometry import slicing
from cam_core.geometry.extractor import FALLBACK_SIZE, sweep_radians, triangle_points


# ---------------------------------------------------------------------------
# Z-levels
# ---------------------------------------------------------------------------


class TestZLevels:
    def test_even_division(self) -> None:
        assert slicing.z_levels(0.0, 10.0, 10.0, 5.0) == [-5.0, -10.0]

    def test_last_step_is_clipped(self) -> None:
        zs = slicing.z_levels(25.0, 50.0, 10.0, 3.0)
        assert len(zs) == math.ceil(10.0 / 3.0)
        assert zs[-1] == pytest.approx(15.0)
        assert zs[:3] == pytest.approx([22.0, 19.0, 16.0])

    def test_extent_limits_depth(self) -> None:
        zs = slicing.z_levels(0.0, 4.0, 10.0, 3.0)
        assert zs == pytest.approx([-3.0, -4.0])

    @pytest.mark.parametrize("depth,stepdown", [(10.0, 3.0), (7.5, 2.5), (1.0, 0.3), (20.0, 20.0)])
    def test_count_and_final_level(self, depth: float, stepdown: float) -> None:
        zs = slicing.z_levels(5.0, 100.0, depth, stepdown)
        assert len(zs) == math.ceil(depth / stepdown - 1e-9)
        assert zs[-1] == pytest.approx(5.0 - depth)
        assert all(b < a for a, b in zip(zs, zs[1:]))

    def test_zero_extent_has_no_levels(self) -> None:
        assert slicing.z_levels(0.0, 0.0, 10.0, 1.0) == []

    def test_non_positive_stepdown_raises(self) -> None:
        with pytest.raises(ValueError, match="stepdown"):
            slicing.z_levels(0.0, 10.0, 10.0, 0.0)


# ---------------------------------------------------------------------------
# Offset
# ---------------------------------------------------------------------------


class TestOffset:
    def test_outside_nominal_inside_ordering(self) -> None:
        outside = slicing.effective_size(10.0, 6.0, OffsetMode.OUTSIDE)
        inside = slicing.effective_size(10.0, 6.0, OffsetMode.INSIDE)
        center = slicing.effective_size(10.0, 6.0, OffsetMode.CENTER)
        assert outside > center > inside
        assert (outside, center, inside) == (13.0, 10.0, 7.0)

    def test_sphere_section_radius(self) -> None:
        assert slicing.sphere_section_radius(25.0, 15.0) == pytest.approx(20.0)
        assert slicing.sphere_section_radius(25.0, -25.0) == 0.0

    def test_offset_square_outward(self) -> None:
        square = slicing.rectangle_points(0.0, 0.0, 10.0, 10.0)
        grown = slicing.offset_polygon(square, 1.0)
        assert grown is not None
        assert grown[:, 0].min() == pytest.approx(-6.0)
        assert grown[:, 0].max() == pytest.approx(6.0)
        np.testing.assert_allclose(grown[0], grown[-1])

    def test_offset_square_collapses(self) -> None:
        square = slicing.rectangle_points(0.0, 0.0, 10.0, 10.0)
        assert slicing.offset_polygon(square, -6.0) is None

    def test_degenerate_outline(self) -> None:
        flat = slicing.rectangle_points(0.0, 0.0, 10.0, 0.0)
        assert slicing.offset_polygon(flat, 0.0) is None

    def test_center_offset_is_counter_clockwise(self) -> None:
        cw = slicing.rectangle_points(0.0, 0.0, 4.0, 2.0)[::-1]
        pts = slicing.offset_polygon(cw, 0.0)
        assert pts is not None
        x, y = pts[:, 0], pts[:, 1]
        signed_area = 0.5 * np.sum(x[:-1] * y[1:] - x[1:] * y[:-1])
        assert signed_area > 0


# ---------------------------------------------------------------------------
# Tessellation
# ---------------------------------------------------------------------------


class TestTessellation:
    def test_minimum_segments(self) -> None:
        assert slicing.segment_count(1.0) == 12
        assert slicing.segment_count(10.0) == math.ceil(math.pi * 20.0)

    def test_circle_is_closed(self) -> None:
        pts = slicing.circle_points(1.0, 2.0, 5.0)
        assert len(pts) == slicing.segment_count(5.0) + 1
        np.testing.assert_allclose(pts[0], pts[-1])
        np.testing.assert_allclose(pts[0], [6.0, 2.0])

    def test_partial_sweep_is_open(self) -> None:
        pts = slicing.ellipse_points(0.0, 0.0, 10.0, 10.0, 0.0, math.pi / 2)
        np.testing.assert_allclose(pts[0], [10.0, 0.0], atol=1e-9)
        np.testing.assert_allclose(pts[-1], [0.0, 10.0], atol=1e-9)

    def test_regular_polygon_rows(self) -> None:
        pts = slicing.regular_polygon(0.0, 0.0, 10.0, 6)
        assert pts.shape == (7, 2)
        np.testing.assert_allclose(pts[0], [10.0, 0.0])
        np.testing.assert_allclose(pts[0], pts[-1])

    def test_stadium_spans_axis(self) -> None:
        pts = slicing.stadium_points(0.0, 0.0, 20.0, 5.0, axis="y")
        assert pts[:, 1].max() == pytest.approx(25.0)
        assert pts[:, 0].max() == pytest.approx(5.0)
        np.testing.assert_allclose(pts[0], pts[-1])

    def test_conventional_reverses(self) -> None:
        pts = np.array([[0.0, 0.0], [1.0, 0.0], [1.0, 1.0]])
        rev = slicing.orient_path(pts, MillingDirection.CONVENTIONAL)
        np.testing.assert_allclose(rev, pts[::-1])
        assert slicing.orient_path(pts, MillingDirection.CLIMB) is pts


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


class TestExtract:
    def test_rectangle(self) -> None:
        geo = extract(parse_element({"type": "rectangle", "width": 10, "height": 4, "depth": 2, "z": 1}))
        assert (geo.bbox.width, geo.bbox.height, geo.bbox.depth) == (10.0, 4.0, 2.0)
        assert geo.top == 1.0
        assert geo.closed and len(geo.path) == 5

    def test_sphere(self) -> None:
        geo = extract(parse_element({"type": "sphere", "radius": 5, "z": 10}))
        assert geo.bbox.depth == 10.0
        assert (geo.bottom, geo.top) == (5.0, 15.0)
        assert geo.radius == 5.0

    @pytest.mark.parametrize("direction,zrange", [("up", (2.0, 7.0)), ("down", (-3.0, 2.0))])
    def test_hemisphere_direction(self, direction: str, zrange: tuple[float, float]) -> None:
        geo = extract(parse_element({"type": "hemisphere", "radius": 5, "z": 2, "direction": direction}))
        assert (geo.bottom, geo.top) == zrange

    def test_torus(self) -> None:
        geo = extract(parse_element({"type": "torus", "radius": 20, "tubeRadius": 4}))
        assert (geo.bbox.width, geo.bbox.height, geo.bbox.depth) == (48.0, 48.0, 8.0)

    def test_polygon_path(self) -> None:
        geo = extract(parse_element({"type": "polygon", "sides": 5, "radius": 3}))
        assert len(geo.path) == 6

    def test_line_is_open(self) -> None:
        geo = extract(parse_element({"type": "line", "x1": 0, "y1": 0, "x2": 10, "y2": 5}))
        assert not geo.closed
        assert geo.path == ((0.0, 0.0), (10.0, 5.0))

    def test_capsule_length_along_axis(self) -> None:
        geo = extract(parse_element({"type": "capsule", "radius": 5, "height": 30, "orientation": "x"}))
        assert (geo.bbox.width, geo.bbox.height, geo.bbox.depth) == (30.0, 10.0, 10.0)

    def test_text_box(self) -> None:
        geo = extract(parse_element({"type": "text", "text": "AB", "fontSize": 10}))
        assert geo.bbox.width == pytest.approx(12.0)
        assert geo.bbox.height == 10.0

    def test_component_union_of_moved_children(self) -> None:
        comp = parse_element({
            "type": "component", "x": 100,
            "children": [
                {"type": "box", "x": -10, "size": 4},
                {"type": "box", "x": 10, "size": 4},
            ],
        })
        bbox = extract(comp).bbox
        assert (bbox.min_x, bbox.max_x) == (88.0, 112.0)
        assert bbox.depth == 4.0

    def test_component_explicit_dims_win(self) -> None:
        comp = parse_element({
            "type": "component", "width": 50,
            "children": [{"type": "box", "size": 4}],
        })
        bbox = extract(comp).bbox
        assert bbox.width == 50.0
        assert bbox.height == 4.0

    def test_unknown_default_cube(self) -> None:
        bbox = extract(parse_element({"type": "gizmo"})).bbox
        assert (bbox.width, bbox.height, bbox.depth) == (FALLBACK_SIZE,) * 3

    def test_unknown_size_fields(self) -> None:
        bbox = extract(parse_element({"type": "gizmo", "width": 8, "thickness": 2})).bbox
        assert (bbox.width, bbox.height, bbox.depth) == (8.0, 8.0, 2.0)

    def test_unknown_diameter(self) -> None:
        geo = extract(parse_element({"type": "gizmo", "diameter": 12}))
        assert geo.radius == 6.0
        assert geo.bbox.width == 12.0

    def test_mesh_bbox_from_vertices(self) -> None:
        geo = extract(parse_element({
            "type": "mesh", "x": 1,
            "vertices": [[0, 0, 0], [2, 0, 0], [0, 3, 4]],
            "faces": [[0, 1, 2]],
        }))
        assert (geo.bbox.min_x, geo.bbox.max_x) == (1.0, 3.0)
        assert geo.bbox.depth == 4.0


class TestArcHelpers:
    def test_missing_angles_full_turn(self) -> None:
        assert sweep_radians(None, 90.0) == (0.0, 2.0 * math.pi)

    def test_wraparound(self) -> None:
        start, sweep = sweep_radians(350.0, 10.0)
        assert start == pytest.approx(math.radians(350.0))
        assert sweep == pytest.approx(math.radians(20.0))

    def test_equilateral_triangle(self) -> None:
        pts = triangle_points(parse_element({"type": "triangle", "x": 0, "y": 0}))
        assert pts.shape == (4, 2)
        np.testing.assert_allclose(pts[0], [0.0, 25.0])
        np.testing.assert_allclose(pts[0], pts[-1])
