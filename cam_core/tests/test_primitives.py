"""Tests for the primitive toolpath generators.

Validates Z-level schedules, analytic cross-sections, tool offset,
milling direction and the fallbacks for text, meshes and unknown kinds.
"""

from __future__ import annotations

import pytest

from cam_core.configs.loader import MachiningSettings
from cam_core.elements import parse_element
from cam_core.gcode.dialects import GCodeError
from cam_core.job_ir.operations import ArcMove, Comment, Linear, Rapid, ZLevel
from cam_core.toolpaths.primitives import CLEARANCE, generate, generate_operation


@pytest.fixture
def settings() -> MachiningSettings:
    return MachiningSettings(depth=10, stepdown=5, plungerate=400)


def _of(level: ZLevel, kind: type) -> list:
    return [m for m in level.moves if isinstance(m, kind)]


# ---------------------------------------------------------------------------
# Round solids
# ---------------------------------------------------------------------------


class TestRoundSolids:
    def test_sphere_sections(self, settings: MachiningSettings) -> None:
        op = generate_operation(parse_element({"type": "sphere", "radius": 25}), settings)
        assert [lvl.z for lvl in op.levels] == [20.0, 15.0]
        assert [lvl.size for lvl in op.levels] == pytest.approx([15.0, 20.0])
        arc = _of(op.levels[0], ArcMove)[0]
        assert arc.radius == pytest.approx(15.0)
        assert (arc.x, arc.y) == pytest.approx((15.0, 0.0))

    def test_level_move_sequence(self, settings: MachiningSettings) -> None:
        op = generate_operation(parse_element({"type": "sphere", "radius": 25}), settings)
        comment, approach, plunge, arc, retract = op.levels[0].moves
        assert isinstance(comment, Comment)
        assert comment.text == "Z level 20.000, radius 15.000"
        assert isinstance(approach, Rapid) and approach.z == 20.0 + CLEARANCE
        assert isinstance(plunge, Linear) and (plunge.z, plunge.feed) == (20.0, 400.0)
        assert isinstance(arc, ArcMove) and arc.feed == 1000.0
        assert isinstance(retract, Rapid) and retract.z == 20.0 + CLEARANCE

    def test_cylinder_clipped_last_step(self, settings: MachiningSettings) -> None:
        s = settings.with_overrides(stepdown=3)
        op = generate_operation(parse_element({"type": "cylinder", "radius": 10, "height": 30}), s)
        zs = [lvl.z for lvl in op.levels]
        assert len(zs) == 4
        assert zs[-1] == pytest.approx(15.0 - 10.0)

    @pytest.mark.parametrize("offset,radius", [("outside", 13.0), ("inside", 7.0), ("center", 10.0)])
    def test_tool_offset(self, settings: MachiningSettings, offset: str, radius: float) -> None:
        s = settings.with_overrides(offset=offset)
        op = generate_operation(parse_element({"type": "cylinder", "radius": 10, "height": 20}), s)
        assert all(lvl.size == radius for lvl in op.levels)

    def test_cone_collapses_near_apex(self, settings: MachiningSettings) -> None:
        s = settings.with_overrides(depth=20, offset="inside")
        op = generate_operation(parse_element({"type": "cone", "radius": 10, "height": 20}), s)
        assert [lvl.z for lvl in op.levels] == [5.0, 0.0, -5.0, -10.0]
        first = op.levels[0]
        assert first.skipped
        assert first.moves == (Comment("Z level 5.000: radius too small after offset, skipping"),)
        assert len(op.cut_levels) == 3

    def test_hemisphere_cuts_from_dome(self, settings: MachiningSettings) -> None:
        op = generate_operation(parse_element({"type": "hemisphere", "radius": 10}), settings)
        assert [lvl.z for lvl in op.levels] == [5.0, 0.0]
        assert op.levels[-1].size == pytest.approx(10.0)

    def test_torus_two_circles(self, settings: MachiningSettings) -> None:
        op = generate_operation(
            parse_element({"type": "torus", "radius": 20, "tubeRadius": 5}), settings,
        )
        top = op.levels[0]
        assert top.z == 0.0
        assert [a.radius for a in _of(top, ArcMove)] == pytest.approx([25.0, 15.0])
        assert sum(isinstance(m, ArcMove) for m in op.moves()) == 4

    def test_zero_extent(self, settings: MachiningSettings) -> None:
        op = generate_operation(parse_element({"type": "cylinder", "radius": 10}), settings)
        assert op.levels == ()
        assert "Nothing to cut: zero vertical extent" in op.notes


# ---------------------------------------------------------------------------
# Direction
# ---------------------------------------------------------------------------


class TestDirection:
    def test_climb_is_counter_clockwise(self, settings: MachiningSettings) -> None:
        op = generate_operation(parse_element({"type": "circle", "radius": 5}), settings)
        assert not _of(op.levels[0], ArcMove)[0].clockwise

    def test_conventional_is_clockwise(self, settings: MachiningSettings) -> None:
        s = settings.with_overrides(direction="conventional")
        op = generate_operation(parse_element({"type": "circle", "radius": 5}), s)
        assert _of(op.levels[0], ArcMove)[0].clockwise

    def test_partial_arc(self, settings: MachiningSettings) -> None:
        e = parse_element({"type": "arc", "radius": 10, "startAngle": 0, "endAngle": 90})
        arc = _of(generate_operation(e, settings).levels[0], ArcMove)[0]
        assert (arc.x, arc.y) == pytest.approx((0.0, 10.0), abs=1e-9)
        assert (arc.i, arc.j) == pytest.approx((-10.0, 0.0), abs=1e-9)
        assert not arc.clockwise

    def test_partial_arc_conventional(self, settings: MachiningSettings) -> None:
        s = settings.with_overrides(direction="conventional")
        e = parse_element({"type": "arc", "radius": 10, "startAngle": 0, "endAngle": 90})
        arc = _of(generate_operation(e, s).levels[0], ArcMove)[0]
        assert (arc.x, arc.y) == pytest.approx((10.0, 0.0), abs=1e-9)
        assert (arc.i, arc.j) == pytest.approx((0.0, -10.0), abs=1e-9)
        assert arc.clockwise


# ---------------------------------------------------------------------------
# Polylines
# ---------------------------------------------------------------------------


class TestPolylines:
    def test_rectangle_outside_offset(self, settings: MachiningSettings) -> None:
        s = settings.with_overrides(offset="outside")
        op = generate_operation(parse_element({"type": "rectangle", "width": 10, "height": 10}), s)
        xs = [m.x for m in _of(op.levels[0], Linear) if m.x is not None]
        assert max(xs) == pytest.approx(8.0)
        assert min(xs) == pytest.approx(-8.0)

    def test_rectangle_inside_collapses(self, settings: MachiningSettings) -> None:
        s = settings.with_overrides(offset="inside")
        op = generate_operation(parse_element({"type": "rectangle", "width": 4, "height": 4}), s)
        assert op.levels and all(lvl.skipped for lvl in op.levels)

    def test_rectangle_own_depth(self, settings: MachiningSettings) -> None:
        op = generate_operation(
            parse_element({"type": "rectangle", "width": 10, "height": 10, "depth": 2}), settings,
        )
        assert [lvl.z for lvl in op.levels] == [-2.0]

    def test_line_runs_on_path(self, settings: MachiningSettings) -> None:
        e = parse_element({"type": "line", "x1": 0, "y1": 0, "x2": 10, "y2": 5})
        op = generate_operation(e, settings)
        assert len(op.levels) == 2
        cuts = _of(op.levels[0], Linear)
        assert (cuts[-1].x, cuts[-1].y) == (10.0, 5.0)

    def test_capsule_lying(self, settings: MachiningSettings) -> None:
        e = parse_element({"type": "capsule", "radius": 5, "height": 30, "orientation": "x"})
        op = generate_operation(e, settings)
        assert [lvl.z for lvl in op.levels] == [0.0, -5.0]
        assert not _of(op.levels[0], ArcMove)
        assert len(_of(op.levels[0], Linear)) > 2
        assert op.levels[1].skipped

    def test_text_box_and_fill(self, settings: MachiningSettings) -> None:
        op = generate_operation(parse_element({"type": "text", "text": "AB", "fontSize": 10}), settings)
        assert "Text 'AB' approximated by its bounding box" in op.notes
        for level in op.levels:
            assert len(_of(level, Rapid)) == 2
            assert Comment("Fill") in level.moves
            assert isinstance(level.moves[-1], Rapid)


# ---------------------------------------------------------------------------
# Fallbacks and errors
# ---------------------------------------------------------------------------


class TestFallbacks:
    def test_unknown_kind_as_box(self, settings: MachiningSettings) -> None:
        op = generate_operation(parse_element({"type": "gizmo"}), settings)
        assert "Unknown element kind 'gizmo' machined as its bounding box" in op.notes
        assert [lvl.z for lvl in op.levels] == [0.0, -5.0]

    def test_unknown_without_section(self, settings: MachiningSettings) -> None:
        op = generate_operation(parse_element({"type": "gizmo", "depth": 5}), settings)
        assert op.levels == ()
        assert "nothing cut" in op.notes[0]

    def test_mesh_as_box(self, settings: MachiningSettings) -> None:
        e = parse_element({
            "type": "mesh",
            "vertices": [[0, 0, 0], [10, 0, 0], [0, 10, 0], [0, 0, 10]],
            "faces": [[0, 1, 2], [0, 1, 3], [0, 2, 3], [1, 2, 3]],
        })
        op = generate_operation(e, settings)
        assert op.notes == ("Mesh machined as its bounding box",)
        assert [lvl.z for lvl in op.levels] == [5.0, 0.0]

    def test_unresolved_settings(self) -> None:
        with pytest.raises(GCodeError, match="not resolved"):
            generate_operation(parse_element({"type": "circle", "radius": 5}), MachiningSettings())

    def test_component_rejected(self, settings: MachiningSettings) -> None:
        with pytest.raises(TypeError):
            generate_operation(parse_element({"type": "component"}), settings)

    def test_generate_text(self, settings: MachiningSettings) -> None:
        text = generate(parse_element({"type": "circle", "radius": 5}), settings)
        assert "G3 X5.000 Y0.000 I-5.000 J0.000 F1000.000 ; Full circle" in text
        assert "G0 Z25.000 ; Retract to safe height" in text
        assert "M30" not in text
