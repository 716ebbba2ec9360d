"""Tests for parameter resolution and cutting statistics."""

from __future__ import annotations

import math

import pytest

from cam_core.configs.loader import MachiningSettings, OperationType
from cam_core.elements import parse_element
from cam_core.toolpaths.resolver import (
    DEFAULT_DEPTH,
    cutting_statistics,
    default_stepdown,
    needs_smaller_tool,
    operation_type,
    recommended_plunge_rate,
    resolve,
)


@pytest.fixture
def settings() -> MachiningSettings:
    return MachiningSettings()


class TestResolve:
    def test_sphere(self, settings: MachiningSettings) -> None:
        s = resolve(parse_element({"type": "sphere", "radius": 10}), settings)
        assert (s.depth, s.stepdown, s.plungerate) == (20.0, 0.5, 400.0)
        assert s.is_resolved

    def test_flat_shape_defaults_depth(self, settings: MachiningSettings) -> None:
        s = resolve(parse_element({"type": "circle", "radius": 10}), settings)
        assert s.depth == DEFAULT_DEPTH

    def test_large_part_stepdown(self, settings: MachiningSettings) -> None:
        s = resolve(parse_element({"type": "box", "width": 120, "height": 10, "depth": 10}), settings)
        assert s.stepdown == 2.0

    def test_existing_values_kept(self, settings: MachiningSettings) -> None:
        s = settings.with_overrides(depth=3)
        out = resolve(parse_element({"type": "sphere", "radius": 10}), s)
        assert out.depth == 3.0
        assert out.stepdown == 0.5

    def test_resolved_returned_unchanged(self) -> None:
        s = MachiningSettings(depth=1, stepdown=1, plungerate=1, operation_type="pocket")
        assert resolve(parse_element({"type": "sphere", "radius": 10}), s) is s

    @pytest.mark.parametrize("size,expected", [(10, 0.5), (50, 0.5), (51, 1.0), (100, 1.0), (101, 2.0)])
    def test_stepdown_thresholds(self, size: float, expected: float) -> None:
        assert default_stepdown(size) == expected

    def test_plunge_rate_rounded(self) -> None:
        assert recommended_plunge_rate(1000) == 400.0
        assert recommended_plunge_rate(333) == 133.0


class TestOperationType:
    @pytest.mark.parametrize("kind,expected", [
        ("circle", "contour"),
        ("sphere", "contour"),
        ("rectangle", "pocket"),
        ("box", "pocket"),
        ("polygon", "pocket"),
        ("line", "profile"),
        ("torus", "contour"),
        ("gizmo", "contour"),
    ])
    def test_strategy(self, kind: str, expected: str) -> None:
        assert operation_type(parse_element({"type": kind})) == expected

    def test_filled_by_resolve(self, settings: MachiningSettings) -> None:
        s = resolve(parse_element({"type": "line", "x2": 10}), settings)
        assert s.operation_type is OperationType.PROFILE

    def test_filled_when_otherwise_resolved(self) -> None:
        s = MachiningSettings(depth=1, stepdown=1, plungerate=1)
        out = resolve(parse_element({"type": "box", "width": 10}), s)
        assert out.operation_type is OperationType.POCKET
        assert (out.depth, out.stepdown, out.plungerate) == (1.0, 1.0, 1.0)

    def test_explicit_kept(self, settings: MachiningSettings) -> None:
        s = settings.with_overrides(operationType="profile")
        out = resolve(parse_element({"type": "circle", "radius": 5}), s)
        assert out.operation_type is OperationType.PROFILE


class TestToolSize:
    @pytest.mark.parametrize("element,expected", [
        ({"type": "circle", "radius": 5}, True),
        ({"type": "circle", "radius": 6}, False),
        ({"type": "rectangle", "width": 11, "height": 3}, True),
        ({"type": "rectangle", "width": 30, "height": 3}, False),
    ])
    def test_threshold(
        self, settings: MachiningSettings, element: dict, expected: bool,
    ) -> None:
        assert needs_smaller_tool(parse_element(element), settings) is expected

    def test_scales_with_tool(self, settings: MachiningSettings) -> None:
        e = parse_element({"type": "circle", "radius": 5})
        assert not needs_smaller_tool(e, settings.with_overrides(tool_diameter=3))


class TestCuttingStatistics:
    def test_values(self) -> None:
        s = MachiningSettings(stepdown=2)
        stats = cutting_statistics(s)
        assert stats.chip_load == pytest.approx(1000 / (12000 * 2))
        assert stats.cutting_speed == pytest.approx(math.pi * 6 * 12000 / 1000)
        assert stats.effective_stepover == pytest.approx(2.4)
        assert stats.material_removal_rate == pytest.approx(2.4 * 2 * 1000)

    def test_unresolved_stepdown(self, settings: MachiningSettings) -> None:
        assert cutting_statistics(settings).material_removal_rate == 0.0

    def test_to_dict(self) -> None:
        d = cutting_statistics(MachiningSettings(stepdown=2)).to_dict()
        assert d == {
            "chipLoad": 0.0417,
            "cuttingSpeed": 226.2,
            "effectiveStepover": 2.4,
            "materialRemovalRate": 4800.0,
        }
