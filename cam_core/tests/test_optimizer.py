"""Tests for the rapid-retract optimizer."""

from __future__ import annotations

import pytest

from cam_core.configs.loader import MachiningSettings
from cam_core.gcode.optimizer import optimize
from cam_core.gcode.validator import validate
from cam_core.toolpaths.program import generate_program


@pytest.fixture
def program() -> str:
    settings = MachiningSettings(depth=10, stepdown=5, plungerate=400)
    return generate_program([{"type": "cylinder", "id": "boss", "radius": 10, "height": 20}], settings)


# ---------------------------------------------------------------------------
# Deferral rules
# ---------------------------------------------------------------------------


class TestDeferral:
    def test_raise_dropped_before_plunge_at_same_xy(self) -> None:
        src = "G0 X0 Y0 Z0\nG1 Z-1 F100\nG0 Z5\nG0 X0 Y0 Z1\n"
        assert optimize(src) == "G0 X0 Y0 Z0\nG1 Z-1 F100\nG0 X0 Y0 Z1\n"

    def test_raise_flushed_before_xy_change(self) -> None:
        src = "G0 X0 Y0 Z0\nG0 Z5\nG0 X10 Y0\n"
        assert optimize(src) == src

    def test_newer_raise_supersedes(self) -> None:
        src = "G0 X0 Y0 Z0\nG0 Z5\nG0 Z10\nG0 X5 Y5\n"
        assert optimize(src) == "G0 X0 Y0 Z0\nG0 Z10\nG0 X5 Y5\n"

    def test_non_motion_command_flushes(self) -> None:
        src = "G0 X0 Y0 Z0\nG0 Z5\nM5\n"
        assert optimize(src) == src

    def test_end_of_stream_flushes(self) -> None:
        src = "G0 X0 Y0 Z0\nG0 Z5"
        assert optimize(src) == src

    def test_comments_do_not_flush(self) -> None:
        src = "G0 X0 Y0 Z0\nG0 Z5\n; note\nG1 Z0 F100\n"
        assert optimize(src) == "G0 X0 Y0 Z0\n; note\nG1 Z0 F100\n"

    def test_unknown_position_not_deferred(self) -> None:
        src = "G0 Z5\nG0 Z10\nG1 Z0 F100\n"
        assert optimize(src) == src

    def test_lowering_rapid_kept(self) -> None:
        src = "G0 X0 Y0 Z10\nG0 Z5\nG1 Z0 F100\n"
        assert optimize(src) == src

    def test_rapid_with_xy_words_not_deferred(self) -> None:
        src = "G0 X0 Y0 Z0\nG0 X0 Y0 Z5\nG1 Z0 F100\n"
        assert optimize(src) == src

    def test_heidenhain_rapid(self) -> None:
        src = "L X0.000 Y0.000 Z0.000 R0 FMAX\nL Z5.000 R0 FMAX\nL Z1.000 F100.000 R0\n"
        assert optimize(src) == "L X0.000 Y0.000 Z0.000 R0 FMAX\nL Z1.000 F100.000 R0\n"


# ---------------------------------------------------------------------------
# Generated programs
# ---------------------------------------------------------------------------


class TestGeneratedProgram:
    def test_idempotent(self, program: str) -> None:
        once = optimize(program)
        assert optimize(once) == once

    def test_removes_lines(self, program: str) -> None:
        assert len(optimize(program).splitlines()) < len(program.splitlines())

    def test_program_still_safe(self, program: str) -> None:
        once = optimize(program)
        assert validate(once) == []
        assert once.rstrip().endswith("%")

    def test_comments_preserved(self, program: str) -> None:
        def comments(text: str) -> list[str]:
            return [ln for ln in text.splitlines() if ln.startswith(";")]

        assert comments(optimize(program)) == comments(program)
