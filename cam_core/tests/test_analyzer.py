"""Tests for the program analyzer."""

from __future__ import annotations

import math

import pytest

from cam_core.gcode.analyzer import AnalysisReport, analyze

SAMPLE = "; test\nG0 X0 Y0 Z5\nG1 Z0 F100\nG1 X10 F200\n"


@pytest.fixture
def report() -> AnalysisReport:
    return analyze(SAMPLE)


class TestAnalyze:
    def test_counts(self, report: AnalysisReport) -> None:
        assert report.total_lines == 4
        assert report.comments == 1
        assert (report.rapid_moves, report.linear_moves, report.arc_moves) == (1, 2, 0)
        assert report.total_moves == 3

    def test_distance_and_time(self, report: AnalysisReport) -> None:
        assert report.total_distance == pytest.approx(20.0)
        # 5 mm at F100 plus 10 mm at F200; rapids are not timed.
        assert report.estimated_time_s == pytest.approx(6.0)
        assert report.estimated_time_min == pytest.approx(0.1)

    def test_feeds_and_z_range(self, report: AnalysisReport) -> None:
        assert report.feedrates == (100.0, 200.0)
        assert (report.z_min, report.z_max) == (0.0, 5.0)

    def test_validator_warnings_included(self, report: AnalysisReport) -> None:
        assert len(report.warnings) == 3

    def test_arc_uses_half_circle_on_chord(self) -> None:
        r = analyze("G0 X0 Y0 Z0\nG2 X10 Y0 I5 J0 F600\n")
        assert r.arc_moves == 1
        assert r.total_distance == pytest.approx(5 * math.pi)
        assert r.estimated_time_s == pytest.approx(math.pi / 2)

    def test_heidenhain_lines(self) -> None:
        r = analyze(
            "L X10.000 Y0.000 Z0.000 R0 FMAX\n"
            "CC X0.000 Y0.000\n"
            "C X-10.000 Y0.000 DR+ F100.000\n"
        )
        assert (r.rapid_moves, r.linear_moves, r.arc_moves) == (1, 0, 1)
        assert r.feedrates == (100.0,)

    def test_empty_program(self) -> None:
        r = analyze("")
        assert r.total_moves == 0
        assert r.z_min is None and r.z_max is None
        assert r.estimated_time_s == 0.0

    def test_to_dict(self, report: AnalysisReport) -> None:
        d = report.to_dict()
        assert set(d) == {
            "totalLines", "comments", "moves", "distance", "time",
            "feedrates", "zRange", "warnings",
        }
        assert d["moves"] == {"rapid": 1, "linear": 2, "arc": 0, "total": 3}
        assert d["distance"] == {"total": 20.0, "unit": "mm"}
        assert d["time"]["unit"] == "minutes"
        assert d["zRange"] == {"min": 0.0, "max": 5.0, "unit": "mm"}
