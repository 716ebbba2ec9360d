"""Tests for the generate_job command-line entry point."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml

from cam_core.scripts.generate_job import build_parser, main


@pytest.fixture
def job_file(tmp_path: Path) -> Path:
    p = tmp_path / "boss.yaml"
    p.write_text(yaml.safe_dump({
        "name": "boss",
        "settings": {"depth": 10, "stepdown": 5},
        "elements": [{"type": "cylinder", "id": "boss", "radius": 10, "height": 20}],
    }))
    return p


class TestMain:
    def test_writes_program_and_report(self, job_file: Path, tmp_path: Path) -> None:
        out = tmp_path / "out" / "boss.nc"
        report = tmp_path / "out" / "report.json"
        rc = main([str(job_file), "-o", str(out), "--report", str(report)])
        assert rc == 0
        text = out.read_text()
        assert text.splitlines()[-1] == "%"
        data = json.loads(report.read_text())
        assert data["moves"]["arc"] == 2
        assert data["warnings"] == []

    def test_dialect_and_optimize(self, job_file: Path, tmp_path: Path) -> None:
        out = tmp_path / "boss.h"
        rc = main([str(job_file), "-o", str(out), "-d", "heidenhain", "--optimize"])
        assert rc == 0
        assert "BEGIN PGM 1000 MM" in out.read_text()

    def test_convert_from_generic(self, job_file: Path, tmp_path: Path) -> None:
        out = tmp_path / "boss.nc"
        assert main([str(job_file), "-o", str(out), "--convert-from-generic"]) == 0
        assert "G0 X10.000 Y0.000 Z10.000 ; Move above start position" in out.read_text()

    def test_missing_job(self, tmp_path: Path) -> None:
        assert main([str(tmp_path / "missing.yaml")]) == 1

    def test_bad_settings(self, tmp_path: Path) -> None:
        p = tmp_path / "bad.yaml"
        p.write_text(yaml.safe_dump({"elements": [], "settings": {"flutes": 0}}))
        assert main([str(p)]) == 1

    def test_unknown_dialect_rejected(self, job_file: Path) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args([str(job_file), "-d", "siemens"])

    def test_unwritable_output(self, job_file: Path, tmp_path: Path) -> None:
        blocker = tmp_path / "out"
        blocker.write_text("")
        assert main([str(job_file), "-o", str(blocker / "boss.nc")]) == 1
