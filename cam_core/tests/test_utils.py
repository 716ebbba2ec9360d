"""Tests for the filesystem and logging helpers."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from cam_core.utils import fs
from cam_core.utils.logging_config import (
    ContextFormatter,
    element_context,
    pop_context,
    push_context,
    setup_logging,
)


@pytest.fixture
def record() -> logging.LogRecord:
    return logging.LogRecord("cam_core.test", logging.INFO, __file__, 1, "Slicing", None, None)


# ---------------------------------------------------------------------------
# Filesystem
# ---------------------------------------------------------------------------


class TestFs:
    def test_atomic_write_creates_parents(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b" / "prog.nc"
        fs.atomic_write_text(target, "G0 X0\n")
        assert target.read_text() == "G0 X0\n"
        assert not target.with_suffix(".nc.tmp").exists()

    def test_atomic_write_overwrites(self, tmp_path: Path) -> None:
        target = tmp_path / "prog.nc"
        fs.atomic_write_text(target, "old")
        fs.atomic_write_text(target, "new")
        assert target.read_text() == "new"

    def test_atomic_write_parent_is_file(self, tmp_path: Path) -> None:
        blocker = tmp_path / "out"
        blocker.write_text("")
        with pytest.raises(RuntimeError, match="atomically"):
            fs.atomic_write_text(blocker / "prog.nc", "G0 X0\n")

    def test_load_structured_json(self, tmp_path: Path) -> None:
        p = tmp_path / "job.json"
        p.write_text(json.dumps({"elements": [1]}))
        assert fs.load_structured(p) == {"elements": [1]}

    def test_load_structured_bad_json(self, tmp_path: Path) -> None:
        p = tmp_path / "job.json"
        p.write_text("{")
        with pytest.raises(ValueError, match="Failed to parse JSON"):
            fs.load_structured(p)

    def test_load_yaml_missing(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            fs.load_yaml(tmp_path / "none.yaml")

    def test_ensure_dir(self, tmp_path: Path) -> None:
        d = fs.ensure_dir(tmp_path / "x" / "y")
        assert d.is_dir()


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


class TestLogging:
    def test_unknown_level(self) -> None:
        with pytest.raises(ValueError, match="Unknown log level"):
            setup_logging(log_level="LOUD")

    def test_idempotent(self, tmp_path: Path) -> None:
        setup_logging(log_level="DEBUG", log_file=str(tmp_path / "run.log"))
        handlers = setup_logging(log_level="INFO", log_file=str(tmp_path / "run.log"))
        root = logging.getLogger()
        assert len(root.handlers) == len(handlers) == 2
        assert root.level == logging.INFO

    def test_bad_rotation(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="rotation"):
            setup_logging(log_file=str(tmp_path / "r.log"), rotate={"mode": "weekly"})

    def test_element_context_fields(self, record: logging.LogRecord) -> None:
        fmt = ContextFormatter("human", use_color=False)
        with element_context(element="c1", kind="cylinder"):
            line = fmt.format(record)
        assert "| element=c1 kind=cylinder | Slicing" in line
        assert "element=" not in fmt.format(record)

    def test_json_mode(self, record: logging.LogRecord) -> None:
        fmt = ContextFormatter("json", use_color=False)
        push_context(job="bracket")
        try:
            payload = json.loads(fmt.format(record))
        finally:
            pop_context(["job"])
        assert payload["job"] == "bracket"
        assert payload["msg"] == "Slicing"
        assert payload["lvl"] == "INFO"
