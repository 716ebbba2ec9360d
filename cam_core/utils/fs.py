"""Filesystem helpers for job files and generated programs.

Provides:
    - Atomic text writes: tmp file → fsync → rename (a half-written
      program is never visible to a downstream sender or previewer)
    - YAML / JSON loading for job and settings files
    - Directory creation with exist_ok semantics

All paths use pathlib.Path.

Usage:
    from cam_core.utils import fs
    job = fs.load_structured("jobs/bracket.yaml")
    fs.atomic_write_text("out/bracket.nc", program)
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Union

import yaml


def ensure_dir(p: Union[str, Path]) -> Path:
    """Create directory if it doesn't exist, return Path object.

    Parameters
    ----------
    p : Union[str, Path]
        Directory path

    Returns
    -------
    Path
        Path object (guaranteed to exist)
    """
    p = Path(p)
    p.mkdir(parents=True, exist_ok=True)
    return p


def atomic_write_text(
    path: Union[str, Path],
    text: str,
    encoding: str = "utf-8",
    tmp_suffix: str = ".tmp"
) -> None:
    """Write text to file atomically (tmp → fsync → rename).

    Parameters
    ----------
    path : Union[str, Path]
        Target file path
    text : str
        Content to write
    encoding : str
        Text encoding, default "utf-8"
    tmp_suffix : str
        Temporary file suffix, default ".tmp"

    Raises
    ------
    RuntimeError
        If the parent directory cannot be created, or the write or the
        rename fails. The temporary file is removed.
    """
    path = Path(path)
    tmp_path = path.with_suffix(path.suffix + tmp_suffix)

    try:
        ensure_dir(path.parent)
        with open(tmp_path, 'w', encoding=encoding) as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())

        tmp_path.replace(path)
    except OSError as e:
        if tmp_path.exists():
            tmp_path.unlink()
        raise RuntimeError(f"Failed to write {path} atomically: {e}") from e


def load_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    """Load YAML file safely.

    Parameters
    ----------
    path : Union[str, Path]
        YAML file path

    Returns
    -------
    Dict[str, Any]
        Parsed YAML content (``None`` for an empty file)

    Raises
    ------
    FileNotFoundError
        If file doesn't exist
    yaml.YAMLError
        If YAML parsing fails

    Notes
    -----
    Uses safe_load to prevent arbitrary code execution.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"YAML file not found: {path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Failed to parse YAML file {path}: {e}") from e


def load_structured(path: Union[str, Path]) -> Dict[str, Any]:
    """Load a job file written as JSON (``.json``) or YAML (anything else).

    Element documents exported from the CAD side are JSON; hand-written
    jobs are usually YAML.  JSON is a YAML subset, but parsing it with
    :mod:`json` gives better error positions.

    Raises
    ------
    FileNotFoundError
        If file doesn't exist
    ValueError
        If the JSON is malformed
    """
    path = Path(path)
    if path.suffix.lower() != ".json":
        return load_yaml(path)

    if not path.exists():
        raise FileNotFoundError(f"JSON file not found: {path}")

    with open(path, 'r', encoding='utf-8') as f:
        try:
            return json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Failed to parse JSON file {path}: {e}") from e
