"""Program statistics -- a dry pass over emitted G-code.

Single forward pass that tracks the tool position (starting at the
origin) and accumulates:

* line and comment-line counts;
* rapid / linear / arc move counts;
* travel distance -- straight moves are 3D Euclidean, arcs are
  approximated as ``chord * pi / 2`` (a half circle on the chord);
* estimated cutting time ``sum(distance / F) * 60`` seconds over feed
  moves (rapids have no programmed feed and are not timed);
* the set of programmed feed rates and the Z range of straight moves;
* the :func:`~cam_core.gcode.validator.validate` warnings.

Heidenhain ``L`` / ``C`` lines are understood as well as ``G0``-``G3``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any

from cam_core.gcode.parser import Command, CommentLine, parse_line
from cam_core.gcode.validator import validate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisReport:
    """Aggregated statistics for one program.

    Attributes
    ----------
    total_lines, comments : int
        Line counts (comments = comment-only lines).
    rapid_moves, linear_moves, arc_moves : int
        Move counts by type.
    total_distance : float
        Travel distance in program units.
    estimated_time_s : float
        Cutting time in seconds.
    feedrates : tuple[float, ...]
        Distinct programmed feeds, ascending.
    z_min, z_max : float | None
        Z range visited by straight moves; ``None`` when Z never appears.
    warnings : tuple[str, ...]
        Validator output.
    """

    total_lines: int
    comments: int
    rapid_moves: int
    linear_moves: int
    arc_moves: int
    total_distance: float
    estimated_time_s: float
    feedrates: tuple[float, ...]
    z_min: float | None
    z_max: float | None
    warnings: tuple[str, ...] = field(default=())

    @property
    def total_moves(self) -> int:
        return self.rapid_moves + self.linear_moves + self.arc_moves

    @property
    def estimated_time_min(self) -> float:
        return self.estimated_time_s / 60.0

    def to_dict(self) -> dict[str, Any]:
        """Plain mapping for the results surface (JSON/YAML friendly)."""
        return {
            "totalLines": self.total_lines,
            "comments": self.comments,
            "moves": {
                "rapid": self.rapid_moves,
                "linear": self.linear_moves,
                "arc": self.arc_moves,
                "total": self.total_moves,
            },
            "distance": {"total": round(self.total_distance, 2), "unit": "mm"},
            "time": {
                "estimated": round(self.estimated_time_min, 2),
                "seconds": round(self.estimated_time_s, 2),
                "unit": "minutes",
            },
            "feedrates": list(self.feedrates),
            "zRange": {
                "min": None if self.z_min is None else round(self.z_min, 2),
                "max": None if self.z_max is None else round(self.z_max, 2),
                "unit": "mm",
            },
            "warnings": list(self.warnings),
        }


def analyze(text: str) -> AnalysisReport:
    """Analyze a G-code program.

    Parameters
    ----------
    text : str
        Complete program text.

    Returns
    -------
    AnalysisReport
        Counts, distance, time estimate, feeds, Z range and warnings.
    """
    lines = text.splitlines()
    comments = rapid = linear = arc = 0
    distance = seconds = 0.0
    feeds: set[float] = set()
    z_seen: list[float] = []

    x = y = z = 0.0
    feed = 0.0

    for line in lines:
        instr = parse_line(line)
        if isinstance(instr, CommentLine):
            comments += 1
            continue
        if not isinstance(instr, Command) or not instr.is_motion:
            continue

        f = instr.get("F")
        if f is not None and f > 0 and not instr.is_rapid:
            feed = f
            feeds.add(f)

        nx = instr.get("X")
        ny = instr.get("Y")
        nx = x if nx is None else nx
        ny = y if ny is None else ny

        if instr.is_arc:
            arc += 1
            step = math.hypot(nx - x, ny - y) * math.pi / 2
            x, y = nx, ny
        else:
            nz = instr.get("Z")
            nz = z if nz is None else nz
            step = math.dist((x, y, z), (nx, ny, nz))
            x, y, z = nx, ny, nz
            if instr.get("Z") is not None:
                z_seen.append(z)
            if instr.is_rapid:
                rapid += 1
            else:
                linear += 1

        distance += step
        if not instr.is_rapid and feed > 0:
            seconds += step / feed * 60.0

    report = AnalysisReport(
        total_lines=len(lines),
        comments=comments,
        rapid_moves=rapid,
        linear_moves=linear,
        arc_moves=arc,
        total_distance=distance,
        estimated_time_s=seconds,
        feedrates=tuple(sorted(feeds)),
        z_min=min(z_seen) if z_seen else None,
        z_max=max(z_seen) if z_seen else None,
        warnings=tuple(validate(text)),
    )
    logger.debug(
        "Analyzed %d lines: %d moves, %.1f mm, %.1f s",
        report.total_lines, report.total_moves, distance, seconds,
    )
    return report
