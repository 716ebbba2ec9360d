"""Toolpath IR -- the vocabulary between geometry and G-code text.

Every move is an immutable, slotted dataclass in absolute document
millimetres.  A :class:`ToolpathOperation` is one element's toolpath:
an ordered tuple of :class:`ZLevel` groups, top to bottom, each holding
the moves cut at that height.  Emission to a controller dialect happens
only in :mod:`cam_core.gcode`.

Grouping
--------
Levels that could not be cut (tool offset collapsed the section) are
kept as ``ZLevel(skipped=True)`` with an explanatory :class:`Comment`
instead of being dropped, so the level count always matches the
slicing schedule.
"""

from __future__ import annotations

from abc import ABC
from dataclasses import dataclass, field
from typing import Iterator

import numpy as np

# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Move(ABC):
    """Base class for all toolpath moves."""

    pass


# ---------------------------------------------------------------------------
# Motion
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Rapid(Move):
    """Positioning move at rapid traverse (G0).  Omitted axes stay put."""

    x: float | None = None
    y: float | None = None
    z: float | None = None
    comment: str | None = None

    def __post_init__(self) -> None:
        if self.x is None and self.y is None and self.z is None:
            raise ValueError("Rapid needs at least one axis")


@dataclass(frozen=True, slots=True)
class Linear(Move):
    """Cutting move at *feed* (G1).  Omitted axes stay put.

    Parameters
    ----------
    x, y, z : float | None
        Target coordinates.
    feed : float | None
        Feed in units/min.  ``None`` keeps the modal feed.
    """

    x: float | None = None
    y: float | None = None
    z: float | None = None
    feed: float | None = None
    comment: str | None = None

    def __post_init__(self) -> None:
        if self.x is None and self.y is None and self.z is None:
            raise ValueError("Linear needs at least one axis")
        if self.feed is not None and self.feed <= 0:
            raise ValueError(f"feed must be > 0, got {self.feed}")


@dataclass(frozen=True, slots=True)
class ArcMove(Move):
    """Circular move in the XY plane (G2/G3), centre-offset form.

    The arc runs from the current position to ``(x, y)``; its centre is at
    ``(start + i, start + j)``.  A full circle has end == start.
    """

    x: float
    y: float
    i: float
    j: float
    clockwise: bool = False
    feed: float | None = None
    comment: str | None = None

    @property
    def radius(self) -> float:
        return float(np.hypot(self.i, self.j))


@dataclass(frozen=True, slots=True)
class Comment(Move):
    """Free-text line in the program (``; text``)."""

    text: str


# ---------------------------------------------------------------------------
# Grouping
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ZLevel:
    """Moves cut at one height.

    Parameters
    ----------
    z : float
        Cutting height.
    moves : tuple[Move, ...]
        Rapid-in, plunge and cutting moves (or a single comment when
        *skipped*).
    size : float | None
        Effective section size after offset (radius or half-width), for
        comments and tests.
    skipped : bool
        True when the section collapsed and nothing is cut here.
    """

    z: float
    moves: tuple[Move, ...]
    size: float | None = None
    skipped: bool = False


@dataclass(frozen=True, slots=True)
class ToolpathOperation:
    """One element's toolpath.

    Parameters
    ----------
    label : str
        Element description for the program comment.
    levels : tuple[ZLevel, ...]
        Strictly decreasing Z.
    notes : tuple[str, ...]
        Extra comment lines emitted before the first level (fallback
        reasons, approximations).
    """

    label: str
    levels: tuple[ZLevel, ...] = ()
    notes: tuple[str, ...] = field(default=())

    def __post_init__(self) -> None:
        zs = [lvl.z for lvl in self.levels]
        if any(b >= a for a, b in zip(zs, zs[1:])):
            raise ValueError(f"Z-levels must strictly decrease, got {zs}")

    @property
    def cut_levels(self) -> tuple[ZLevel, ...]:
        return tuple(lvl for lvl in self.levels if not lvl.skipped)

    def moves(self) -> Iterator[Move]:
        for lvl in self.levels:
            yield from lvl.moves
