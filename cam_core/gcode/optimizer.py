"""Rapid-retract optimizer.

A single forward fold over the parsed program.  A rapid move that carries
only a Z word and raises Z at a known X/Y position is *deferred* instead
of being written immediately:

* the next motion that changes X/Y gets the pending raise written right
  before it (the tool still clears the part on the way over);
* a motion that keeps X/Y (a plunge back down at the same spot) drops
  the pending raise -- going up and straight back down is wasted time;
* a newer Z-only raise replaces the pending one;
* any non-motion command (M-codes, cycles, program end) and the end of
  the stream flush the pending raise first, so retracts are never moved
  past a spindle stop.

Comments and blank lines pass straight through.  The fold state is an
explicit immutable accumulator; running the optimizer on its own output
yields identical text.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from cam_core.gcode.parser import Command, Instruction, parse_line

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class _FoldState:
    """Accumulator threaded through the fold."""

    x: float | None = None
    y: float | None = None
    z: float | None = None
    pending: Command | None = None
    dropped: int = 0


def _is_z_raise(cmd: Command, state: _FoldState) -> bool:
    if not cmd.is_rapid or state.x is None or state.y is None or state.z is None:
        return False
    if cmd.has_axis("X") or cmd.has_axis("Y"):
        return False
    z = cmd.get("Z")
    return z is not None and z > state.z


def _changes_xy(cmd: Command, state: _FoldState) -> bool:
    x, y = cmd.get("X"), cmd.get("Y")
    return (x is not None and x != state.x) or (y is not None and y != state.y)


def _advance(cmd: Command, state: _FoldState) -> _FoldState:
    """Position after executing *cmd*."""
    x, y, z = cmd.get("X"), cmd.get("Y"), cmd.get("Z")
    return replace(
        state,
        x=state.x if x is None else x,
        y=state.y if y is None else y,
        z=state.z if z is None else z,
    )


def step(state: _FoldState, instr: Instruction) -> tuple[_FoldState, list[str]]:
    """One fold step: new state and the lines to write for *instr*."""
    if not isinstance(instr, Command):
        return state, [instr.raw]

    if _is_z_raise(instr, state):
        dropped = state.dropped + (state.pending is not None)
        return replace(state, pending=instr, dropped=dropped), []

    pending = state.pending
    if pending is None:
        return _advance(instr, state), [instr.raw]

    if not instr.is_motion or _changes_xy(instr, state):
        flushed = _advance(pending, replace(state, pending=None))
        return _advance(instr, flushed), [pending.raw, instr.raw]

    # Same X/Y: the raise was redundant.
    cleared = replace(state, pending=None, dropped=state.dropped + 1)
    return _advance(instr, cleared), [instr.raw]


def optimize(text: str) -> str:
    """Collapse redundant Z-only rapid raises in *text*.

    Parameters
    ----------
    text : str
        G-code program (any dialect the parser understands).

    Returns
    -------
    str
        Optimized program; a trailing newline is kept when the input had
        one.
    """
    state = _FoldState()
    out: list[str] = []
    for line in text.splitlines():
        state, emitted = step(state, parse_line(line))
        out.extend(emitted)
    if state.pending is not None:
        out.append(state.pending.raw)

    if state.dropped:
        logger.info("Optimizer removed %d redundant rapid raise(s)", state.dropped)

    result = "\n".join(out)
    if text.endswith("\n"):
        result += "\n"
    return result
