"""Dialect converter -- re-emit generic G-code for another controller.

Works line by line on :mod:`cam_core.gcode.parser` instructions:

* blank and comment-only lines pass through unchanged;
* ``G0`` / ``G1`` commands are rebuilt from their X/Y/Z/F words through
  :mod:`cam_core.gcode.dialects` for the target controller, keeping any
  trailing comment;
* every other command and every unrecognised line passes through
  verbatim.

Limitation: only ``G0``/``G1`` are translated.  Arcs, cycles and M-codes
are left as written, which is correct for Fanuc and Generic targets and
leaves Fanuc-style lines in a Heidenhain program.  Nothing is dropped, so
the gap is visible in the output rather than silently corrupted.

A malformed number (``X1.2.3``) is treated as an absent coordinate and
omitted from the rebuilt move.
"""

from __future__ import annotations

import logging

from cam_core.configs.loader import ControllerDialect
from cam_core.gcode import dialects
from cam_core.gcode.parser import Command, Instruction, parse_line

logger = logging.getLogger(__name__)

_TRANSLATED = ("G0", "G1")


def convert_instruction(instr: Instruction, target: ControllerDialect) -> str:
    """Text for one parsed line in the *target* dialect."""
    if not isinstance(instr, Command) or instr.code not in _TRANSLATED:
        return instr.raw

    x, y, z = instr.get("X"), instr.get("Y"), instr.get("Z")
    if x is None and y is None and z is None:
        logger.warning("No usable coordinates, kept verbatim: %s", instr.raw.strip())
        return instr.raw

    if instr.code == "G0":
        return dialects.rapid_move(target, x, y, z, comment=instr.comment)
    return dialects.linear_move(
        target, x, y, z, feed=instr.get("F"), comment=instr.comment,
    )


def convert(text: str, target: ControllerDialect | str) -> str:
    """Convert a generic G-code program to *target*.

    Parameters
    ----------
    text : str
        Program text (Generic or Fanuc syntax).
    target : ControllerDialect | str
        Controller to emit for.

    Returns
    -------
    str
        Converted program with the same number of input lines; a trailing
        newline is kept when the input had one.
    """
    target = ControllerDialect(target)
    out = [convert_instruction(parse_line(line), target) for line in text.splitlines()]
    result = "\n".join(out)
    if text.endswith("\n"):
        result += "\n"
    logger.debug("Converted %d line(s) to %s", len(out), target.value)
    return result
